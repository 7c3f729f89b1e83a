# Copyright 2026 The bucketfs Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Custom exception classes for bucketfs.

Only caller mistakes detected at the adapter boundary (bad visibility values,
invalid write options, missing configuration) are raised as bucketfs errors.
Failures reported by the storage backend (google.api_core.exceptions.NotFound,
Forbidden, transport errors, ...) propagate to the caller untouched.

Example:
    try:
        adapter.set_visibility("report.pdf", "world-readable")
    except InvalidVisibilityError as e:
        logger.warning("Rejected visibility", error=e.message, **e.context)
"""


class BucketFSError(Exception):
    """
    Base exception for all bucketfs errors.

    Attributes:
        message: Human-readable error message
        context: Optional dict of additional error context (path, visibility, ...)

    Example:
        raise BucketFSError("Cannot build adapter", bucket="media")
    """

    def __init__(self, message: str, **context):
        """
        Initialize BucketFSError.

        Args:
            message: Human-readable error message
            **context: Optional keyword arguments for error context
        """
        super().__init__(message)
        self.message = message
        self.context = context if context else {}

    def __str__(self):
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self):
        if self.context:
            return f"{type(self).__name__}(message={self.message!r}, context={self.context!r})"
        return f"{type(self).__name__}(message={self.message!r})"


class ConfigurationError(BucketFSError):
    """Raised when required configuration is missing or invalid."""

    pass


class InvalidVisibilityError(BucketFSError, ValueError):
    """Raised when a visibility value is neither 'public' nor 'private'."""

    pass


class InvalidOptionsError(BucketFSError, ValueError):
    """
    Raised when write options fail validation.

    The pydantic error list is kept in ``context["errors"]``.
    """

    pass


class InvalidPathError(BucketFSError, ValueError):
    """Raised when a path resolves to an empty object key."""

    pass


class RootViolationError(BucketFSError):
    """Raised when an operation would delete the root directory."""

    pass


__all__ = [
    "BucketFSError",
    "ConfigurationError",
    "InvalidVisibilityError",
    "InvalidOptionsError",
    "InvalidPathError",
    "RootViolationError",
]
