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

"""Typed options accepted by the adapter's write operations."""

from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from bucketfs.models.descriptor import Visibility
from bucketfs.utils.exceptions import InvalidOptionsError

# GCS resumable uploads require chunk sizes in multiples of 256 KiB
CHUNK_SIZE_MULTIPLE = 256 * 1024


class WriteOptions(BaseModel):
    """
    Options for write/update/create_dir.

    Attributes:
        visibility: ACL posture for the new object. None means private.
        mimetype: Explicit content type. None means infer from the path.
        metadata: Custom object metadata (x-goog-meta-*)
        chunk_size: Resumable upload chunk size in bytes (multiple of 256 KiB)
        progress_callback: Called with the cumulative number of bytes sent
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    visibility: Optional[Visibility] = None
    mimetype: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None
    chunk_size: Optional[int] = None
    progress_callback: Optional[Callable[[int], Any]] = None

    @field_validator("visibility", mode="before")
    @classmethod
    def parse_visibility(cls, value: Any) -> Optional[Visibility]:
        # same spellings set_visibility accepts ("PUBLIC", " private ")
        return value if value is None else Visibility.parse(value)

    @field_validator("chunk_size")
    @classmethod
    def check_chunk_size(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        if value <= 0 or value % CHUNK_SIZE_MULTIPLE:
            raise ValueError(f"chunk_size must be a positive multiple of {CHUNK_SIZE_MULTIPLE} bytes")
        return value

    @classmethod
    def coerce(cls, options: Union["WriteOptions", Dict[str, Any], None]) -> "WriteOptions":
        """
        Validate caller options once at the adapter boundary.

        Args:
            options: WriteOptions instance, plain dict, or None

        Returns:
            WriteOptions instance

        Raises:
            InvalidOptionsError: If the dict contains unknown keys or invalid values
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        try:
            return cls.model_validate(options)
        except ValidationError as e:
            raise InvalidOptionsError("Invalid write options", errors=e.errors()) from e
