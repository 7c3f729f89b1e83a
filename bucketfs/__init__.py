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
bucketfs: a Google Cloud Storage bucket exposed as a hierarchical filesystem.
"""

from .core.adapter import GoogleCloudStorageAdapter
from .models import Descriptor, ObjectType, Visibility, WriteOptions
from .utils.exceptions import (
    BucketFSError,
    ConfigurationError,
    InvalidOptionsError,
    InvalidPathError,
    InvalidVisibilityError,
    RootViolationError,
)

__version__ = "0.1.0"

__all__ = [
    "GoogleCloudStorageAdapter",
    "Descriptor",
    "ObjectType",
    "Visibility",
    "WriteOptions",
    "BucketFSError",
    "ConfigurationError",
    "InvalidOptionsError",
    "InvalidPathError",
    "InvalidVisibilityError",
    "RootViolationError",
    "__version__",
]
