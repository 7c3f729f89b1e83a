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
Core adapter for bucketfs

The adapter composes small collaborators (path prefixing, blob translation,
visibility mapping, uploads, URLs) that can also be used on their own.
"""

from .adapter import GoogleCloudStorageAdapter
from .paths import PathPrefixer
from .urls import STORAGE_API_URI_DEFAULT, UrlBuilder
from .visibility import VisibilityMapper

__all__ = [
    "GoogleCloudStorageAdapter",
    "PathPrefixer",
    "STORAGE_API_URI_DEFAULT",
    "UrlBuilder",
    "VisibilityMapper",
]
