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
Path handling for the emulated filesystem.

Object keys are flat strings. A key ending in SEPARATOR is a directory marker;
everything else is a file. classify() is the only place that convention is
encoded, every other module asks it.

Usage:
    prefixer = PathPrefixer("tenant-a")
    key = prefixer.apply_prefix("docs/readme.md")   # "tenant-a/docs/readme.md"
    prefixer.strip_prefix(key)                       # "docs/readme.md"
    normalize_directory_name("docs//")               # "docs/"
"""

import posixpath
from typing import Optional

from bucketfs.models.descriptor import ObjectType

SEPARATOR = "/"
_SEPARATORS = "/\\"


def classify(key: str) -> ObjectType:
    """Classify a key (prefixed or not) as a directory marker or a file."""
    return ObjectType.DIR if key.endswith(SEPARATOR) else ObjectType.FILE


def is_directory_key(key: str) -> bool:
    return classify(key) is ObjectType.DIR


def normalize_directory_name(dirname: str) -> str:
    """Trim every trailing separator and append exactly one ("dir//" -> "dir/")."""
    return dirname.rstrip(SEPARATOR) + SEPARATOR


def parent_dirname(path: str) -> str:
    """Parent of a prefix-free path, "" for top-level entries."""
    return posixpath.dirname(path.rstrip(SEPARATOR))


class PathPrefixer:
    """
    Applies and strips the adapter's optional key prefix.

    The prefix is an internal concatenation at the storage boundary: it is
    added to every key sent to the bucket and removed from every key read back.
    """

    def __init__(self, prefix: Optional[str] = None):
        self._prefix = ""
        self.prefix = prefix

    @property
    def prefix(self) -> str:
        """Normalised prefix, either "" or ending with exactly one separator."""
        return self._prefix

    @prefix.setter
    def prefix(self, value: Optional[str]) -> None:
        value = (value or "").rstrip(_SEPARATORS)
        self._prefix = value + SEPARATOR if value else ""

    def apply_prefix(self, path: str) -> str:
        """Convert a relative path to a full object key."""
        return self._prefix + path.lstrip(_SEPARATORS)

    def strip_prefix(self, key: str) -> str:
        """Convert a full object key back to a relative path."""
        if self._prefix and key.startswith(self._prefix):
            return key[len(self._prefix) :]
        return key
