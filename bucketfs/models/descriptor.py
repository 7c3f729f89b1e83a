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
Descriptor model: the normalised view of a bucket object as a file or directory.

Descriptors are value objects built fresh from live bucket state on every
adapter call. Their ``path`` never carries the adapter's configured prefix.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from bucketfs.utils.exceptions import InvalidVisibilityError


class ObjectType(str, Enum):
    """
    Kind of entry in the emulated filesystem.

    - FILE: a regular object
    - DIR: a marker object whose key ends with "/", or a directory inferred
      from the keys of listed objects
    """

    FILE = "file"
    DIR = "dir"


class Visibility(str, Enum):
    """Access posture of an object, mapped onto GCS ACLs."""

    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: Union["Visibility", str]) -> "Visibility":
        """
        Coerce a caller-supplied value into a Visibility.

        Raises:
            InvalidVisibilityError: If value is not 'public' or 'private'
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidVisibilityError(f"Unknown visibility: {value!r}", visibility=value) from None


class Descriptor(BaseModel):
    """
    Normalised file or directory record.

    Attributes:
        type: file or dir
        path: Path relative to the adapter prefix (no trailing "/" for dirs)
        dirname: Parent path, "" at the top level
        timestamp: Last modification as Unix epoch seconds
        mimetype: Content type, "" when the backend has none
        size: Byte length (0 for directory markers)
        basename: Last path segment (synthesised directories only)
        filename: Last path segment without extension (synthesised directories only)
        contents: Object bytes (read only)
        stream: Open binary stream, owned and closed by the caller (read_stream only)
        visibility: public/private (set_visibility / get_visibility only)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: ObjectType
    path: str
    dirname: str = ""
    timestamp: Optional[int] = None
    mimetype: Optional[str] = None
    size: Optional[int] = None
    basename: Optional[str] = None
    filename: Optional[str] = None
    contents: Optional[bytes] = None
    stream: Optional[Any] = None
    visibility: Optional[Visibility] = None

    @property
    def is_dir(self) -> bool:
        return self.type is ObjectType.DIR

    @property
    def is_file(self) -> bool:
        return self.type is ObjectType.FILE

    def to_dict(self) -> Dict[str, Any]:
        """Return only the populated fields, e.g. for JSON output or equality checks."""
        return self.model_dump(exclude_none=True)
