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
Translation of GCS blobs into Descriptors, plus directory emulation.

GCS lists keys, not directories. A listing of "a/b/c.txt" alone says nothing
about "a" or "a/b"; emulate_directories() synthesises those parents so the
listing reads like a filesystem tree.
"""

import posixpath
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, List, Optional, Union

from bucketfs.core.paths import SEPARATOR, PathPrefixer, classify, parent_dirname
from bucketfs.models.descriptor import Descriptor, ObjectType

if TYPE_CHECKING:
    from google.cloud.storage import Blob


def to_timestamp(value: Union[datetime, str, None]) -> Optional[int]:
    """
    Convert a blob modification time to Unix epoch seconds.

    Accepts the datetime exposed by Blob.updated or a raw RFC 3339 string
    ("2016-09-26T14:44:42+00:00", "2016-09-26T14:44:42.123Z"). Naive values
    are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def normalize_blob(blob: "Blob", prefixer: PathPrefixer) -> Descriptor:
    """
    Build a Descriptor from a blob handle whose properties are loaded.

    Args:
        blob: Blob returned by an upload, reload, copy or listing
        prefixer: Adapter prefix to strip from the blob name

    Returns:
        Descriptor with type, dirname, path, timestamp, mimetype and size
    """
    name = prefixer.strip_prefix(blob.name)
    object_type = classify(blob.name)
    if object_type is ObjectType.DIR:
        name = name.rstrip(SEPARATOR)

    return Descriptor(
        type=object_type,
        dirname=parent_dirname(name),
        path=name,
        timestamp=to_timestamp(blob.updated),
        mimetype=blob.content_type or "",
        size=int(blob.size or 0),
    )


def synthesize_directory(path: str) -> Descriptor:
    """Descriptor for a directory inferred from listed keys (no backing object)."""
    basename = posixpath.basename(path)
    return Descriptor(
        type=ObjectType.DIR,
        path=path,
        dirname=parent_dirname(path),
        basename=basename,
        filename=posixpath.splitext(basename)[0],
    )


def emulate_directories(listing: Iterable[Descriptor]) -> List[Descriptor]:
    """
    Append a synthesised dir for every ancestor that has no marker object.

    Real entries keep their order; synthesised ones follow in the order their
    paths were first seen, deepest ancestor of each entry first.
    """
    entries = list(listing)
    listed_dirs = {entry.path for entry in entries if entry.is_dir}

    ancestors: List[str] = []
    seen = set()
    for entry in entries:
        parent = entry.dirname
        while parent and parent not in seen:
            seen.add(parent)
            ancestors.append(parent)
            parent = parent_dirname(parent)

    return entries + [synthesize_directory(path) for path in ancestors if path not in listed_dirs]


def filter_direct_children(listing: Iterable[Descriptor], directory: str) -> List[Descriptor]:
    """Keep entries whose parent is exactly `directory` (shallow listing)."""
    directory = directory.strip(SEPARATOR)
    return [entry for entry in listing if entry.path and entry.dirname == directory]


def filter_descendants(listing: Iterable[Descriptor], directory: str) -> List[Descriptor]:
    """Keep entries strictly below `directory`, dropping the directory itself and its ancestors."""
    directory = directory.strip(SEPARATOR)
    if not directory:
        # the prefix's own marker object normalises to an empty path
        return [entry for entry in listing if entry.path]
    boundary = directory + SEPARATOR
    return [entry for entry in listing if entry.path.startswith(boundary)]
