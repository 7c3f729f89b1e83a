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
Upload pipeline shared by write, write_stream, update, update_stream and create_dir.

GCS overwrites on upload, so there is no create-vs-replace distinction: every
write goes through UploadPipeline.upload().
"""

import io
import mimetypes
from typing import IO, TYPE_CHECKING, Any, Callable, Dict, Union

from structlog import get_logger

from bucketfs.core.paths import PathPrefixer, is_directory_key
from bucketfs.core.translator import normalize_blob
from bucketfs.core.visibility import VisibilityMapper
from bucketfs.models.descriptor import Descriptor
from bucketfs.models.options import WriteOptions

if TYPE_CHECKING:
    from google.cloud.storage import Bucket

logger = get_logger(__name__)

Contents = Union[str, bytes, IO[bytes]]

TEXT_MIMETYPE = "text/plain"
BINARY_MIMETYPE = "application/octet-stream"


def guess_mimetype(path: str, contents: Contents) -> str:
    """
    Infer a content type from the path extension, then from the content.

    In-memory content that decodes as UTF-8 is text/plain; streams and binary
    content fall back to application/octet-stream.
    """
    mimetype, _ = mimetypes.guess_type(path)
    if mimetype:
        return mimetype
    if isinstance(contents, str):
        return TEXT_MIMETYPE
    if isinstance(contents, bytes):
        try:
            contents.decode("utf-8")
            return TEXT_MIMETYPE
        except UnicodeDecodeError:
            pass
    return BINARY_MIMETYPE


def as_stream(contents: Contents) -> IO[bytes]:
    if isinstance(contents, str):
        return io.BytesIO(contents.encode("utf-8"))
    if isinstance(contents, bytes):
        return io.BytesIO(contents)
    return contents


class ProgressReader:
    """
    Binary stream wrapper reporting cumulative bytes read to a callback.

    Seeking (the client rewinds on resumable retries) resets the count to the
    new position, so the callback never reports more than the object size.
    """

    def __init__(self, stream: IO[bytes], callback: Callable[[int], Any]):
        self._stream = stream
        self._callback = callback
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self.bytes_read += len(chunk)
            self._callback(self.bytes_read)
        return chunk

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        position = self._stream.seek(offset, whence)
        self.bytes_read = self._stream.tell()
        return position

    def __getattr__(self, name: str) -> Any:
        return getattr(self._stream, name)


class UploadPipeline:
    """Turns (path, contents, WriteOptions) into a single blob upload."""

    def __init__(self, bucket: "Bucket", prefixer: PathPrefixer, visibility: VisibilityMapper):
        self._bucket = bucket
        self._prefixer = prefixer
        self._visibility = visibility

    def upload_kwargs(self, key: str, contents: Contents, options: WriteOptions) -> Dict[str, Any]:
        """
        Keyword arguments for Blob.upload_from_string / upload_from_file.

        - predefined_acl: omitted on uniform-access buckets, which reject it
        - content_type: explicit mimetype, else inferred for non-directory keys
        """
        kwargs: Dict[str, Any] = {}

        predefined_acl = self._visibility.predefined_acl_for_upload(options.visibility)
        if predefined_acl:
            kwargs["predefined_acl"] = predefined_acl

        content_type = options.mimetype
        if content_type is None and not is_directory_key(key):
            content_type = guess_mimetype(key, contents)
        if content_type:
            kwargs["content_type"] = content_type

        return kwargs

    def upload(self, path: str, contents: Contents, options: WriteOptions) -> Descriptor:
        """
        Upload contents at `path` and return the resulting Descriptor.

        Args:
            path: Relative path; a trailing "/" uploads a directory marker
            contents: str, bytes or a readable binary stream
            options: Validated write options

        Returns:
            Descriptor built from the uploaded blob's server-side properties
        """
        key = self._prefixer.apply_prefix(path)
        kwargs = self.upload_kwargs(key, contents, options)

        blob = self._bucket.blob(key, chunk_size=options.chunk_size)
        if options.metadata:
            blob.metadata = dict(options.metadata)

        if options.progress_callback is not None or not isinstance(contents, (str, bytes)):
            stream = as_stream(contents)
            if options.progress_callback is not None:
                stream = ProgressReader(stream, options.progress_callback)
            blob.upload_from_file(stream, **kwargs)
        else:
            blob.upload_from_string(contents, **kwargs)

        logger.info(
            "Uploaded object",
            key=key,
            content_type=kwargs.get("content_type"),
            predefined_acl=kwargs.get("predefined_acl"),
        )
        return normalize_blob(blob, self._prefixer)
