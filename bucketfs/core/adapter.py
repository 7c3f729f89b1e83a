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
Hierarchical filesystem adapter over a Google Cloud Storage bucket.

Design Philosophy:
    - Injected backend: the storage client and bucket handles are built by the
      caller (see bucketfs.utils.config.create_adapter), never here
    - Stateless: every call reads live bucket state; nothing is cached
    - Backend errors propagate: google.api_core exceptions reach the caller
      unchanged, only ACL absence is translated (to private)

Usage:
    from google.cloud import storage
    from bucketfs import GoogleCloudStorageAdapter

    client = storage.Client()
    adapter = GoogleCloudStorageAdapter(client, client.bucket("media"), path_prefix="site")

    adapter.write("docs/readme.md", "# Hello", {"visibility": "public"})
    for entry in adapter.list_contents("docs", recursive=True):
        print(entry.type.value, entry.path, entry.size)

    adapter.get_url("docs/readme.md")
    # "https://storage.googleapis.com/media/site/docs/readme.md"
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from structlog import get_logger

from bucketfs.core.paths import (
    SEPARATOR,
    PathPrefixer,
    classify,
    is_directory_key,
    normalize_directory_name,
    parent_dirname,
)
from bucketfs.core.translator import (
    emulate_directories,
    filter_descendants,
    filter_direct_children,
    normalize_blob,
)
from bucketfs.core.upload import Contents, UploadPipeline
from bucketfs.core.urls import Expiration, UrlBuilder
from bucketfs.core.visibility import VisibilityMapper
from bucketfs.models.descriptor import Descriptor, Visibility
from bucketfs.models.options import WriteOptions
from bucketfs.utils.exceptions import InvalidPathError, RootViolationError

if TYPE_CHECKING:
    from google.cloud.storage import Blob, Bucket, Client as GCSClient

logger = get_logger(__name__)

Options = Union[WriteOptions, Dict[str, Any], None]


class GoogleCloudStorageAdapter:
    """
    Files, directories and visibility on top of a flat GCS key space.

    Directories are zero-byte marker objects whose key ends with "/", or are
    inferred from the keys of listed files. Visibility maps to the allUsers
    READER grant on the object ACL.
    """

    def __init__(
        self,
        storage_client: "GCSClient",
        bucket: "Bucket",
        path_prefix: Optional[str] = None,
        storage_api_uri: Optional[str] = None,
    ):
        """
        Initialize the adapter.

        Args:
            storage_client: google.cloud.storage.Client used for listings
            bucket: Bucket handle all objects live in
            path_prefix: Optional prefix applied to every key (e.g., "tenant-a")
            storage_api_uri: Base URI for public URLs (default: https://storage.googleapis.com)
        """
        self._storage_client = storage_client
        self._bucket = bucket
        self._prefixer = PathPrefixer(path_prefix)
        self._visibility = VisibilityMapper(bucket)
        self._uploads = UploadPipeline(bucket, self._prefixer, self._visibility)
        self._urls = UrlBuilder(bucket, self._prefixer, storage_api_uri)

    @property
    def storage_client(self) -> "GCSClient":
        return self._storage_client

    @property
    def bucket(self) -> "Bucket":
        return self._bucket

    @property
    def path_prefix(self) -> str:
        """Normalised key prefix ("" or ending with "/")."""
        return self._prefixer.prefix

    @path_prefix.setter
    def path_prefix(self, value: Optional[str]) -> None:
        self._prefixer.prefix = value

    @property
    def storage_api_uri(self) -> str:
        return self._urls.storage_api_uri

    @storage_api_uri.setter
    def storage_api_uri(self, value: str) -> None:
        self._urls.storage_api_uri = value

    def uniform_bucket_level_access_enabled(self) -> bool:
        return self._visibility.uniform_bucket_level_access_enabled()

    def _blob(self, path: str) -> "Blob":
        """
        Blob handle for a relative path (no request is made).

        Raises:
            InvalidPathError: If the path and prefix resolve to an empty key
        """
        key = self._prefixer.apply_prefix(path)
        if not key:
            raise InvalidPathError("Path resolves to an empty object key", path=path)
        return self._bucket.blob(key)

    def _load_blob(self, path: str) -> "Blob":
        """Blob handle with server-side properties fetched. Raises NotFound if missing."""
        blob = self._blob(path)
        blob.reload()
        return blob

    # Writes

    def _upload(self, path: str, contents: Contents, options: Options) -> Descriptor:
        return self._uploads.upload(path, contents, WriteOptions.coerce(options))

    def write(self, path: str, contents: Union[str, bytes], options: Options = None) -> Descriptor:
        """
        Write in-memory contents to a file, replacing any existing object.

        Args:
            path: Relative file path
            contents: Text (encoded as UTF-8) or bytes
            options: WriteOptions or equivalent dict (visibility, mimetype,
                     metadata, chunk_size, progress_callback)

        Returns:
            Descriptor of the stored object

        Raises:
            InvalidOptionsError: If options fail validation
        """
        return self._upload(path, contents, options)

    def write_stream(self, path: str, stream: Any, options: Options = None) -> Descriptor:
        """Write a readable binary stream to a file. The stream is not closed."""
        return self._upload(path, stream, options)

    def update(self, path: str, contents: Union[str, bytes], options: Options = None) -> Descriptor:
        """Same as write(): uploads overwrite."""
        return self._upload(path, contents, options)

    def update_stream(self, path: str, stream: Any, options: Options = None) -> Descriptor:
        """Same as write_stream(): uploads overwrite."""
        return self._upload(path, stream, options)

    def create_dir(self, dirname: str, options: Options = None) -> Descriptor:
        """Create a directory by uploading an empty marker object at "dirname/"."""
        return self._upload(normalize_directory_name(dirname), "", options)

    # Reads

    def read(self, path: str) -> Descriptor:
        """Download a file. The Descriptor carries the bytes in `contents`."""
        blob = self._load_blob(path)
        contents = blob.download_as_bytes()
        return normalize_blob(blob, self._prefixer).model_copy(update={"contents": contents})

    def read_stream(self, path: str) -> Descriptor:
        """
        Open a file for streaming reads.

        The Descriptor's `stream` is an open binary reader owned by the
        caller, who must close it (it is a context manager).
        """
        blob = self._load_blob(path)
        descriptor = normalize_blob(blob, self._prefixer)
        return descriptor.model_copy(update={"stream": blob.open("rb")})

    def has(self, path: str) -> bool:
        """
        Check whether a file or directory marker exists.

        A path without a trailing "/" may still name a directory, so the
        marker "path/" is checked first, then the file "path". Keys that
        resolve to nothing (the unprefixed root) never exist.
        """
        candidates = [path] if is_directory_key(path) else [path + SEPARATOR, path]
        for candidate in candidates:
            key = self._prefixer.apply_prefix(candidate)
            if key and self._bucket.blob(key).exists():
                return True
        return False

    def get_metadata(self, path: str) -> Descriptor:
        return normalize_blob(self._load_blob(path), self._prefixer)

    def get_size(self, path: str) -> Descriptor:
        return self.get_metadata(path)

    def get_mimetype(self, path: str) -> Descriptor:
        return self.get_metadata(path)

    def get_timestamp(self, path: str) -> Descriptor:
        return self.get_metadata(path)

    # Listing

    def _list(self, directory: str) -> List[Descriptor]:
        """Every entry under `directory` (recursive), with inferred parents added."""
        directory = directory.strip(SEPARATOR)
        prefix = self._prefixer.apply_prefix(normalize_directory_name(directory) if directory else "")

        blobs = self._storage_client.list_blobs(self._bucket, prefix=prefix)
        return emulate_directories(normalize_blob(blob, self._prefixer) for blob in blobs)

    def list_contents(self, directory: str = "", recursive: bool = False) -> List[Descriptor]:
        """
        List the contents of a directory.

        GCS listings are always recursive over the key space; a shallow listing
        keeps only the direct children of `directory`.

        Args:
            directory: Relative directory path ("" for the root)
            recursive: Include entries of nested directories

        Returns:
            Real entries in listing order, followed by inferred directories
        """
        listing = self._list(directory)
        if recursive:
            return filter_descendants(listing, directory)
        return filter_direct_children(listing, directory)

    # Deletes, copies, moves

    def delete(self, path: str) -> bool:
        self._blob(path).delete()
        logger.info("Deleted object", path=path)
        return True

    def delete_dir(self, dirname: str) -> bool:
        """
        Delete a directory and everything under it, best effort.

        Files go first, then directories from the deepest up. Each entry is
        deleted only if it still exists, so entries removed concurrently are
        skipped. This is not a transaction: entries written under the
        directory while it is being deleted may survive.

        Returns:
            True once the traversal completes

        Raises:
            RootViolationError: If dirname names the root ("" or "/")
        """
        directory = dirname.strip(SEPARATOR)
        if not directory:
            raise RootViolationError("Refusing to delete the root directory", prefix=self.path_prefix)
        boundary = normalize_directory_name(directory)
        entries = self._list(boundary)

        entries.sort(key=lambda entry: (entry.is_dir, -entry.path.count(SEPARATOR) if entry.is_dir else 0))

        targets = []
        for entry in entries:
            if not entry.path:
                continue
            path = normalize_directory_name(entry.path) if entry.is_dir else entry.path
            # entries must still fall under the target directory
            if path.startswith(boundary):
                targets.append(path)

        deleted = 0
        for path in targets:
            if self.has(path):
                self.delete(path)
                deleted += 1

        logger.info("Deleted directory", directory=boundary, listed=len(entries), deleted=deleted)
        return True

    def copy(self, path: str, newpath: str) -> bool:
        """
        Copy a file, giving the copy the same visibility as the source.
        """
        source = self._blob(path)
        visibility = self._visibility.read_visibility(source)

        destination = self._bucket.copy_blob(source, self._bucket, self._prefixer.apply_prefix(newpath))
        self._visibility.apply_predefined_acl(destination, visibility)

        logger.info("Copied object", source=path, destination=newpath, visibility=visibility.value)
        return True

    def rename(self, path: str, newpath: str) -> bool:
        """Copy then delete the source. The source is kept when the copy fails."""
        if not self.copy(path, newpath):
            return False
        return self.delete(path)

    # Visibility

    def set_visibility(self, path: str, visibility: Union[Visibility, str]) -> Descriptor:
        """
        Make an object public or private.

        Raises:
            InvalidVisibilityError: If visibility is not 'public' or 'private'
        """
        visibility = Visibility.parse(visibility)
        blob = self._blob(path)
        self._visibility.apply_visibility(blob, visibility)

        blob.reload()
        return normalize_blob(blob, self._prefixer).model_copy(update={"visibility": visibility})

    def get_visibility(self, path: str) -> Descriptor:
        """
        Current visibility, recomputed from the object ACL.

        Always private on buckets with uniform bucket-level access. Returns a
        subset Descriptor (type, path, dirname, visibility) without fetching
        object metadata, so the type follows the key as given: pass
        "dir/" to read a directory marker, "dir" is looked up as a file.
        """
        visibility = self._visibility.read_visibility(self._blob(path))
        name = path.strip(SEPARATOR)
        return Descriptor(type=classify(path), path=name, dirname=parent_dirname(name), visibility=visibility)

    # URLs

    def get_url(self, path: str) -> str:
        """Public URL of an object (resolves only for public objects)."""
        return self._urls.public_url(path)

    def get_temporary_url(
        self, path: str, expiration: Expiration, options: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Signed URL for temporary access.

        Args:
            path: Relative file path
            expiration: datetime, timedelta, or seconds
            options: Extra Blob.generate_signed_url arguments (version, method, ...)
        """
        return self._urls.temporary_url(self._blob(path), path, expiration, **(options or {}))
