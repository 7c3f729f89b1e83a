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
URL generation for bucket objects.

Public URLs point at the storage API endpoint. On the default endpoint the
bucket name is the first path segment:

    https://storage.googleapis.com/{bucket}/{prefix}/{path}

A custom endpoint (CDN, load balancer, custom domain) is assumed to resolve to
the bucket already, so the bucket name is left out:

    https://cdn.example.com/{prefix}/{path}
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Optional, Union
from urllib.parse import quote

from bucketfs.core.paths import SEPARATOR, PathPrefixer

if TYPE_CHECKING:
    from google.cloud.storage import Blob, Bucket

STORAGE_API_URI_DEFAULT = "https://storage.googleapis.com"

Expiration = Union[datetime, timedelta, int]


def encode_key(key: str) -> str:
    """Percent-encode every path segment, keeping only RFC 3986 unreserved characters."""
    return SEPARATOR.join(quote(segment, safe="") for segment in key.split(SEPARATOR))


class UrlBuilder:
    """
    Builds public and signed URLs for objects.

    Usage:
        urls = UrlBuilder(bucket, PathPrefixer("assets"))
        urls.public_url("img/logo 1.png")
        # "https://storage.googleapis.com/my-bucket/assets/img/logo%201.png"
    """

    def __init__(self, bucket: "Bucket", prefixer: PathPrefixer, storage_api_uri: Optional[str] = None):
        self._bucket = bucket
        self._prefixer = prefixer
        self.storage_api_uri = storage_api_uri or STORAGE_API_URI_DEFAULT

    @property
    def uses_default_endpoint(self) -> bool:
        return self.storage_api_uri.rstrip(SEPARATOR) == STORAGE_API_URI_DEFAULT

    def public_url(self, path: str) -> str:
        """
        Public URL of an object. Only resolves for objects with public visibility.
        """
        encoded = encode_key(self._prefixer.apply_prefix(path))
        if self.uses_default_endpoint:
            encoded = f"{self._bucket.name}/{encoded}"
        return f"{self.storage_api_uri.rstrip(SEPARATOR)}/{encoded}"

    def temporary_url(self, blob: "Blob", path: str, expiration: Expiration, **options: Any) -> str:
        """
        Signed URL granting temporary access to a private object.

        On a custom endpoint the signed query string is moved onto the custom
        URL, keeping the signature while serving from the custom host.

        Args:
            blob: Blob handle of the object
            path: Relative path of the object
            expiration: Expiry as datetime, timedelta or seconds (v4 signing)
            **options: Passed to Blob.generate_signed_url (version, method, ...)
        """
        signed_url = blob.generate_signed_url(expiration=expiration, **options)
        if self.uses_default_endpoint:
            return signed_url

        _, _, query = signed_url.partition("?")
        return f"{self.public_url(path)}?{query}"
