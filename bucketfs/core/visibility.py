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
Mapping between filesystem visibility and GCS access control.

An object is public when the "allUsers" entity holds the READER role on its
ACL, private otherwise. Buckets with uniform bucket-level access disable
per-object ACLs altogether; objects there are always reported private and no
predefined ACL is ever sent for them.
"""

from typing import TYPE_CHECKING, Optional, Union

from structlog import get_logger

from bucketfs.models.descriptor import Visibility

if TYPE_CHECKING:
    from google.cloud.storage import Blob, Bucket

logger = get_logger(__name__)

ALL_USERS = "allUsers"
READER_ROLE = "READER"

PREDEFINED_ACL_PUBLIC = "publicRead"
PREDEFINED_ACL_PRIVATE = "projectPrivate"


def visibility_to_predefined_acl(visibility: Union[Visibility, str, None]) -> str:
    """
    Predefined ACL token applied at object write time.

    Anything other than public, including None, maps to projectPrivate: an
    object written without an ACL is not reachable from the Cloud Console.
    """
    return PREDEFINED_ACL_PUBLIC if visibility == Visibility.PUBLIC else PREDEFINED_ACL_PRIVATE


class VisibilityMapper:
    """Reads and writes object visibility through the bucket's ACL primitives."""

    def __init__(self, bucket: "Bucket"):
        self._bucket = bucket

    def uniform_bucket_level_access_enabled(self) -> bool:
        """Whether the bucket enforces uniform bucket-level access (no object ACLs)."""
        if self._bucket.etag is None:
            # handle built with client.bucket(name) never fetched its metadata
            self._bucket.reload()
        return bool(self._bucket.iam_configuration.uniform_bucket_level_access_enabled)

    def predefined_acl_for_upload(self, visibility: Optional[Visibility]) -> Optional[str]:
        """Predefined ACL to send with an upload, or None on uniform-access buckets."""
        if self.uniform_bucket_level_access_enabled():
            return None
        return visibility_to_predefined_acl(visibility)

    def read_visibility(self, blob: "Blob") -> Visibility:
        if self.uniform_bucket_level_access_enabled():
            return Visibility.PRIVATE

        entry = blob.acl.get_entity(ALL_USERS, default=None)
        if entry is None:
            logger.debug("No allUsers ACL entry", key=blob.name)
            return Visibility.PRIVATE

        return Visibility.PUBLIC if READER_ROLE in entry.get_roles() else Visibility.PRIVATE

    def apply_visibility(self, blob: "Blob", visibility: Visibility) -> None:
        """
        Grant or remove public read access on a single object.

        Making an object private removes every role held by allUsers. An
        object without an allUsers entry is already private and is left alone.
        """
        acl = blob.acl
        if visibility is Visibility.PRIVATE:
            entry = acl.get_entity(ALL_USERS, default=None)
            if entry is None:
                logger.debug("Object already private", key=blob.name)
                return
            for role in list(entry.get_roles()):
                entry.revoke(role)
        else:
            acl.all().grant_read()

        acl.save()
        logger.info("Visibility updated", key=blob.name, visibility=visibility.value)

    def apply_predefined_acl(self, blob: "Blob", visibility: Visibility) -> None:
        """Replace an existing object's ACL with the predefined ACL for `visibility`."""
        if self.uniform_bucket_level_access_enabled():
            return
        blob.acl.save_predefined(visibility_to_predefined_acl(visibility))
