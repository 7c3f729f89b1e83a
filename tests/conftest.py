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
Pytest fixtures for bucketfs tests.

Provides mock google-cloud-storage handles so tests never reach the network.
The mock bucket keeps a registry of blob handles by key: bucket.blob(key)
always returns the same MagicMock for a key, so tests can configure a blob
before the adapter touches it and inspect it afterwards.

Usage:
    def test_something(adapter, bucket):
        blob = bucket.blob("prefix/file.txt")
        blob.exists.return_value = False
        assert adapter.has("file.txt") is False
"""

from datetime import datetime, timezone
from typing import Optional
from unittest.mock import MagicMock

import pytest

from bucketfs.core.adapter import GoogleCloudStorageAdapter

# 2016-09-26T14:44:42Z
UPDATED = datetime(2016, 9, 26, 14, 44, 42, tzinfo=timezone.utc)
UPDATED_TIMESTAMP = 1474901082


def _make_blob(
    name: str,
    size: int = 0,
    content_type: Optional[str] = None,
    updated: Optional[datetime] = UPDATED,
) -> MagicMock:
    """
    Create a mock Blob with loaded properties.

    The ACL has no allUsers entry (private) and exists() is True.
    """
    blob = MagicMock()
    # name is a MagicMock constructor argument, so assign it afterwards
    blob.name = name
    blob.size = size
    blob.content_type = content_type
    blob.updated = updated
    blob.metadata = None
    blob.exists.return_value = True
    blob.acl.get_entity.return_value = None
    return blob


@pytest.fixture
def make_blob():
    """Factory for standalone mock blobs (e.g. listing results)."""
    return _make_blob


@pytest.fixture
def bucket():
    """Mock Bucket with fine-grained (per-object) ACLs and a blob registry."""
    bucket = MagicMock()
    bucket.name = "my-bucket"
    bucket.etag = "CAE="
    bucket.iam_configuration.uniform_bucket_level_access_enabled = False

    blobs = {}

    def blob_for(name, chunk_size=None):
        if name not in blobs:
            blobs[name] = _make_blob(name)
        return blobs[name]

    bucket.blob.side_effect = blob_for
    bucket.blobs = blobs
    return bucket


@pytest.fixture
def uniform_bucket(bucket):
    """Mock Bucket with uniform bucket-level access enabled."""
    bucket.iam_configuration.uniform_bucket_level_access_enabled = True
    return bucket


@pytest.fixture
def client():
    """Mock storage Client whose listings are empty unless configured."""
    client = MagicMock()
    client.list_blobs.return_value = []
    return client


@pytest.fixture
def adapter(client, bucket):
    """Adapter with the "prefix" key prefix on the default endpoint."""
    return GoogleCloudStorageAdapter(client, bucket, path_prefix="prefix")
