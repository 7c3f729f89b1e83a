"""
Unit tests for GoogleCloudStorageAdapter.

The storage client and bucket are MagicMocks (see tests/conftest.py); every
test checks the calls made against the google-cloud-storage surface and the
Descriptors returned.
"""

import io
from datetime import timedelta
from unittest.mock import MagicMock, call, patch

import pytest
from google.api_core import exceptions as gcs_exceptions

from bucketfs.core.adapter import GoogleCloudStorageAdapter
from bucketfs.models.descriptor import ObjectType, Visibility
from bucketfs.utils.exceptions import (
    InvalidOptionsError,
    InvalidPathError,
    InvalidVisibilityError,
    RootViolationError,
)

TIMESTAMP = 1474901082


def public_entry():
    entry = MagicMock()
    entry.get_roles.return_value = {"READER"}
    return entry


class TestConstruction:
    """Tests for adapter properties."""

    def test_handles_and_defaults(self, client, bucket):
        adapter = GoogleCloudStorageAdapter(client, bucket)

        assert adapter.storage_client is client
        assert adapter.bucket is bucket
        assert adapter.path_prefix == ""
        assert adapter.storage_api_uri == "https://storage.googleapis.com"

    def test_prefix_and_endpoint_are_mutable(self, adapter):
        adapter.path_prefix = "other//"
        adapter.storage_api_uri = "http://my-domain.com"

        assert adapter.path_prefix == "other/"
        assert adapter.get_url("a.txt") == "http://my-domain.com/other/a.txt"

    def test_uniform_bucket_level_access(self, client, uniform_bucket):
        adapter = GoogleCloudStorageAdapter(client, uniform_bucket)

        assert adapter.uniform_bucket_level_access_enabled() is True


class TestWrite:
    """Tests for write, write_stream, update, update_stream and create_dir."""

    def test_write(self, adapter, bucket):
        blob = bucket.blob("prefix/file1.txt")
        blob.size = 26
        blob.content_type = "text/plain"
        bucket.blob.reset_mock()

        descriptor = adapter.write("file1.txt", "This is the file contents.", {"visibility": "private"})

        bucket.blob.assert_called_once_with("prefix/file1.txt", chunk_size=None)
        blob.upload_from_string.assert_called_once_with(
            "This is the file contents.", predefined_acl="projectPrivate", content_type="text/plain"
        )
        assert descriptor.to_dict() == {
            "type": ObjectType.FILE,
            "dirname": "",
            "path": "file1.txt",
            "timestamp": TIMESTAMP,
            "mimetype": "text/plain",
            "size": 26,
        }

    def test_write_public(self, adapter, bucket):
        adapter.write("file1.txt", "x", {"visibility": Visibility.PUBLIC})

        bucket.blobs["prefix/file1.txt"].upload_from_string.assert_called_once_with(
            "x", predefined_acl="publicRead", content_type="text/plain"
        )

    def test_write_stream(self, adapter, bucket):
        stream = io.BytesIO(b"This is the file contents.")

        descriptor = adapter.write_stream("file1.txt", stream)

        bucket.blobs["prefix/file1.txt"].upload_from_file.assert_called_once_with(
            stream, predefined_acl="projectPrivate", content_type="text/plain"
        )
        assert not stream.closed
        assert descriptor.path == "file1.txt"

    def test_update_and_update_stream_overwrite(self, adapter, bucket):
        adapter.update("file1.txt", "new")
        adapter.update_stream("file2.txt", io.BytesIO(b"new"))

        bucket.blobs["prefix/file1.txt"].upload_from_string.assert_called_once()
        bucket.blobs["prefix/file2.txt"].upload_from_file.assert_called_once()

    def test_invalid_options_rejected_before_upload(self, adapter, bucket):
        with pytest.raises(InvalidOptionsError):
            adapter.write("file1.txt", "x", {"visibility": "everyone"})
        with pytest.raises(InvalidOptionsError):
            adapter.write("file1.txt", "x", {"acl": "publicRead"})

        bucket.blob.assert_not_called()

    @pytest.mark.parametrize("dirname", ["dir_name", "dir_name/", "dir_name//"])
    def test_create_dir(self, adapter, bucket, dirname):
        descriptor = adapter.create_dir(dirname)

        bucket.blobs["prefix/dir_name/"].upload_from_string.assert_called_once_with(
            "", predefined_acl="projectPrivate"
        )
        assert descriptor.type is ObjectType.DIR
        assert descriptor.path == "dir_name"
        assert descriptor.dirname == ""


class TestRead:
    """Tests for read, read_stream and metadata getters."""

    def test_read(self, adapter, bucket):
        blob = bucket.blob("prefix/file.txt")
        blob.size = 5
        blob.content_type = "text/plain"
        blob.download_as_bytes.return_value = b"hello"

        descriptor = adapter.read("file.txt")

        blob.reload.assert_called_once_with()
        assert descriptor.contents == b"hello"
        assert descriptor.path == "file.txt"
        assert descriptor.size == 5
        assert descriptor.timestamp == TIMESTAMP

    def test_read_stream(self, adapter, bucket):
        blob = bucket.blob("prefix/file.txt")
        reader = io.BytesIO(b"hello")
        blob.open.return_value = reader

        descriptor = adapter.read_stream("file.txt")

        blob.open.assert_called_once_with("rb")
        assert descriptor.stream is reader
        assert descriptor.contents is None

    def test_read_missing_object_propagates(self, adapter, bucket):
        bucket.blob("prefix/missing.txt").reload.side_effect = gcs_exceptions.NotFound("missing")

        with pytest.raises(gcs_exceptions.NotFound):
            adapter.read("missing.txt")

    @pytest.mark.parametrize("getter", ["get_metadata", "get_size", "get_mimetype", "get_timestamp"])
    def test_metadata_getters(self, adapter, bucket, getter):
        blob = bucket.blob("prefix/dir/file.json")
        blob.size = 2
        blob.content_type = "application/json"

        descriptor = getattr(adapter, getter)("dir/file.json")

        blob.reload.assert_called_once_with()
        assert descriptor.to_dict() == {
            "type": ObjectType.FILE,
            "dirname": "dir",
            "path": "dir/file.json",
            "timestamp": TIMESTAMP,
            "mimetype": "application/json",
            "size": 2,
        }


class TestHas:
    """Tests for has()."""

    def test_checks_directory_marker_first(self, adapter, bucket):
        marker = bucket.blob("prefix/file.txt/")
        marker.exists.return_value = False
        bucket.blob.reset_mock()

        assert adapter.has("file.txt") is True

        assert bucket.blob.call_args_list == [call("prefix/file.txt/"), call("prefix/file.txt")]

    def test_directory_marker_short_circuits(self, adapter, bucket):
        bucket.blob.reset_mock()

        assert adapter.has("dir") is True

        bucket.blob.assert_called_once_with("prefix/dir/")

    def test_missing(self, adapter, bucket):
        bucket.blob("prefix/nothing/").exists.return_value = False
        bucket.blob("prefix/nothing").exists.return_value = False

        assert adapter.has("nothing") is False

    def test_trailing_slash_checks_marker_only(self, adapter, bucket):
        bucket.blob("prefix/dir/").exists.return_value = False
        bucket.blob.reset_mock()

        assert adapter.has("dir/") is False
        bucket.blob.assert_called_once_with("prefix/dir/")

    @pytest.mark.parametrize("path", ["", "/"])
    def test_root_without_prefix_is_not_looked_up(self, client, bucket, path):
        adapter = GoogleCloudStorageAdapter(client, bucket)

        assert adapter.has(path) is False
        bucket.blob.assert_not_called()

    def test_empty_key_is_rejected(self, client, bucket):
        adapter = GoogleCloudStorageAdapter(client, bucket)

        with pytest.raises(InvalidPathError):
            adapter.read("")

        bucket.blob.assert_not_called()


class TestListContents:
    """Tests for list_contents()."""

    @pytest.fixture
    def listing(self, client, make_blob):
        client.list_blobs.return_value = [
            make_blob("prefix/file1.txt", size=5, content_type="text/plain"),
            make_blob("prefix/directory1/"),
            make_blob("prefix/directory1/file1.txt", size=3, content_type="text/plain"),
            make_blob("prefix/directory2/file1.txt", size=3, content_type="text/plain"),
        ]
        return client.list_blobs.return_value

    def test_root_shallow(self, adapter, client, bucket, listing):
        entries = adapter.list_contents()

        client.list_blobs.assert_called_once_with(bucket, prefix="prefix/")
        assert [e.to_dict() for e in entries] == [
            {
                "type": ObjectType.FILE,
                "dirname": "",
                "path": "file1.txt",
                "timestamp": TIMESTAMP,
                "mimetype": "text/plain",
                "size": 5,
            },
            {
                "type": ObjectType.DIR,
                "dirname": "",
                "path": "directory1",
                "timestamp": TIMESTAMP,
                "mimetype": "",
                "size": 0,
            },
            {
                "type": ObjectType.DIR,
                "dirname": "",
                "basename": "directory2",
                "filename": "directory2",
                "path": "directory2",
            },
        ]

    def test_root_recursive(self, adapter, listing):
        entries = adapter.list_contents("", recursive=True)

        assert [e.path for e in entries] == [
            "file1.txt",
            "directory1",
            "directory1/file1.txt",
            "directory2/file1.txt",
            "directory2",
        ]

    def test_subdirectory_excludes_itself(self, adapter, client, bucket, make_blob):
        client.list_blobs.return_value = [
            make_blob("prefix/directory1/"),
            make_blob("prefix/directory1/file1.txt"),
            make_blob("prefix/directory1/nested/file2.txt"),
        ]

        shallow = adapter.list_contents("directory1")
        deep = adapter.list_contents("directory1/", recursive=True)

        assert client.list_blobs.call_args_list == [
            call(bucket, prefix="prefix/directory1/"),
            call(bucket, prefix="prefix/directory1/"),
        ]
        assert [e.path for e in shallow] == ["directory1/file1.txt", "directory1/nested"]
        assert [e.path for e in deep] == [
            "directory1/file1.txt",
            "directory1/nested/file2.txt",
            "directory1/nested",
        ]

    def test_empty(self, adapter):
        assert adapter.list_contents("nothing") == []


class TestDelete:
    """Tests for delete() and delete_dir()."""

    def test_delete(self, adapter, bucket):
        assert adapter.delete("file.txt") is True

        bucket.blobs["prefix/file.txt"].delete.assert_called_once_with()

    @pytest.mark.parametrize("dirname", ["dir_name", "dir_name//"])
    def test_delete_dir(self, adapter, client, bucket, make_blob, dirname):
        client.list_blobs.return_value = [
            make_blob("prefix/dir_name/"),
            make_blob("prefix/dir_name/directory1/"),
            make_blob("prefix/dir_name/directory1/file1.txt"),
        ]

        assert adapter.delete_dir(dirname) is True

        client.list_blobs.assert_called_once_with(bucket, prefix="prefix/dir_name/")
        deleted = [key for key, blob in bucket.blobs.items() if blob.delete.called]
        assert sorted(deleted) == ["prefix/dir_name/", "prefix/dir_name/directory1/", "prefix/dir_name/directory1/file1.txt"]

    def test_delete_dir_order_files_then_deepest_dirs(self, adapter, client, bucket, make_blob):
        client.list_blobs.return_value = [
            make_blob("prefix/a/"),
            make_blob("prefix/a/b/"),
            make_blob("prefix/a/b/c.txt"),
            make_blob("prefix/a/d.txt"),
        ]

        with patch.object(adapter, "delete", wraps=adapter.delete) as delete:
            adapter.delete_dir("a")

        assert [c.args[0] for c in delete.call_args_list] == ["a/b/c.txt", "a/d.txt", "a/b/", "a/"]

    def test_delete_dir_skips_vanished_entries(self, adapter, client, bucket, make_blob):
        client.list_blobs.return_value = [
            make_blob("prefix/a/one.txt"),
            make_blob("prefix/a/two.txt"),
        ]
        bucket.blob("prefix/a/one.txt/").exists.return_value = False
        bucket.blob("prefix/a/one.txt").exists.return_value = False
        bucket.blob("prefix/a/two.txt/").exists.return_value = False

        adapter.delete_dir("a")

        bucket.blobs["prefix/a/one.txt"].delete.assert_not_called()
        bucket.blobs["prefix/a/two.txt"].delete.assert_called_once_with()

    def test_delete_dir_skips_missing_inferred_marker(self, adapter, client, bucket, make_blob):
        client.list_blobs.return_value = [make_blob("prefix/a/one.txt")]
        bucket.blob("prefix/a/").exists.return_value = False

        assert adapter.delete_dir("a") is True

        bucket.blobs["prefix/a/one.txt"].delete.assert_called_once_with()
        bucket.blobs["prefix/a/"].delete.assert_not_called()

    @pytest.mark.parametrize("dirname", ["", "/", "//"])
    def test_delete_dir_refuses_root(self, adapter, client, bucket, make_blob, dirname):
        client.list_blobs.return_value = [
            make_blob("prefix/keep.txt"),
            make_blob("prefix/other/"),
            make_blob("prefix/other/data.bin"),
        ]

        with pytest.raises(RootViolationError):
            adapter.delete_dir(dirname)

        client.list_blobs.assert_not_called()
        assert not any(blob.delete.called for blob in bucket.blobs.values())

    def test_delete_dir_refuses_root_without_prefix(self, client, bucket):
        adapter = GoogleCloudStorageAdapter(client, bucket)

        with pytest.raises(RootViolationError):
            adapter.delete_dir("/")

        client.list_blobs.assert_not_called()


class TestCopyAndRename:
    """Tests for copy() and rename()."""

    def test_copy_keeps_private_visibility(self, adapter, bucket):
        source = bucket.blob("prefix/file.txt")
        destination = MagicMock()
        bucket.copy_blob.return_value = destination

        assert adapter.copy("file.txt", "copy.txt") is True

        bucket.copy_blob.assert_called_once_with(source, bucket, "prefix/copy.txt")
        destination.acl.save_predefined.assert_called_once_with("projectPrivate")

    def test_copy_keeps_public_visibility(self, adapter, bucket):
        bucket.blob("prefix/file.txt").acl.get_entity.return_value = public_entry()
        destination = MagicMock()
        bucket.copy_blob.return_value = destination

        adapter.copy("file.txt", "copy.txt")

        destination.acl.save_predefined.assert_called_once_with("publicRead")

    def test_copy_on_uniform_bucket_sets_no_acl(self, client, uniform_bucket):
        adapter = GoogleCloudStorageAdapter(client, uniform_bucket)
        destination = MagicMock()
        uniform_bucket.copy_blob.return_value = destination

        adapter.copy("file.txt", "copy.txt")

        destination.acl.save_predefined.assert_not_called()

    def test_rename_copies_then_deletes(self, adapter, bucket):
        source = bucket.blob("prefix/old.txt")

        assert adapter.rename("old.txt", "new.txt") is True

        bucket.copy_blob.assert_called_once_with(source, bucket, "prefix/new.txt")
        source.delete.assert_called_once_with()

    def test_rename_keeps_source_when_copy_fails(self, adapter, bucket):
        source = bucket.blob("prefix/old.txt")
        bucket.copy_blob.side_effect = gcs_exceptions.Forbidden("denied")

        with pytest.raises(gcs_exceptions.Forbidden):
            adapter.rename("old.txt", "new.txt")

        source.delete.assert_not_called()

    def test_rename_returns_false_when_copy_reports_failure(self, adapter, bucket):
        source = bucket.blob("prefix/old.txt")

        with patch.object(adapter, "copy", return_value=False):
            assert adapter.rename("old.txt", "new.txt") is False

        source.delete.assert_not_called()


class TestVisibility:
    """Tests for set_visibility() and get_visibility()."""

    def test_set_public(self, adapter, bucket):
        blob = bucket.blob("prefix/file.txt")

        descriptor = adapter.set_visibility("file.txt", "public")

        blob.acl.all.return_value.grant_read.assert_called_once_with()
        blob.acl.save.assert_called_once_with()
        blob.reload.assert_called_once_with()
        assert descriptor.visibility is Visibility.PUBLIC
        assert descriptor.path == "file.txt"

    def test_set_private(self, adapter, bucket):
        blob = bucket.blob("prefix/file.txt")
        entry = public_entry()
        blob.acl.get_entity.return_value = entry

        descriptor = adapter.set_visibility("file.txt", Visibility.PRIVATE)

        entry.revoke.assert_called_once_with("READER")
        assert descriptor.visibility is Visibility.PRIVATE

    def test_set_invalid(self, adapter, bucket):
        with pytest.raises(InvalidVisibilityError):
            adapter.set_visibility("file.txt", "world")

        bucket.blob.assert_not_called()

    def test_get_public(self, adapter, bucket):
        bucket.blob("prefix/dir/file.txt").acl.get_entity.return_value = public_entry()

        descriptor = adapter.get_visibility("dir/file.txt")

        assert descriptor.to_dict() == {
            "type": ObjectType.FILE,
            "path": "dir/file.txt",
            "dirname": "dir",
            "visibility": Visibility.PUBLIC,
        }

    def test_get_private_without_entry(self, adapter):
        assert adapter.get_visibility("file.txt").visibility is Visibility.PRIVATE

    def test_get_directory_marker(self, adapter, bucket):
        bucket.blob("prefix/dir/").acl.get_entity.return_value = public_entry()

        descriptor = adapter.get_visibility("dir/")

        bucket.blobs["prefix/dir/"].acl.get_entity.assert_called_once_with("allUsers", default=None)
        assert descriptor.type is ObjectType.DIR
        assert descriptor.path == "dir"
        assert descriptor.visibility is Visibility.PUBLIC

    def test_get_on_uniform_bucket(self, client, uniform_bucket):
        adapter = GoogleCloudStorageAdapter(client, uniform_bucket)
        uniform_bucket.blob("file.txt").acl.get_entity.return_value = public_entry()

        assert adapter.get_visibility("file.txt").visibility is Visibility.PRIVATE


class TestUrls:
    """Tests for get_url() and get_temporary_url()."""

    def test_get_url(self, client, bucket):
        adapter = GoogleCloudStorageAdapter(client, bucket)

        assert adapter.get_url("test folder/file(1).txt") == (
            "https://storage.googleapis.com/my-bucket/test%20folder/file%281%29.txt"
        )

    def test_get_url_with_prefix(self, adapter):
        assert adapter.get_url("file.txt") == "https://storage.googleapis.com/my-bucket/prefix/file.txt"

    def test_get_url_with_custom_endpoint(self, client, bucket):
        adapter = GoogleCloudStorageAdapter(
            client, bucket, path_prefix="another-prefix", storage_api_uri="http://my-domain.com/"
        )

        assert adapter.get_url("dir/file.txt") == "http://my-domain.com/another-prefix/dir/file.txt"

    def test_get_temporary_url(self, adapter, bucket):
        blob = bucket.blob("prefix/file.txt")
        blob.generate_signed_url.return_value = "https://signed.example/url?sig=1"

        url = adapter.get_temporary_url("file.txt", timedelta(hours=1), {"version": "v4", "method": "GET"})

        assert url == "https://signed.example/url?sig=1"
        blob.generate_signed_url.assert_called_once_with(
            expiration=timedelta(hours=1), version="v4", method="GET"
        )
