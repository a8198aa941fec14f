"""Tests for local and remote scanning."""

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from spadeploy.exceptions import SpaDeployListingError, SpaDeployScanError
from spadeploy.sync.scanner import (
    DirectoryScanner,
    LocalFile,
    RemoteFile,
    file_md5,
    scan_remote,
)

BUCKET = "deploy-bucket"


class TestFileMd5:
    """Tests for file_md5."""

    def test_matches_hashlib(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_bytes(b"hello world")
        assert file_md5(path) == hashlib.md5(b"hello world").hexdigest()

    def test_unreadable_file_raises(self, tmp_path):
        with pytest.raises(SpaDeployScanError, match="Cannot hash"):
            file_md5(tmp_path / "missing.txt")


class TestDirectoryScanner:
    """Tests for DirectoryScanner.scan_local."""

    def test_scan_all_files(self, build_dir):
        files = list(DirectoryScanner().scan_local(build_dir))
        keys = sorted(f.key for f in files)
        assert keys == ["index.html", "manifest.json", "static/js/main.abc123.js"]

    def test_local_file_fields(self, build_dir):
        files = {f.key: f for f in DirectoryScanner().scan_local(build_dir)}
        index = files["index.html"]
        assert index.path == build_dir / "index.html"
        assert index.size == (build_dir / "index.html").stat().st_size
        assert index.hash == hashlib.md5(
            (build_dir / "index.html").read_bytes()
        ).hexdigest()

    def test_scan_is_lazy(self, build_dir):
        """Nothing is hashed until the generator is consumed."""
        with patch("spadeploy.sync.scanner.file_md5") as mock_md5:
            iterator = DirectoryScanner().scan_local(build_dir)
            mock_md5.assert_not_called()
            mock_md5.return_value = "x"
            next(iterator)
            assert mock_md5.call_count == 1

    def test_ignore_patterns(self, build_dir):
        scanner = DirectoryScanner(ignore_patterns=["static/*"])
        keys = sorted(f.key for f in scanner.scan_local(build_dir))
        assert keys == ["index.html", "manifest.json"]

    def test_include_patterns(self, build_dir):
        scanner = DirectoryScanner(include_patterns=["*.js"])
        keys = [f.key for f in scanner.scan_local(build_dir)]
        assert keys == ["static/js/main.abc123.js"]

    def test_ignore_has_priority_over_include(self, build_dir):
        scanner = DirectoryScanner(
            include_patterns=["*.json", "*.html"], ignore_patterns=["*.json"]
        )
        keys = [f.key for f in scanner.scan_local(build_dir)]
        assert keys == ["index.html"]

    def test_prefix_is_prepended(self, build_dir):
        scanner = DirectoryScanner(prefix="/app/")
        keys = sorted(f.key for f in scanner.scan_local(build_dir))
        assert keys == [
            "app/index.html",
            "app/manifest.json",
            "app/static/js/main.abc123.js",
        ]

    def test_prefixed_files_keep_relative_path(self, build_dir):
        files = {f.key: f for f in DirectoryScanner(prefix="app").scan_local(build_dir)}
        index = files["app/index.html"]
        assert index.relative_path == "index.html"
        assert index.match_path == "index.html"

    def test_empty_directory(self, tmp_path):
        assert list(DirectoryScanner().scan_local(tmp_path)) == []

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(SpaDeployScanError):
            list(DirectoryScanner().scan_local(tmp_path / "nope"))


class TestRemoteFile:
    """Tests for RemoteFile.from_listing."""

    def test_strips_etag_quotes(self):
        modified = datetime(2024, 1, 1, tzinfo=timezone.utc)
        remote = RemoteFile.from_listing(
            {"Key": "index.html", "ETag": '"abc"', "Size": 10, "LastModified": modified}
        )
        assert remote == RemoteFile("index.html", "abc", 10, modified)

    def test_missing_key_raises(self):
        with pytest.raises(SpaDeployListingError, match="key not defined"):
            RemoteFile.from_listing({"ETag": '"abc"', "Size": 1})

    def test_missing_etag_raises(self):
        with pytest.raises(SpaDeployListingError, match="ETag not defined"):
            RemoteFile.from_listing({"Key": "index.html", "Size": 1})


class TestScanRemote:
    """Tests for scan_remote."""

    def test_empty_bucket(self, s3_client):
        assert list(scan_remote(s3_client, BUCKET)) == []

    def test_lists_objects_with_md5_etag(self, s3_client):
        s3_client.put_object(Bucket=BUCKET, Key="index.html", Body=b"<html></html>")
        files = list(scan_remote(s3_client, BUCKET))
        assert len(files) == 1
        assert files[0].key == "index.html"
        assert files[0].etag == hashlib.md5(b"<html></html>").hexdigest()
        assert files[0].size == len(b"<html></html>")

    def test_prefix_filters_listing(self, s3_client):
        s3_client.put_object(Bucket=BUCKET, Key="app/index.html", Body=b"a")
        s3_client.put_object(Bucket=BUCKET, Key="app-old/index.html", Body=b"b")
        s3_client.put_object(Bucket=BUCKET, Key="other.txt", Body=b"c")
        keys = [f.key for f in scan_remote(s3_client, BUCKET, prefix="app")]
        assert keys == ["app/index.html"]

    def test_follows_pagination(self):
        """Every page of the listing is consumed."""
        paginator = Mock()
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "a", "ETag": '"1"', "Size": 1}]},
            {"Contents": [{"Key": "b", "ETag": '"2"', "Size": 2}]},
            {},
        ]
        client = Mock()
        client.get_paginator.return_value = paginator

        keys = [f.key for f in scan_remote(client, BUCKET)]

        assert keys == ["a", "b"]
        client.get_paginator.assert_called_once_with("list_objects_v2")
        paginator.paginate.assert_called_once_with(Bucket=BUCKET)

    def test_malformed_record_is_fatal(self):
        paginator = Mock()
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "a", "ETag": '"1"'}, {"Key": "b"}]},
        ]
        client = Mock()
        client.get_paginator.return_value = paginator

        with pytest.raises(SpaDeployListingError):
            list(scan_remote(client, BUCKET))

    def test_client_error_is_wrapped(self):
        paginator = Mock()
        paginator.paginate.side_effect = ClientError(
            {"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "ListObjectsV2"
        )
        client = Mock()
        client.get_paginator.return_value = paginator

        with pytest.raises(SpaDeployListingError, match="Listing s3://"):
            list(scan_remote(client, BUCKET))


def test_local_file_from_path(tmp_path):
    path = tmp_path / "sub" / "a.txt"
    path.parent.mkdir()
    path.write_bytes(b"abc")
    local = LocalFile.from_path(path, tmp_path, "p/")
    assert local.key == "p/sub/a.txt"
    assert local.size == 3
    assert isinstance(local.path, Path)
