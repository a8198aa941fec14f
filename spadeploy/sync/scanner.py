"""Local directory and remote bucket scanning."""

import hashlib
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import SpaDeployListingError, SpaDeployScanError
from ..utils import HASH_CHUNK_SIZE, matches_any, normalize_prefix

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_PATTERNS = ["**"]


def file_md5(path: Path) -> str:
    """Compute the hex MD5 digest of a file.

    This matches the ETag S3 reports for objects stored with a single
    PUT, which is what the plan builder compares against.

    Raises:
        SpaDeployScanError: If the file cannot be read
    """
    digest = hashlib.md5()
    try:
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise SpaDeployScanError(f"Cannot hash {path}: {e}", path=str(path)) from e
    return digest.hexdigest()


@dataclass(frozen=True)
class LocalFile:
    """Represents a local file with metadata."""

    path: Path
    """Absolute path to the file"""

    key: str
    """Storage key (prefix + relative path with forward slashes)"""

    size: int
    """File size in bytes"""

    hash: str
    """Hex MD5 digest of the file contents"""

    relative_path: str = ""
    """Path relative to the build directory, without the key prefix"""

    @property
    def match_path(self) -> str:
        """Path that include, ignore, invalidate and index globs are matched on."""
        return self.relative_path or self.key

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path, prefix: str = "") -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative keys
            prefix: Normalized key prefix

        Returns:
            LocalFile instance
        """
        try:
            size = file_path.stat().st_size
        except OSError as e:
            raise SpaDeployScanError(
                f"Cannot stat {file_path}: {e}", path=str(file_path)
            ) from e
        relative_path = file_path.relative_to(base_path).as_posix()
        return cls(
            path=file_path,
            key=prefix + relative_path,
            size=size,
            hash=file_md5(file_path),
            relative_path=relative_path,
        )


@dataclass(frozen=True)
class RemoteFile:
    """Represents an object in the bucket."""

    key: str
    etag: str
    """ETag with surrounding quotes removed"""
    size: int
    last_modified: Optional[datetime] = None

    @classmethod
    def from_listing(cls, record: dict[str, Any]) -> "RemoteFile":
        """Create a RemoteFile from a ``list_objects_v2`` ``Contents`` record.

        Raises:
            SpaDeployListingError: If Key or ETag is missing
        """
        key = record.get("Key")
        if not key:
            raise SpaDeployListingError(f"Object key not defined for {record!r}")
        etag = record.get("ETag")
        if not etag:
            raise SpaDeployListingError(f"Object ETag not defined for {key}")
        return cls(
            key=key,
            etag=etag.replace('"', ""),
            size=record.get("Size") or 0,
            last_modified=record.get("LastModified"),
        )


class DirectoryScanner:
    """Scans a build directory and yields the files to deploy.

    Examples:
        >>> scanner = DirectoryScanner(ignore_patterns=["*.map"])
        >>> for f in scanner.scan_local(Path("dist")):
        ...     print(f.key, f.hash)
    """

    def __init__(
        self,
        include_patterns: Optional[list[str]] = None,
        ignore_patterns: Optional[list[str]] = None,
        prefix: Optional[str] = None,
    ):
        """Initialize directory scanner.

        Args:
            include_patterns: Only keep files matching one of these globs
                (default: every file)
            ignore_patterns: Drop files matching one of these globs; takes
                priority over include patterns
            prefix: Key prefix prepended to every relative path
        """
        self.include_patterns = include_patterns or DEFAULT_INCLUDE_PATTERNS
        self.ignore_patterns = ignore_patterns or []
        self.prefix = normalize_prefix(prefix)

    def should_include(self, relative_path: str) -> bool:
        """Check a relative path against the include and ignore patterns."""
        if not matches_any(relative_path, self.include_patterns):
            return False
        if matches_any(relative_path, self.ignore_patterns):
            logger.debug(f"Ignoring: {relative_path}")
            return False
        return True

    def scan_local(self, directory: Path) -> Iterator[LocalFile]:
        """Recursively scan a local directory.

        Files are hashed as they are yielded. Symlinked directories are not
        followed.

        Args:
            directory: Directory to scan

        Yields:
            LocalFile objects, in filesystem order

        Raises:
            SpaDeployScanError: If a file cannot be read
        """
        seen: set[str] = set()
        for file_path in self._walk(directory):
            relative_path = file_path.relative_to(directory).as_posix()
            if not self.should_include(relative_path):
                continue
            key = self.prefix + relative_path
            if key in seen:
                continue
            seen.add(key)
            yield LocalFile.from_path(file_path, directory, self.prefix)

    def _walk(self, directory: Path) -> Iterator[Path]:
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise SpaDeployScanError(
                f"Cannot read directory {directory}: {e}", path=str(directory)
            ) from e
        for item in entries:
            if item.is_file():
                yield item
            elif item.is_dir() and not item.is_symlink():
                yield from self._walk(item)


def scan_remote(
    client: Any, bucket: str, prefix: Optional[str] = None
) -> Iterator[RemoteFile]:
    """List every object under a prefix, following pagination.

    Args:
        client: boto3 S3 client
        bucket: Bucket name
        prefix: Optional key prefix

    Yields:
        RemoteFile objects

    Raises:
        SpaDeployListingError: If the listing fails or a record is malformed
    """
    params = {"Bucket": bucket}
    normalized = normalize_prefix(prefix)
    if normalized:
        params["Prefix"] = normalized

    paginator = client.get_paginator("list_objects_v2")
    try:
        for page in paginator.paginate(**params):
            for record in page.get("Contents", []):
                yield RemoteFile.from_listing(record)
    except (ClientError, BotoCoreError) as e:
        raise SpaDeployListingError(f"Listing s3://{bucket} failed: {e}") from e
