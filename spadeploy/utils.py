"""Utility functions for spadeploy."""

import fnmatch
import hashlib
import mimetypes
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Read size used when hashing local files (1 MB)
HASH_CHUNK_SIZE: int = 1024 * 1024

# Content type used when the extension is unknown
DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

# Retry configuration handed to botocore for transient errors
DEFAULT_MAX_ATTEMPTS: int = 5


# =============================================================================
# Glob utilities
# =============================================================================


def is_glob_pattern(value: str) -> bool:
    """Check if a value contains glob wildcard characters.

    Examples:
        >>> is_glob_pattern("*.js")
        True
        >>> is_glob_pattern("index.html")
        False
    """
    return any(c in value for c in "*?[")


def _zero_directory_variants(pattern: str) -> set[str]:
    """Expand ``**/`` segments into the variants where they match no directory."""
    variants = {pattern}
    pending = [pattern]
    while pending:
        current = pending.pop()
        candidates = []
        if current.startswith("**/"):
            candidates.append(current[3:])
        index = current.find("/**/")
        while index != -1:
            candidates.append(current[:index] + current[index + 3 :])
            index = current.find("/**/", index + 1)
        for candidate in candidates:
            if candidate not in variants:
                variants.add(candidate)
                pending.append(candidate)
    return variants


def glob_match(pattern: str, name: str) -> bool:
    """Case-sensitive glob match of a storage key against a pattern.

    The whole key is matched, so ``*`` also crosses ``/`` and ``**``
    matches every key. A ``**/`` segment may also match zero directories.

    Examples:
        >>> glob_match("index.html", "index.html")
        True
        >>> glob_match("index.html", "admin/index.html")
        False
        >>> glob_match("**/*.html", "admin/index.html")
        True
        >>> glob_match("**/*.html", "index.html")
        True
    """
    if not is_glob_pattern(pattern):
        return name == pattern
    return any(
        fnmatch.fnmatchcase(name, variant)
        for variant in _zero_directory_variants(pattern)
    )


def matches_any(name: str, patterns: Optional[Iterable[str]]) -> bool:
    """Return True if ``name`` matches at least one of ``patterns``."""
    if not patterns:
        return False
    return any(glob_match(pattern, name) for pattern in patterns)


def to_list(value: object) -> list[str]:
    """Normalize a string-or-list value to a list of strings.

    Examples:
        >>> to_list(None)
        []
        >>> to_list("index.html")
        ['index.html']
        >>> to_list(["a", "b"])
        ['a', 'b']
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise TypeError(f"Expected a string or a list of strings, got {value!r}")


def normalize_prefix(prefix: Optional[str]) -> str:
    """Normalize a storage key prefix to ``"a/b/"`` form ("" for none).

    Examples:
        >>> normalize_prefix("/app/v1")
        'app/v1/'
        >>> normalize_prefix(None)
        ''
    """
    if not prefix:
        return ""
    parts = [p for p in prefix.replace("\\", "/").split("/") if p]
    if not parts:
        return ""
    return "/".join(parts) + "/"


# =============================================================================
# File utilities
# =============================================================================


def md5_bytes(data: bytes) -> str:
    """Return the hex MD5 digest of ``data``."""
    return hashlib.md5(data).hexdigest()


def guess_content_type(path: str) -> str:
    """Look up a content type from a file extension.

    Examples:
        >>> guess_content_type("index.html")
        'text/html'
        >>> guess_content_type("blob.unknownext")
        'application/octet-stream'
    """
    content_type, _ = mimetypes.guess_type(Path(path).name)
    return content_type or DEFAULT_CONTENT_TYPE


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
