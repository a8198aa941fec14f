"""Sync plan building: reconcile local files against bucket objects."""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from ..utils import guess_content_type, matches_any
from .scanner import LocalFile, RemoteFile

logger = logging.getLogger(__name__)

CACHE_CONTROL_CACHED = "max-age=2628000, public"
CACHE_CONTROL_NO_CACHE = "public, must-revalidate"
CONTENT_DISPOSITION = "inline"


class SyncAction(IntEnum):
    """Action for a single key.

    The integer value is the apply order: lower values sort first, so
    deletions run after every upload.
    """

    UNKNOWN = 0
    """Remote-only object left alone (no purge)"""

    IGNORE = 1
    UNCHANGED = 2
    CREATE = 3
    UPDATE = 4
    DELETE = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def is_mutation(self) -> bool:
        """Whether this action writes to the bucket."""
        return self in (SyncAction.CREATE, SyncAction.UPDATE, SyncAction.DELETE)


@dataclass
class PlanItem:
    """Reconciliation record for a single storage key."""

    key: str
    local: Optional[LocalFile] = None
    remote: Optional[RemoteFile] = None
    action: SyncAction = SyncAction.UNKNOWN
    cache: bool = False
    """Whether the object is served with a long-lived cache policy"""
    cache_control: Optional[str] = None
    invalidate: bool = False
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None
    acl: Optional[str] = None
    data: Optional[bytes] = None
    """Body overriding the local file contents (e.g. after env injection)"""
    data_hash: Optional[str] = None

    @property
    def size(self) -> int:
        if self.data is not None:
            return len(self.data)
        if self.local is not None:
            return self.local.size
        if self.remote is not None:
            return self.remote.size
        return 0


@dataclass
class SyncOptions:
    """Plan building options."""

    purge: bool = False
    """Delete remote objects without a local counterpart"""
    force: bool = False
    """Upload every local file even if unchanged"""
    invalidate_patterns: list[str] = field(default_factory=list)
    acl: Optional[str] = None


@dataclass
class SyncPlan:
    """Ordered reconciliation plan for one bucket."""

    items: list[PlanItem]
    region: str
    bucket: str
    endpoint: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        """Whether executing the plan would write to the bucket."""
        return any(item.action.is_mutation for item in self.items)

    @property
    def changed_items(self) -> list[PlanItem]:
        return [item for item in self.items if item.action.is_mutation]

    def count(self, action: SyncAction) -> int:
        return sum(1 for item in self.items if item.action == action)

    def get(self, key: str) -> Optional[PlanItem]:
        for item in self.items:
            if item.key == key:
                return item
        return None


def _plan_item_for_local(local_file: LocalFile, options: SyncOptions) -> PlanItem:
    item = PlanItem(
        key=local_file.key,
        local=local_file,
        action=SyncAction.CREATE,
        content_type=guess_content_type(local_file.key),
        content_disposition=CONTENT_DISPOSITION,
        acl=options.acl,
    )
    if matches_any(local_file.match_path, options.invalidate_patterns):
        item.cache = False
        item.cache_control = CACHE_CONTROL_NO_CACHE
    else:
        item.cache = True
        item.cache_control = CACHE_CONTROL_CACHED
    return item


def sort_plan_items(items: Iterable[PlanItem]) -> list[PlanItem]:
    """Sort items into apply order.

    Items are ordered by action, and within one action cached items come
    first, so long-cached assets are uploaded before the uncached files
    (index pages) that reference them. The sort is stable.
    """
    return sorted(items, key=lambda item: (int(item.action), not item.cache))


def build_sync_plan(
    local_files: Iterable[LocalFile],
    remote_files: Iterable[RemoteFile],
    options: SyncOptions,
    region: str,
    bucket: str,
    endpoint: Optional[str] = None,
) -> SyncPlan:
    """Reconcile local files against remote objects.

    Every key of either side gets exactly one PlanItem. Local-only keys are
    created, keys present on both sides are updated unless the local MD5
    equals the remote ETag, and remote-only keys are deleted with ``purge``
    or left as UNKNOWN otherwise.

    Args:
        local_files: Scanned local files (any order)
        remote_files: Listed remote objects (any order)
        options: Sync options
        region: Bucket region
        bucket: Bucket name
        endpoint: Optional endpoint override

    Returns:
        SyncPlan with items in apply order

    Examples:
        >>> plan = build_sync_plan(scanner.scan_local(path),
        ...                        scan_remote(client, "bucket"),
        ...                        SyncOptions(purge=True), "eu-west-1", "bucket")
    """
    items: dict[str, PlanItem] = {}

    for local_file in local_files:
        if local_file.key in items:
            continue
        items[local_file.key] = _plan_item_for_local(local_file, options)

    for remote_file in remote_files:
        item = items.get(remote_file.key)
        if item is None:
            item = PlanItem(
                key=remote_file.key,
                action=SyncAction.DELETE if options.purge else SyncAction.UNKNOWN,
            )
            items[remote_file.key] = item
        item.remote = remote_file

        if item.local is None:
            continue
        if not options.force and item.local.hash == remote_file.etag:
            item.action = SyncAction.UNCHANGED
        else:
            item.action = SyncAction.UPDATE
            item.invalidate = True

    plan = SyncPlan(
        items=sort_plan_items(items.values()),
        region=region,
        bucket=bucket,
        endpoint=endpoint,
    )
    logger.debug("Built sync plan: %s", summarize_plan(plan))
    return plan


def summarize_plan(plan: SyncPlan) -> dict[str, int]:
    """Count plan items per action label."""
    counts = Counter(item.action.label for item in plan.items)
    return {action.label: counts.get(action.label, 0) for action in SyncAction}


def format_plan_item(item: PlanItem) -> str:
    """Format a single plan row."""
    if item.cache:
        cache_marker = "Cached" if item.action == SyncAction.UNCHANGED else "Cache"
    else:
        cache_marker = ""
    markers = "\t".join(
        [
            "Invalidate" if item.invalidate else " " * 10,
            cache_marker.ljust(6),
            "DATA  " if item.data is not None else " " * 6,
        ]
    )
    line = f"{item.action.label.ljust(9)}{markers} {item.key} "
    if item.local is not None:
        line += f"({item.size}b {item.content_type or ''})"
    return line


def visible_items(plan: SyncPlan, verbose: bool = False) -> list[PlanItem]:
    """Items shown in the plan report.

    UNCHANGED items are hidden unless ``verbose`` is set.
    """
    return [
        item
        for item in plan.items
        if verbose or item.action != SyncAction.UNCHANGED
    ]


def format_plan(plan: SyncPlan, verbose: bool = False) -> list[str]:
    """Format the plan as one line per visible item."""
    return [format_plan_item(item) for item in visible_items(plan, verbose)]
