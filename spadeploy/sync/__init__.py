"""Sync engine for spadeploy: scanning, planning, injection and execution."""

from .engine import SyncEngine
from .inject import build_app_env, inject_env, inject_plan, render_env_file
from .operations import S3Operations
from .plan import (
    CACHE_CONTROL_CACHED,
    CACHE_CONTROL_NO_CACHE,
    PlanItem,
    SyncAction,
    SyncOptions,
    SyncPlan,
    build_sync_plan,
    format_plan,
    format_plan_item,
    sort_plan_items,
    summarize_plan,
    visible_items,
)
from .scanner import DirectoryScanner, LocalFile, RemoteFile, file_md5, scan_remote

__all__ = [
    "SyncEngine",
    "S3Operations",
    "SyncAction",
    "SyncOptions",
    "SyncPlan",
    "PlanItem",
    "CACHE_CONTROL_CACHED",
    "CACHE_CONTROL_NO_CACHE",
    "build_sync_plan",
    "format_plan",
    "format_plan_item",
    "sort_plan_items",
    "summarize_plan",
    "visible_items",
    "DirectoryScanner",
    "LocalFile",
    "RemoteFile",
    "file_md5",
    "scan_remote",
    "build_app_env",
    "inject_env",
    "inject_plan",
    "render_env_file",
]
