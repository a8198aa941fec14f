"""Sync engine: applies a plan to the bucket."""

import logging
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from itertools import groupby
from typing import Any, Callable, Optional

from ..output import OutputFormatter
from .operations import S3Operations
from .plan import PlanItem, SyncAction, SyncPlan

logger = logging.getLogger(__name__)


def iter_tiers(items: list[PlanItem]) -> Iterator[list[PlanItem]]:
    """Split plan items into consecutive runs of equal (action, cache).

    Items inside a tier touch independent keys and may run concurrently;
    tiers themselves must run in order.
    """
    for _, tier in groupby(items, key=lambda item: (item.action, item.cache)):
        yield list(tier)


class SyncEngine:
    """Executes sync plans against an S3 bucket."""

    def __init__(
        self,
        client: Any,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: boto3 S3 client
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.output = output or OutputFormatter(quiet=True)

    def execute_plan(
        self,
        plan: SyncPlan,
        max_workers: int = 1,
        progress_callback: Optional[Callable[[PlanItem], None]] = None,
    ) -> dict:
        """Apply every CREATE, UPDATE and DELETE of a plan.

        Items are applied in plan order. With ``max_workers > 1`` each tier
        of equal action and cache policy is uploaded in parallel, but a tier
        only starts once the previous one finished, so cached assets still
        land before the uncached files referencing them.

        The first failure aborts the run; already applied items are not
        rolled back. Re-running converges since the plan is rebuilt from the
        bucket's current state.

        Args:
            plan: Plan to execute
            max_workers: Number of parallel workers (default: 1)
            progress_callback: Called after each applied item

        Returns:
            Dictionary with execution statistics

        Raises:
            SpaDeployExecutionError: If an upload or delete fails
        """
        operations = S3Operations(self.client, plan.bucket)
        stats = {"uploaded": 0, "deleted": 0, "skipped": 0}
        start_time = time.time()

        for tier in iter_tiers(plan.items):
            if not tier[0].action.is_mutation:
                stats["skipped"] += len(tier)
                continue

            if max_workers > 1 and len(tier) > 1:
                self._execute_parallel(operations, tier, max_workers, progress_callback)
            else:
                for item in tier:
                    self._apply(operations, item)
                    if progress_callback:
                        progress_callback(item)

            if tier[0].action == SyncAction.DELETE:
                stats["deleted"] += len(tier)
            else:
                stats["uploaded"] += len(tier)

        logger.debug(
            "Executed plan for %s in %.2fs: %s",
            plan.bucket,
            time.time() - start_time,
            stats,
        )
        return stats

    def _apply(self, operations: S3Operations, item: PlanItem) -> None:
        if item.action in (SyncAction.CREATE, SyncAction.UPDATE):
            logger.info(f"Uploading {item.key}")
            self.output.info(f"Uploading {item.key}")
            operations.upload(item)
        elif item.action == SyncAction.DELETE:
            logger.info(f"Deleting {item.key}")
            self.output.info(f"Deleting {item.key}")
            operations.delete(item)

    def _execute_parallel(
        self,
        operations: S3Operations,
        tier: list[PlanItem],
        max_workers: int,
        progress_callback: Optional[Callable[[PlanItem], None]],
    ) -> None:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(self._apply, operations, item): item for item in tier
            }
            try:
                for future in as_completed(futures):
                    future.result()
                    if progress_callback:
                        progress_callback(futures[future])
            except Exception:
                for pending in futures:
                    pending.cancel()
                raise
