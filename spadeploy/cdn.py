"""CloudFront invalidation planning and execution."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import SpaDeployInvalidationError
from .sync.plan import SyncPlan

logger = logging.getLogger(__name__)


@dataclass
class InvalidationResult:
    """Outcome of one invalidation request."""

    distribution_id: str
    invalidation_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def plan_invalidations(
    plan: SyncPlan, extra_paths: Optional[Iterable[str]] = None
) -> list[str]:
    """List the CDN paths to invalidate after a plan is executed.

    Every item flagged for invalidation contributes ``/<key>``, followed by
    the extra paths (e.g. ``/*``).
    """
    paths = [f"/{item.key}" for item in plan.items if item.invalidate]
    paths.extend(extra_paths or [])
    return paths


def _caller_reference(clock: Callable[[], datetime]) -> str:
    return clock().isoformat()


def execute_invalidation(
    client: Any,
    paths: list[str],
    distribution_ids: Iterable[str],
    clock: Optional[Callable[[], datetime]] = None,
) -> list[InvalidationResult]:
    """Issue one invalidation request per distribution.

    Distributions are processed in order. A failing distribution does not
    stop the remaining ones; the failures are raised together afterwards.

    Args:
        client: boto3 CloudFront client
        paths: Paths to invalidate
        distribution_ids: Distributions to invalidate
        clock: Source of the caller reference timestamp (for tests)

    Returns:
        One InvalidationResult per distribution

    Raises:
        SpaDeployInvalidationError: If any distribution failed
    """
    if not paths:
        return []
    clock = clock or (lambda: datetime.now(timezone.utc))

    results: list[InvalidationResult] = []
    for distribution_id in distribution_ids:
        logger.info(f"Invalidating {distribution_id}")
        try:
            response = client.create_invalidation(
                DistributionId=distribution_id,
                InvalidationBatch={
                    "CallerReference": _caller_reference(clock),
                    "Paths": {"Quantity": len(paths), "Items": list(paths)},
                },
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Invalidation of {distribution_id} failed: {e}")
            results.append(InvalidationResult(distribution_id, error=str(e)))
            continue
        invalidation_id = response.get("Invalidation", {}).get("Id")
        logger.debug(f"Created invalidation {invalidation_id} for {distribution_id}")
        results.append(InvalidationResult(distribution_id, invalidation_id))

    failed = [r.distribution_id for r in results if not r.ok]
    if failed:
        raise SpaDeployInvalidationError(
            f"Invalidation failed for: {', '.join(failed)}", failed_ids=failed
        )
    return results
