"""Tests for CloudFront invalidation."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from spadeploy.cdn import InvalidationResult, execute_invalidation, plan_invalidations
from spadeploy.exceptions import SpaDeployInvalidationError
from spadeploy.sync.plan import PlanItem, SyncAction, SyncPlan

FIXED_TIME = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def _clock() -> datetime:
    return FIXED_TIME


def _response(invalidation_id: str) -> dict:
    return {"Invalidation": {"Id": invalidation_id, "Status": "InProgress"}}


class TestPlanInvalidations:
    """Tests for plan_invalidations."""

    def test_flagged_items_only(self):
        plan = SyncPlan(
            items=[
                PlanItem(key="a.js", action=SyncAction.UNCHANGED),
                PlanItem(key="index.html", action=SyncAction.UPDATE, invalidate=True),
                PlanItem(key="b.js", action=SyncAction.CREATE),
            ],
            region="eu-west-1",
            bucket="bucket",
        )
        assert plan_invalidations(plan) == ["/index.html"]

    def test_extra_paths_appended(self):
        plan = SyncPlan(
            items=[PlanItem(key="x.css", action=SyncAction.UPDATE, invalidate=True)],
            region="eu-west-1",
            bucket="bucket",
        )
        assert plan_invalidations(plan, ["/*"]) == ["/x.css", "/*"]

    def test_empty_plan(self):
        plan = SyncPlan(items=[], region="eu-west-1", bucket="bucket")
        assert plan_invalidations(plan) == []


class TestExecuteInvalidation:
    """Tests for execute_invalidation."""

    def test_one_request_per_distribution(self):
        client = Mock()
        client.create_invalidation.side_effect = [_response("I1"), _response("I2")]

        results = execute_invalidation(
            client, ["/index.html", "/a.css"], ["E1", "E2"], clock=_clock
        )

        assert results == [InvalidationResult("E1", "I1"), InvalidationResult("E2", "I2")]
        assert all(r.ok for r in results)
        first = client.create_invalidation.call_args_list[0].kwargs
        assert first == {
            "DistributionId": "E1",
            "InvalidationBatch": {
                "CallerReference": FIXED_TIME.isoformat(),
                "Paths": {"Quantity": 2, "Items": ["/index.html", "/a.css"]},
            },
        }

    def test_no_paths_no_requests(self):
        client = Mock()
        assert execute_invalidation(client, [], ["E1"]) == []
        client.create_invalidation.assert_not_called()

    def test_failure_continues_with_remaining(self):
        client = Mock()
        client.create_invalidation.side_effect = [
            ClientError(
                {"Error": {"Code": "NoSuchDistribution", "Message": "missing"}},
                "CreateInvalidation",
            ),
            _response("I2"),
        ]

        with pytest.raises(SpaDeployInvalidationError, match="E1") as exc_info:
            execute_invalidation(client, ["/index.html"], ["E1", "E2"], clock=_clock)

        assert exc_info.value.failed_ids == ["E1"]
        assert client.create_invalidation.call_count == 2
        assert client.create_invalidation.call_args.kwargs["DistributionId"] == "E2"

    def test_default_clock_reference(self):
        client = Mock()
        client.create_invalidation.return_value = _response("I1")

        execute_invalidation(client, ["/index.html"], ["E1"])

        batch = client.create_invalidation.call_args.kwargs["InvalidationBatch"]
        reference = datetime.fromisoformat(batch["CallerReference"])
        assert reference.tzinfo is not None


class TestInvalidationResult:
    def test_ok(self):
        assert InvalidationResult("E1", "I1").ok is True
        assert InvalidationResult("E1", error="boom").ok is False
