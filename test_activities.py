"""Tests for the Temporal activities, run in an ActivityEnvironment."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from temporalio.exceptions import ApplicationError
from temporalio.testing import ActivityEnvironment

from activities import approvals as approval_activities
from activities import ingest as ingest_activities
from conftest import FARM_ID, FARMHAND, MANAGER, OWNER, FakeOracle
from core.errors import InputValidationError, UpstreamTimeoutError


HAY_FEEDING = {"activity_type": "feeding", "quantity": 5, "unit": "bags", "feed_type": "hay"}


@pytest.fixture
def env(store, db_path, monkeypatch):
    monkeypatch.setattr(ingest_activities, "DB_PATH", db_path)
    return ActivityEnvironment()


def use_oracle(monkeypatch, oracle):
    monkeypatch.setattr(ingest_activities, "_oracle", oracle)
    return oracle


def queue_milking(env):
    result = asyncio.run(env.run(
        ingest_activities.ingest_activity_candidates,
        ingest_activities.IngestCandidatesInput(
            farm_id=FARM_ID,
            actor_id=FARMHAND,
            candidates=[{"activity_type": "milking", "animal_identifier": "Daisy", "quantity": 7}],
        ),
    ))
    assert result["outcome"] == "queued"
    return result["activities"][0]["pending_id"]


class TestExtractActivity:

    def test_returns_candidates(self, env, monkeypatch):
        oracle = use_oracle(monkeypatch, FakeOracle([HAY_FEEDING]))
        output = asyncio.run(env.run(
            ingest_activities.extract_activity_candidates,
            ingest_activities.ExtractCandidatesInput(
                farm_id=FARM_ID, transcription="5 sako ng hay", animal_id="cow-bessie",
            ),
        ))
        assert output.candidates == [HAY_FEEDING]
        assert output.error is None
        assert oracle.calls[0]["animal_context"].name == "Bessie"

    def test_timeout_is_raised_for_retry(self, env, monkeypatch):
        use_oracle(monkeypatch, FakeOracle(error=UpstreamTimeoutError("extraction service")))
        with pytest.raises(ApplicationError) as exc_info:
            asyncio.run(env.run(
                ingest_activities.extract_activity_candidates,
                ingest_activities.ExtractCandidatesInput(farm_id=FARM_ID, transcription="fed the cows"),
            ))
        assert exc_info.value.type == "UpstreamTimeoutError"
        assert not exc_info.value.non_retryable

    def test_final_failure_is_returned(self, env, monkeypatch):
        use_oracle(monkeypatch, FakeOracle(error=InputValidationError(["not json"], code="MALFORMED_EXTRACTION")))
        output = asyncio.run(env.run(
            ingest_activities.extract_activity_candidates,
            ingest_activities.ExtractCandidatesInput(farm_id=FARM_ID, transcription="fed the cows"),
        ))
        assert output.candidates == []
        assert output.error["code"] == "MALFORMED_EXTRACTION"


class TestIngestActivity:

    def test_commits_and_returns_response(self, env, store):
        result = asyncio.run(env.run(
            ingest_activities.ingest_activity_candidates,
            ingest_activities.IngestCandidatesInput(
                farm_id=FARM_ID, actor_id=OWNER, candidates=[HAY_FEEDING], submission_id="wf-1",
            ),
        ))

        assert result["outcome"] == "committed"
        assert result["submission_id"] == "wf-1"
        assert len(store.list_records("feeding_records", FARM_ID)) == 4

    def test_domain_errors_are_returned_not_raised(self, env):
        result = asyncio.run(env.run(
            ingest_activities.ingest_activity_candidates,
            ingest_activities.IngestCandidatesInput(
                farm_id=FARM_ID, actor_id=OWNER, candidates=[{**HAY_FEEDING, "date_reference": "bukas"}],
            ),
        ))
        assert result["outcome"] == "rejected"
        assert result["code"] == "FUTURE_DATE"

    def test_retried_activity_replays(self, env, store):
        payload = ingest_activities.IngestCandidatesInput(
            farm_id=FARM_ID, actor_id=OWNER, candidates=[HAY_FEEDING], submission_id="wf-2",
        )
        first = asyncio.run(env.run(ingest_activities.ingest_activity_candidates, payload))
        second = asyncio.run(env.run(ingest_activities.ingest_activity_candidates, payload))

        assert first == second
        assert len(store.list_records("feeding_records", FARM_ID)) == 4


class TestApprovalActivities:

    def test_review_approves(self, env, store):
        pending_id = queue_milking(env)
        result = asyncio.run(env.run(
            approval_activities.review_pending_activity,
            approval_activities.ReviewPendingInput(pending_id=pending_id, reviewer_id=MANAGER, action="approve"),
        ))
        assert result["status"] == "approved"
        assert len(store.list_records("milking_records", FARM_ID)) == 1

    def test_review_errors_are_non_retryable(self, env):
        pending_id = queue_milking(env)
        with pytest.raises(ApplicationError) as exc_info:
            asyncio.run(env.run(
                approval_activities.review_pending_activity,
                approval_activities.ReviewPendingInput(pending_id=pending_id, reviewer_id=FARMHAND, action="reject"),
            ))
        assert exc_info.value.type == "FORBIDDEN"
        assert exc_info.value.non_retryable

    def test_unknown_action(self, env):
        with pytest.raises(ApplicationError):
            asyncio.run(env.run(
                approval_activities.review_pending_activity,
                approval_activities.ReviewPendingInput(pending_id="x", reviewer_id=MANAGER, action="escalate"),
            ))

    def test_auto_approve_sweep(self, env, store):
        pending_id = queue_milking(env)
        # Activities run on the wall clock
        due = (datetime.now(timezone.utc) + timedelta(hours=49)).replace(tzinfo=None).isoformat()
        result = asyncio.run(env.run(
            approval_activities.auto_approve_due_activities,
            approval_activities.AutoApproveInput(as_of=due),
        ))

        assert result["approved"] == 1
        assert result["results"][0]["pending_id"] == pending_id
        assert result["results"][0]["status"] == "auto_approved"
