"""Unit tests for the database-backed job queue."""

from datetime import timedelta

import pytest

from hakikisha.database import utcnow
from hakikisha.models.job import JobModel
from hakikisha.repositories.job_repo import JobRepository
from hakikisha.schemas.jobs import (
    JobKind,
    JobStatus,
    NotifyVerdictJob,
    ProcessClaimJob,
    SystemAlertJob,
    UpdateTrendingJob,
    parse_job,
)
from hakikisha.services.job_queue import JobQueue


@pytest.fixture()
def queue(db):
    return JobQueue(db, JobRepository(db), lease_seconds=60, max_attempts=3, retry_initial_delay=10, retry_max_delay=100)


def _process(claim_id=1):
    return ProcessClaimJob(claim_id=claim_id, claim_text="Vaccines cause infertility", submitter_id=3)


class TestJobSchemas:
    def test_payload_round_trips_to_the_right_type(self):
        job = parse_job(SystemAlertJob(title="Maintenance", message="Down at 2am", alert_key="m-1").model_dump(mode="json"))
        assert isinstance(job, SystemAlertJob)
        assert job.user_ids is None

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValueError):
            parse_job({"kind": "send_sms", "claim_id": 1})


class TestEnqueueAndLease:
    def test_lease_returns_typed_job(self, queue):
        job_id = queue.enqueue(_process(5))
        leased = queue.lease("w1")

        assert leased.id == job_id
        assert isinstance(leased.job, ProcessClaimJob)
        assert leased.job.claim_id == 5
        assert leased.attempts == 1

    def test_oldest_first(self, queue):
        now = utcnow()
        first = queue.enqueue(_process(1), now=now - timedelta(seconds=5))
        queue.enqueue(_process(2), now=now)
        assert queue.lease("w1", now=now).id == first

    def test_leased_job_is_invisible_to_others(self, queue):
        queue.enqueue(_process())
        assert queue.lease("w1") is not None
        assert queue.lease("w2") is None

    def test_expired_lease_is_redelivered(self, queue):
        now = utcnow()
        job_id = queue.enqueue(_process(), now=now)
        queue.lease("w1", now=now)

        again = queue.lease("w2", now=now + timedelta(seconds=61))
        assert again.id == job_id
        assert again.attempts == 2

    def test_kind_filter(self, queue):
        queue.enqueue(_process())
        trending_id = queue.enqueue(UpdateTrendingJob(claim_id=1))
        leased = queue.lease("w1", kinds=[JobKind.UPDATE_TRENDING])
        assert leased.id == trending_id

    def test_delayed_job_not_due_yet(self, queue):
        now = utcnow()
        queue.enqueue(_process(), delay_seconds=30, now=now)
        assert queue.lease("w1", now=now) is None
        assert queue.lease("w1", now=now + timedelta(seconds=31)) is not None

    def test_enqueue_without_commit_rolls_back_with_caller(self, queue, db):
        queue.enqueue(_process(), commit=False)
        db.rollback()
        assert queue.depth() == 0

    def test_corrupt_payload_is_buried(self, queue, db):
        db.add(JobModel(kind="process_claim", payload={"kind": "process_claim"}, status="queued", available_at=utcnow()))
        db.commit()
        good = queue.enqueue(NotifyVerdictJob(claim_id=1, verdict_id=2))

        assert queue.lease("w1").id == good
        assert queue.dead_letter_count() == 1


class TestAckAndRequeue:
    def test_ack_marks_done(self, queue, db):
        job_id = queue.enqueue(_process())
        queue.lease("w1")
        queue.ack(job_id)
        assert db.get(JobModel, job_id).status == JobStatus.DONE.value
        assert queue.depth() == 0

    def test_requeue_backs_off_exponentially(self, queue, db):
        now = utcnow()
        job_id = queue.enqueue(_process(), now=now)

        queue.lease("w1", now=now)
        assert queue.requeue(job_id, "timeout", now=now) == JobStatus.QUEUED
        assert db.get(JobModel, job_id).available_at == now + timedelta(seconds=10)

        queue.lease("w1", now=now + timedelta(seconds=10))
        queue.requeue(job_id, "timeout", now=now)
        assert db.get(JobModel, job_id).available_at == now + timedelta(seconds=20)

    def test_dead_letter_after_max_attempts(self, queue, db):
        now = utcnow()
        job_id = queue.enqueue(_process(), now=now)
        status = None
        for attempt in range(3):
            leased = queue.lease("w1", now=now + timedelta(hours=attempt))
            status = queue.requeue(leased.id, "boom", now=now + timedelta(hours=attempt))

        assert status == JobStatus.DEAD
        row = db.get(JobModel, job_id)
        assert row.last_error == "boom"
        assert queue.dead_letter_count() == 1
        assert queue.lease("w1", now=now + timedelta(days=1)) is None

    def test_depth_by_kind(self, queue):
        queue.enqueue(_process())
        queue.enqueue(UpdateTrendingJob(claim_id=1))
        queue.enqueue(UpdateTrendingJob(claim_id=2))
        assert queue.depth() == 3
        assert queue.depth(JobKind.UPDATE_TRENDING) == 2
