"""End-to-end workflow test: submission to published verdict with ZERO network calls.

Drives the real services and the real queue worker on an in-memory database,
with fakes standing in for Claude and the content service:
  1. Submit claims (duplicates merge into one similarity group)
  2. Drain the queue: AI pre-screening, trending updates, effects
  3. Assign, review and publish a verdict
  4. Read-state, points and notifications as the submitter sees them

This catches integration issues between layers that unit tests miss:
  - Jobs enqueued by one service but handled wrongly by the worker
  - Session/transaction leaks between services sharing one session
  - Status drift between the claim, its verdicts and its notifications

Run with:
    pytest tests/integration/test_workflow_e2e.py -v
"""

from datetime import timedelta

import pytest

from hakikisha.database import utcnow
from hakikisha.errors import ExternalServiceError
from hakikisha.schemas.claim import ClaimStatus
from hakikisha.schemas.notification import NotificationType
from hakikisha.schemas.review import ApproveAIVerdict, AssignmentAction
from hakikisha.schemas.verdict import Responsibility
from tests.fixtures.fakes import RecordingContentClient, ai_json
from tests.fixtures.workflow import build_workflow

RUMOUR = "The election results in Kisumu were rigged by the electoral commission"


@pytest.fixture()
def content():
    return RecordingContentClient()


@pytest.fixture()
def e2e(db, settings, fake_llm, content):
    return build_workflow(db, settings, llm=fake_llm, content_client=content)


def _drain(wf):
    return wf.worker.run(max_jobs=500, install_signal_handlers=False)


class TestTrendingGroup:
    def test_tenth_similar_submission_makes_group_trend(self, e2e, make_user, content):
        submitters = [make_user(f"citizen{i}@example.com") for i in range(10)]

        results = [
            e2e.intake.submit({"claim_text": RUMOUR, "category": "politics"}, user.id)
            for user in submitters
        ]
        summary = _drain(e2e)

        tenth = results[-1]
        assert tenth.claim.submission_count == 10
        assert len(tenth.merged_claim_ids) == 9
        assert summary["failed"] == 0

        group = [e2e.claims.get(r.claim.id) for r in results]
        assert {c.submission_count for c in group} == {10}
        assert all(c.is_trending for c in group)
        assert len({c.similarity_hash for c in group}) == 1
        assert all(c.trending_score > 99 for c in group)

        [topic] = e2e.trending.top_topics()
        assert topic.category == "politics"
        assert sorted(topic.related_claim_ids) == sorted(c.id for c in group)
        assert topic.risk_level.value == "high"
        assert [t.id for t in content.requested] == [topic.id]

    def test_nine_submissions_do_not_trend(self, e2e, make_user):
        results = [
            e2e.intake.submit({"claim_text": RUMOUR, "category": "politics"}, make_user(f"u{i}@example.com").id)
            for i in range(9)
        ]
        _drain(e2e)

        assert not any(e2e.claims.get(r.claim.id).is_trending for r in results)
        assert e2e.trending.top_topics() == []

    def test_decay_cools_old_groups(self, e2e, make_user):
        for i in range(10):
            e2e.intake.submit({"claim_text": RUMOUR, "category": "politics"}, make_user(f"u{i}@example.com").id)
        _drain(e2e)

        summary = e2e.trending.decay(now=utcnow() + timedelta(days=8))

        assert summary["claims_cooled"] == 10
        assert e2e.trending.top_topics() == []


class TestAIRetry:
    def test_transport_failure_then_low_confidence_routes_to_review(self, e2e, submitter, fake_llm):
        fake_llm.queue(ExternalServiceError("anthropic", "overloaded"), ai_json(confidence=0.5))
        claim_id = e2e.intake.submit({"claim_text": RUMOUR, "category": "politics"}, submitter.id).claim.id

        assert e2e.worker.run_once() is True
        assert e2e.claims.get(claim_id).status == ClaimStatus.PENDING.value

        assert e2e.worker.run_once() is True
        claim = e2e.claims.get(claim_id)
        assert claim.status == ClaimStatus.HUMAN_REVIEW.value
        assert e2e.ai_verdicts.get(claim.ai_verdict_id).confidence_score == 0.5


class TestFullLifecycle:
    def test_submission_to_read_verdict(self, e2e, submitter, fact_checker, fake_llm):
        fake_llm.queue(ai_json(verdict="false", confidence=0.9, sources=["https://iebc.or.ke/results"]))

        submitted = e2e.intake.submit({"claim_text": RUMOUR, "category": "politics"}, submitter.id)
        _drain(e2e)
        claim_id = submitted.claim.id
        assert e2e.claims.get(claim_id).status == ClaimStatus.AI_APPROVED.value

        e2e.assignment.apply(claim_id, AssignmentAction.ASSIGN, fact_checker.id)
        e2e.review.start_session(claim_id, fact_checker.id)
        decision = e2e.review.decide(claim_id, fact_checker.id, ApproveAIVerdict())
        _drain(e2e)

        ai = e2e.ai_verdicts.get(e2e.claims.get(claim_id).ai_verdict_id)
        verdict = decision.verdict
        assert decision.claim.status == ClaimStatus.PUBLISHED
        assert verdict.verdict.value == ai.verdict
        assert verdict.explanation == ai.explanation
        assert verdict.evidence_sources == ["https://iebc.or.ke/results"]
        assert verdict.responsibility == Responsibility.AI

        types = [n.type for n in e2e.notifier.list_for_user(submitter.id)]
        assert NotificationType.AI_VERDICT_READY in types
        assert NotificationType.VERDICT_READY in types
        assert e2e.points.total(submitter.id) == 5 + 10 + 3

        assert e2e.notifier.unread_verdict_count(submitter.id) == 1
        first = e2e.notifier.mark_verdict_as_read(claim_id, submitter.id).verdict_read_at
        second = e2e.notifier.mark_verdict_as_read(claim_id, submitter.id).verdict_read_at
        assert first == second
        assert e2e.notifier.unread_verdict_count(submitter.id) == 0

    def test_media_claim_skips_ai(self, e2e, submitter, fake_llm):
        result = e2e.intake.submit(
            {"claim_text": RUMOUR, "category": "politics", "image_url": "https://cdn.example/ballots.jpg"},
            submitter.id,
        )
        _drain(e2e)

        assert result.requires_human_review is True
        assert e2e.claims.get(result.claim.id).status == ClaimStatus.HUMAN_REVIEW.value
        assert fake_llm.calls == []
