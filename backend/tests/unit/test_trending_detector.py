"""Unit tests for TrendingDetector: group scoring, topics, advisories and decay."""

from datetime import timedelta

import pytest

from hakikisha.database import utcnow
from hakikisha.models.trending_topic import TrendingTopicModel
from hakikisha.schemas.trending import RiskLevel
from tests.fixtures.workflow import build_workflow
from tests.fixtures.fakes import RecordingContentClient

CLAIM = "The election results were rigged"


@pytest.fixture()
def content():
    return RecordingContentClient()


@pytest.fixture()
def detector(db, settings, content):
    return build_workflow(db, settings, content_client=content).trending


def _group(make_claim, n, *, created_at, category="politics", priority="medium"):
    return [make_claim(CLAIM, category=category, priority=priority, created_at=created_at) for _ in range(n)]


class TestUpdateForClaim:
    def test_below_threshold_scores_without_flagging(self, detector, make_claim):
        now = utcnow()
        claims = _group(make_claim, 3, created_at=now)

        update = detector.update_for_claim(claims[-1].id, now=now)

        assert update.submission_count == 3
        assert update.trending_score == 30.0
        assert update.is_trending is False
        assert update.topic_id is None
        assert all(c.trending_score == 30.0 and not c.is_trending for c in claims)

    def test_tenth_submission_flags_whole_group(self, detector, make_claim):
        now = utcnow()
        claims = _group(make_claim, 10, created_at=now)

        update = detector.update_for_claim(claims[-1].id, now=now)

        assert update.is_trending is True
        assert sorted(update.claim_ids) == sorted(c.id for c in claims)
        assert all(c.is_trending and c.submission_count == 10 for c in claims)

    def test_priority_boost_uses_highest_member(self, detector, make_claim):
        now = utcnow()
        make_claim(CLAIM, priority="critical", created_at=now)
        claim = make_claim(CLAIM, priority="low", created_at=now)

        update = detector.update_for_claim(claim.id, now=now)
        assert update.trending_score == 70.0  # 2*10 + 50

    def test_score_decays_from_newest_submission(self, detector, make_claim):
        now = utcnow()
        make_claim(CLAIM, created_at=now - timedelta(hours=160))
        newest = make_claim(CLAIM, created_at=now - timedelta(hours=84))

        update = detector.update_for_claim(newest.id, now=now)
        assert update.trending_score == pytest.approx(10.0)  # 20 * 0.5

    def test_topic_created_at_threshold(self, detector, make_claim, db):
        now = utcnow()
        claims = _group(make_claim, 10, created_at=now)

        update = detector.update_for_claim(claims[0].id, now=now)

        topic = db.get(TrendingTopicModel, update.topic_id)
        assert topic.topic == CLAIM
        assert topic.category == "politics"
        assert topic.submission_total == 10
        assert topic.engagement_score == 75.0
        assert topic.risk_level == RiskLevel.HIGH.value
        assert sorted(topic.related_claim_ids) == sorted(c.id for c in claims)

    def test_high_risk_topic_requests_advisory_once(self, detector, make_claim, content):
        now = utcnow()
        claims = _group(make_claim, 10, created_at=now)

        first = detector.update_for_claim(claims[0].id, now=now)
        second = detector.update_for_claim(claims[1].id, now=now)

        assert first.advisory_requested is True
        assert second.advisory_requested is False
        assert len(content.requested) == 1
        assert content.requested[0].risk_level == RiskLevel.HIGH

    def test_low_risk_topic_requests_nothing(self, detector, make_claim, content):
        now = utcnow()
        claims = _group(make_claim, 10, created_at=now, category="sports")

        update = detector.update_for_claim(claims[0].id, now=now)
        assert update.topic_id is not None
        assert update.advisory_requested is False
        assert content.requested == []

    def test_rerun_is_idempotent(self, detector, make_claim, db):
        now = utcnow()
        claims = _group(make_claim, 10, created_at=now)

        a = detector.update_for_claim(claims[0].id, now=now)
        b = detector.update_for_claim(claims[0].id, now=now)

        assert a.submission_count == b.submission_count == 10
        assert a.trending_score == b.trending_score
        topic = db.get(TrendingTopicModel, a.topic_id)
        assert len(topic.related_claim_ids) == 10

    def test_content_service_failure_does_not_fail_update(self, db, settings, make_claim):
        detector = build_workflow(db, settings, content_client=RecordingContentClient(fail=True)).trending
        now = utcnow()
        claims = _group(make_claim, 10, created_at=now)

        update = detector.update_for_claim(claims[0].id, now=now)
        assert update.is_trending is True


class TestDecay:
    def test_expired_groups_cool_down(self, detector, make_claim, db):
        now = utcnow()
        old = _group(make_claim, 2, created_at=now - timedelta(hours=200))
        for c in old:
            c.is_trending = True
            c.trending_score = 50.0
        db.commit()

        summary = detector.decay(now)

        assert summary["claims_cooled"] == 2
        assert all(c.trending_score == 0 and not c.is_trending for c in old)

    def test_fresh_groups_keep_flag(self, detector, make_claim, db):
        now = utcnow()
        group = _group(make_claim, 10, created_at=now - timedelta(hours=84))
        detector.update_for_claim(group[0].id, now=now - timedelta(hours=84))

        detector.decay(now)

        assert all(c.is_trending for c in group)
        assert group[0].trending_score == pytest.approx(50.0)

    def test_decay_is_not_compounding(self, detector, make_claim, db):
        now = utcnow()
        group = _group(make_claim, 10, created_at=now - timedelta(hours=84))
        detector.update_for_claim(group[0].id, now=now - timedelta(hours=84))

        detector.decay(now)
        detector.decay(now)

        assert group[0].trending_score == pytest.approx(50.0)

    def test_stale_topics_are_deactivated(self, detector, db):
        stale = utcnow() - timedelta(hours=300)
        topic = TrendingTopicModel(
            topic="Old rumour", topic_key="old rumour", category="health",
            submission_total=12, engagement_score=78.0, risk_level="medium",
            related_claim_ids=[], detected_at=stale, last_activity_at=stale,
        )
        db.add(topic)
        db.commit()

        summary = detector.decay()

        assert summary["topics_deactivated"] == 1
        assert topic.is_active is False
        assert topic.engagement_score == 0


class TestReads:
    def test_top_topics_and_assessment(self, detector, make_claim):
        now = utcnow()
        claims = _group(make_claim, 10, created_at=now)
        update = detector.update_for_claim(claims[0].id, now=now)

        topics = detector.top_topics(category="politics")
        assert [t.id for t in topics] == [update.topic_id]

        assessment = detector.assess(update.topic_id)
        assert assessment.risk_level == RiskLevel.HIGH
        assert assessment.recommended_action.startswith("Immediate")
