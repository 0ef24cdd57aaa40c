"""Trending detection over claim groups and topics.

Scores are always recomputed from the group's current state, never
incremented, so re-running an update for the same claim is harmless.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from hakikisha.config import Settings
from hakikisha.database import utcnow
from hakikisha.domain import trending as rules
from hakikisha.domain.similarity import normalize_text
from hakikisha.errors import DownstreamEffectError
from hakikisha.models.claim import ClaimModel
from hakikisha.models.trending_topic import TrendingTopicModel
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.trending_topic_repo import TrendingTopicRepository
from hakikisha.schemas.trending import RiskLevel, TopicAssessment, TrendingTopic, TrendingUpdate

logger = logging.getLogger(__name__)

_PRIORITY_ORDER = ["low", "medium", "high", "critical"]


def _hours_between(earlier: datetime, later: datetime) -> float:
    return max(0.0, (later - earlier).total_seconds() / 3600.0)


class TrendingDetector:
    def __init__(
        self,
        db: Session,
        claim_repo: ClaimRepository,
        topic_repo: TrendingTopicRepository,
        settings: Settings,
        content_client=None,
    ):
        self.db = db
        self.claims = claim_repo
        self.topics = topic_repo
        self.settings = settings
        self.content = content_client

    # ── scoring ──────────────────────────────────────────────────────

    def group_score(self, group: List[ClaimModel], now: datetime) -> float:
        """Score of a claim group, decayed from its most recent submission."""
        count = max(max(c.submission_count or 1 for c in group), len(group))
        priority = max((c.priority or "medium" for c in group), key=_PRIORITY_ORDER.index)
        newest = max(c.created_at for c in group)
        return rules.trending_score(
            count,
            priority,
            _hours_between(newest, now),
            window_hours=self.settings.trending_decay_hours,
        )

    def _engagement(self, category: str, submission_total: int, last_activity: datetime, now: datetime) -> float:
        base = rules.engagement_score(
            category,
            submission_total,
            per_submission=self.settings.engagement_per_submission,
            cap=self.settings.engagement_cap,
        )
        decayed = base * rules.decay_factor(_hours_between(last_activity, now), self.settings.trending_decay_hours)
        return round(decayed, 2)

    # ── updates ──────────────────────────────────────────────────────

    def update_for_claim(self, claim_id: int, now: Optional[datetime] = None) -> TrendingUpdate:
        """Recompute trending state for the group containing ``claim_id``.

        Commits. The advisory-content request for a newly high-risk topic
        is sent after the commit and never fails the update.
        """
        now = now or utcnow()
        claim = self.claims.get_or_raise(claim_id)
        group = self.claims.get_group([claim.similarity_hash]) if claim.similarity_hash else []
        if claim not in group:
            group.append(claim)

        count = max(max(c.submission_count or 1 for c in group), len(group))
        score = round(self.group_score(group, now), 2)
        crossed = count >= self.settings.trending_submission_threshold

        for c in group:
            c.submission_count = count
            c.trending_score = score
            if crossed:
                c.is_trending = True

        topic: Optional[TrendingTopicModel] = None
        advisory = False
        if crossed:
            topic, advisory = self._upsert_topic(group, count, now)

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        result = TrendingUpdate(
            claim_ids=[c.id for c in group],
            submission_count=count,
            trending_score=score,
            is_trending=any(c.is_trending for c in group),
            topic_id=topic.id if topic else None,
            advisory_requested=advisory,
        )
        logger.info(
            "Trending update for claim %d: group=%d score=%.2f trending=%s",
            claim_id, count, score, result.is_trending,
        )
        if advisory:
            self._request_advisory(topic)
        return result

    def _upsert_topic(
        self, group: List[ClaimModel], count: int, now: datetime
    ) -> tuple[TrendingTopicModel, bool]:
        anchor = min(group, key=lambda c: c.id)
        key = normalize_text(anchor.title)[:100] or f"claim-{anchor.id}"

        topic = self.topics.get_by_key(key)
        if topic is None:
            topic = self.topics.create(TrendingTopicModel(
                topic=anchor.title[:100],
                topic_key=key,
                category=anchor.category,
                related_claim_ids=[],
                detected_at=now,
                last_activity_at=now,
            ))
            logger.info("New trending topic %r (%s)", topic.topic, topic.category)

        related = list(topic.related_claim_ids or [])
        related.extend(c.id for c in group if c.id not in related)
        topic.related_claim_ids = related  # reassign so the JSON column is marked dirty
        topic.submission_total = max(count, topic.submission_total or 0)
        topic.last_activity_at = now
        topic.is_active = True
        topic.engagement_score = self._engagement(topic.category, topic.submission_total, now, now)
        topic.risk_level = rules.risk_level(topic.category, topic.engagement_score).value

        advisory = topic.risk_level == RiskLevel.HIGH.value and topic.advisory_requested_at is None
        if advisory:
            topic.advisory_requested_at = now
        self.topics.update(topic)
        return topic, advisory

    def decay(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Apply time decay to every trending claim group and active topic. Commits."""
        now = now or utcnow()
        summary = {"claims_rescored": 0, "claims_cooled": 0, "topics_rescored": 0, "topics_deactivated": 0}

        groups: dict[str, list[ClaimModel]] = defaultdict(list)
        for c in self.claims.get_flagged_trending():
            groups[c.similarity_hash or f"claim-{c.id}"].append(c)

        for members in groups.values():
            score = round(self.group_score(members, now), 2)
            for c in members:
                c.trending_score = score
                summary["claims_rescored"] += 1
                if score <= 0 and c.is_trending:
                    c.is_trending = False
                    summary["claims_cooled"] += 1

        for topic in self.topics.get_active():
            topic.engagement_score = self._engagement(
                topic.category, topic.submission_total or 0, topic.last_activity_at, now
            )
            topic.risk_level = rules.risk_level(topic.category, topic.engagement_score).value
            summary["topics_rescored"] += 1
            if topic.engagement_score <= 0:
                topic.is_active = False
                summary["topics_deactivated"] += 1

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Trending decay: %s", summary)
        return summary

    # ── reads ────────────────────────────────────────────────────────

    def top_topics(self, category: Optional[str] = None, limit: int = 10) -> List[TrendingTopic]:
        return [TrendingTopic.model_validate(t) for t in self.topics.get_active(category=category, limit=limit)]

    def assess(self, topic_id: int) -> TopicAssessment:
        topic = self.topics.get_or_raise(topic_id)
        risk = RiskLevel(topic.risk_level)
        return TopicAssessment(
            topic=topic.topic,
            category=topic.category,
            engagement_score=topic.engagement_score,
            risk_level=risk,
            recommended_action=rules.recommended_action(risk),
        )

    # ── fan-out ──────────────────────────────────────────────────────

    def _request_advisory(self, topic: TrendingTopicModel) -> None:
        if self.content is None:
            return
        try:
            self.content.request_advisory(TrendingTopic.model_validate(topic))
        except Exception as exc:
            err = DownstreamEffectError("content_advisory", str(exc))
            logger.error("Advisory request for topic %d failed: %s", topic.id, err)
