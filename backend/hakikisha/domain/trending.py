"""Trending and engagement scoring rules.

Usage:
    from hakikisha.domain.trending import trending_score, engagement_score, risk_level

    score = trending_score(submission_count=5, priority="critical", hours_since_submission=0)  # 100.0
    engagement = engagement_score("politics", submission_count=12)                             # 90.0
    risk = risk_level("politics", engagement)                                                  # RiskLevel.HIGH
"""

from hakikisha.schemas.trending import RiskLevel

DECAY_WINDOW_HOURS = 168.0  # one week

PRIORITY_BOOST = {
    "high": 20,
    "critical": 50,
}

CATEGORY_WEIGHTS = {
    "politics": 1.5,
    "health": 1.3,
    "education": 1.1,
}

RECOMMENDED_ACTIONS = {
    RiskLevel.HIGH: "Immediate fact-checking and content moderation required",
    RiskLevel.MEDIUM: "Monitor closely and prepare fact-checking resources",
    RiskLevel.LOW: "Regular monitoring sufficient",
}


def decay_factor(hours: float, window_hours: float = DECAY_WINDOW_HOURS) -> float:
    """Linear decay from 1.0 (now) to 0.0 (``window_hours`` ago or older)."""
    if window_hours <= 0:
        return 0.0
    return max(0.0, 1.0 - max(hours, 0.0) / window_hours)


def trending_score(
    submission_count: int,
    priority: str,
    hours_since_submission: float,
    window_hours: float = DECAY_WINDOW_HOURS,
) -> float:
    """``(count*10 + priority boost) * decay``.

    Examples:
        >>> trending_score(5, "critical", 0)
        100.0
        >>> trending_score(5, "critical", 168)
        0.0
        >>> trending_score(3, "low", 84)
        15.0
    """
    base = submission_count * 10 + PRIORITY_BOOST.get(getattr(priority, "value", priority), 0)
    return float(base) * decay_factor(hours_since_submission, window_hours)


def engagement_score(
    category: str,
    submission_count: int,
    per_submission: float = 5.0,
    cap: float = 100.0,
) -> float:
    """Examples:
        >>> engagement_score("politics", 10)
        75.0
        >>> engagement_score("sports", 30)
        100.0
    """
    weight = CATEGORY_WEIGHTS.get((category or "").lower(), 1.0)
    return min(cap, submission_count * per_submission * weight)


def risk_level(category: str, engagement: float) -> RiskLevel:
    category = (category or "").lower()
    if (category == "politics" and engagement > 70) or engagement > 85:
        return RiskLevel.HIGH
    if category in ("health", "business") and engagement > 60:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def recommended_action(risk: RiskLevel) -> str:
    return RECOMMENDED_ACTIONS[RiskLevel(risk)]
