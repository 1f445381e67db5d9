"""
Trending interest scoring.

score(interest) = seasonal_weight * (record_evidence + trend_boost)

record_evidence comes from the records stored for the interest in this run;
trend_boost comes from live TREND_DETECTION results and is zero on the
fallback path.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.models import Interest, StructuredRecord


SEASONS = {
    12: "winter", 1: "winter", 2: "winter",
    3: "spring", 4: "spring", 5: "spring",
    6: "summer", 7: "summer", 8: "summer",
    9: "fall", 10: "fall", 11: "fall",
}


def season_for(month: int) -> str:
    return SEASONS[month]


def seasonal_weights(month: int) -> Dict[str, float]:
    """
    Seasonal multiplier per interest id for a calendar month (1-12).

    Interests not listed weigh 1.0.
    """
    spring_summer = 4 <= month <= 9
    return {
        "coffee": 1.0,
        "hiking": 1.5 if spring_summer else 0.8,
        "art": 1.0,
        "food": 1.2,
        "music": 1.4 if 6 <= month <= 9 else 1.0,
        "books": 1.3 if 10 <= month <= 12 else 1.0,
        "shopping": 1.5 if month >= 11 or month <= 2 else 0.9,
        "nature": 1.4 if spring_summer else 0.8,
    }


def record_evidence(records: Sequence[StructuredRecord]) -> float:
    """Average popularity (scaled to 100) plus average check-ins / 10."""
    if not records:
        return 0.0
    popularity = sum(r.popularity for r in records) / len(records)
    check_ins = sum(r.check_ins for r in records) / len(records)
    return popularity * 10 + check_ins / 10


def trend_boosts(trends: Iterable[Mapping[str, Any]], interests: Sequence[Interest]) -> Dict[str, float]:
    """
    Boost per interest id from detected trends.

    A trend counts toward an interest when the interest id or name appears
    in the trend's name or category.
    """
    boosts = {interest.id: 0.0 for interest in interests}
    for trend in trends:
        if not isinstance(trend, Mapping):
            continue
        text = f"{trend.get('name', '')} {trend.get('category', '')}".lower()
        try:
            score = max(1.0, min(10.0, float(trend.get("popularityScore", 1))))
        except (TypeError, ValueError):
            score = 1.0
        for interest in interests:
            if interest.id.lower() in text or interest.name.lower() in text:
                boosts[interest.id] += score * 10
    return boosts


def rank_interests(
    interests: Sequence[Interest],
    month: int,
    evidence: Mapping[str, float],
    boosts: Optional[Mapping[str, float]] = None,
    top_n: int = 4,
) -> Tuple[List[str], Dict[str, float]]:
    """
    Rank interests by trending score.

    Ties keep configuration order.

    Returns:
        (top interest ids, score per interest id)
    """
    weights = seasonal_weights(month)
    boosts = boosts or {}
    scores = {
        interest.id: round(
            weights.get(interest.id, 1.0)
            * (evidence.get(interest.id, 0.0) + boosts.get(interest.id, 0.0)),
            2,
        )
        for interest in interests
    }
    order = sorted(
        range(len(interests)),
        key=lambda i: (-scores[interests[i].id], i),
    )
    return [interests[i].id for i in order[:top_n]], scores
