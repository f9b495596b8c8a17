"""Cross-platform matcher: pair ComparableMarkets from two sources by keyword/team overlap."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import Field

from oddsbridge.models import CamelModel, ComparableMarket

DEFAULT_THRESHOLD = 0.5


class OutcomeGap(CamelModel):
    name: str
    left_probability: float
    right_probability: float
    gap: float
    significance: str


class MarketMatch(CamelModel):
    left_title: str
    right_title: str
    left_id: str
    right_id: str
    event_category: str
    similarity: float
    shared_keywords: list[str] = Field(default_factory=list)
    outcome_gaps: list[OutcomeGap] = Field(default_factory=list)
    max_gap: float = 0.0


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """|A & B| / |A | B|; 0 for two empty sets."""
    left, right = set(a), set(b)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def market_tokens(market: ComparableMarket) -> set[str]:
    return set(market.keywords) | {t.lower() for t in market.teams}


def probability_gap(a: float, b: float) -> float:
    return abs(a - b)


def gap_significance(gap: float) -> str:
    if gap > 0.10:
        return "significant"
    if gap > 0.05:
        return "notable"
    return "minor"


def _categories_compatible(a: str, b: str) -> bool:
    return a == b or "other" in (a, b)


def outcome_gaps(left: ComparableMarket, right: ComparableMarket) -> list[OutcomeGap]:
    """Probability gaps for outcome names present on both sides (case-insensitive)."""
    right_by_name = {o.name.lower(): o for o in right.outcomes}
    gaps = []
    for o in left.outcomes:
        other = right_by_name.get(o.name.lower())
        if other is None:
            continue
        gap = probability_gap(o.normalized_probability, other.normalized_probability)
        gaps.append(
            OutcomeGap(
                name=o.name,
                left_probability=o.normalized_probability,
                right_probability=other.normalized_probability,
                gap=round(gap, 4),
                significance=gap_significance(gap),
            )
        )
    gaps.sort(key=lambda g: g.gap, reverse=True)
    return gaps


def match_markets(
    left: Sequence[ComparableMarket],
    right: Sequence[ComparableMarket],
    threshold: float = DEFAULT_THRESHOLD,
) -> list[MarketMatch]:
    """Best right-hand partner for each left market with similarity >= threshold.

    Ties keep the earlier right-hand market. Results sorted by similarity, highest first.
    """
    right_tokens = [market_tokens(m) for m in right]
    matches = []
    for lm in left:
        lt = market_tokens(lm)
        best: ComparableMarket | None = None
        best_score = 0.0
        for rm, rt in zip(right, right_tokens):
            if not _categories_compatible(lm.event_category, rm.event_category):
                continue
            score = jaccard(lt, rt)
            if score > best_score:
                best, best_score = rm, score
        if best is None or best_score < threshold:
            continue
        gaps = outcome_gaps(lm, best)
        matches.append(
            MarketMatch(
                left_title=lm.title,
                right_title=best.title,
                left_id=lm.platform_market_id,
                right_id=best.platform_market_id,
                event_category=lm.event_category if lm.event_category != "other" else best.event_category,
                similarity=round(best_score, 4),
                shared_keywords=sorted(lt & market_tokens(best)),
                outcome_gaps=gaps,
                max_gap=gaps[0].gap if gaps else 0.0,
            )
        )
    matches.sort(key=lambda m: m.similarity, reverse=True)
    return matches
