"""Comparable-market assembler: raw listings from one source -> filtered ComparableMarket list."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel

from oddsbridge.core.args import float_arg, int_arg
from oddsbridge.core.keywords import clean_outcome_name, extract_keywords, extract_teams, match_key
from oddsbridge.core.normalize import complement_price, to_probability
from oddsbridge.core.taxonomy import categorize, category_breakdown
from oddsbridge.models import ComparableMarket, Listing, NormalizedOutcome

MAX_DESCRIPTION = 200
MAX_OUTCOME_NAMES = 20

_YEAR_WORD = re.compile(r"^\d{4}$")

DEFAULT_MATCHING_GUIDE = (
    "Match markets across platforms by keyword overlap (50%+ shared keywords suggests the same "
    "event), same eventCategory and matching teams for sports. Compare normalizedProbability "
    "values directly: all outcomes are on a 0-1 scale."
)


class ComparableQuery(BaseModel):
    """Caller filters for get_comparable_markets."""

    category: str | None = None
    keywords: str | None = None
    min_volume: float = 0.0
    limit: int = 50
    include_resolved: bool = False

    @classmethod
    def from_args(cls, args: dict[str, Any], default_limit: int = 50) -> ComparableQuery:
        category = args.get("category")
        return cls(
            category=None if category in (None, "", "all") else str(category).lower(),
            keywords=args.get("keywords") or None,
            min_volume=float_arg(args, "minVolume", 0, minimum=0),
            limit=int_arg(args, "limit", default_limit),
            include_resolved=bool(args.get("includeResolved") or args.get("includeCompleted")),
        )


def query_words(keywords: str | None) -> list[str]:
    return [w for w in (keywords or "").lower().split() if len(w) > 2]


def score_relevance(
    title: str, description: str, outcome_text: str, words: Sequence[str]
) -> tuple[float, int]:
    """Return (score, title_matches). Title hits weigh 3, outcome names 2, description 1.

    A bare year counts for less: 1 in the title, 0.5 in outcomes, nothing in the description.
    """
    title_l, desc_l, outcomes_l = title.lower(), description.lower(), outcome_text.lower()
    score = 0.0
    title_matches = 0
    for word in words:
        is_year = bool(_YEAR_WORD.match(word))
        if word in title_l:
            score += 1 if is_year else 3
            title_matches += 1
        elif word in outcomes_l:
            score += 0.5 if is_year else 2
        elif word in desc_l and not is_year:
            score += 1
    return score, title_matches


def is_relevant(score: float, title_matches: int) -> bool:
    return title_matches >= 1 or score >= 2


def _truncate(text: str) -> str:
    if len(text) > MAX_DESCRIPTION:
        return text[:MAX_DESCRIPTION] + "..."
    return text


def _binary_outcomes(listing: Listing) -> list[NormalizedOutcome]:
    rep = listing.representation
    no_raw = listing.no_price if listing.no_price is not None else complement_price(listing.price, rep)
    no_prob = to_probability(no_raw, rep) if no_raw else 0.0
    return [
        NormalizedOutcome(
            name="Yes",
            normalized_probability=round(to_probability(listing.price, rep), 4),
            raw_price=listing.price,
        ),
        NormalizedOutcome(name="No", normalized_probability=round(no_prob, 4), raw_price=no_raw),
    ]


def _multi_outcomes(listings: Sequence[Listing]) -> list[NormalizedOutcome]:
    outcomes = [
        NormalizedOutcome(
            name=clean_outcome_name(item.outcome_label or item.title),
            normalized_probability=round(to_probability(item.price, item.representation), 4),
            raw_price=item.price,
        )
        for item in listings
    ]
    outcomes.sort(key=lambda o: o.normalized_probability, reverse=True)
    return outcomes


def build_comparable(listings: Sequence[Listing]) -> ComparableMarket:
    """One ComparableMarket from a group of listings that share an event (or a lone listing)."""
    first = listings[0]
    multi = len(listings) > 1
    title = first.event_title or first.title if multi else first.title
    description = _truncate(first.subtitle or "")
    outcomes = _multi_outcomes(listings) if multi else _binary_outcomes(first)
    outcome_names = [o.name for o in outcomes][:MAX_OUTCOME_NAMES] if multi else []
    category = categorize(title, first.source_category)
    teams: list[str] = []
    if category == "sports":
        teams = extract_teams(" ".join([title, description, *outcome_names]))
    return ComparableMarket(
        title=title,
        description=description,
        event_category=category,
        keywords=extract_keywords(f"{title} {description}"),
        teams=teams,
        outcomes=outcomes,
        match_key=match_key(title),
        outcome_names=outcome_names,
        volume=sum(item.volume for item in listings),
        liquidity=sum(item.liquidity for item in listings),
        close_time=first.close_time,
        url=first.url,
        platform_market_id=(first.event_id if multi and first.event_id else first.listing_id),
        is_multi_outcome=multi,
    )


def group_by_event(listings: Iterable[Listing]) -> list[list[Listing]]:
    """Group listings by event_id in first-seen order; listings without one stand alone."""
    groups: list[list[Listing]] = []
    by_event: dict[str, list[Listing]] = {}
    for item in listings:
        if item.event_id is None:
            groups.append([item])
            continue
        group = by_event.get(item.event_id)
        if group is None:
            group = by_event[item.event_id] = []
            groups.append(group)
        group.append(item)
    return groups


def assemble(listings: Iterable[Listing], query: ComparableQuery | None = None) -> list[ComparableMarket]:
    """Status, category, keyword relevance, min volume, then limit.

    Output keeps upstream order unless a keyword query sorts it by relevance.
    """
    query = query or ComparableQuery()
    live = [item for item in listings if query.include_resolved or not item.resolved]
    markets = [build_comparable(group) for group in group_by_event(live)]

    if query.category:
        markets = [m for m in markets if m.event_category == query.category]

    words = query_words(query.keywords)
    if words:
        scored = []
        for m in markets:
            score, title_matches = score_relevance(
                m.title, m.description, " ".join(o.name for o in m.outcomes), words
            )
            if is_relevant(score, title_matches):
                scored.append((score, m))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        markets = [m for _, m in scored]

    if query.min_volume > 0:
        markets = [m for m in markets if m.volume >= query.min_volume]

    return markets[: query.limit]


def comparable_payload(
    platform: str, markets: Sequence[ComparableMarket], guide: str = DEFAULT_MATCHING_GUIDE
) -> dict[str, Any]:
    return {
        "platform": platform,
        "markets": [m.to_dict() for m in markets],
        "totalCount": len(markets),
        "categoryBreakdown": category_breakdown(markets),
        "crossPlatformMatchingGuide": guide,
    }
