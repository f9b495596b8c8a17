"""
Unified Market Taxonomy

Assigns every listing to one of a fixed set of categories so that matching only compares
listings from the same domain. Strict first-match priority: sports, politics, crypto, business.
"""

from __future__ import annotations

from collections.abc import Iterable

from oddsbridge.models import EVENT_CATEGORIES, ComparableMarket

SPORTS_TERMS = (
    "nba", "nfl", "mlb", "nhl", "soccer", "football", "basketball", "baseball",
    "hockey", "tennis", "golf", "ufc", "mma", "boxing", "f1", "nascar", "olympics",
    "world cup", "super bowl", "championship",
)
POLITICS_TERMS = (
    "election", "president", "senate", "congress", "vote", "trump", "biden",
    "democrat", "republican", "governor", "political", "poll",
)
CRYPTO_TERMS = (
    "bitcoin", "ethereum", "crypto", "btc", "eth", "solana", "token", "defi", "nft",
    "blockchain",
)
BUSINESS_TERMS = (
    "stock", "market", "fed", "interest rate", "recession", "inflation", "gdp",
    "economic", "company", "earnings", "ipo", "merger",
)

# Checked in this order; the first list with a hit wins.
CATEGORY_CHECKS = (
    ("sports", SPORTS_TERMS),
    ("politics", POLITICS_TERMS),
    ("crypto", CRYPTO_TERMS),
    ("business", BUSINESS_TERMS),
)

# Source-native category labels -> category, for the fallback path
SOURCE_CATEGORY_ALIASES = {
    "us politics": "politics",
    "u.s. politics": "politics",
    "world": "politics",
    "elections": "politics",
    "economics": "business",
    "financials": "business",
    "finance": "business",
    "companies": "business",
    "economy": "business",
    "stocks": "business",
}

# Kalshi series ticker prefix -> category
SERIES_PREFIX_CATEGORY = {
    "KXNFL": "sports", "KXNBA": "sports", "KXMLB": "sports",
    "KXNHL": "sports", "KXSOCCER": "sports", "KXWNBA": "sports",
    "KXBTC": "crypto", "KXETH": "crypto", "KXSOL": "crypto",
    "KXSPY": "business", "KXGDP": "business", "KXFED": "business",
    "KXTRUMP": "politics", "KXBIDEN": "politics", "KXELEC": "politics",
    "KXHOUSE": "politics", "KXSENATE": "politics",
}


def categorize(title: str, source_category: str | None = None) -> str:
    """
    Categorize a listing by keyword lookup.

    Args:
        title: Listing or event title
        source_category: The source's own category tag, possibly absent or wrong

    Returns:
        One of EVENT_CATEGORIES. A title with both a sports and a politics term is sports.
    """
    text = f"{title or ''} {source_category or ''}".lower()
    for category, terms in CATEGORY_CHECKS:
        if any(term in text for term in terms):
            return category
    if not source_category:
        return "other"
    fallback = source_category.strip().lower()
    if fallback in EVENT_CATEGORIES:
        return fallback
    return SOURCE_CATEGORY_ALIASES.get(fallback, "other")


def category_from_series(ticker: str) -> str | None:
    """
    Map a Kalshi ticker to a category via its series prefix.

    Args:
        ticker: Market or event ticker, e.g. KXNBA-25-LAL

    Returns:
        Category string, or None when the prefix is unknown
    """
    upper = (ticker or "").upper()
    for prefix, category in SERIES_PREFIX_CATEGORY.items():
        if upper.startswith(prefix):
            return category
    return None


def category_breakdown(markets: Iterable[ComparableMarket]) -> dict[str, int]:
    counts = {c: 0 for c in EVENT_CATEGORIES}
    for m in markets:
        key = m.event_category if m.event_category in counts else "other"
        counts[key] += 1
    return counts
