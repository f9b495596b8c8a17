"""Cross-platform matcher."""

import pytest

from oddsbridge.core.matching import gap_significance, jaccard, match_markets, outcome_gaps
from oddsbridge.models import ComparableMarket, NormalizedOutcome


def _market(mid, title, keywords, category="politics", outcomes=(), teams=()):
    return ComparableMarket(
        title=title,
        platform_market_id=mid,
        keywords=list(keywords),
        event_category=category,
        teams=list(teams),
        outcomes=[NormalizedOutcome(name=n, normalized_probability=p, raw_price=p) for n, p in outcomes],
    )


def test_jaccard():
    assert jaccard({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)
    assert jaccard([], []) == 0.0
    assert jaccard({"x"}, {"x"}) == 1.0


def test_gap_significance():
    assert gap_significance(0.12) == "significant"
    assert gap_significance(0.07) == "notable"
    assert gap_significance(0.05) == "minor"


def test_outcome_gaps_case_insensitive_and_sorted():
    left = _market("L", "x", [], outcomes=[("Yes", 0.40), ("No", 0.60), ("Maybe", 0.1)])
    right = _market("R", "x", [], outcomes=[("yes", 0.52), ("no", 0.47)])
    gaps = outcome_gaps(left, right)
    assert [g.name for g in gaps] == ["No", "Yes"]
    assert gaps[0].gap == pytest.approx(0.13)
    assert gaps[0].significance == "significant"


def test_match_markets_pairs_best_partner():
    left = [
        _market("K1", "2028 election", ["trump", "2028", "election"], outcomes=[("Yes", 0.40)]),
        _market("K2", "Bitcoin 100k", ["bitcoin", "100k"], category="crypto"),
    ]
    right = [
        _market("P1", "Trump 2028?", ["trump", "2028", "election", "win"], outcomes=[("Yes", 0.45)]),
        _market("P2", "Fed rate", ["fed", "rate"], category="business"),
    ]
    matches = match_markets(left, right)
    assert len(matches) == 1
    m = matches[0]
    assert (m.left_id, m.right_id) == ("K1", "P1")
    assert m.similarity == pytest.approx(0.75)
    assert m.shared_keywords == ["2028", "election", "trump"]
    assert m.max_gap == pytest.approx(0.05)
    assert m.to_dict()["leftId"] == "K1"


def test_match_markets_respects_category():
    left = [_market("K", "a", ["lakers", "celtics"], category="sports")]
    right = [_market("P", "a", ["lakers", "celtics"], category="politics")]
    assert match_markets(left, right) == []


def test_other_category_matches_anything():
    left = [_market("K", "a", ["lakers"], category="other", teams=["Celtics"])]
    right = [_market("P", "a", ["lakers", "celtics"], category="sports")]
    matches = match_markets(left, right)
    assert matches[0].event_category == "sports"
    assert matches[0].similarity == 1.0


def test_threshold():
    left = [_market("K", "a", ["a", "b", "c"])]
    right = [_market("P", "a", ["a", "x", "y"])]
    assert match_markets(left, right) == []
    assert len(match_markets(left, right, threshold=0.2)) == 1
