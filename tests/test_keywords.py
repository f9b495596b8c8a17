"""Keyword, team and category extraction."""

from oddsbridge.core.keywords import (
    MAX_KEYWORDS,
    STOPWORDS,
    clean_outcome_name,
    extract_keywords,
    extract_teams,
    match_key,
)
from oddsbridge.core.taxonomy import categorize, category_breakdown, category_from_series
from oddsbridge.models import ComparableMarket


def test_keywords_from_election_title():
    words = set(extract_keywords("Will Trump win the 2028 presidential election?"))
    assert {"trump", "2028", "election"} <= words
    assert "the" not in words


def test_keywords_drop_short_tokens_and_stopwords():
    words = extract_keywords("Who will be the next Fed chair? A B cd, and so on!")
    assert all(len(w) > 2 for w in words)
    assert not STOPWORDS & set(words)


def test_keywords_capped():
    text = " ".join(f"token{i}" for i in range(40))
    assert len(extract_keywords(text)) == MAX_KEYWORDS
    assert len(extract_keywords(text, limit=5)) == 5


def test_keywords_idempotent():
    text = "Bitcoin above 100k by December 2025?"
    once = extract_keywords(text)
    assert set(extract_keywords(" ".join(once))) == set(once)


def test_keywords_empty():
    assert extract_keywords("") == []
    assert extract_keywords(None) == []


def test_teams():
    teams = extract_teams("Lakers vs Celtics NBA Finals Game 7")
    assert "Lakers" in teams
    assert "Celtics" in teams
    assert extract_teams("Will the Fed cut rates in March?") == []


def test_match_key():
    assert match_key("2028 Presidential Election Winner") == "presidential_election_2028"
    assert match_key("Republican Presidential Nominee 2028") == "presidential_nominee_rep_2028"
    assert match_key("Which party will control the Senate in 2026?") == "senate_control_2026"
    assert match_key("Super Bowl LX winner 2026") == "superbowl_2026"
    assert match_key("Bitcoin price ladder") == "_".join(extract_keywords("Bitcoin price ladder")[:3])


def test_clean_outcome_name():
    assert clean_outcome_name("Will the Boston Celtics win the 2026 NBA Finals?") == "Boston Celtics"
    assert clean_outcome_name("Gavin Newsom to win the nomination") == "Gavin Newsom"
    assert clean_outcome_name("Kansas City") == "Kansas City"
    assert clean_outcome_name("") == "Unknown"


def test_categorize_sports_wins_over_politics():
    assert categorize("NBA player to attend presidential election debate") == "sports"
    assert categorize("Lakers vs Celtics NBA Finals") == "sports"


def test_categorize_by_title():
    assert categorize("Will Trump win the 2028 election?") == "politics"
    assert categorize("Bitcoin above 100k?") == "crypto"
    assert categorize("Will GDP growth exceed 3%?") == "business"


def test_categorize_fallback_to_source_category():
    assert categorize("Who will win?", "Elections") == "politics"
    assert categorize("Who will win?", "Economics") == "business"
    assert categorize("Who will win?", "Sports") == "sports"
    assert categorize("Who will win?", "Culture") == "other"
    assert categorize("Who will win?") == "other"


def test_category_from_series():
    assert category_from_series("KXNBA-26-LAL") == "sports"
    assert category_from_series("kxbtc-25dec") == "crypto"
    assert category_from_series("INXD-25") is None


def test_category_breakdown_covers_every_category():
    markets = [
        ComparableMarket(title="a", event_category="sports"),
        ComparableMarket(title="b", event_category="sports"),
        ComparableMarket(title="c", event_category="crypto"),
    ]
    counts = category_breakdown(markets)
    assert counts == {"sports": 2, "politics": 0, "crypto": 1, "business": 0, "other": 0}
