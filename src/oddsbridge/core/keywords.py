"""Keyword and team descriptors extracted from free text, used as a cross-platform matching key."""

from __future__ import annotations

import re

MAX_KEYWORDS = 15

STOPWORDS = frozenset({
    "the", "a", "an", "in", "on", "at", "to", "for", "of", "and", "or", "is",
    "will", "be", "by", "this", "that", "it", "with", "from", "as", "are",
    "was", "were", "been", "have", "has", "had", "do", "does", "did", "but",
    "if", "than", "so", "what", "which", "who", "whom", "when", "where", "why",
    "how", "all", "each", "every", "both", "few", "more", "most", "other",
    "some", "such", "no", "nor", "not", "only", "own", "same", "too", "very",
    "can", "just", "should", "now", "before", "after", "during", "while",
})

NBA_TEAMS = (
    "lakers", "celtics", "warriors", "heat", "bucks", "nuggets", "suns", "nets",
    "sixers", "76ers", "knicks", "bulls", "clippers", "mavericks", "cavaliers",
)
NFL_TEAMS = (
    "chiefs", "eagles", "cowboys", "49ers", "bills", "ravens", "lions", "dolphins",
    "jets", "packers", "vikings", "bengals", "jaguars", "texans", "chargers",
    "broncos", "patriots", "saints", "falcons", "bears",
)
MLB_TEAMS = (
    "yankees", "dodgers", "braves", "astros", "mets", "phillies", "padres",
    "mariners", "orioles", "rangers", "twins", "rays", "guardians", "cubs", "red sox",
)
TEAM_ROSTER = NBA_TEAMS + NFL_TEAMS + MLB_TEAMS

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_YEAR = re.compile(r"(20\d{2})")
_WILL_X_WIN = re.compile(r"^Will (?:the )?(.+?) win .+\?$", re.IGNORECASE)
_X_TO_WIN = re.compile(r"^(.+?) to win .+$", re.IGNORECASE)


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Lowercase alphanumeric tokens longer than 2 chars, stopwords dropped, source order kept.

    Not deduplicated or sorted: compare results as sets.
    """
    words = _NON_ALNUM.sub(" ", (text or "").lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOPWORDS][:limit]


def _capitalize(team: str) -> str:
    return team[:1].upper() + team[1:]


def extract_teams(text: str) -> list[str]:
    """Roster names found by substring containment, in roster order.

    Plain lookup: "heat" also hits "theater".
    """
    lower = (text or "").lower()
    return [_capitalize(team) for team in TEAM_ROSTER if team in lower]


def match_key(title: str) -> str:
    """Event-level key, e.g. 'presidential_election_2028', 'superbowl_2026'.

    Falls back to the first three keywords joined by '_'.
    """
    lower = (title or "").lower()
    m = _YEAR.search(lower)
    year = m.group(1) if m else ""
    if "president" in lower and "election" in lower:
        return f"presidential_election_{year}"
    if "president" in lower and "nominee" in lower:
        party = "dem" if "democrat" in lower else "rep" if "republican" in lower else ""
        return f"presidential_nominee_{party}_{year}"
    if "senate" in lower and "control" in lower:
        return f"senate_control_{year}"
    if "house" in lower and "control" in lower:
        return f"house_control_{year}"
    if "super bowl" in lower or "superbowl" in lower:
        return f"superbowl_{year}"
    if "nba" in lower and "champion" in lower:
        return f"nba_champion_{year}"
    return "_".join(extract_keywords(title)[:3])


def clean_outcome_name(question: str) -> str:
    """'Will the Buffalo Bills win Super Bowl 2026?' -> 'Buffalo Bills'; 'X to win Y' -> 'X'."""
    name = question or "Unknown"
    m = _WILL_X_WIN.match(name)
    if m:
        name = m.group(1)
    m = _X_TO_WIN.match(name)
    if m:
        name = m.group(1)
    return name
