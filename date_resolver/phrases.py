"""Phrase tables for natural-language date references.

Tables are plain data so new dialect phrases can be added without touching
the resolver. Phrases are matched case-insensitively on word boundaries.
Within a table, longer phrases are tried first, so "noong isang linggo"
(last week) wins over the weekday name "linggo" (Sunday).
"""

import re
from typing import Dict, List, Pattern, Tuple


# English, Tagalog and Bisaya phrasing that points at the future
FUTURE_PHRASES: List[str] = [
    # English
    "tomorrow",
    "day after tomorrow",
    "later",
    "next week",
    "next month",
    "will",
    "going to",
    "in a week",
    "in a month",
    # Tagalog
    "bukas",
    "bukas ng umaga",
    "mamaya",
    "mamayang gabi",
    "sa susunod",
    "sa susunod na linggo",
    "sa isang linggo",
    "sa makalawa",
    # Bisaya
    "ugma",
    "sa sunod",
    "unya",
]

# "in 2 days", "in 3 weeks"
FUTURE_PATTERNS: List[Pattern] = [
    re.compile(r"\bin\s+\d+\s+(?:day|days|week|weeks|month|months)\b"),
]

# Phrases meaning today / right now
PRESENT_PHRASES: List[str] = [
    "today",
    "now",
    "right now",
    "this morning",
    "this afternoon",
    "this evening",
    "earlier",
    "ngayon",
    "ngayong araw",
    "kanina",
    "kaninang umaga",
    "sa umaga",
    "karon",
    "karong adlawa",
]

# Past phrase -> days ago
PAST_OFFSETS: Dict[str, int] = {
    "yesterday": 1,
    "last night": 1,
    "kahapon": 1,
    "kagabi": 1,
    "gahapon": 1,
    "gabie": 1,
    "kamakalawa": 2,
    "the other day": 2,
    "day before yesterday": 2,
    "the day before yesterday": 2,
    "noong isang araw": 2,
    "last week": 7,
    "noong isang linggo": 7,
    "a week ago": 7,
}

# "3 days ago", "2 araw na ang nakalipas", "2 weeks ago"
PAST_PATTERNS: List[Tuple[Pattern, int]] = [
    (re.compile(r"\b(\d+)\s+(?:day|days)\s+ago\b"), 1),
    (re.compile(r"\b(\d+)\s+araw\s+(?:na\s+ang\s+nakalipas|nakalipas|nakaraan)\b"), 1),
    (re.compile(r"\b(\d+)\s+(?:week|weeks)\s+ago\b"), 7),
    (re.compile(r"\b(\d+)\s+linggo\s+(?:na\s+ang\s+nakalipas|nakalipas|nakaraan)\b"), 7),
]

# Weekday names -> Python weekday() number (Monday == 0)
WEEKDAYS: Dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
    "lunes": 0,
    "martes": 1,
    "miyerkules": 2,
    "miyerkoles": 2,
    "huwebes": 3,
    "biyernes": 4,
    "sabado": 5,
    "linggo": 6,
}

# Words that introduce a past weekday ("last monday", "noong lunes")
WEEKDAY_PREFIXES: List[str] = ["last", "noong", "nung", "niadtong"]

# Words that introduce a coming weekday ("next monday", "sa lunes")
FUTURE_WEEKDAY_PREFIXES: List[str] = ["next", "this coming", "sa", "sa darating na", "sa sunod nga"]


def phrase_pattern(phrase: str) -> Pattern:
    """Compile a phrase into a word-bounded, whitespace-tolerant regex."""
    words = [re.escape(word) for word in phrase.split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b")


def longest_first(phrases) -> List[str]:
    return sorted(phrases, key=lambda p: (-len(p), p))


WEEKDAY_PATTERN: Pattern = re.compile(
    r"\b(?:" + "|".join(WEEKDAY_PREFIXES) + r")\s+("
    + "|".join(longest_first(WEEKDAYS)) + r")\b"
)

FUTURE_WEEKDAY_PATTERN: Pattern = re.compile(
    r"\b(?:" + "|".join(p.replace(" ", r"\s+") for p in longest_first(FUTURE_WEEKDAY_PREFIXES)) + r")\s+("
    + "|".join(longest_first(WEEKDAYS)) + r")\b"
)
