"""
Name similarity for near-miss suggestions.

Scores live in [0, 1] and come in two bands:

  segment match  [0.75, 1.0]   one name's camelCase segments appear as a
                               contiguous run in the other's
                               score = 0.75 + 0.25 * dice
  partial match  [0.0, 0.74]   score = 0.74 * (dice + char) / 2

dice is the Dice coefficient over the two segment sets and char is the
normalised Indel similarity (rapidfuzz ``fuzz.ratio``) of the lower-cased
names. The bands do not overlap, so a segment match always outranks a
partial one regardless of length.
"""
from __future__ import annotations

import re
from typing import List, Sequence

from rapidfuzz import fuzz

SEGMENT_MATCH_FLOOR = 0.75
PARTIAL_CEILING = 0.74

_SEGMENT_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z]|[0-9]|\b)|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def split_segments(name: str) -> List[str]:
    """``homePhoneNumber`` -> ``["home", "phone", "number"]``."""
    return [s.lower() for s in _SEGMENT_RE.findall(name or "")]


def segment_dice(a: Sequence[str], b: Sequence[str]) -> float:
    sa, sb = set(a), set(b)
    if not sa or not sb:
        return 0.0
    return 2.0 * len(sa & sb) / (len(sa) + len(sb))


def _contains_run(haystack: Sequence[str], needle: Sequence[str]) -> bool:
    n = len(needle)
    if n == 0 or n > len(haystack):
        return False
    return any(list(haystack[i:i + n]) == list(needle) for i in range(len(haystack) - n + 1))


def is_segment_match(a: str, b: str) -> bool:
    sa, sb = split_segments(a), split_segments(b)
    return _contains_run(sa, sb) or _contains_run(sb, sa)


def char_similarity(a: str, b: str) -> float:
    return fuzz.ratio((a or "").lower(), (b or "").lower()) / 100.0


def similarity(a: str, b: str) -> float:
    sa, sb = split_segments(a), split_segments(b)
    if not sa or not sb:
        return 0.0
    dice = segment_dice(sa, sb)
    if _contains_run(sa, sb) or _contains_run(sb, sa):
        return SEGMENT_MATCH_FLOOR + (1.0 - SEGMENT_MATCH_FLOOR) * dice
    return PARTIAL_CEILING * (dice + char_similarity(a, b)) / 2.0
