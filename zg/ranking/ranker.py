"""
Order scored matches for presentation.
"""

from functools import cmp_to_key
from typing import Iterable, List

from zg.core.types import MatchCandidate


def _compare_scores(a: MatchCandidate, b: MatchCandidate) -> int:
    # Descending; NaN compares equal to everything so it keeps its place
    if a.score > b.score:
        return -1
    if a.score < b.score:
        return 1
    return 0


def rank(candidates: Iterable[MatchCandidate]) -> List[MatchCandidate]:
    """Return candidates sorted by score, highest first.

    The sort is stable: equal scores keep the collector's order.
    """
    return sorted(candidates, key=cmp_to_key(_compare_scores))
