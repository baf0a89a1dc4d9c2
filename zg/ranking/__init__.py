"""
Ranking module for zg.

This module computes frecency scores for search matches and orders them.
It consists of five components:

1. BlobLineCounter: Memoized line counts per blob id (size estimate for binaries)
2. BlameResolver: Memoized per-path blame, classifying lines as committed/uncommitted
3. HistoryAggregator: One first-parent walk over history, scoring every path at once
4. FrecencyScorer: Combines history scores with per-line bonuses for a run
5. rank: Stable descending sort by score
"""

from zg.ranking.blob_lines import BlobLineCounter, count_text_lines, count_content_lines, estimate_lines
from zg.ranking.blame import BlameResolver
from zg.ranking.history import HistoryAggregator
from zg.ranking.frecency import FrecencyScorer
from zg.ranking.ranker import rank

__all__ = [
    'BlobLineCounter', 'count_text_lines', 'count_content_lines', 'estimate_lines',
    'BlameResolver', 'HistoryAggregator', 'FrecencyScorer', 'rank'
]
