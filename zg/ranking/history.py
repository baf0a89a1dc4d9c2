"""
Commit-history aggregation for frecency.

Every non-merge commit on the first-parent chain from HEAD contributes to
each path of interest that exists in its tree:

    contribution = 1 / (line_count * age_days),  age_days = max(1, age / 1 day)

so a path scores higher the more commits it appears in (frequency), the
younger those commits are (recency, decaying as 1/age), and the smaller
the file was at the time (normalization, so big files do not win on volume).

The walk happens once for the whole path set: the outer loop is over
commits, the inner loop over paths, and a single repository handle serves
every lookup.
"""

import time
from typing import Callable, Dict, Iterable, Iterator, Optional, Protocol

from zg.core.config import SECONDS_PER_DAY, MIN_AGE_DAYS, DEFAULT_MAX_COMMITS
from zg.core.errors import GitCommandError
from zg.core.types import BlobInfo, CommitRecord
from zg.ranking.blob_lines import BlobLineCounter


class HistorySource(Protocol):
    """The part of a repository handle the aggregator needs."""

    def iter_first_parent_commits(self) -> Iterator[CommitRecord]: ...

    def lookup_blobs(self, commit_id: str, path_keys: Iterable[str]) -> Dict[str, BlobInfo]: ...


class HistoryAggregator:
    """Accumulate recency- and size-weighted history scores per path.

    Args:
        repo: Repository handle (first-parent walk + tree lookups)
        line_counter: Memoized blob line counter shared with the run
        now_func: Clock returning seconds since epoch (default: time.time)
        max_commits: Stop after walking this many commits (None = full history).
                     Hitting the limit is not an error; the partial totals
                     are returned.
        verbose: Enable verbose logging
        output_handler: Function for info messages (default: print)
    """

    def __init__(
        self,
        repo: HistorySource,
        line_counter: BlobLineCounter,
        now_func: Callable[[], float] = time.time,
        max_commits: Optional[int] = DEFAULT_MAX_COMMITS,
        verbose: bool = False,
        output_handler: Optional[Callable[[str], None]] = None
    ):
        if max_commits is not None and max_commits < 0:
            raise ValueError(f"max_commits must be >= 0, got {max_commits}")
        self.repo = repo
        self.line_counter = line_counter
        self.now_func = now_func
        self.max_commits = max_commits
        self.verbose = verbose
        self.output_handler = output_handler or print

        # Walk statistics from the last aggregate() call
        self.stats: Dict[str, int] = {}

    def aggregate(self, paths: Iterable[str]) -> Dict[str, float]:
        """Compute the history score of every path in one pass over history.

        Args:
            paths: PathKeys of interest

        Returns:
            Dict mapping every requested PathKey to its score (0.0 if the
            path never appears in a visited commit)

        Raises:
            HistoryUnavailable: If the commit walk cannot be started
        """
        keys = sorted(set(paths))
        totals: Dict[str, float] = {key: 0.0 for key in keys}
        stats = {'walked': 0, 'merges_skipped': 0, 'failed': 0, 'contributions': 0}
        self.stats = stats
        if not keys:
            return totals

        now = self.now_func()
        commits = self.repo.iter_first_parent_commits()
        try:
            for commit in commits:
                if self.max_commits is not None and stats['walked'] >= self.max_commits:
                    if self.verbose:
                        self.output_handler(f"Commit limit {self.max_commits} reached, stopping history walk")
                    break
                stats['walked'] += 1

                if commit.is_merge:
                    stats['merges_skipped'] += 1
                    continue

                try:
                    blobs = self.repo.lookup_blobs(commit.commit_id, keys)
                except GitCommandError as e:
                    stats['failed'] += 1
                    if self.verbose:
                        self.output_handler(f"Skipping commit {commit.commit_id[:12]}: {e}")
                    continue

                age_days = max(MIN_AGE_DAYS, (now - commit.timestamp) / SECONDS_PER_DAY)
                for key, blob in blobs.items():
                    line_count = self.line_counter.count_lines(blob.object_id, blob.size)
                    totals[key] += 1.0 / (line_count * age_days)
                    stats['contributions'] += 1
        finally:
            close = getattr(commits, 'close', None)
            if close is not None:
                close()

        if self.verbose:
            self.output_handler(
                f"History walk: {stats['walked']} commits, {stats['merges_skipped']} merges skipped, "
                f"{stats['failed']} failed, {len(self.line_counter)} blobs counted"
            )

        return totals
