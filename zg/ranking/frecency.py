"""
Frecency scoring engine.

Combines two signals into one score per match:

- history score: the path's recency/size-weighted commit history
  (see zg.ranking.history)
- line bonus: whether the matched line itself is uncommitted or committed,
  normalized by the file's current length

    score = history(path) + weight / current_line_count

where weight is UNCOMMITTED_LINE_WEIGHT for a line that only exists in the
working copy and COMMITTED_LINE_WEIGHT otherwise. A line blame cannot place
(untracked file, line added after blame ran, binary file) gets no bonus.

All caches live for a single score() call: the repository is opened at the
start, shared by blame and history lookups, and closed at the end. Nothing
is persisted between runs.
"""

import time
from typing import Callable, Dict, Optional, Sequence

from zg.core.config import (
    UNCOMMITTED_LINE_WEIGHT,
    COMMITTED_LINE_WEIGHT,
    DEFAULT_MAX_COMMITS
)
from zg.core.paths import PathNormalizer
from zg.core.types import MatchCandidate
from zg.git.repository import GitRepository
from zg.ranking.blame import BlameResolver
from zg.ranking.blob_lines import BlobLineCounter, count_content_lines
from zg.ranking.history import HistoryAggregator


class FrecencyScorer:
    """Assign frecency scores to match candidates.

    Scoring is single-threaded: the repository handle and its batch
    processes are not shared across threads.

    Args:
        root: Directory the candidates' relative paths are relative to
              (default: current directory)
        repo_factory: Function opening a repository handle for `root`
                      (default: GitRepository.open)
        now_func: Clock returning seconds since epoch (default: time.time)
        max_commits: History walk limit (None = full first-parent history)
        uncommitted_weight: Line bonus numerator for uncommitted lines
        committed_weight: Line bonus numerator for committed lines
        verbose: Enable verbose logging
        output_handler: Function for info messages (default: print)
    """

    def __init__(
        self,
        root: Optional[str] = None,
        repo_factory: Optional[Callable] = None,
        now_func: Callable[[], float] = time.time,
        max_commits: Optional[int] = DEFAULT_MAX_COMMITS,
        uncommitted_weight: float = UNCOMMITTED_LINE_WEIGHT,
        committed_weight: float = COMMITTED_LINE_WEIGHT,
        verbose: bool = False,
        output_handler: Optional[Callable[[str], None]] = None
    ):
        self.root = root or "."
        self.repo_factory = repo_factory
        self.now_func = now_func
        self.max_commits = max_commits
        self.uncommitted_weight = uncommitted_weight
        self.committed_weight = committed_weight
        self.verbose = verbose
        self.output_handler = output_handler or print

        # Cache sizes and walk statistics from the last run
        self.stats: Dict[str, int] = {}

    def score(self, candidates: Sequence[MatchCandidate]) -> Sequence[MatchCandidate]:
        """Populate `score` on every candidate, in place.

        Candidates keep their order; ranking is a separate step. Duplicate
        (path, line) candidates are scored independently and get identical
        scores.

        Returns:
            The same sequence, scored

        Raises:
            RepositoryUnavailable: If the root is not inside a git work tree
            HistoryUnavailable: If the commit walk cannot be started
        """
        if not candidates:
            return candidates

        repo = self._open_repository()
        try:
            normalizer = PathNormalizer(repo.root, self.root)
            keys = [normalizer.normalize(c.path) for c in candidates]
            distinct = {key for key in keys if key is not None}
            if not distinct:
                return candidates

            line_counter = BlobLineCounter(
                repo.read_blob,
                verbose=self.verbose,
                output_handler=self.output_handler
            )
            aggregator = HistoryAggregator(
                repo,
                line_counter,
                now_func=self.now_func,
                max_commits=self.max_commits,
                verbose=self.verbose,
                output_handler=self.output_handler
            )
            resolver = BlameResolver(
                repo.blame,
                verbose=self.verbose,
                output_handler=self.output_handler
            )

            history = aggregator.aggregate(distinct)

            working_lines: Dict[str, int] = {}
            for candidate, key in zip(candidates, keys):
                if key is None:
                    candidate.score = 0.0
                    continue
                bonus = self._line_bonus(repo, resolver, working_lines, key, candidate.line_number)
                candidate.score = history.get(key, 0.0) + bonus

            self.stats = dict(
                aggregator.stats,
                paths=len(distinct),
                blobs=len(line_counter),
                blamed=len(resolver),
            )
            if self.verbose:
                self._log_score_stats(history)
        finally:
            repo.close()

        return candidates

    def _open_repository(self):
        if self.repo_factory is not None:
            return self.repo_factory(self.root)
        return GitRepository.open(
            self.root,
            verbose=self.verbose,
            output_handler=self.output_handler
        )

    def _line_bonus(
        self,
        repo,
        resolver: BlameResolver,
        working_lines: Dict[str, int],
        key: str,
        line_number: int
    ) -> float:
        entry = resolver.entry_at(key, line_number)
        if entry is None:
            return 0.0

        lines = working_lines.get(key)
        if lines is None:
            lines = self._current_line_count(repo, key)
            working_lines[key] = lines

        weight = self.uncommitted_weight if entry.is_uncommitted else self.committed_weight
        return weight / lines

    def _current_line_count(self, repo, key: str) -> int:
        """Line count of the file as it is on disk now, not as committed."""
        try:
            return count_content_lines(repo.read_working_file(key))
        except OSError as e:
            if self.verbose:
                self.output_handler(f"Could not read {key}: {e}")
            return 1

    def _log_score_stats(self, history: Dict[str, float]):
        """Log history score statistics for debugging."""
        scored = [(k, v) for k, v in history.items() if v > 0.0]
        self.output_handler(
            f"Frecency: {len(scored)}/{len(history)} files with history, "
            f"{self.stats.get('blamed', 0)} blamed, {self.stats.get('blobs', 0)} blobs counted"
        )

        top = sorted(scored, key=lambda x: x[1], reverse=True)[:5]
        if top:
            self.output_handler("Top history scores:")
            for key, value in top:
                self.output_handler(f"  {key}: {value:.6f}")
