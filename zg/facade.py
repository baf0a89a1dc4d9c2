"""Facade orchestrator for zg.

This module provides the FrecencyGrep class that composes all subsystems:
- SearchCollector: Parallel regex search over the working tree
- FrecencyScorer: Git history + blame based scoring (single-threaded)
- rank: Stable descending sort by score
- MatchPresenter: Highlighted terminal output

The phases run strictly in sequence: collect (parallel) -> score -> rank ->
render. A scoring failure (not a git repository, no commits yet) is not
fatal here: it is reported through the warning handler and the matches are
returned unscored, in collector order.
"""

import os
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from zg.core.config import DEFAULT_MAX_COMMITS, DEFAULT_SEARCH_WORKERS
from zg.core.errors import RepositoryUnavailable, HistoryUnavailable
from zg.core.types import MatchCandidate, SearchReport
from zg.ranking import FrecencyScorer, rank
from zg.rendering import MatchPresenter
from zg.search import SearchCollector, compile_pattern


class FrecencyGrep:
    """Main facade for frecency-ranked search.

    Args:
        root: Directory to search (default: cwd)
        ignore_case: Case-insensitive matching
        workers: Search threads
        max_commits: History walk limit (None = full first-parent history)
        show_score: Prefix output lines with their score
        color: Enable colored output
        verbose: Enable verbose logging
        output_handler_funcs: Dict of output handlers (info, warning, error)
        now_func: Clock for commit ages (default: time.time)
        repo_factory: Optional repository opener, passed to FrecencyScorer
    """

    def __init__(
        self,
        root: Optional[str] = None,
        ignore_case: bool = False,
        workers: int = DEFAULT_SEARCH_WORKERS,
        max_commits: Optional[int] = DEFAULT_MAX_COMMITS,
        show_score: bool = False,
        color: bool = True,
        verbose: bool = False,
        output_handler_funcs: Optional[Dict[str, Callable]] = None,
        now_func: Callable[[], float] = time.time,
        repo_factory: Optional[Callable] = None
    ):
        self.root = Path(root or os.getcwd())
        self.ignore_case = ignore_case
        self.workers = workers
        self.max_commits = max_commits
        self.show_score = show_score
        self.color = color
        self.verbose = verbose
        self.now_func = now_func
        self.repo_factory = repo_factory

        if output_handler_funcs is None:
            output_handler_funcs = {
                'info': print,
                'warning': print,
                'error': print
            }
        self.output_handlers = output_handler_funcs

        self._init_subsystems()

    def _init_subsystems(self):
        """Initialize all subsystems with proper dependency injection."""
        self.collector = SearchCollector(
            root=str(self.root),
            ignore_case=self.ignore_case,
            workers=self.workers,
            verbose=self.verbose,
            output_handler=self.output_handlers['info']
        )

        self.scorer = FrecencyScorer(
            root=str(self.root),
            repo_factory=self.repo_factory,
            now_func=self.now_func,
            max_commits=self.max_commits,
            verbose=self.verbose,
            output_handler=self.output_handlers['info']
        )

        self.presenter = MatchPresenter(
            show_score=self.show_score,
            color=self.color
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def search(self, pattern: str) -> Tuple[List[MatchCandidate], SearchReport]:
        """Collect, score and rank matches for `pattern`.

        Returns:
            Tuple of (ranked matches, search report)

        Raises:
            InvalidPattern: If the pattern does not compile
        """
        matches = self.collector.collect(pattern)
        report = SearchReport(
            total_matches=len(matches),
            distinct_files=len({m.path for m in matches}),
            scored=True
        )
        if not matches:
            return matches, report

        start = time.perf_counter()
        try:
            self.scorer.score(matches)
        except (RepositoryUnavailable, HistoryUnavailable) as e:
            for m in matches:
                m.score = 0.0
            report.scored = False
            report.scoring_error = str(e)
            self.output_handlers['warning'](f"Results are unranked: {e}")
            return matches, report

        if self.verbose:
            elapsed = time.perf_counter() - start
            self.output_handlers['info'](
                f"Scored {len(matches)} matches in {report.distinct_files} files ({elapsed:.2f}s)"
            )

        return rank(matches), report

    def render(self, matches: List[MatchCandidate], pattern: str) -> str:
        """Render ranked matches for the terminal."""
        matcher = compile_pattern(pattern, self.ignore_case)
        return self.presenter.render(matches, matcher)
