"""zg - frecency-ranked code search for git repositories.

Searches a working tree for a regular expression and orders the matches by
"frecency": files changed often and recently, and lines that are not yet
committed, come first.

Main components:
- core: Types, configuration, errors, path normalization
- git: Read-only repository handle over the git executable
- search: Parallel regex collection over the working tree
- ranking: Blob line counts, blame, history walk, frecency scoring, ranking
- rendering: Highlighted terminal output
- facade: Main orchestrator class (FrecencyGrep)

Example:
    from zg import FrecencyGrep

    searcher = FrecencyGrep(root='.', show_score=True)
    matches, report = searcher.search(r'def \\w+_handler')
    print(searcher.render(matches, r'def \\w+_handler'))
"""

__version__ = "0.1.0"

from zg.facade import FrecencyGrep
from zg.core.types import MatchCandidate, BlameEntry, SearchReport, UNCOMMITTED
from zg.ranking import FrecencyScorer, rank

__all__ = [
    'FrecencyGrep',
    'FrecencyScorer',
    'rank',
    'MatchCandidate',
    'BlameEntry',
    'SearchReport',
    'UNCOMMITTED',
    'main',
]


def main():
    """CLI entry point - delegates to zg.cli."""
    import sys
    from zg.cli import main as cli_main
    sys.exit(cli_main())
