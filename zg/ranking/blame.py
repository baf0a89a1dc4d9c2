"""
Per-path blame lookup with run-scoped memoization.
"""

from typing import Callable, Dict, Optional, Tuple, Union

from zg.core.errors import BlameUnavailable
from zg.core.types import BlameEntry


class BlameResolver:
    """Resolve and cache blame for working-copy files.

    Each path is blamed at most once per run. A failure is cached as well,
    so an untracked file matched on many lines costs one git invocation.

    Args:
        blame_func: Function mapping a PathKey to its blame entries;
                    raises BlameUnavailable on failure
        verbose: Enable verbose logging
        output_handler: Function for info messages (default: print)
    """

    def __init__(
        self,
        blame_func: Callable[[str], Tuple[BlameEntry, ...]],
        verbose: bool = False,
        output_handler: Optional[Callable[[str], None]] = None
    ):
        self.blame_func = blame_func
        self.verbose = verbose
        self.output_handler = output_handler or print
        self._results: Dict[str, Union[Tuple[BlameEntry, ...], BlameUnavailable]] = {}

    def blame(self, path_key: str) -> Tuple[BlameEntry, ...]:
        """Return blame entries for every line of the current file.

        Raises:
            BlameUnavailable: If the path cannot be blamed (cached)
        """
        if path_key not in self._results:
            try:
                self._results[path_key] = tuple(self.blame_func(path_key))
            except BlameUnavailable as e:
                if self.verbose:
                    self.output_handler(f"No blame for {path_key}: {e.reason or 'unavailable'}")
                self._results[path_key] = e

        result = self._results[path_key]
        if isinstance(result, BlameUnavailable):
            raise BlameUnavailable(result.path, result.reason)
        return result

    def entry_at(self, path_key: str, line_number: int) -> Optional[BlameEntry]:
        """Return the entry for a 1-based line, or None if blame has no such line."""
        try:
            entries = self.blame(path_key)
        except BlameUnavailable:
            return None
        index = line_number - 1
        if 0 <= index < len(entries):
            return entries[index]
        return None

    def __len__(self) -> int:
        return len(self._results)
