"""
Parallel regex search over a working tree.

Files are listed once (git's view of the tree when available, so ignore
rules apply), split into batches, and scanned by a thread pool. Each worker
returns its own list of matches and the coordinator concatenates them after
all workers finish; no shared collection is mutated during the scan.
"""

import os
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Pattern

from zg.core.config import BINARY_SNIFF_BYTES, DEFAULT_SEARCH_WORKERS, SEARCH_BATCH_SIZE
from zg.core.errors import GitCommandError, InvalidPattern
from zg.core.types import MatchCandidate
from zg.git.repository import find_worktree_root, list_worktree_files


def compile_pattern(pattern: str, ignore_case: bool = False) -> Pattern[str]:
    """Compile a search pattern.

    Raises:
        InvalidPattern: If the pattern is not a valid regular expression
    """
    flags = re.IGNORECASE if ignore_case else 0
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise InvalidPattern(f"Invalid regular expression {pattern!r}: {e}") from e


def walk_files(root: Path) -> List[str]:
    """List files under `root`, skipping hidden files and directories.

    Used when `root` is not inside a git work tree.
    """
    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith('.'))
        rel_dir = os.path.relpath(dirpath, root)
        for name in sorted(filenames):
            if name.startswith('.'):
                continue
            rel = name if rel_dir == os.curdir else os.path.join(rel_dir, name)
            files.append(Path(rel).as_posix())
    return files


class SearchCollector:
    """Find every line matching a pattern under a root directory.

    Binary files (a NUL byte in the first BINARY_SNIFF_BYTES) are skipped.
    Text is decoded as UTF-8, with undecodable bytes replaced.

    Args:
        root: Directory to search (default: current directory)
        ignore_case: Case-insensitive matching
        workers: Number of scanning threads
        verbose: Enable verbose logging
        output_handler: Function for info messages (default: print)
    """

    def __init__(
        self,
        root: Optional[str] = None,
        ignore_case: bool = False,
        workers: int = DEFAULT_SEARCH_WORKERS,
        verbose: bool = False,
        output_handler: Optional[Callable[[str], None]] = None
    ):
        self.root = Path(root or ".")
        self.ignore_case = ignore_case
        self.workers = max(1, workers)
        self.verbose = verbose
        self.output_handler = output_handler or print

    def collect(self, pattern: str) -> List[MatchCandidate]:
        """Search all files for `pattern`.

        Returns:
            Match candidates (score 0.0), paths relative to the search root

        Raises:
            InvalidPattern: If the pattern does not compile
        """
        matcher = compile_pattern(pattern, self.ignore_case)
        files = self.list_files()
        batches = [files[i:i + SEARCH_BATCH_SIZE] for i in range(0, len(files), SEARCH_BATCH_SIZE)]

        matches: List[MatchCandidate] = []
        if len(batches) <= 1 or self.workers == 1:
            for batch in batches:
                matches.extend(self._scan_batch(matcher, batch))
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                for local in executor.map(lambda b: self._scan_batch(matcher, b), batches):
                    matches.extend(local)

        if self.verbose:
            self.output_handler(f"Searched {len(files)} files, {len(matches)} matches")
        return matches

    def list_files(self) -> List[str]:
        """Files to search, relative to the root."""
        if find_worktree_root(self.root) is not None:
            try:
                return list_worktree_files(self.root)
            except GitCommandError as e:
                if self.verbose:
                    self.output_handler(f"git ls-files failed, walking directory instead: {e}")
        return walk_files(self.root)

    def _scan_batch(self, matcher: Pattern[str], batch: List[str]) -> List[MatchCandidate]:
        local: List[MatchCandidate] = []
        for rel_path in batch:
            local.extend(self._scan_file(matcher, rel_path))
        return local

    def _scan_file(self, matcher: Pattern[str], rel_path: str) -> List[MatchCandidate]:
        path = self.root / rel_path
        try:
            if not path.is_file():
                return []
            data = path.read_bytes()
        except OSError as e:
            if self.verbose:
                self.output_handler(f"Skipping {rel_path}: {e}")
            return []

        if b"\0" in data[:BINARY_SNIFF_BYTES]:
            return []

        text = data.decode("utf-8", errors="replace")
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        found = []
        for index, line in enumerate(lines):
            line = line.rstrip("\r")
            if matcher.search(line):
                found.append(MatchCandidate(path=rel_path, line_number=index + 1, line_text=line))
        return found
