"""
Line counting for blobs and working-copy files.

Line counts normalize both history contributions and line bonuses, so every
count here is at least 1. Text is counted exactly; content that is not valid
UTF-8 is priced by size instead, so a large binary blob behaves like a large
file rather than a one-line one.
"""

from typing import Callable, Dict, Optional

from zg.core.config import BINARY_BYTES_PER_LINE
from zg.core.errors import GitCommandError


def count_text_lines(data: bytes) -> Optional[int]:
    """Count lines in UTF-8 text, or return None if `data` is not UTF-8.

    A trailing partial line counts as a line; empty content counts as 1.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None
    if not text:
        return 1
    lines = text.count("\n")
    if not text.endswith("\n"):
        lines += 1
    return max(1, lines)


def estimate_lines(size: Optional[int]) -> int:
    """Size-based line estimate for binary or unreadable content."""
    if not size:
        return 1
    return max(1, size // BINARY_BYTES_PER_LINE)


def count_content_lines(data: bytes) -> int:
    """Exact count for text, size estimate otherwise."""
    lines = count_text_lines(data)
    if lines is None:
        return estimate_lines(len(data))
    return lines


class BlobLineCounter:
    """Memoized line counts keyed by blob id.

    The same blob shows up at many commits (every commit that did not touch
    the file) and possibly at many paths, so the cache is keyed by content
    id, not by path, and each blob is read from the store at most once.

    Args:
        read_blob: Function returning a blob's bytes by object id
        verbose: Enable verbose logging
        output_handler: Function for info messages (default: print)
    """

    def __init__(
        self,
        read_blob: Callable[[str], bytes],
        verbose: bool = False,
        output_handler: Optional[Callable[[str], None]] = None
    ):
        self.read_blob = read_blob
        self.verbose = verbose
        self.output_handler = output_handler or print
        self._counts: Dict[str, int] = {}

    def count_lines(self, object_id: str, size_hint: Optional[int] = None) -> int:
        """Return the line count for a blob (>= 1).

        Args:
            object_id: Blob id
            size_hint: Blob size from the tree lookup, used if the read fails
        """
        cached = self._counts.get(object_id)
        if cached is not None:
            return cached

        try:
            count = count_content_lines(self.read_blob(object_id))
        except GitCommandError as e:
            if self.verbose:
                self.output_handler(f"Could not read blob {object_id[:12]}: {e}")
            count = estimate_lines(size_hint)

        self._counts[object_id] = count
        return count

    def __len__(self) -> int:
        return len(self._counts)
