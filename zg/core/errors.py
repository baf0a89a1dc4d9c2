"""
Error taxonomy for zg.

Fatal errors (RepositoryUnavailable, HistoryUnavailable) abort the scoring
phase and are reported to the caller; BlameUnavailable is recovered per path
by the scoring engine. None of them terminate the process on their own.
"""

from typing import Optional, Sequence


class ZgError(Exception):
    """Base class for all zg errors."""


class GitCommandError(ZgError):
    """A git invocation exited non-zero or could not be started."""

    def __init__(self, command: Sequence[str], stderr: str = "", returncode: Optional[int] = None):
        self.command = list(command)
        self.stderr = stderr.strip()
        self.returncode = returncode
        detail = self.stderr or "git command failed"
        super().__init__(f"{' '.join(self.command)}: {detail}")


class RepositoryUnavailable(ZgError):
    """The directory is not inside a git work tree, or git cannot be run."""


class HistoryUnavailable(ZgError):
    """The commit walk cannot be started (e.g. no commits exist yet)."""


class BlameUnavailable(ZgError):
    """Blame cannot be computed for a path (never committed, outside the repo)."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"No blame for {path}" + (f": {reason}" if reason else ""))


class InvalidPattern(ZgError):
    """The search pattern is not a valid regular expression."""
