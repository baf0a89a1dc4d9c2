"""
Data types that flow between the search, scoring and rendering stages.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class MatchCandidate:
    """A single line matched by the search collector.

    Created by the collector with score 0.0. The scoring engine assigns
    `score` once and never touches the other fields.

    Attributes:
        path: File path as produced by the collector (relative to the search root)
        line_number: 1-based line number of the match
        line_text: Matched line without its line terminator
        score: Frecency score (higher = more recently/frequently edited)
    """
    path: str
    line_number: int
    line_text: str
    score: float = 0.0


@dataclass(frozen=True)
class BlameEntry:
    """Provenance of one line in the working copy.

    commit_id is None when the line exists only in the working copy
    (git blame attributes it to the all-zero commit).
    """
    commit_id: Optional[str]

    @property
    def is_uncommitted(self) -> bool:
        return self.commit_id is None

    @classmethod
    def committed_at(cls, commit_id: str) -> "BlameEntry":
        return cls(commit_id)


UNCOMMITTED = BlameEntry(None)


@dataclass(frozen=True)
class CommitRecord:
    """One commit yielded by the first-parent history walk."""
    commit_id: str
    timestamp: int      # Committer time, seconds since epoch
    parent_count: int

    @property
    def is_merge(self) -> bool:
        return self.parent_count > 1


@dataclass(frozen=True)
class BlobInfo:
    """Tree entry for a path at one commit: content id and size in bytes."""
    object_id: str
    size: int


@dataclass
class SearchReport:
    """Summary of one search: what was found and whether it was ranked."""
    total_matches: int              # Candidates produced by the collector
    distinct_files: int             # Distinct paths among them
    scored: bool                    # False if scoring failed and order is the collector's
    scoring_error: Optional[str] = None
