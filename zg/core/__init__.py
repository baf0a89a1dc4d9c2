"""
Core types, configuration and errors shared by every zg subsystem.
"""

from zg.core.types import MatchCandidate, BlameEntry, CommitRecord, BlobInfo, SearchReport, UNCOMMITTED
from zg.core.errors import (
    ZgError,
    GitCommandError,
    RepositoryUnavailable,
    HistoryUnavailable,
    BlameUnavailable,
    InvalidPattern
)

__all__ = [
    'MatchCandidate', 'BlameEntry', 'CommitRecord', 'BlobInfo', 'SearchReport', 'UNCOMMITTED',
    'ZgError', 'GitCommandError', 'RepositoryUnavailable', 'HistoryUnavailable',
    'BlameUnavailable', 'InvalidPattern'
]
