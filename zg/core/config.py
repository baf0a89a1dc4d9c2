"""
Tunable constants for frecency scoring, git access and search collection.

Scoring weights are heuristics. The shape of the formula matters more than
the literal values: recent history outweighs old history, large files are
normalized down, and an uncommitted line outranks a committed one.
FrecencyScorer accepts overrides for each of them.
"""

# =============================================================================
# Line Bonus
# =============================================================================

# Bonus numerator for a matched line that only exists in the working copy
UNCOMMITTED_LINE_WEIGHT = 5.0

# Bonus numerator for a matched line attributed to a commit
COMMITTED_LINE_WEIGHT = 2.0

# =============================================================================
# History Kernel
# =============================================================================

SECONDS_PER_DAY = 60 * 60 * 24

# Commits younger than this many days all count as this age
MIN_AGE_DAYS = 1.0

# Binary blobs are priced as if every N bytes were one line
BINARY_BYTES_PER_LINE = 50

# Commit walk limit; None walks the full first-parent history
DEFAULT_MAX_COMMITS = None

# =============================================================================
# Git Access
# =============================================================================

GIT_EXECUTABLE = "git"

# Timeout (seconds) for one-shot git commands (rev-parse, ls-files)
GIT_COMMAND_TIMEOUT = 30

# Timeout (seconds) for git blame on a single file
GIT_BLAME_TIMEOUT = 60

# =============================================================================
# Search Collection
# =============================================================================

# Bytes inspected for a NUL byte before a file is treated as binary
BINARY_SNIFF_BYTES = 8192

# Worker threads for the parallel file scan
DEFAULT_SEARCH_WORKERS = 8

# Files handed to one worker at a time
SEARCH_BATCH_SIZE = 64
