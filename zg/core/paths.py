"""
PathKey normalization.

Search results and git history are joined on a single key: the file's path
relative to the repository top-level, POSIX separators, no leading "./".
Every representation of the same file (absolute, relative to the search
root, "./"-prefixed) must map to the same key before any cache lookup.
"""

import os
from pathlib import Path
from typing import Dict, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


class PathNormalizer:
    """Convert collector paths into repository-relative PathKeys.

    Args:
        repo_root: Repository top-level directory (as reported by git)
        base_dir: Directory that relative candidate paths are relative to
                  (the search root; defaults to repo_root)
    """

    def __init__(self, repo_root: PathLike, base_dir: Optional[PathLike] = None):
        self.repo_root = Path(repo_root).resolve()
        self.base_dir = Path(base_dir).resolve() if base_dir is not None else self.repo_root
        self._cache: Dict[str, Optional[str]] = {}

    def normalize(self, path: PathLike) -> Optional[str]:
        """Return the PathKey for `path`, or None if it lies outside the repository."""
        raw = os.fspath(path)
        if raw in self._cache:
            return self._cache[raw]

        if os.path.isabs(raw):
            absolute = os.path.normpath(raw)
        else:
            absolute = os.path.normpath(os.path.join(str(self.base_dir), raw))

        key = self._relative_key(absolute)
        if key is None and os.path.isabs(raw):
            # Absolute paths may go through a symlink the repo root does not
            key = self._relative_key(os.path.realpath(absolute))

        self._cache[raw] = key
        return key

    def _relative_key(self, absolute: str) -> Optional[str]:
        rel = os.path.relpath(absolute, str(self.repo_root))
        if rel == os.curdir or rel == os.pardir or rel.startswith(os.pardir + os.sep):
            return None
        return Path(rel).as_posix()
