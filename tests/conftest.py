"""
Shared fixtures: throwaway git repositories and an in-memory repository fake.
"""

import hashlib
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from zg.core.errors import BlameUnavailable, GitCommandError, HistoryUnavailable
from zg.core.types import BlobInfo, CommitRecord

DAY = 86400

# Fixed "now" for every test that scores anything
NOW = 1_760_000_000

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


class GitRepoBuilder:
    """Create commits with controlled timestamps in a temporary repository."""

    def __init__(self, path: Path):
        self.path = path
        self.path.mkdir(parents=True, exist_ok=True)
        self.git("init", "-q")
        self.git("config", "user.name", "Test User")
        self.git("config", "user.email", "test@example.com")
        self.git("config", "commit.gpgsign", "false")

    def git(self, *args, timestamp: Optional[int] = None) -> str:
        env = dict(os.environ)
        if timestamp is not None:
            env["GIT_AUTHOR_DATE"] = f"@{timestamp} +0000"
            env["GIT_COMMITTER_DATE"] = f"@{timestamp} +0000"
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout

    def write(self, name: str, content) -> Path:
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
        return target

    def commit(self, files: Dict[str, object], timestamp: int, message: str = "commit") -> str:
        """Write `files`, stage them and commit at `timestamp`. Returns the commit id."""
        for name, content in files.items():
            self.write(name, content)
            self.git("add", "--", name)
        self.git("commit", "-q", "-m", message, timestamp=timestamp)
        return self.git("rev-parse", "HEAD").strip()


@pytest.fixture
def temp_git_repo(tmp_path):
    """A fresh, empty git repository with a configured identity."""
    return GitRepoBuilder(tmp_path / "repo")


class FakeRepository:
    """In-memory stand-in for GitRepository.

    Commits are added oldest first; each commit's tree carries forward the
    previous tree like git does. With strict=True, asking the store twice for
    the same blob, the same commit tree, or the same path's blame fails the
    test, which proves the scoring layers memoize.
    """

    def __init__(self, root: Path, strict: bool = True):
        self.root = Path(root)
        self.strict = strict
        self.commits: List[CommitRecord] = []
        self.trees: Dict[str, Dict[str, BlobInfo]] = {}
        self.blobs: Dict[str, bytes] = {}
        self.blames: Dict[str, tuple] = {}
        self.broken_commits = set()
        self.unreadable_blobs = set()
        self.head_missing = False
        self.closed = False
        self.accesses: List[tuple] = []

    def _access(self, kind: str, key: str):
        item = (kind, key)
        if self.strict and item in self.accesses:
            raise AssertionError(f"store queried twice for {item}")
        self.accesses.append(item)

    def add_blob(self, content: bytes) -> BlobInfo:
        oid = hashlib.sha1(content).hexdigest()
        self.blobs[oid] = content
        return BlobInfo(object_id=oid, size=len(content))

    def add_commit(
        self,
        timestamp: int,
        files: Optional[Dict[str, bytes]] = None,
        parent_count: int = 1,
        removed=()
    ) -> str:
        commit_id = hashlib.sha1(f"commit-{len(self.commits)}-{timestamp}".encode()).hexdigest()
        tree = dict(self.trees[self.commits[-1].commit_id]) if self.commits else {}
        for path, content in (files or {}).items():
            tree[path] = self.add_blob(content)
        for path in removed:
            tree.pop(path, None)
        self.trees[commit_id] = tree
        self.commits.append(CommitRecord(commit_id=commit_id, timestamp=timestamp, parent_count=parent_count))
        return commit_id

    def set_working_file(self, path: str, content: bytes, blame: Optional[tuple] = None):
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        if blame is not None:
            self.blames[path] = tuple(blame)

    # Repository handle interface

    def iter_first_parent_commits(self):
        if self.head_missing:
            raise HistoryUnavailable("no commits yet")
        for commit in reversed(self.commits):
            yield commit

    def lookup_blobs(self, commit_id, path_keys):
        self._access("tree", commit_id)
        if commit_id in self.broken_commits:
            raise GitCommandError(["git", "cat-file"], f"bad object {commit_id}")
        tree = self.trees[commit_id]
        return {key: tree[key] for key in path_keys if key in tree}

    def read_blob(self, object_id):
        self._access("blob", object_id)
        if object_id in self.unreadable_blobs:
            raise GitCommandError(["git", "cat-file"], f"{object_id} missing")
        return self.blobs[object_id]

    def blame(self, path_key):
        self._access("blame", path_key)
        if path_key not in self.blames:
            raise BlameUnavailable(path_key, "no such path in HEAD")
        return self.blames[path_key]

    def read_working_file(self, path_key):
        return (self.root / path_key).read_bytes()

    def close(self):
        self.closed = True


@pytest.fixture
def fake_repo(tmp_path):
    """A strict in-memory repository rooted at a temporary directory."""
    return FakeRepository(tmp_path)
