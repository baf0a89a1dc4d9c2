"""
Read-only access to a git repository through the git executable.

GitRepository is the single object-store handle used for one scoring run.
It answers the three questions the scoring engine asks of git:

- blame: which commit last touched each line of a working-copy file
- history: the first-parent commit chain from HEAD, streamed lazily
- trees/blobs: the content id of a path at a commit, and that blob's bytes

Tree lookups and blob reads go through long-lived `git cat-file --batch-check`
and `git cat-file --batch` processes, so a walk over thousands of commits
costs two processes instead of one per lookup. The handle is not safe for
concurrent use; open one per thread if scoring is ever parallelized.
"""

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Dict, IO, Iterable, Iterator, List, Optional, Tuple

from zg.core.config import GIT_EXECUTABLE, GIT_COMMAND_TIMEOUT, GIT_BLAME_TIMEOUT
from zg.core.errors import (
    GitCommandError,
    RepositoryUnavailable,
    HistoryUnavailable,
    BlameUnavailable
)
from zg.core.types import BlameEntry, BlobInfo, CommitRecord, UNCOMMITTED


def _run_git(
    args: Iterable[str],
    cwd: Path,
    timeout: float = GIT_COMMAND_TIMEOUT,
    text: bool = True
):
    """Run a git sub-command and return its stdout.

    Raises:
        GitCommandError: If git is missing, times out, or exits non-zero
    """
    command = [GIT_EXECUTABLE, *args]
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd),
            capture_output=True,
            text=text,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise GitCommandError(command, f"git executable not found: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise GitCommandError(command, f"timed out after {timeout}s") from e

    if completed.returncode != 0:
        stderr = completed.stderr if text else completed.stderr.decode("utf-8", "replace")
        raise GitCommandError(command, stderr, completed.returncode)
    return completed.stdout


def _is_zero_oid(oid: str) -> bool:
    return bool(oid) and set(oid) == {"0"}


def find_worktree_root(path: Path) -> Optional[Path]:
    """Return the top-level directory of the work tree containing `path`, if any."""
    try:
        output = _run_git(["rev-parse", "--show-toplevel"], cwd=path)
    except GitCommandError:
        return None
    top = output.strip()
    return Path(top) if top else None


def list_worktree_files(root: Path) -> List[str]:
    """List tracked and untracked-but-not-ignored files under `root`.

    Paths are relative to `root`. Honors .gitignore, .git/info/exclude and
    the user's global excludes file. Names that are not valid UTF-8 are
    decoded with os.fsdecode, so they still open and round-trip to git.
    """
    output = _run_git(
        ["ls-files", "-z", "--cached", "--others", "--exclude-standard"],
        cwd=root,
        text=False,
    )
    seen = set()
    files = []
    for raw in output.split(b"\0"):
        # --cached lists unmerged paths once per stage
        if raw and raw not in seen:
            seen.add(raw)
            files.append(os.fsdecode(raw))
    return files


class _BatchProcess:
    """A long-lived `git cat-file` process driven one request at a time."""

    def __init__(self, root: Path, mode: str):
        self.root = root
        self.mode = mode
        self.command = [GIT_EXECUTABLE, "cat-file", mode]
        self._proc: Optional[subprocess.Popen] = None

    def _start(self) -> subprocess.Popen:
        if self._proc is None:
            try:
                self._proc = subprocess.Popen(
                    self.command,
                    cwd=str(self.root),
                    stdin=subprocess.PIPE,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as e:
                raise GitCommandError(self.command, str(e)) from e
        return self._proc

    def request(self, query: str) -> Tuple[bytes, IO[bytes]]:
        """Send one query line and return (header line, stdout stream)."""
        proc = self._start()
        try:
            proc.stdin.write(os.fsencode(query) + b"\n")
            proc.stdin.flush()
            header = proc.stdout.readline()
        except (BrokenPipeError, OSError) as e:
            self.close()
            raise GitCommandError(self.command, f"batch process died: {e}") from e
        if not header:
            self.close()
            raise GitCommandError(self.command, "batch process exited unexpectedly")
        return header.rstrip(b"\n"), proc.stdout

    def close(self):
        proc, self._proc = self._proc, None
        if proc is None:
            return
        try:
            proc.stdin.close()
        except OSError:
            pass
        try:
            proc.wait(timeout=GIT_COMMAND_TIMEOUT)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
        proc.stdout.close()


class GitRepository:
    """Read-only handle on a git work tree.

    Use GitRepository.open() rather than the constructor; it validates that
    the path is inside a work tree and resolves the top-level directory.

    Args:
        root: Repository top-level directory
        verbose: Enable verbose logging
        output_handler: Function for info messages (default: print)
    """

    def __init__(
        self,
        root: Path,
        verbose: bool = False,
        output_handler: Optional[Callable[[str], None]] = None
    ):
        self.root = Path(root)
        self.verbose = verbose
        self.output_handler = output_handler or print

        self._batch_check = _BatchProcess(self.root, "--batch-check")
        self._batch = _BatchProcess(self.root, "--batch")

    @classmethod
    def open(
        cls,
        path,
        verbose: bool = False,
        output_handler: Optional[Callable[[str], None]] = None
    ) -> "GitRepository":
        """Open the repository containing `path`.

        Raises:
            RepositoryUnavailable: If `path` is not inside a git work tree
                or git cannot be executed
        """
        path = Path(path)
        if not path.is_dir():
            raise RepositoryUnavailable(f"Not a directory: {path}")
        try:
            top = _run_git(["rev-parse", "--show-toplevel"], cwd=path).strip()
        except GitCommandError as e:
            raise RepositoryUnavailable(f"Not a git work tree: {path} ({e.stderr or e})") from e
        if not top:
            raise RepositoryUnavailable(f"Not a git work tree: {path}")
        return cls(Path(top), verbose=verbose, output_handler=output_handler)

    def __enter__(self) -> "GitRepository":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        """Stop the batch processes. Safe to call more than once."""
        self._batch_check.close()
        self._batch.close()

    # =========================================================================
    # Blame
    # =========================================================================

    def blame(self, path_key: str) -> Tuple[BlameEntry, ...]:
        """Attribute every line of the working-copy file to its last commit.

        Lines that differ from every committed version are UNCOMMITTED.

        Raises:
            BlameUnavailable: If git cannot blame the path (untracked,
                missing, or the repository has no commits)
        """
        try:
            output = _run_git(
                ["blame", "--porcelain", "--", path_key],
                cwd=self.root,
                timeout=GIT_BLAME_TIMEOUT,
                text=False,
            )
        except GitCommandError as e:
            raise BlameUnavailable(path_key, e.stderr) from e
        return self._parse_blame_porcelain(output)

    @staticmethod
    def _parse_blame_porcelain(output: bytes) -> Tuple[BlameEntry, ...]:
        """Parse `git blame --porcelain` output into one entry per line.

        The porcelain format is a header line per blamed line:

            <sha> <orig_line> <final_line> [<num_lines>]
            [metadata lines, only the first time a sha appears]
            \t<content>

        Lines arrive in final-line order, so the entries are too.
        """
        entries: List[BlameEntry] = []
        current = UNCOMMITTED
        expect_header = True

        for line in output.split(b"\n"):
            if expect_header:
                if not line:
                    continue
                sha = line.split(b" ", 1)[0].decode("ascii", "replace")
                current = UNCOMMITTED if _is_zero_oid(sha) else BlameEntry.committed_at(sha)
                expect_header = False
            elif line.startswith(b"\t"):
                entries.append(current)
                expect_header = True

        return tuple(entries)

    # =========================================================================
    # History
    # =========================================================================

    def head_commit(self) -> str:
        """Return the commit id HEAD points to.

        Raises:
            HistoryUnavailable: If HEAD is unborn or cannot be resolved
        """
        try:
            output = _run_git(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"], cwd=self.root)
        except GitCommandError as e:
            raise HistoryUnavailable(f"Cannot resolve HEAD in {self.root}: {e.stderr or 'no commits yet'}") from e
        return output.strip()

    def iter_first_parent_commits(self) -> Iterator[CommitRecord]:
        """Yield commits reachable from HEAD along first parents, newest first.

        Merge commits are yielded too (with parent_count > 1); filtering them
        is the caller's decision. The underlying `git log` is streamed, so
        abandoning the iterator early stops the walk.

        If git fails partway (for example on a missing or corrupt commit
        object), the walk ends there; commits already yielded stand.

        Raises:
            HistoryUnavailable: If the walk cannot be started
        """
        head = self.head_commit()
        command = [GIT_EXECUTABLE, "log", "--first-parent", "--format=%H %ct %P", head, "--"]
        # stderr goes to a file so a chatty git cannot block on a full pipe
        stderr_file = tempfile.TemporaryFile()
        try:
            proc = subprocess.Popen(
                command,
                cwd=str(self.root),
                stdout=subprocess.PIPE,
                stderr=stderr_file,
                text=True,
            )
        except OSError as e:
            stderr_file.close()
            raise HistoryUnavailable(f"Cannot start history walk: {e}") from e

        finished = False
        try:
            for line in proc.stdout:
                record = self._parse_log_line(line)
                if record is None:
                    if self.verbose:
                        self.output_handler(f"Skipping unparseable log line: {line.strip()!r}")
                    continue
                yield record
            finished = True
        finally:
            if proc.poll() is None and not finished:
                proc.kill()
            proc.stdout.close()
            returncode = proc.wait()
            stderr_file.seek(0)
            stderr = stderr_file.read().decode("utf-8", "replace").strip()
            stderr_file.close()

        if returncode != 0 and self.verbose:
            self.output_handler(f"History walk stopped early: {stderr or f'git exited {returncode}'}")

    @staticmethod
    def _parse_log_line(line: str) -> Optional[CommitRecord]:
        parts = line.split()
        if len(parts) < 2:
            return None
        try:
            timestamp = int(parts[1])
        except ValueError:
            return None
        return CommitRecord(commit_id=parts[0], timestamp=timestamp, parent_count=len(parts) - 2)

    # =========================================================================
    # Object store
    # =========================================================================

    def lookup_blobs(self, commit_id: str, path_keys: Iterable[str]) -> Dict[str, BlobInfo]:
        """Resolve each path's blob in the commit's tree.

        Paths that are absent at this commit (or are not regular blobs)
        are left out of the result.

        Raises:
            GitCommandError: If the batch process fails mid-lookup
        """
        found: Dict[str, BlobInfo] = {}
        for key in path_keys:
            if "\n" in key:
                continue
            header, _ = self._batch_check.request(f"{commit_id}:{key}")
            parts = header.split(b" ")
            if len(parts) != 3 or parts[1] != b"blob":
                continue
            found[key] = BlobInfo(object_id=parts[0].decode("ascii"), size=int(parts[2]))
        return found

    def read_blob(self, object_id: str) -> bytes:
        """Return the raw bytes of a blob.

        Raises:
            GitCommandError: If the object is missing or the process fails
        """
        header, stream = self._batch.request(object_id)
        parts = header.split(b" ")
        if len(parts) != 3:
            raise GitCommandError(self._batch.command, f"{object_id}: {header.decode('utf-8', 'replace')}")

        size = int(parts[2])
        content = stream.read(size)
        stream.read(1)  # trailing newline after the object body
        if len(content) != size:
            self._batch.close()
            raise GitCommandError(self._batch.command, f"{object_id}: short read")
        return content

    def read_working_file(self, path_key: str) -> bytes:
        """Return the current on-disk bytes of a working-copy file."""
        return (self.root / path_key).read_bytes()

    def __repr__(self) -> str:
        return f"GitRepository({os.fspath(self.root)!r})"
