"""Git backend using subprocess.

Uses subprocess + git CLI directly (no gitpython dependency). Every
command runs with an explicit ``--git-dir`` so that a directory which is
not itself a repository never resolves to an enclosing one.
"""

import subprocess
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple, Protocol

import structlog

from gitflower.core.exceptions import BackendError

logger = structlog.get_logger(__name__)

BRANCH_PREFIX = "refs/heads/"
MERGE_REQUEST_PREFIX = "refs/gitflower/merge-requests/"

# fields separated by the ASCII unit separator
_COMMIT_FORMAT = "%H%x1f%an%x1f%ae%x1f%ct%x1f%s"


class Reference(NamedTuple):
    """A git reference: fully-qualified name and the object it points at."""

    name: str
    target: str


class Commit(NamedTuple):
    """A commit as shown in history listings."""

    sha: str
    author_name: str
    author_email: str
    committed_at: datetime
    subject: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


class TreeEntry(NamedTuple):
    """One entry of a tree object: ``kind`` is blob, tree or commit."""

    mode: str
    kind: str
    sha: str
    name: str


class GitRepository(Protocol):
    """An opened repository."""

    path: Path

    def references(self) -> Iterator[Reference]:
        ...

    def commit_times(self) -> Iterator[datetime]:
        ...

    def resolve_commit(self, rev: str) -> str | None:
        ...

    def log(self, rev: str, limit: int = 10) -> list[Commit]:
        ...

    def diff(self, sha: str) -> str:
        ...

    def object_kind(self, commit: str, path: str = "") -> str | None:
        ...

    def list_tree(self, commit: str, path: str = "") -> list[TreeEntry]:
        ...

    def read_blob(self, commit: str, path: str) -> bytes:
        ...


class GitBackend(Protocol):
    """What the tree needs from a version-control backend."""

    def open(self, path: Path) -> GitRepository:
        ...

    def init_bare(self, path: Path, initial_branch: str | None = None) -> None:
        ...


def _parse_commit(line: str) -> Commit:
    sha, author_name, author_email, timestamp, subject = line.split("\x1f", 4)
    return Commit(
        sha=sha,
        author_name=author_name,
        author_email=author_email,
        committed_at=datetime.fromtimestamp(int(timestamp), tz=timezone.utc),
        subject=subject,
    )


class GitCliRepository:
    """A bare repository read through the git executable."""

    def __init__(self, backend: "GitCliBackend", path: Path) -> None:
        self._backend = backend
        self.path = path

    def references(self) -> Iterator[Reference]:
        """Iterate over every reference in the repository."""
        output = self._backend.run_git(
            "for-each-ref", "--format=%(refname) %(objectname)", git_dir=self.path
        )
        for line in output.splitlines():
            name, _, target = line.partition(" ")
            if name:
                yield Reference(name=name, target=target)

    def commit_times(self) -> Iterator[datetime]:
        """Iterate over committer times of all reachable commits, newest first."""
        output = self._backend.run_git("log", "--all", "--format=%ct", git_dir=self.path)
        timestamps = sorted((int(line) for line in output.split()), reverse=True)
        for timestamp in timestamps:
            yield datetime.fromtimestamp(timestamp, tz=timezone.utc)

    def resolve_commit(self, rev: str) -> str | None:
        """Resolve a branch, tag or sha to a commit sha, or None if there is none."""
        if not rev or rev.startswith("-"):
            return None
        try:
            sha = self._backend.run_git(
                "rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}", git_dir=self.path
            )
        except BackendError:
            return None
        return sha or None

    def log(self, rev: str, limit: int = 10) -> list[Commit]:
        """Return up to ``limit`` commits reachable from ``rev``, newest first."""
        output = self._backend.run_git(
            "log", f"--max-count={limit}", f"--format={_COMMIT_FORMAT}", rev, "--",
            git_dir=self.path,
        )
        return [_parse_commit(line) for line in output.splitlines() if line]

    def diff(self, sha: str) -> str:
        """Patch of a commit against its first parent; empty for a root commit."""
        return self._backend.run_git(
            "diff-tree", "--patch", "--no-commit-id", "--no-color", sha, git_dir=self.path
        )

    def object_kind(self, commit: str, path: str = "") -> str | None:
        """Return ``blob`` or ``tree`` for ``path`` in ``commit``, None if absent."""
        try:
            return self._backend.run_git(
                "cat-file", "-t", f"{commit}:{path}", git_dir=self.path
            )
        except BackendError:
            return None

    def list_tree(self, commit: str, path: str = "") -> list[TreeEntry]:
        """List a directory of ``commit``, folders first, then by name."""
        output = self._backend.run_git("ls-tree", "-z", f"{commit}:{path}", git_dir=self.path)
        entries = []
        for record in output.split("\0"):
            if not record:
                continue
            meta, _, name = record.partition("\t")
            mode, kind, sha = meta.split()
            entries.append(TreeEntry(mode=mode, kind=kind, sha=sha, name=name))
        entries.sort(key=lambda entry: (entry.kind != "tree", entry.name))
        return entries

    def read_blob(self, commit: str, path: str) -> bytes:
        """Return the raw content of the file at ``path`` in ``commit``."""
        return self._backend.read_git("cat-file", "blob", f"{commit}:{path}", git_dir=self.path)


class GitCliBackend:
    """Backend driving the ``git`` executable."""

    def __init__(self, git_executable: str = "git") -> None:
        self._git = git_executable

    def run_git(self, *args: str, git_dir: Path | None = None, cwd: Path | None = None) -> str:
        """Run a git command and return stdout."""
        result = self._execute(args, git_dir=git_dir, cwd=cwd, text=True)
        return result.stdout.strip()

    def read_git(self, *args: str, git_dir: Path | None = None) -> bytes:
        """Run a git command and return stdout undecoded."""
        return self._execute(args, git_dir=git_dir, cwd=None, text=False).stdout

    def _execute(
        self,
        args: tuple[str, ...],
        git_dir: Path | None,
        cwd: Path | None,
        text: bool,
    ) -> subprocess.CompletedProcess:
        command = [self._git]
        if git_dir is not None:
            command.append(f"--git-dir={git_dir}")
        command.extend(args)
        try:
            return subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=text,
                errors="replace" if text else None,
                check=True,
            )
        except FileNotFoundError as exc:
            raise BackendError(
                f"git executable not found: {self._git}",
                details={"command": command},
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = exc.stderr or ""
            if isinstance(stderr, bytes):
                stderr = stderr.decode(errors="replace")
            stderr = stderr.strip()
            logger.debug("git command failed", command=command, stderr=stderr)
            raise BackendError(
                stderr or f"git exited with status {exc.returncode}",
                details={"command": command, "returncode": exc.returncode},
            ) from exc

    def open(self, path: Path) -> GitCliRepository:
        """Open ``path`` as a repository, raising BackendError if it is not one."""
        path = Path(path)
        if not path.is_dir():
            raise BackendError(f"repository does not exist: {path}")
        self.run_git("rev-parse", "--git-dir", git_dir=path)
        return GitCliRepository(self, path)

    def init_bare(self, path: Path, initial_branch: str | None = None) -> None:
        """Initialize ``path`` as an empty bare repository."""
        path = Path(path)
        args = []
        if initial_branch:
            args.extend(["-c", f"init.defaultBranch={initial_branch}"])
        args.extend(["init", "--bare", "--quiet", str(path)])
        self.run_git(*args, cwd=path.parent)
