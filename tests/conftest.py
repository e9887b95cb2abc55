"""Pytest configuration and fixtures."""

import logging
import os
import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog

from gitflower.core.models.repository import ScanConfig
from gitflower.git.backend import GitCliBackend

COMMIT_TIMESTAMP = 1_700_000_000


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user config files and GITFLOWER_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("GITFLOWER_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("GITFLOWER_CONFIG", str(tmp_path / "no-such-config.yaml"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo logging configuration done by the CLI or app lifespan."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def repos_root(tmp_path: Path) -> Path:
    """Root directory for the repository tree (created)."""
    root = tmp_path / "repos"
    root.mkdir()
    return root


@pytest.fixture
def scan_config(repos_root: Path) -> ScanConfig:
    return ScanConfig(root=repos_root)


@pytest.fixture
def backend() -> GitCliBackend:
    return GitCliBackend()


def _git(*args: str, git_dir: Path, input: str | None = None, env: dict | None = None) -> str:
    result = subprocess.run(
        ["git", f"--git-dir={git_dir}", *args],
        capture_output=True,
        text=True,
        check=True,
        input=input,
        env=env,
    )
    return result.stdout.strip()


def _write_tree(git_dir: Path, files: dict[str, bytes]) -> str:
    """Store ``files`` (``dir/name`` -> content) as a tree object."""
    lines = []
    folders: dict[str, dict[str, bytes]] = {}
    for name, content in files.items():
        folder, sep, rest = name.partition("/")
        if sep:
            folders.setdefault(folder, {})[rest] = content
            continue
        blob = subprocess.run(
            ["git", f"--git-dir={git_dir}", "hash-object", "-w", "--stdin"],
            input=content,
            capture_output=True,
            check=True,
        ).stdout.decode().strip()
        lines.append(f"100644 blob {blob}\t{name}")
    for folder, content in folders.items():
        lines.append(f"040000 tree {_write_tree(git_dir, content)}\t{folder}")
    return _git("mktree", git_dir=git_dir, input="".join(f"{line}\n" for line in lines))


@pytest.fixture
def make_bare_repo() -> Callable[..., Path]:
    """Create a bare repository at ``root/relative_path`` with HEAD on main."""

    def _make(root: Path, relative_path: str) -> Path:
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        subprocess.run(
            ["git", "-c", "init.defaultBranch=main", "init", "--bare", "--quiet", str(path)],
            capture_output=True,
            check=True,
        )
        return path

    return _make


@pytest.fixture
def add_commit() -> Callable[..., str]:
    """Point ``ref`` at a new commit with a fixed committer time.

    The commit holds ``files`` (empty tree by default) and has ``parent``
    as its only parent when given.
    """

    def _add(
        git_dir: Path,
        ref: str = "refs/heads/main",
        timestamp: int = COMMIT_TIMESTAMP,
        files: dict[str, bytes] | None = None,
        message: str = "Initial commit",
        parent: str | None = None,
    ) -> str:
        env = {
            **os.environ,
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@test.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@test.com",
            "GIT_AUTHOR_DATE": f"{timestamp} +0000",
            "GIT_COMMITTER_DATE": f"{timestamp} +0000",
        }
        tree = _write_tree(git_dir, files or {})
        parents = ["-p", parent] if parent else []
        commit = _git("commit-tree", tree, *parents, "-m", message, git_dir=git_dir, env=env)
        _git("update-ref", ref, commit, git_dir=git_dir)
        return commit

    return _add
