"""Repository metadata extraction."""

import os
import stat
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TypeVar

import structlog

from gitflower.core.exceptions import BackendError
from gitflower.core.models.repository import RepositoryRecord
from gitflower.git.backend import (
    BRANCH_PREFIX,
    MERGE_REQUEST_PREFIX,
    GitBackend,
    GitCliBackend,
    GitRepository,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def directory_size(path: Path) -> int:
    """Sum the sizes of all regular files under ``path``.

    Entries that cannot be read are skipped.
    """
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for filename in filenames:
            try:
                info = os.lstat(os.path.join(dirpath, filename))
            except OSError:
                continue
            if stat.S_ISREG(info.st_mode):
                total += info.st_size
    return total


class MetadataExtractor:
    """Computes a RepositoryRecord for a directory classified as a repository.

    Never raises: a directory that cannot be opened yields an invalid
    record, and each metric falls back to its zero value on its own.
    """

    def __init__(self, backend: GitBackend | None = None) -> None:
        self._backend = backend or GitCliBackend()

    def extract(self, path: Path, relative_path: str) -> RepositoryRecord:
        path = Path(path)
        try:
            repo = self._backend.open(path)
        except (BackendError, OSError) as exc:
            logger.debug("Could not open repository", path=str(path), error=str(exc))
            return RepositoryRecord(
                path=str(path),
                name=path.name,
                relative_path=relative_path,
                is_valid=False,
                error=f"not a valid git repository: {exc}",
            )

        return RepositoryRecord(
            path=str(path),
            name=path.name,
            relative_path=relative_path,
            size=self._best_effort("size", lambda: directory_size(path), 0),
            last_update=self._best_effort("last_update", lambda: self._last_update(repo), None),
            branch_count=self._best_effort(
                "branch_count", lambda: self._count_refs(repo, BRANCH_PREFIX), 0
            ),
            mr_count=self._best_effort(
                "mr_count", lambda: self._count_refs(repo, MERGE_REQUEST_PREFIX), 0
            ),
        )

    @staticmethod
    def _best_effort(metric: str, compute: Callable[[], T], default: T) -> T:
        try:
            return compute()
        except (BackendError, OSError, ValueError) as exc:
            logger.debug("Metric unavailable", metric=metric, error=str(exc))
            return default

    @staticmethod
    def _last_update(repo: GitRepository) -> datetime | None:
        return next(iter(repo.commit_times()), None)

    @staticmethod
    def _count_refs(repo: GitRepository, prefix: str) -> int:
        return sum(1 for ref in repo.references() if ref.name.startswith(prefix))
