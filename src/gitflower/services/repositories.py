"""Repository service."""

from pathlib import Path

import structlog

from gitflower.core.exceptions import (
    BackendError,
    RepositoryNotFoundError,
    RevisionNotFoundError,
)
from gitflower.core.models.repository import RepositoryRecord, ScanConfig, ScanResult
from gitflower.git.backend import (
    BRANCH_PREFIX,
    Commit,
    GitBackend,
    GitCliBackend,
    GitRepository,
    TreeEntry,
)
from gitflower.tree.creator import RepositoryCreator
from gitflower.tree.metadata import MetadataExtractor
from gitflower.tree.scanner import TreeScanner
from gitflower.tree.validation import split_path, validate_path

logger = structlog.get_logger(__name__)


class RepositoryService:
    """Service for listing, inspecting and creating repositories.

    Does not serialize writes: callers exposing concurrent entry points
    must hold a lock around ``create``.
    """

    def __init__(self, config: ScanConfig, backend: GitBackend | None = None) -> None:
        self._config = config
        self._backend = backend or GitCliBackend()
        self._extractor = MetadataExtractor(self._backend)
        self._scanner = TreeScanner(config, extractor=self._extractor)
        self._creator = RepositoryCreator(
            config.root,
            backend=self._backend,
            default_branch=config.default_branch,
        )

    @property
    def root(self) -> Path:
        return self._scanner.root

    @property
    def default_branch(self) -> str:
        return self._config.default_branch

    def scan(self) -> ScanResult:
        """Scan the tree for repositories and warnings."""
        logger.info("Scanning repositories", directory=str(self.root))
        return self._scanner.scan()

    def list_repositories(self) -> list[RepositoryRecord]:
        """List repositories, discarding warnings."""
        return self.scan().repositories

    def get(self, relative_path: str) -> RepositoryRecord:
        """Get a single repository by its path relative to the root."""
        full_path = self._resolve(relative_path)
        return self._extractor.extract(full_path, "/".join(split_path(relative_path)))

    def branches(self, relative_path: str) -> list[str]:
        """Return the branch names of a repository, sorted."""
        repo = self._backend.open(self._resolve(relative_path))
        return sorted(
            ref.name[len(BRANCH_PREFIX):]
            for ref in repo.references()
            if ref.name.startswith(BRANCH_PREFIX)
        )

    def recent_commits(self, relative_path: str, limit: int = 10) -> list[Commit]:
        """Return the newest commits reachable from HEAD; empty for a new repository."""
        repo = self._open(relative_path)
        head = repo.resolve_commit("HEAD")
        if head is None:
            return []
        return repo.log(head, limit=limit)

    def commit(self, relative_path: str, rev: str) -> tuple[Commit, str]:
        """Return a commit and its patch against the first parent."""
        repo = self._open(relative_path)
        sha = self._resolve_revision(repo, relative_path, rev)
        return repo.log(sha, limit=1)[0], repo.diff(sha)

    def path_kind(self, relative_path: str, ref: str, path: str = "") -> str:
        """Return ``tree`` or ``blob`` for a path at ``ref``."""
        repo = self._open(relative_path)
        kind = repo.object_kind(self._resolve_revision(repo, relative_path, ref), path)
        if kind is None:
            raise RevisionNotFoundError(
                f"path not found: {path} at {ref}",
                details={"path": relative_path, "ref": ref, "file": path},
            )
        return kind

    def list_tree(self, relative_path: str, ref: str, path: str = "") -> list[TreeEntry]:
        """List the folder ``path`` of a repository at ``ref``."""
        repo = self._open(relative_path)
        sha = self._resolve_revision(repo, relative_path, ref)
        return repo.list_tree(sha, path)

    def read_file(self, relative_path: str, ref: str, path: str) -> bytes:
        """Return the content of the file ``path`` at ``ref``."""
        repo = self._open(relative_path)
        sha = self._resolve_revision(repo, relative_path, ref)
        return repo.read_blob(sha, path)

    def create(self, path: str) -> RepositoryRecord:
        """Create a new bare repository and return its record."""
        logger.info("Creating repository", path=path, directory=str(self.root))
        full_path = self._creator.create(path)
        relative_path = full_path.relative_to(self.root).as_posix()
        return self._extractor.extract(full_path, relative_path)

    def _resolve(self, relative_path: str) -> Path:
        validate_path(relative_path)
        full_path = self.root.joinpath(*split_path(relative_path))
        if not full_path.is_dir():
            raise RepositoryNotFoundError(
                f"repository not found: {relative_path}",
                details={"path": relative_path},
            )
        return full_path

    def _open(self, relative_path: str) -> GitRepository:
        try:
            return self._backend.open(self._resolve(relative_path))
        except BackendError as exc:
            raise RepositoryNotFoundError(
                f"not a valid git repository: {relative_path}",
                details={"path": relative_path},
            ) from exc

    @staticmethod
    def _resolve_revision(repo: GitRepository, relative_path: str, rev: str) -> str:
        sha = repo.resolve_commit(rev)
        if sha is None:
            raise RevisionNotFoundError(
                f"revision not found: {rev}",
                details={"path": relative_path, "ref": rev},
            )
        return sha
