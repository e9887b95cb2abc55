"""Repository creation."""

import shutil
from pathlib import Path

import structlog

from gitflower.core.exceptions import BackendError, RepositoryExistsError, RepositoryInitError
from gitflower.git.backend import GitBackend, GitCliBackend
from gitflower.tree.validation import ensure_repository_suffix, split_path, validate_path

logger = structlog.get_logger(__name__)


class RepositoryCreator:
    """Creates empty bare repositories inside the tree.

    If initialization fails, the leaf directory created for the repository
    is removed again. Parent folders are left alone: they may already hold
    other repositories.
    """

    def __init__(
        self,
        root: Path | str,
        backend: GitBackend | None = None,
        default_branch: str | None = "main",
    ) -> None:
        self._root = Path(root).expanduser().absolute()
        self._backend = backend or GitCliBackend()
        self._default_branch = default_branch

    def create(self, path: str) -> Path:
        """Create the repository at ``path`` (relative to the root).

        The ``.git`` suffix is appended when missing. Returns the absolute
        path of the new repository.
        """
        path = ensure_repository_suffix(path)
        validate_path(path)

        relative = "/".join(split_path(path))
        full_path = self._root.joinpath(*split_path(path))
        if full_path.exists() or full_path.is_symlink():
            raise RepositoryExistsError(
                f"repository {relative} already exists",
                details={"path": relative},
            )

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RepositoryInitError(
                f"creating parent directories for {relative}: {exc.strerror or exc}",
                details={"path": relative},
            ) from exc

        try:
            full_path.mkdir()
        except FileExistsError as exc:
            raise RepositoryExistsError(
                f"repository {relative} already exists",
                details={"path": relative},
            ) from exc
        except OSError as exc:
            raise RepositoryInitError(
                f"creating repository directory {relative}: {exc.strerror or exc}",
                details={"path": relative},
            ) from exc

        try:
            self._backend.init_bare(full_path, initial_branch=self._default_branch)
        except (BackendError, OSError) as exc:
            self._remove_leaf(full_path)
            raise RepositoryInitError(
                f"initializing repository {relative}: {exc}",
                details={"path": relative},
            ) from exc

        logger.info("Created repository", path=relative, full_path=str(full_path))
        return full_path

    @staticmethod
    def _remove_leaf(full_path: Path) -> None:
        try:
            shutil.rmtree(full_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.error(
                "Failed to remove repository directory after init failure",
                path=str(full_path),
                error=str(exc),
            )
        else:
            logger.info("Rolled back repository directory", path=str(full_path))
