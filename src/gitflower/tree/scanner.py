"""Repository tree scanner."""

import os
import stat
from pathlib import Path

import structlog

from gitflower.core.exceptions import InvalidNameError, ScanAccessError
from gitflower.core.models.repository import RepositoryRecord, ScanConfig, ScanResult
from gitflower.git.backend import GitBackend
from gitflower.tree.metadata import MetadataExtractor
from gitflower.tree.validation import is_repository, validate_org_folder, validate_slug

logger = structlog.get_logger(__name__)


class TreeScanner:
    """Walks the repositories root and classifies every directory.

    The walk is pre-order with children in lexicographic order, so results
    are deterministic. Directories are classified as:

    - invalid: the name is not a slug. A warning is recorded and the walk
      does not descend, since nothing below can be classified.
    - repository: the name ends with ``.git``. Metadata is extracted and the
      walk never descends into the repository's own storage.
    - organization folder: anything else. The walk descends.

    Filesystem errors below the root become warnings; only an unreadable
    root fails the scan.
    """

    def __init__(
        self,
        config: ScanConfig,
        extractor: MetadataExtractor | None = None,
        backend: GitBackend | None = None,
    ) -> None:
        self._config = config
        self._extractor = extractor or MetadataExtractor(backend)

    @property
    def root(self) -> Path:
        return Path(self._config.root).expanduser().absolute()

    def scan(self) -> ScanResult:
        """Scan the tree and return repositories and warnings."""
        root = self.root
        result = ScanResult()

        try:
            root_stat = root.stat()
        except FileNotFoundError:
            logger.debug("Repositories root does not exist", root=str(root))
            return result
        except OSError as exc:
            raise ScanAccessError(
                f"accessing repositories directory {root}: {exc.strerror or exc}",
                details={"root": str(root)},
            ) from exc

        if not stat.S_ISDIR(root_stat.st_mode):
            raise ScanAccessError(
                f"repositories directory is not a directory: {root}",
                details={"root": str(root)},
            )

        try:
            children = self._list_directories(root, result.warnings)
        except OSError as exc:
            raise ScanAccessError(
                f"reading repositories directory {root}: {exc.strerror or exc}",
                details={"root": str(root)},
            ) from exc

        for child in children:
            self._visit(root, child, 1, result)

        logger.info(
            "Scanned repositories",
            root=str(root),
            repositories=len(result.repositories),
            warnings=len(result.warnings),
        )
        return result

    def _visit(self, root: Path, directory: Path, depth: int, result: ScanResult) -> None:
        name = directory.name

        try:
            validate_slug(name)
        except InvalidNameError:
            result.warnings.append(f"Invalid directory name: {directory}")
            return

        if is_repository(name):
            result.repositories.append(self._extract(root, directory))
            return

        try:
            validate_org_folder(name)
        except InvalidNameError:
            result.warnings.append(f"Invalid organization folder: {directory}")

        max_depth = self._config.max_depth
        if max_depth is not None and depth >= max_depth:
            result.warnings.append(f"Scan depth limit reached at {directory}")
            return

        try:
            children = self._list_directories(directory, result.warnings)
        except OSError as exc:
            result.warnings.append(f"Error accessing {directory}: {exc.strerror or exc}")
            return

        for child in children:
            self._visit(root, child, depth + 1, result)

    def _extract(self, root: Path, directory: Path) -> RepositoryRecord:
        relative_path = directory.relative_to(root).as_posix()
        return self._extractor.extract(directory, relative_path)

    @staticmethod
    def _list_directories(directory: Path, warnings: list[str]) -> list[Path]:
        """List subdirectories of ``directory`` sorted by name.

        Symlinks are not followed. Entries whose type cannot be determined
        are reported in ``warnings`` and skipped.
        """
        with os.scandir(directory) as entries:
            found = list(entries)

        subdirectories = []
        for entry in sorted(found, key=lambda e: e.name):
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirectories.append(Path(entry.path))
            except OSError as exc:
                warnings.append(f"Error accessing {entry.path}: {exc.strerror or exc}")
        return subdirectories
