"""Repository tree: naming grammar, scanning, metadata and creation."""

from gitflower.tree.creator import RepositoryCreator
from gitflower.tree.metadata import MetadataExtractor
from gitflower.tree.scanner import TreeScanner
from gitflower.tree.validation import (
    REPOSITORY_SUFFIX,
    ensure_repository_suffix,
    is_repository,
    validate_org_folder,
    validate_path,
    validate_repository_name,
    validate_slug,
)

__all__ = [
    "REPOSITORY_SUFFIX",
    "MetadataExtractor",
    "RepositoryCreator",
    "TreeScanner",
    "ensure_repository_suffix",
    "is_repository",
    "validate_org_folder",
    "validate_path",
    "validate_repository_name",
    "validate_slug",
]
