"""Git integration module for GitFlower."""

from gitflower.git.backend import (
    Commit,
    GitBackend,
    GitCliBackend,
    GitRepository,
    Reference,
    TreeEntry,
)
from gitflower.git.url_resolver import CloneURLResolver

__all__ = [
    "CloneURLResolver",
    "Commit",
    "GitBackend",
    "GitCliBackend",
    "GitRepository",
    "Reference",
    "TreeEntry",
]
