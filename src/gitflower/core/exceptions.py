"""Exception hierarchy for GitFlower."""

from typing import Any


class GitFlowerError(Exception):
    """Base exception for all GitFlower errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(GitFlowerError):
    """Raised when the configuration file cannot be loaded."""


class ValidationError(GitFlowerError):
    """Raised when user input does not satisfy the naming rules."""


class InvalidNameError(ValidationError):
    """Raised when a path component violates the naming grammar.

    ``name`` is the offending component and ``rule`` a short description
    of the violated constraint.
    """

    def __init__(self, name: str, rule: str) -> None:
        super().__init__(
            f"invalid name '{name}': {rule}",
            details={"name": name, "rule": rule},
        )
        self.name = name
        self.rule = rule


class RepositoryError(GitFlowerError):
    """Base exception for repository tree operations."""


class RepositoryExistsError(RepositoryError):
    """Raised when creating a repository whose path is already taken."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when a repository path does not exist under the root."""


class RevisionNotFoundError(RepositoryError):
    """Raised when a ref, commit or path does not exist in a repository."""


class RepositoryInitError(RepositoryError):
    """Raised when a repository directory could not be initialized."""


class ScanAccessError(RepositoryError):
    """Raised when the repositories root exists but cannot be read."""


class BackendError(GitFlowerError):
    """Raised when the version-control backend fails."""
