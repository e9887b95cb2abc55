"""Core domain models and exceptions for GitFlower."""

from gitflower.core.exceptions import (
    BackendError,
    ConfigurationError,
    GitFlowerError,
    InvalidNameError,
    RepositoryError,
    RepositoryExistsError,
    RepositoryInitError,
    RepositoryNotFoundError,
    RevisionNotFoundError,
    ScanAccessError,
    ValidationError,
)
from gitflower.core.models import RepositoryRecord, ScanConfig, ScanResult

__all__ = [
    # Models
    "RepositoryRecord",
    "ScanConfig",
    "ScanResult",
    # Exceptions
    "GitFlowerError",
    "ConfigurationError",
    "ValidationError",
    "InvalidNameError",
    "RepositoryError",
    "RepositoryExistsError",
    "RepositoryNotFoundError",
    "RepositoryInitError",
    "RevisionNotFoundError",
    "ScanAccessError",
    "BackendError",
]
