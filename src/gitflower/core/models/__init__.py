"""Domain models for GitFlower."""

from gitflower.core.models.repository import RepositoryRecord, ScanConfig, ScanResult

__all__ = [
    "RepositoryRecord",
    "ScanConfig",
    "ScanResult",
]
