"""Business logic services for GitFlower."""

from gitflower.services.repositories import RepositoryService

__all__ = [
    "RepositoryService",
]
