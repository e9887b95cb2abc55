"""FastAPI dependencies for dependency injection."""

import threading
from typing import Annotated

from fastapi import Depends, Request

from gitflower.config import Settings
from gitflower.git.url_resolver import CloneURLResolver
from gitflower.services.repositories import RepositoryService


def get_settings_dep(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_repository_service(request: Request) -> RepositoryService:
    """Get the repository service from app state."""
    if not hasattr(request.app.state, "repository_service"):
        settings = request.app.state.settings
        request.app.state.repository_service = RepositoryService(settings.scan_config)
    return request.app.state.repository_service


def get_clone_url_resolver(request: Request) -> CloneURLResolver:
    """Build the clone URL resolver from settings."""
    settings = request.app.state.settings
    return CloneURLResolver(settings.repos_path, settings.clone_url_template)


def get_write_lock(request: Request) -> threading.Lock:
    """Get the lock serializing repository creation within this process."""
    return request.app.state.write_lock


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
RepositoryServiceDep = Annotated[RepositoryService, Depends(get_repository_service)]
CloneURLResolverDep = Annotated[CloneURLResolver, Depends(get_clone_url_resolver)]
WriteLockDep = Annotated[threading.Lock, Depends(get_write_lock)]
