"""Health check endpoint."""

from fastapi import APIRouter

from gitflower import __version__
from gitflower.api.dependencies import SettingsDep

router = APIRouter()


@router.get("/health")
def health(settings: SettingsDep) -> dict[str, str]:
    """Report liveness and the configured repositories directory."""
    return {
        "status": "ok",
        "version": __version__,
        "repos_directory": str(settings.repos_path),
    }
