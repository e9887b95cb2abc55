"""Repository API endpoints."""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gitflower.api.dependencies import CloneURLResolverDep, RepositoryServiceDep, WriteLockDep
from gitflower.core.exceptions import (
    BackendError,
    InvalidNameError,
    RepositoryExistsError,
    RepositoryNotFoundError,
    ScanAccessError,
)
from gitflower.core.models.repository import RepositoryRecord, ScanResult

router = APIRouter(prefix="/repositories")


# --- Request/Response models ---

class CreateRepositoryRequest(BaseModel):
    """Request to create a bare repository."""

    path: str = Field(..., min_length=1, max_length=1000, examples=["myorg/myproject.git"])


class RepositoryDetail(BaseModel):
    """A repository record with its branches and clone URL."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    repository: RepositoryRecord
    branches: list[str] = Field(default_factory=list)
    clone_url: str


# --- Endpoints ---

@router.get("", response_model=ScanResult)
def list_repositories(service: RepositoryServiceDep) -> ScanResult:
    """Scan the tree and return repositories with scan warnings."""
    try:
        return service.scan()
    except ScanAccessError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)


@router.post("", response_model=RepositoryRecord, status_code=status.HTTP_201_CREATED)
def create_repository(
    request: CreateRepositoryRequest,
    service: RepositoryServiceDep,
    write_lock: WriteLockDep,
) -> RepositoryRecord:
    """Create a new empty bare repository."""
    try:
        with write_lock:
            return service.create(request.path)
    except InvalidNameError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except RepositoryExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.get("/{path:path}", response_model=RepositoryDetail)
def get_repository(
    path: str,
    service: RepositoryServiceDep,
    resolver: CloneURLResolverDep,
) -> RepositoryDetail:
    """Get a repository's metadata, branches and clone URL."""
    try:
        record = service.get(path)
    except InvalidNameError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except RepositoryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    branches: list[str] = []
    if record.is_valid:
        try:
            branches = service.branches(path)
        except BackendError:
            branches = []

    return RepositoryDetail(
        repository=record,
        branches=branches,
        clone_url=resolver.resolve(record.relative_path),
    )
