"""Repository tree models."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RepositoryRecord(BaseModel):
    """A repository discovered under the repositories root.

    Records are produced for every directory classified as a repository,
    including the ones that could not be opened (``is_valid`` is then
    false and ``error`` explains why).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    path: str
    name: str
    relative_path: str
    size: int = Field(default=0, ge=0)
    last_update: datetime | None = None
    branch_count: int = Field(default=0, ge=0)
    mr_count: int = Field(default=0, ge=0)
    is_valid: bool = True
    error: str | None = None


class ScanResult(BaseModel):
    """Repositories and warnings collected by a single scan."""

    repositories: list[RepositoryRecord] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ScanConfig(BaseModel):
    """What the scanner and creator need to know about the tree."""

    model_config = ConfigDict(frozen=True)

    root: Path
    default_branch: str = "main"
    max_depth: int | None = Field(default=None, ge=1)
