import uuid
from datetime import datetime

from pydantic import BaseModel


class ProjectCreate(BaseModel):
    title: str
    description: str | None = None


class ProjectUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    status: str | None = None


class ProjectResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectSummary(BaseModel):
    project_id: uuid.UUID
    file_count: int
    archived_file_count: int
    home_file_id: uuid.UUID | None
    blocks_per_file: dict[uuid.UUID, int]
    orphan_block_count: int
    version_count: int
