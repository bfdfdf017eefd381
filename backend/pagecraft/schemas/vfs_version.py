import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from pagecraft.vfs.types import VersionTrigger


class VersionMetadata(BaseModel):
    operation: str | None = None
    user_id: str | None = None
    description: str | None = None


class VersionSnapshot(BaseModel):
    files: list[dict[str, Any]] = []
    blocks: list[dict[str, Any]] = []


class VersionListItem(BaseModel):
    id: int
    project_id: uuid.UUID
    label: str | None
    trigger: VersionTrigger
    metadata: VersionMetadata | None = Field(default=None, validation_alias="meta")
    created_at: datetime

    model_config = {"from_attributes": True}


class VersionResponse(VersionListItem):
    snapshot: VersionSnapshot


class SnapshotCreate(BaseModel):
    label: str | None = Field(default=None, max_length=255)
    description: str | None = None
