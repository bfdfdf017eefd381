import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from pagecraft.vfs.types import FileOperation, FileType, ProtectionLevel


class FileDraft(BaseModel):
    """Unsaved file produced by the registry factory."""

    project_id: uuid.UUID
    name: str
    path: str
    type: FileType
    protection: ProtectionLevel
    data_schema: dict[str, Any] = Field(default_factory=dict)
    is_archived: bool = False


class FileRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    path: str
    type: FileType
    protection: ProtectionLevel
    data_schema: dict[str, Any] = Field(default_factory=dict)
    is_archived: bool = False
    archived_at: datetime | None = None
    is_home: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class FileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: FileType
    data_schema: dict[str, Any] = Field(default_factory=dict)
    is_home: bool = False


class FileRename(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class FileMove(BaseModel):
    folder: str = Field(min_length=1, max_length=512)


class FileRawEdit(BaseModel):
    content: str


class FileSchemaUpdate(BaseModel):
    data_schema: dict[str, Any]


class AllowedOperations(BaseModel):
    delete: bool
    rename: bool
    raw_edit: bool
    ui_edit: bool
    move: bool
    archive: bool = True
    duplicate: bool = True
    export: bool = True


class FolderNode(BaseModel):
    folder: str
    files: list[FileRead] = []


class OperationResult(BaseModel):
    success: bool
    operation: FileOperation
    file_id: uuid.UUID | None = None
    error: str | None = None


class ParsedPath(BaseModel):
    folder: str
    name: str
    extension: str
