import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from pagecraft.dependencies import get_db
from pagecraft.schemas.vfs_file import (
    AllowedOperations,
    FileCreate,
    FileMove,
    FileRawEdit,
    FileRead,
    FileRename,
    FileSchemaUpdate,
    FolderNode,
    OperationResult,
)
from pagecraft.services import file_service
from pagecraft.vfs.types import FileOperation

router = APIRouter(prefix="/api/v1/projects/{project_id}/files", tags=["files"])


async def _get_file_or_404(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID):
    file = await file_service.get_file(db, project_id, file_id)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.get("", response_model=list[FileRead])
async def list_files(project_id: uuid.UUID, include_archived: bool = False, db: AsyncSession = Depends(get_db)):
    return await file_service.list_files(db, project_id, include_archived=include_archived)


@router.get("/tree", response_model=list[FolderNode])
async def folder_tree(project_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await file_service.get_folder_tree(db, project_id)


@router.post("", response_model=FileRead, status_code=201)
async def create_file(project_id: uuid.UUID, data: FileCreate, db: AsyncSession = Depends(get_db)):
    file = await file_service.create_file(db, project_id, data)
    if not file:
        raise HTTPException(status_code=404, detail="Project not found")
    return file


@router.get("/{file_id}", response_model=FileRead)
async def get_file(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await _get_file_or_404(db, project_id, file_id)


@router.get("/{file_id}/operations", response_model=AllowedOperations)
async def get_allowed_operations(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return file_service.allowed_operations(await _get_file_or_404(db, project_id, file_id))


@router.get("/{file_id}/operations/{operation}", response_model=OperationResult)
async def validate_operation(
    project_id: uuid.UUID, file_id: uuid.UUID, operation: FileOperation, db: AsyncSession = Depends(get_db)
):
    return file_service.check_operation(await _get_file_or_404(db, project_id, file_id), operation)


@router.put("/{file_id}/schema", response_model=FileRead)
async def update_schema(
    project_id: uuid.UUID, file_id: uuid.UUID, data: FileSchemaUpdate, db: AsyncSession = Depends(get_db)
):
    file = await file_service.update_file_schema(db, project_id, file_id, data.data_schema)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.post("/{file_id}/rename", response_model=FileRead)
async def rename_file(project_id: uuid.UUID, file_id: uuid.UUID, data: FileRename, db: AsyncSession = Depends(get_db)):
    file = await file_service.rename_file(db, project_id, file_id, data.name)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.post("/{file_id}/move", response_model=FileRead)
async def move_file(project_id: uuid.UUID, file_id: uuid.UUID, data: FileMove, db: AsyncSession = Depends(get_db)):
    file = await file_service.move_file(db, project_id, file_id, data.folder)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.put("/{file_id}/raw", response_model=FileRead)
async def raw_edit_file(project_id: uuid.UUID, file_id: uuid.UUID, data: FileRawEdit, db: AsyncSession = Depends(get_db)):
    file = await file_service.raw_edit_file(db, project_id, file_id, data.content)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.post("/{file_id}/archive", response_model=FileRead)
async def archive_file(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    file = await file_service.archive_file(db, project_id, file_id)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.post("/{file_id}/unarchive", response_model=FileRead)
async def unarchive_file(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    file = await file_service.unarchive_file(db, project_id, file_id)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.post("/{file_id}/home", response_model=FileRead)
async def set_home_file(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    file = await file_service.set_home_file(db, project_id, file_id)
    if not file:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.delete("/{file_id}", status_code=204)
async def delete_file(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    deleted = await file_service.delete_file(db, project_id, file_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="File not found")
