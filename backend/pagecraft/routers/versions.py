import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from pagecraft.dependencies import get_db
from pagecraft.schemas.vfs_version import SnapshotCreate, VersionListItem, VersionMetadata, VersionResponse
from pagecraft.services import project_service, version_service
from pagecraft.vfs.types import VersionTrigger

router = APIRouter(prefix="/api/v1/projects/{project_id}/versions", tags=["versions"])


@router.get("", response_model=list[VersionListItem])
async def list_versions(project_id: uuid.UUID, limit: int | None = None, db: AsyncSession = Depends(get_db)):
    return await version_service.list_versions(db, project_id, limit=limit)


@router.post("", response_model=VersionListItem, status_code=201)
async def create_version(project_id: uuid.UUID, data: SnapshotCreate, db: AsyncSession = Depends(get_db)):
    if not await project_service.get_project(db, project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    version = await version_service.record_snapshot(
        db, project_id, VersionTrigger.MANUAL, label=data.label,
        metadata=VersionMetadata(operation="manual_snapshot", description=data.description),
    )
    if not version:
        raise HTTPException(status_code=503, detail="Snapshot could not be saved")
    return version


@router.get("/labels/{label}", response_model=VersionResponse)
async def get_version_by_label(project_id: uuid.UUID, label: str, db: AsyncSession = Depends(get_db)):
    version = await version_service.get_version_by_label(db, project_id, label)
    if not version:
        raise HTTPException(status_code=404, detail="Version not found")
    return version


@router.get("/{version_id}", response_model=VersionResponse)
async def get_version(project_id: uuid.UUID, version_id: int, db: AsyncSession = Depends(get_db)):
    version = await version_service.get_version(db, project_id, version_id)
    if not version:
        raise HTTPException(status_code=404, detail="Version not found")
    return version


@router.post("/{version_id}/restore", response_model=VersionListItem)
async def restore_version(project_id: uuid.UUID, version_id: int, db: AsyncSession = Depends(get_db)):
    version = await version_service.restore_version(db, project_id, version_id)
    if not version:
        raise HTTPException(status_code=404, detail="Version not found")
    return version
