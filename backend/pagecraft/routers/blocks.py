import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from pagecraft.dependencies import get_db
from pagecraft.schemas.vfs_block import (
    BlockCreate,
    BlockMove,
    BlockRead,
    BlockReorder,
    BlockTransfer,
    BlockTreeNode,
    BlockUpdate,
    OwnershipReport,
)
from pagecraft.services import block_service

router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["blocks"])


@router.get("/files/{file_id}/blocks", response_model=list[BlockRead])
async def list_file_blocks(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    blocks = await block_service.list_file_blocks(db, project_id, file_id)
    if blocks is None:
        raise HTTPException(status_code=404, detail="File not found")
    return blocks


@router.get("/files/{file_id}/blocks/tree", response_model=list[BlockTreeNode])
async def get_block_tree(project_id: uuid.UUID, file_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    tree = await block_service.get_block_tree(db, project_id, file_id)
    if tree is None:
        raise HTTPException(status_code=404, detail="File not found")
    return tree


@router.put("/files/{file_id}/blocks/order", response_model=list[BlockRead])
async def reorder_blocks(
    project_id: uuid.UUID, file_id: uuid.UUID, data: BlockReorder, db: AsyncSession = Depends(get_db)
):
    blocks = await block_service.reorder_file_blocks(db, project_id, file_id, data.block_ids)
    if blocks is None:
        raise HTTPException(status_code=404, detail="File not found")
    return blocks


@router.post("/files/{file_id}/blocks/transfer", response_model=list[BlockRead])
async def transfer_blocks(
    project_id: uuid.UUID, file_id: uuid.UUID, data: BlockTransfer, db: AsyncSession = Depends(get_db)
):
    if data.block_ids:
        blocks = await block_service.transfer_selected_blocks(db, project_id, data.block_ids, data.to_file_id)
    else:
        blocks = await block_service.transfer_file_blocks(db, project_id, file_id, data.to_file_id)
    if blocks is None:
        raise HTTPException(status_code=404, detail="Blocks not found")
    return blocks


@router.get("/blocks/integrity", response_model=OwnershipReport)
async def validate_ownership(project_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await block_service.validate_project_ownership(db, project_id)


@router.post("/blocks", response_model=BlockRead, status_code=201)
async def create_block(project_id: uuid.UUID, data: BlockCreate, db: AsyncSession = Depends(get_db)):
    block = await block_service.create_block(db, project_id, data)
    if not block:
        raise HTTPException(status_code=404, detail="Project or parent block not found")
    return block


@router.get("/blocks/{block_id}", response_model=BlockRead)
async def get_block(project_id: uuid.UUID, block_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    block = await block_service.get_block(db, project_id, block_id)
    if not block:
        raise HTTPException(status_code=404, detail="Block not found")
    return block


@router.patch("/blocks/{block_id}", response_model=BlockRead)
async def update_block(
    project_id: uuid.UUID, block_id: uuid.UUID, data: BlockUpdate, db: AsyncSession = Depends(get_db)
):
    block = await block_service.update_block(db, project_id, block_id, data)
    if not block:
        raise HTTPException(status_code=404, detail="Block not found")
    return block


@router.post("/blocks/{block_id}/move", response_model=BlockRead)
async def move_block(project_id: uuid.UUID, block_id: uuid.UUID, data: BlockMove, db: AsyncSession = Depends(get_db)):
    block = await block_service.move_block(db, project_id, block_id, data)
    if not block:
        raise HTTPException(status_code=404, detail="Block or parent block not found")
    return block


@router.delete("/blocks/{block_id}", status_code=204)
async def delete_block(project_id: uuid.UUID, block_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    deleted = await block_service.delete_block(db, project_id, block_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Block not found")
