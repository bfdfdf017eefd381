import logging
import uuid
from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pagecraft.models.vfs_block import VFSBlock
from pagecraft.schemas.vfs_block import (
    BlockConstraints,
    BlockCreate,
    BlockMove,
    BlockRead,
    BlockTreeNode,
    BlockUpdate,
    OwnershipReport,
)
from pagecraft.services import file_service, version_service
from pagecraft.services.project_service import lock_project
from pagecraft.vfs import guards, ownership
from pagecraft.vfs.errors import IntegrityViolationError, InvalidReorderError, PolicyViolationError
from pagecraft.vfs.types import FileOperation

logger = logging.getLogger(__name__)


async def _project_blocks(db: AsyncSession, project_id: uuid.UUID) -> list[BlockRead]:
    result = await db.execute(
        select(VFSBlock)
        .where(VFSBlock.project_id == project_id)
        .order_by(VFSBlock.order, VFSBlock.created_at)
    )
    return [BlockRead.model_validate(b) for b in result.scalars().all()]


async def _next_order(db: AsyncSession, file_id: uuid.UUID, parent_block_id: uuid.UUID | None) -> int:
    query = select(func.max(VFSBlock.order)).where(VFSBlock.file_id == file_id)
    if parent_block_id is None:
        query = query.where(VFSBlock.parent_block_id.is_(None))
    else:
        query = query.where(VFSBlock.parent_block_id == parent_block_id)
    current = (await db.execute(query)).scalar()
    return 0 if current is None else current + 1


async def _ensure_ui_editable(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID):
    file = guards.ensure_block_owner(await file_service.get_file(db, project_id, file_id), file_id)
    guards.require_policy_check(
        file_service.check_operation(file, FileOperation.UI_EDIT), file, FileOperation.UI_EDIT
    )
    return file


async def list_file_blocks(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID) -> list[VFSBlock] | None:
    if not await file_service.get_file(db, project_id, file_id):
        return None
    result = await db.execute(
        select(VFSBlock)
        .where(VFSBlock.file_id == file_id)
        .order_by(VFSBlock.order, VFSBlock.created_at)
    )
    return list(result.scalars().all())


async def get_block(db: AsyncSession, project_id: uuid.UUID, block_id: uuid.UUID) -> VFSBlock | None:
    block = await db.get(VFSBlock, block_id, populate_existing=True)
    if not block or block.project_id != project_id:
        return None
    return block


async def get_block_tree(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID) -> list[BlockTreeNode] | None:
    blocks = await list_file_blocks(db, project_id, file_id)
    if blocks is None:
        return None
    return ownership.build_block_tree(file_id, [BlockRead.model_validate(b) for b in blocks])


async def create_block(db: AsyncSession, project_id: uuid.UUID, data: BlockCreate) -> VFSBlock | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await _ensure_ui_editable(db, project_id, data.file_id)
    if data.parent_block_id is not None:
        parent = await get_block(db, project_id, data.parent_block_id)
        if parent is None:
            return None
        guards.ensure_same_file_parent(parent, file.id, data.parent_block_id)

    order = data.order
    if order is None:
        order = await _next_order(db, file.id, data.parent_block_id)

    block = VFSBlock(
        id=uuid.uuid4(),
        file_id=file.id,
        # Denormalized from the owner, never taken from the caller
        project_id=file.project_id,
        type=data.type,
        props=dict(data.props),
        events=[event.model_dump(mode="json") for event in data.events],
        styles=data.styles.model_dump(mode="json", exclude_none=True),
        constraints=data.constraints.model_dump(mode="json"),
        order=order,
        parent_block_id=data.parent_block_id,
    )
    db.add(block)
    await db.commit()
    await db.refresh(block)
    return block


def _check_locked_props(block: VFSBlock, constraints: BlockConstraints, props: dict) -> None:
    for key in constraints.locked_props:
        if props.get(key) != block.props.get(key):
            raise PolicyViolationError(f"Property '{key}' of {block.type} block is locked")


async def update_block(
    db: AsyncSession, project_id: uuid.UUID, block_id: uuid.UUID, data: BlockUpdate
) -> VFSBlock | None:
    if await lock_project(db, project_id) is None:
        return None
    block = await get_block(db, project_id, block_id)
    if not block:
        return None
    await _ensure_ui_editable(db, project_id, block.file_id)

    constraints = BlockConstraints.model_validate(block.constraints)
    changes = data.model_dump(exclude_unset=True)
    if changes and not constraints.can_edit:
        raise PolicyViolationError(f"{block.type} block cannot be edited")
    if data.constraints is not None:
        unlocked = set(constraints.locked_props) - set(data.constraints.locked_props)
        if unlocked:
            raise PolicyViolationError(
                f"Cannot unlock {', '.join(sorted(unlocked))} on {block.type} block"
            )
    if data.props is not None:
        _check_locked_props(block, constraints, data.props)
        block.props = dict(data.props)
    if data.events is not None:
        block.events = [event.model_dump(mode="json") for event in data.events]
    if data.styles is not None:
        block.styles = data.styles.model_dump(mode="json", exclude_none=True)
    if data.constraints is not None:
        block.constraints = data.constraints.model_dump(mode="json")

    await db.commit()
    await db.refresh(block)
    return block


async def move_block(db: AsyncSession, project_id: uuid.UUID, block_id: uuid.UUID, data: BlockMove) -> VFSBlock | None:
    """Reparent and/or reposition a block inside its own file."""
    if await lock_project(db, project_id) is None:
        return None
    block = await get_block(db, project_id, block_id)
    if not block:
        return None
    if not BlockConstraints.model_validate(block.constraints).can_move:
        raise PolicyViolationError(f"{block.type} block cannot be moved")
    await _ensure_ui_editable(db, project_id, block.file_id)

    if data.parent_block_id is not None:
        parent = await get_block(db, project_id, data.parent_block_id)
        if parent is None:
            return None
        guards.ensure_same_file_parent(parent, block.file_id, data.parent_block_id)
        subtree = ownership.collect_descendants(block.id, await _project_blocks(db, project_id))
        if data.parent_block_id == block.id or data.parent_block_id in subtree:
            raise IntegrityViolationError(f"Cannot nest block {block.id} inside itself")

    block.parent_block_id = data.parent_block_id
    block.order = data.order
    await db.commit()
    await db.refresh(block)
    return block


async def delete_block(
    db: AsyncSession, project_id: uuid.UUID, block_id: uuid.UUID, user_id: str | None = None
) -> bool:
    """Delete a block and everything nested under it."""
    if await lock_project(db, project_id) is None:
        return False
    block = await get_block(db, project_id, block_id)
    if not block:
        return False
    if not BlockConstraints.model_validate(block.constraints).can_delete:
        raise PolicyViolationError(f"{block.type} block cannot be deleted")
    await _ensure_ui_editable(db, project_id, block.file_id)

    descendants = ownership.collect_descendants(block.id, await _project_blocks(db, project_id))
    if descendants:
        await version_service.snapshot_before_risky_operation(
            db, project_id, "delete_block", user_id=user_id,
            description=f"Before deleting {block.type} block with {len(descendants)} nested blocks",
        )
    await db.execute(delete(VFSBlock).where(VFSBlock.id.in_([block.id, *descendants])))
    await db.commit()
    return True


async def _apply_transfer(
    db: AsyncSession,
    before: Sequence[BlockRead],
    after: Sequence[BlockRead],
    to_file_id: uuid.UUID,
) -> list[uuid.UUID]:
    """Write the ledger's transfer result back, appending moved roots to the target."""
    moved = {old.id: new for old, new in zip(before, after) if old.file_id != new.file_id}
    if not moved:
        return []

    next_root = await _next_order(db, to_file_id, None)
    offset = 0
    for block in before:
        if block.id not in moved:
            continue
        row = await db.get(VFSBlock, block.id)
        row.file_id = to_file_id
        # A parent left behind in the source file would become a cross-file link
        if row.parent_block_id is not None and row.parent_block_id not in moved:
            row.parent_block_id = None
        if row.parent_block_id is None:
            row.order = next_root + offset
            offset += 1
    return list(moved)


async def transfer_file_blocks(
    db: AsyncSession,
    project_id: uuid.UUID,
    from_file_id: uuid.UUID,
    to_file_id: uuid.UUID,
    user_id: str | None = None,
) -> list[VFSBlock] | None:
    """Move every block of one file to another, e.g. promoting a section to a component."""
    if await lock_project(db, project_id) is None:
        return None
    source = await file_service.get_file(db, project_id, from_file_id)
    if not source:
        return None
    target = await _ensure_ui_editable(db, project_id, to_file_id)

    await version_service.snapshot_before_risky_operation(
        db, project_id, "transfer_blocks", user_id=user_id,
        description=f"Before moving blocks from {source.path} to {target.path}",
    )
    working = await _project_blocks(db, project_id)
    moved = await _apply_transfer(
        db, working, ownership.transfer_blocks(working, from_file_id, to_file_id), to_file_id
    )
    await db.commit()
    logger.info("Transferred %d blocks from %s to %s", len(moved), source.path, target.path)
    return await list_file_blocks(db, project_id, to_file_id)


async def transfer_selected_blocks(
    db: AsyncSession,
    project_id: uuid.UUID,
    block_ids: Sequence[uuid.UUID],
    to_file_id: uuid.UUID,
    user_id: str | None = None,
) -> list[VFSBlock] | None:
    """Move the selected blocks, with their nested blocks, to another file."""
    if await lock_project(db, project_id) is None:
        return None
    working = await _project_blocks(db, project_id)
    known = {b.id for b in working}
    if not block_ids or any(block_id not in known for block_id in block_ids):
        return None
    target = await _ensure_ui_editable(db, project_id, to_file_id)

    selected: list[uuid.UUID] = []
    for block_id in block_ids:
        for member in (block_id, *ownership.collect_descendants(block_id, working)):
            if member not in selected:
                selected.append(member)

    await version_service.snapshot_before_risky_operation(
        db, project_id, "transfer_selected_blocks", user_id=user_id,
        description=f"Before moving {len(selected)} blocks to {target.path}",
    )
    moved = await _apply_transfer(
        db, working, ownership.transfer_specific_blocks(working, selected, to_file_id), to_file_id
    )
    await db.commit()
    logger.info("Transferred %d selected blocks to %s", len(moved), target.path)
    return await list_file_blocks(db, project_id, to_file_id)


async def reorder_file_blocks(
    db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID, block_ids: Sequence[uuid.UUID]
) -> list[VFSBlock] | None:
    """Rewrite the order of every block in a file.

    The list must name each block of the file exactly once; omissions would
    leave stale order values behind.
    """
    if await lock_project(db, project_id) is None:
        return None
    if not await file_service.get_file(db, project_id, file_id):
        return None
    await _ensure_ui_editable(db, project_id, file_id)

    working = await _project_blocks(db, project_id)
    file_block_ids = {b.id for b in ownership.get_file_blocks(file_id, working)}
    if len(set(block_ids)) != len(block_ids):
        raise InvalidReorderError("Block order lists a block more than once")
    missing = file_block_ids - set(block_ids)
    foreign = set(block_ids) - file_block_ids
    if missing or foreign:
        raise InvalidReorderError(
            f"Block order must list every block of the file exactly once "
            f"({len(missing)} missing, {len(foreign)} not in this file)"
        )

    for old, new in zip(working, ownership.reorder_blocks(working, file_id, block_ids)):
        if old.order != new.order:
            row = await db.get(VFSBlock, new.id)
            row.order = new.order
    await db.commit()
    return await list_file_blocks(db, project_id, file_id)


async def count_blocks(db: AsyncSession, project_id: uuid.UUID) -> dict[uuid.UUID, int]:
    return ownership.count_blocks_per_file(await _project_blocks(db, project_id))


async def validate_project_ownership(db: AsyncSession, project_id: uuid.UUID) -> OwnershipReport:
    """Integrity report over the persisted blocks of a project.

    Blocks of archived files still count as owned; they come back with the
    file when it is unarchived.
    """
    files = await file_service.list_files(db, project_id, include_archived=True)
    return ownership.validate_all_ownership(await _project_blocks(db, project_id), files)
