import logging
import uuid
from collections import deque
from typing import Any, Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pagecraft.config import settings
from pagecraft.models.vfs_block import VFSBlock
from pagecraft.models.vfs_file import VFSFile
from pagecraft.models.vfs_version import VFSVersion
from pagecraft.schemas.vfs_block import BlockRead
from pagecraft.schemas.vfs_file import FileRead
from pagecraft.schemas.vfs_version import VersionMetadata, VersionSnapshot
from pagecraft.services.project_service import lock_project
from pagecraft.vfs import ownership
from pagecraft.vfs.errors import SnapshotError
from pagecraft.vfs.types import VersionTrigger

logger = logging.getLogger(__name__)

_BLOCK_CONTENT_FIELDS = {"type", "props", "events", "styles", "constraints", "order"}


async def capture_project_state(
    db: AsyncSession, project_id: uuid.UUID
) -> tuple[list[FileRead], list[BlockRead]]:
    files = await db.execute(
        select(VFSFile).where(VFSFile.project_id == project_id).order_by(VFSFile.path, VFSFile.created_at)
    )
    blocks = await db.execute(
        select(VFSBlock)
        .where(VFSBlock.project_id == project_id)
        .order_by(VFSBlock.file_id, VFSBlock.order, VFSBlock.created_at)
    )
    return (
        [FileRead.model_validate(f) for f in files.scalars().all()],
        [BlockRead.model_validate(b) for b in blocks.scalars().all()],
    )


def _snapshot_payload(files: Iterable, blocks: Iterable) -> dict[str, list[dict[str, Any]]]:
    # Full copy of both sets, not a delta
    return VersionSnapshot(
        files=[FileRead.model_validate(f).model_dump(mode="json") for f in files],
        blocks=[BlockRead.model_validate(b).model_dump(mode="json") for b in blocks],
    ).model_dump()


async def _prune(
    db: AsyncSession, project_id: uuid.UUID, keep_count: int, preserve_id: int | None = None
) -> int:
    result = await db.execute(
        select(VFSVersion.id)
        .where(VFSVersion.project_id == project_id)
        .order_by(VFSVersion.created_at.desc(), VFSVersion.id.desc())
    )
    ids = list(result.scalars().all())
    kept = ids[:keep_count]
    if preserve_id in ids and preserve_id not in kept and len(kept) > 1:
        # The preserved version takes the slot of the oldest one kept
        kept[-1] = preserve_id
    stale_ids = [version_id for version_id in ids if version_id not in kept]
    if stale_ids:
        await db.execute(delete(VFSVersion).where(VFSVersion.id.in_(stale_ids)))
    return len(stale_ids)


async def _insert_version(
    db: AsyncSession,
    project_id: uuid.UUID,
    files: Iterable,
    blocks: Iterable,
    trigger: VersionTrigger,
    label: str | None,
    metadata: VersionMetadata | None,
    keep_count: int | None,
    preserve_id: int | None = None,
) -> VFSVersion:
    version = VFSVersion(
        project_id=project_id,
        label=label,
        snapshot=_snapshot_payload(files, blocks),
        trigger=trigger,
        meta=metadata.model_dump(exclude_none=True) if metadata else None,
    )
    db.add(version)
    await db.flush()

    keep = settings.version_retention if keep_count is None else keep_count
    removed = await _prune(db, project_id, keep, preserve_id)
    if removed:
        logger.debug("Pruned %d old versions of project %s", removed, project_id)
    return version


async def create_snapshot(
    db: AsyncSession,
    project_id: uuid.UUID,
    files: Iterable,
    blocks: Iterable,
    trigger: VersionTrigger = VersionTrigger.AUTO,
    label: str | None = None,
    metadata: VersionMetadata | None = None,
    keep_count: int | None = None,
) -> VFSVersion:
    """Persist a full copy of ``files`` and ``blocks`` and prune old versions."""
    version = await _insert_version(db, project_id, files, blocks, trigger, label, metadata, keep_count)
    await db.commit()
    await db.refresh(version)
    logger.info("Created %s version %s for project %s", version.trigger.value, version.id, project_id)
    return version


async def cleanup_old_versions(db: AsyncSession, project_id: uuid.UUID, keep_count: int | None = None) -> int:
    """Delete all but the newest ``keep_count`` versions. Safe to repeat."""
    removed = await _prune(db, project_id, settings.version_retention if keep_count is None else keep_count)
    await db.commit()
    return removed


async def snapshot_before_risky_operation(
    db: AsyncSession,
    project_id: uuid.UUID,
    operation: str,
    user_id: str | None = None,
    description: str | None = None,
    preserve_id: int | None = None,
) -> VFSVersion:
    """Snapshot inside the caller's transaction.

    The version is flushed, not committed, so it lands together with the
    operation it guards. Any failure raises ``SnapshotError`` and the caller
    must not go on with the operation.
    """
    try:
        files, blocks = await capture_project_state(db, project_id)
        return await _insert_version(
            db, project_id, files, blocks,
            trigger=VersionTrigger.BEFORE_RISKY_OPERATION,
            label=None,
            metadata=VersionMetadata(operation=operation, user_id=user_id, description=description),
            keep_count=None,
            preserve_id=preserve_id,
        )
    except SQLAlchemyError as exc:
        logger.error("Snapshot before %s failed for project %s: %s", operation, project_id, exc)
        await db.rollback()
        raise SnapshotError(f"Could not snapshot project before {operation}; operation aborted") from exc


async def record_snapshot(
    db: AsyncSession,
    project_id: uuid.UUID,
    trigger: VersionTrigger = VersionTrigger.MANUAL,
    label: str | None = None,
    metadata: VersionMetadata | None = None,
) -> VFSVersion | None:
    """Snapshot the current state for auto/manual triggers.

    Failures are logged and reported as ``None``; they never break the
    surrounding workflow.
    """
    try:
        files, blocks = await capture_project_state(db, project_id)
        return await create_snapshot(db, project_id, files, blocks, trigger, label, metadata)
    except SQLAlchemyError:
        logger.exception("Failed to record %s snapshot for project %s", trigger.value, project_id)
        await db.rollback()
        return None


async def list_versions(db: AsyncSession, project_id: uuid.UUID, limit: int | None = None) -> list[VFSVersion]:
    query = (
        select(VFSVersion)
        .where(VFSVersion.project_id == project_id)
        .order_by(VFSVersion.created_at.desc(), VFSVersion.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_version(db: AsyncSession, project_id: uuid.UUID, version_id: int) -> VFSVersion | None:
    version = await db.get(VFSVersion, version_id, populate_existing=True)
    if not version or version.project_id != project_id:
        return None
    return version


async def get_version_by_label(db: AsyncSession, project_id: uuid.UUID, label: str) -> VFSVersion | None:
    result = await db.execute(
        select(VFSVersion)
        .where(VFSVersion.project_id == project_id, VFSVersion.label == label)
        .order_by(VFSVersion.created_at.desc(), VFSVersion.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_snapshot(db: AsyncSession, project_id: uuid.UUID, version_id: int) -> VersionSnapshot | None:
    version = await get_version(db, project_id, version_id)
    if not version:
        return None
    return VersionSnapshot.model_validate(version.snapshot)


def _parents_first(blocks: list[BlockRead]) -> list[BlockRead]:
    """Order blocks so every parent precedes its children.

    Blocks whose parent is missing from the set, or that sit on a parent
    cycle, are detached and become roots.
    """
    by_id = {b.id: b for b in blocks}
    children: dict[uuid.UUID, list[BlockRead]] = {}
    roots: list[BlockRead] = []
    for block in blocks:
        parent = by_id.get(block.parent_block_id) if block.parent_block_id else None
        if parent is None or parent.file_id != block.file_id:
            roots.append(block)
        else:
            children.setdefault(parent.id, []).append(block)

    ordered: list[BlockRead] = []
    seen: set[uuid.UUID] = set()
    queue = deque(roots)
    while queue:
        block = queue.popleft()
        if block.id in seen:
            continue
        seen.add(block.id)
        if block.parent_block_id is not None and block.parent_block_id not in seen:
            block = block.model_copy(update={"parent_block_id": None})
        ordered.append(block)
        queue.extend(children.get(block.id, []))

    for block in blocks:
        if block.id not in seen:
            logger.warning("Detaching block %s from parent cycle during restore", block.id)
            ordered.append(block.model_copy(update={"parent_block_id": None}))
    return ordered


async def restore_version(
    db: AsyncSession,
    project_id: uuid.UUID,
    version_id: int,
    user_id: str | None = None,
) -> VFSVersion | None:
    """Replace the project's files and blocks with a stored snapshot.

    The current state is snapshotted first so the restore itself can be
    undone.
    """
    if await lock_project(db, project_id) is None:
        return None
    source = await get_version(db, project_id, version_id)
    if not source:
        return None

    snapshot = VersionSnapshot.model_validate(source.snapshot)
    files = [FileRead.model_validate(f) for f in snapshot.files]
    report = ownership.validate_all_ownership(
        [BlockRead.model_validate(b) for b in snapshot.blocks], files
    )
    if report.orphans:
        logger.error("Dropping %d orphan blocks while restoring version %s", len(report.orphans), version_id)

    await snapshot_before_risky_operation(
        db, project_id, "restore_version", user_id=user_id,
        description=f"Before restoring version {version_id}",
        preserve_id=source.id,
    )

    await db.execute(delete(VFSBlock).where(VFSBlock.project_id == project_id))
    await db.execute(delete(VFSFile).where(VFSFile.project_id == project_id))
    await db.flush()

    for file in files:
        db.add(VFSFile(**file.model_dump(exclude={"project_id"}, exclude_none=True), project_id=project_id))
    await db.flush()

    for block in _parents_first(report.valid):
        data = block.model_dump(mode="json", include=_BLOCK_CONTENT_FIELDS)
        data.update(block.model_dump(include={"id", "file_id", "parent_block_id", "created_at"}, exclude_none=True))
        db.add(VFSBlock(**data, project_id=project_id))
    await db.commit()
    logger.info("Restored project %s to version %s", project_id, version_id)
    return source
