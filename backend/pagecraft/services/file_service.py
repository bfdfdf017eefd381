import logging
import uuid
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pagecraft.models.vfs_block import VFSBlock
from pagecraft.models.vfs_file import VFSFile
from pagecraft.schemas.vfs_file import AllowedOperations, FileCreate, FolderNode, OperationResult
from pagecraft.services import version_service
from pagecraft.services.project_service import lock_project
from pagecraft.vfs import guards, registry
from pagecraft.vfs.errors import InvalidPathError, PathConflictError, PolicyViolationError
from pagecraft.vfs.types import FileOperation, FileType

logger = logging.getLogger(__name__)


async def list_files(db: AsyncSession, project_id: uuid.UUID, include_archived: bool = False) -> list[VFSFile]:
    query = select(VFSFile).where(VFSFile.project_id == project_id)
    if not include_archived:
        query = query.where(VFSFile.is_archived.is_(False))
    result = await db.execute(query.order_by(VFSFile.path, VFSFile.created_at))
    return list(result.scalars().all())


async def get_file(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID) -> VFSFile | None:
    # Reload so rows expired by an earlier rollback never lazy-load
    file = await db.get(VFSFile, file_id, populate_existing=True)
    if not file or file.project_id != project_id:
        return None
    return file


async def get_file_by_path(db: AsyncSession, project_id: uuid.UUID, path: str) -> VFSFile | None:
    result = await db.execute(
        select(VFSFile).where(
            VFSFile.project_id == project_id,
            VFSFile.path == path,
            VFSFile.is_archived.is_(False),
        )
    )
    return result.scalar_one_or_none()


async def _ensure_path_available(
    db: AsyncSession, project_id: uuid.UUID, path: str, exclude_id: uuid.UUID | None = None
) -> None:
    existing = await get_file_by_path(db, project_id, path)
    if existing and existing.id != exclude_id:
        raise PathConflictError(f"A file already exists at {path}")


def _check_slug(name: str) -> str:
    slug = registry.slugify(name)
    if not slug:
        raise InvalidPathError(f"File name '{name}' has no usable characters")
    return slug


def _check_folder(folder: str) -> str:
    segments = [registry.slugify(part) for part in folder.split("/") if part]
    if not segments or not all(segments):
        raise InvalidPathError(f"Folder '{folder}' is not a valid path")
    return "/" + "/".join(segments)


async def _commit(db: AsyncSession, path: str) -> None:
    # Unique indexes catch races the path check above missed
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise PathConflictError(f"A file already exists at {path}") from exc


def _check_home_candidate(file_type: FileType, is_archived: bool = False) -> None:
    if file_type != FileType.PAGE:
        raise PolicyViolationError(f"Only page files can be the home page, not {FileType(file_type).value} files")
    if is_archived:
        raise PolicyViolationError("An archived page cannot be the home page")


async def _clear_home(db: AsyncSession, project_id: uuid.UUID, keep_id: uuid.UUID | None = None) -> None:
    # Siblings are unset before the target is set so the partial unique index
    # never sees two home pages
    query = update(VFSFile).where(VFSFile.project_id == project_id, VFSFile.is_home.is_(True))
    if keep_id is not None:
        query = query.where(VFSFile.id != keep_id)
    await db.execute(query.values(is_home=False).execution_options(synchronize_session="fetch"))


def check_operation(file: VFSFile, operation: FileOperation) -> OperationResult:
    return registry.validate_operation(file, operation)


def allowed_operations(file: VFSFile) -> AllowedOperations:
    return registry.get_allowed_operations(file)


async def create_file(db: AsyncSession, project_id: uuid.UUID, data: FileCreate) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    _check_slug(data.name)
    draft = registry.create_file(project_id, data.name, data.type, data.data_schema)
    await _ensure_path_available(db, project_id, draft.path)

    file = VFSFile(id=uuid.uuid4(), **draft.model_dump())
    if data.is_home:
        _check_home_candidate(data.type)
        await _clear_home(db, project_id)
        file.is_home = True
    db.add(file)

    await _commit(db, draft.path)
    await db.refresh(file)
    logger.info("Created %s file %s in project %s", file.type.value, file.path, project_id)
    return file


async def update_file_schema(
    db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID, data_schema: dict[str, Any]
) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await get_file(db, project_id, file_id)
    if not file:
        return None
    guards.require_policy_check(check_operation(file, FileOperation.UI_EDIT), file, FileOperation.UI_EDIT)
    file.data_schema = dict(data_schema)
    await db.commit()
    await db.refresh(file)
    return file


async def rename_file(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID, name: str) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await get_file(db, project_id, file_id)
    if not file:
        return None
    guards.require_policy_check(check_operation(file, FileOperation.RENAME), file, FileOperation.RENAME)

    slug = _check_slug(name)
    parsed = registry.parse_path(file.path)
    new_path = registry.join_path(parsed.folder, f"{slug}.{parsed.extension}")
    if not file.is_archived:
        await _ensure_path_available(db, project_id, new_path, exclude_id=file.id)

    file.name = name
    file.path = new_path
    await _commit(db, new_path)
    await db.refresh(file)
    return file


async def move_file(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID, folder: str) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await get_file(db, project_id, file_id)
    if not file:
        return None
    guards.require_policy_check(check_operation(file, FileOperation.MOVE), file, FileOperation.MOVE)

    folder = _check_folder(folder)
    parsed = registry.parse_path(file.path)
    new_path = registry.join_path(folder, f"{parsed.name}.{parsed.extension}")
    if not file.is_archived:
        await _ensure_path_available(db, project_id, new_path, exclude_id=file.id)

    file.path = new_path
    await _commit(db, new_path)
    await db.refresh(file)
    return file


async def raw_edit_file(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID, content: str) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await get_file(db, project_id, file_id)
    if not file:
        return None
    guards.require_policy_check(check_operation(file, FileOperation.RAW_EDIT), file, FileOperation.RAW_EDIT)
    file.data_schema = {**file.data_schema, "content": content}
    await db.commit()
    await db.refresh(file)
    return file


async def archive_file(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await get_file(db, project_id, file_id)
    if not file:
        return None
    guards.require_policy_check(check_operation(file, FileOperation.ARCHIVE), file, FileOperation.ARCHIVE)
    guards.stamp_archive(file)
    file.is_home = False
    await db.commit()
    await db.refresh(file)
    logger.info("Archived file %s in project %s", file.path, project_id)
    return file


async def unarchive_file(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await get_file(db, project_id, file_id)
    if not file:
        return None
    if file.is_archived:
        await _ensure_path_available(db, project_id, file.path, exclude_id=file.id)
        file.is_archived = False
        file.archived_at = None
        await _commit(db, file.path)
        await db.refresh(file)
    return file


async def delete_file(
    db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID, user_id: str | None = None
) -> bool:
    """Hard-delete a free-code file and its blocks, snapshotting first."""
    if await lock_project(db, project_id) is None:
        return False
    file = await get_file(db, project_id, file_id)
    if not file:
        return False
    guards.require_policy_check(check_operation(file, FileOperation.DELETE), file, FileOperation.DELETE)

    await version_service.snapshot_before_risky_operation(
        db, project_id, "delete_file", user_id=user_id, description=f"Before deleting {file.path}",
    )
    await db.execute(delete(VFSBlock).where(VFSBlock.file_id == file.id))
    await db.delete(file)
    await db.commit()
    logger.info("Deleted file %s from project %s", file.path, project_id)
    return True


async def set_home_file(db: AsyncSession, project_id: uuid.UUID, file_id: uuid.UUID) -> VFSFile | None:
    if await lock_project(db, project_id) is None:
        return None
    file = await get_file(db, project_id, file_id)
    if not file:
        return None
    _check_home_candidate(file.type, file.is_archived)
    await _clear_home(db, project_id, keep_id=file.id)
    file.is_home = True
    await db.commit()
    await db.refresh(file)
    return file


async def get_folder_tree(db: AsyncSession, project_id: uuid.UUID) -> list[FolderNode]:
    return registry.build_folder_tree(await list_files(db, project_id))
