import uuid

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from pagecraft.models.project import Project
from pagecraft.models.vfs_block import VFSBlock
from pagecraft.models.vfs_file import VFSFile
from pagecraft.models.vfs_version import VFSVersion
from pagecraft.schemas.project import ProjectCreate, ProjectSummary, ProjectUpdate
from pagecraft.schemas.vfs_block import BlockRead
from pagecraft.templates.init_project import DEFAULT_FILES, DEFAULT_HOME_BLOCKS
from pagecraft.vfs import ownership, registry


def _seed_blocks(db: AsyncSession, file: VFSFile, specs: list[dict], parent_id: uuid.UUID | None = None) -> None:
    for order, seed in enumerate(specs):
        block = VFSBlock(
            id=uuid.uuid4(),
            file_id=file.id,
            project_id=file.project_id,
            type=seed["type"],
            props=seed.get("props", {}),
            styles=seed.get("styles", {"base": []}),
            order=order,
            parent_block_id=parent_id,
        )
        db.add(block)
        _seed_blocks(db, file, seed.get("children", []), block.id)


async def create_project(db: AsyncSession, data: ProjectCreate) -> Project:
    project = Project(title=data.title, description=data.description, status="draft")
    db.add(project)
    await db.flush()

    # Seed the default files
    for file_data in DEFAULT_FILES:
        draft = registry.create_file(project.id, file_data["name"], file_data["type"], file_data["schema"])
        file = VFSFile(id=uuid.uuid4(), is_home=file_data.get("is_home", False), **draft.model_dump())
        db.add(file)
        if file.is_home:
            await db.flush()
            _seed_blocks(db, file, DEFAULT_HOME_BLOCKS)

    await db.commit()
    await db.refresh(project)
    return project


async def list_projects(db: AsyncSession) -> list[Project]:
    result = await db.execute(select(Project).order_by(Project.created_at.desc()))
    return list(result.scalars().all())


async def get_project(db: AsyncSession, project_id: uuid.UUID) -> Project | None:
    return await db.get(Project, project_id)


async def lock_project(db: AsyncSession, project_id: uuid.UUID) -> Project | None:
    """Load the project row with a write lock, serializing writers per project."""
    result = await db.execute(select(Project).where(Project.id == project_id).with_for_update())
    return result.scalar_one_or_none()


async def update_project(db: AsyncSession, project_id: uuid.UUID, data: ProjectUpdate) -> Project | None:
    project = await db.get(Project, project_id)
    if not project:
        return None
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(project, field, value)
    await db.commit()
    await db.refresh(project)
    return project


async def delete_project(db: AsyncSession, project_id: uuid.UUID) -> bool:
    project = await db.get(Project, project_id)
    if not project:
        return False
    # Explicit deletes in dependency order
    await db.execute(delete(VFSVersion).where(VFSVersion.project_id == project_id))
    await db.execute(delete(VFSBlock).where(VFSBlock.project_id == project_id))
    await db.execute(delete(VFSFile).where(VFSFile.project_id == project_id))
    await db.execute(delete(Project).where(Project.id == project_id))
    await db.commit()
    return True


async def summarize_project(db: AsyncSession, project_id: uuid.UUID) -> ProjectSummary | None:
    if not await db.get(Project, project_id):
        return None
    files = list((await db.execute(select(VFSFile).where(VFSFile.project_id == project_id))).scalars().all())
    blocks = [
        BlockRead.model_validate(b)
        for b in (await db.execute(select(VFSBlock).where(VFSBlock.project_id == project_id))).scalars().all()
    ]
    version_count = (
        await db.execute(select(func.count(VFSVersion.id)).where(VFSVersion.project_id == project_id))
    ).scalar_one()
    report = ownership.validate_all_ownership(blocks, files)
    return ProjectSummary(
        project_id=project_id,
        file_count=sum(1 for f in files if not f.is_archived),
        archived_file_count=sum(1 for f in files if f.is_archived),
        home_file_id=next((f.id for f in files if f.is_home), None),
        blocks_per_file=ownership.count_blocks_per_file(report.valid),
        orphan_block_count=len(report.orphans),
        version_count=version_count,
    )
