"""
Tests for pagecraft.services.block_service against a SQLite database.
"""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy import select

from pagecraft.models import Project, VFSBlock, VFSVersion
from pagecraft.schemas.vfs_block import (
    BlockAction,
    BlockConstraints,
    BlockCreate,
    BlockEvent,
    BlockMove,
    BlockUpdate,
    TailwindStyles,
)
from pagecraft.schemas.vfs_file import FileCreate
from pagecraft.services import block_service, file_service
from pagecraft.vfs.errors import (
    ArchivedOwnerError,
    CrossFileParentError,
    IntegrityViolationError,
    InvalidReorderError,
    MissingOwnerError,
    PolicyViolationError,
)
from pagecraft.vfs.types import ActionType, EventTrigger, FileType, VersionTrigger


@pytest_asyncio.fixture
async def page(db, project):
    return await file_service.create_file(db, project.id, FileCreate(name="Home", type=FileType.PAGE))


@pytest_asyncio.fixture
async def component(db, project):
    return await file_service.create_file(db, project.id, FileCreate(name="Hero", type=FileType.COMPONENT))


async def _block(db, project, file, block_type="section", **kwargs):
    return await block_service.create_block(db, project.id, BlockCreate(file_id=file.id, type=block_type, **kwargs))


class TestCreate:
    async def test_create_block_appends_to_siblings(self, db, project, page):
        first = await _block(db, project, page)
        second = await _block(db, project, page)
        nested = await _block(db, project, page, "text", parent_block_id=first.id)

        assert (first.order, second.order, nested.order) == (0, 1, 0)
        assert first.project_id == project.id

    async def test_create_block_stores_events_and_styles(self, db, project, page):
        block = await _block(
            db, project, page, "button",
            props={"label": "Buy"},
            events=[BlockEvent(trigger=EventTrigger.CLICK, actions=[
                BlockAction(type=ActionType.NAVIGATE, config={"to": "/checkout"}),
            ])],
            styles=TailwindStyles(base=["px-4", "py-2"], hover=["bg-blue-700"]),
        )

        assert block.events == [{"trigger": "click", "actions": [{"type": "navigate", "config": {"to": "/checkout"}}]}]
        assert block.styles == {"base": ["px-4", "py-2"], "hover": ["bg-blue-700"]}
        assert block.constraints["can_delete"] is True

    async def test_missing_owner_file_is_rejected(self, db, project):
        with pytest.raises(MissingOwnerError):
            await block_service.create_block(db, project.id, BlockCreate(file_id=uuid.uuid4(), type="section"))

    async def test_file_from_other_project_counts_as_missing(self, db, project, page):
        other = uuid.uuid4()
        db.add(Project(id=other, title="Other"))
        await db.commit()
        with pytest.raises(MissingOwnerError):
            await block_service.create_block(db, other, BlockCreate(file_id=page.id, type="section"))

    async def test_archived_owner_file_is_rejected(self, db, project, page):
        await file_service.archive_file(db, project.id, page.id)
        with pytest.raises(ArchivedOwnerError):
            await _block(db, project, page)

    async def test_cross_file_parent_is_rejected(self, db, project, page, component):
        parent = await _block(db, project, component)
        with pytest.raises(CrossFileParentError):
            await _block(db, project, page, parent_block_id=parent.id)

    async def test_missing_parent_is_not_found(self, db, project, page):
        assert await _block(db, project, page, parent_block_id=uuid.uuid4()) is None
        assert await block_service.list_file_blocks(db, project.id, page.id) == []

    async def test_unknown_project(self, db, page):
        assert await block_service.create_block(db, uuid.uuid4(), BlockCreate(file_id=page.id, type="x")) is None


class TestUpdate:
    async def test_update_props_and_styles(self, db, project, page):
        block = await _block(db, project, page, "heading", props={"text": "Hi"})
        updated = await block_service.update_block(
            db, project.id, block.id, BlockUpdate(props={"text": "Hello"}, styles=TailwindStyles(base=["text-xl"])),
        )
        assert updated.props == {"text": "Hello"}
        assert updated.styles == {"base": ["text-xl"]}

    async def test_locked_props_cannot_change(self, db, project, page):
        block = await _block(
            db, project, page, "logo",
            props={"src": "/logo.svg", "alt": "Logo"},
            constraints=BlockConstraints(locked_props=["src"]),
        )
        with pytest.raises(PolicyViolationError, match="'src'"):
            await block_service.update_block(db, project.id, block.id, BlockUpdate(props={"src": "/x.svg", "alt": "Logo"}))

        updated = await block_service.update_block(
            db, project.id, block.id, BlockUpdate(props={"src": "/logo.svg", "alt": "Brand"})
        )
        assert updated.props["alt"] == "Brand"

    async def test_non_editable_block(self, db, project, page):
        block = await _block(db, project, page, constraints=BlockConstraints(can_edit=False))
        with pytest.raises(PolicyViolationError):
            await block_service.update_block(db, project.id, block.id, BlockUpdate(props={"a": 1}))

    async def test_constraints_of_non_editable_block_are_frozen(self, db, project, page):
        block = await _block(
            db, project, page, "banner",
            props={"title": "A"},
            constraints=BlockConstraints(can_edit=False, locked_props=["title"]),
        )
        with pytest.raises(PolicyViolationError):
            await block_service.update_block(db, project.id, block.id, BlockUpdate(constraints=BlockConstraints()))
        with pytest.raises(PolicyViolationError):
            await block_service.update_block(db, project.id, block.id, BlockUpdate(props={"title": "B"}))

        row = await block_service.get_block(db, project.id, block.id)
        assert row.props == {"title": "A"}
        assert row.constraints["can_edit"] is False

    async def test_locked_props_cannot_be_unlocked(self, db, project, page):
        block = await _block(
            db, project, page, "logo",
            props={"src": "/logo.svg"},
            constraints=BlockConstraints(locked_props=["src"]),
        )
        with pytest.raises(PolicyViolationError, match="Cannot unlock src"):
            await block_service.update_block(db, project.id, block.id, BlockUpdate(constraints=BlockConstraints()))

        locked_more = await block_service.update_block(
            db, project.id, block.id, BlockUpdate(constraints=BlockConstraints(locked_props=["src", "alt"]))
        )
        assert locked_more.constraints["locked_props"] == ["src", "alt"]

    async def test_missing_block(self, db, project):
        assert await block_service.update_block(db, project.id, uuid.uuid4(), BlockUpdate()) is None


class TestMove:
    async def test_reparent_within_file(self, db, project, page):
        container = await _block(db, project, page)
        item = await _block(db, project, page, "text")

        moved = await block_service.move_block(db, project.id, item.id, BlockMove(parent_block_id=container.id, order=0))

        assert moved.parent_block_id == container.id
        tree = await block_service.get_block_tree(db, project.id, page.id)
        assert [n.block.id for n in tree] == [container.id]
        assert [n.block.id for n in tree[0].children] == [item.id]

    async def test_cannot_nest_inside_own_subtree(self, db, project, page):
        outer = await _block(db, project, page)
        inner = await _block(db, project, page, parent_block_id=outer.id)
        with pytest.raises(IntegrityViolationError):
            await block_service.move_block(db, project.id, outer.id, BlockMove(parent_block_id=inner.id, order=0))

    async def test_move_under_missing_parent_is_not_found(self, db, project, page):
        block = await _block(db, project, page)
        moved = await block_service.move_block(db, project.id, block.id, BlockMove(parent_block_id=uuid.uuid4(), order=0))
        assert moved is None

    async def test_unmovable_block(self, db, project, page):
        block = await _block(db, project, page, constraints=BlockConstraints(can_move=False))
        with pytest.raises(PolicyViolationError):
            await block_service.move_block(db, project.id, block.id, BlockMove(order=3))


class TestDelete:
    async def test_delete_leaf_block_without_snapshot(self, db, project, page):
        block = await _block(db, project, page)
        assert await block_service.delete_block(db, project.id, block.id) is True
        assert await block_service.get_block(db, project.id, block.id) is None
        assert (await db.execute(select(VFSVersion))).scalars().all() == []

    async def test_delete_subtree_snapshots_first(self, db, project, page):
        root = await _block(db, project, page)
        child = await _block(db, project, page, parent_block_id=root.id)
        await _block(db, project, page, parent_block_id=child.id)
        keep = await _block(db, project, page)

        assert await block_service.delete_block(db, project.id, root.id) is True

        remaining = await block_service.list_file_blocks(db, project.id, page.id)
        assert [b.id for b in remaining] == [keep.id]
        version = (await db.execute(select(VFSVersion))).scalar_one()
        assert version.trigger == VersionTrigger.BEFORE_RISKY_OPERATION
        assert len(version.snapshot["blocks"]) == 4

    async def test_undeletable_block(self, db, project, page):
        block = await _block(db, project, page, constraints=BlockConstraints(can_delete=False))
        with pytest.raises(PolicyViolationError):
            await block_service.delete_block(db, project.id, block.id)


class TestTransfer:
    async def test_transfer_all_blocks_to_component(self, db, project, page, component):
        existing = await _block(db, project, component)
        section = await _block(db, project, page)
        title = await _block(db, project, page, "heading", parent_block_id=section.id)

        moved = await block_service.transfer_file_blocks(db, project.id, page.id, component.id)

        assert {b.id for b in moved} == {existing.id, section.id, title.id}
        assert await block_service.list_file_blocks(db, project.id, page.id) == []
        section_row = await block_service.get_block(db, project.id, section.id)
        assert section_row.file_id == component.id
        # appended after the component's own roots
        assert section_row.order == 1
        assert (await block_service.get_block(db, project.id, title.id)).parent_block_id == section.id
        version = (await db.execute(select(VFSVersion))).scalar_one()
        assert version.meta["operation"] == "transfer_blocks"

    async def test_transfer_to_archived_file_is_rejected(self, db, project, page, component):
        await _block(db, project, page)
        await file_service.archive_file(db, project.id, component.id)
        with pytest.raises(ArchivedOwnerError):
            await block_service.transfer_file_blocks(db, project.id, page.id, component.id)

    async def test_transfer_selected_subtree(self, db, project, page, component):
        wrapper = await _block(db, project, page)
        card = await _block(db, project, page, parent_block_id=wrapper.id)
        image = await _block(db, project, page, "image", parent_block_id=card.id)
        stay = await _block(db, project, page)

        await block_service.transfer_selected_blocks(db, project.id, [card.id], component.id)

        card_row = await block_service.get_block(db, project.id, card.id)
        image_row = await block_service.get_block(db, project.id, image.id)
        assert card_row.file_id == component.id
        # parent stayed behind, so the card becomes a root of the component
        assert card_row.parent_block_id is None
        assert image_row.file_id == component.id
        assert image_row.parent_block_id == card.id
        remaining = await block_service.list_file_blocks(db, project.id, page.id)
        assert {b.id for b in remaining} == {wrapper.id, stay.id}

    async def test_transfer_selected_unknown_block(self, db, project, component):
        assert await block_service.transfer_selected_blocks(db, project.id, [uuid.uuid4()], component.id) is None


class TestReorder:
    async def test_reorder_two_blocks(self, db, project, page):
        b1 = await _block(db, project, page)
        b2 = await _block(db, project, page)

        result = await block_service.reorder_file_blocks(db, project.id, page.id, [b2.id, b1.id])

        assert [b.id for b in result] == [b2.id, b1.id]

    async def test_reorder_must_list_every_block(self, db, project, page):
        b1 = await _block(db, project, page)
        await _block(db, project, page)
        with pytest.raises(InvalidReorderError):
            await block_service.reorder_file_blocks(db, project.id, page.id, [b1.id])

    async def test_reorder_rejects_foreign_and_duplicate_ids(self, db, project, page, component):
        b1 = await _block(db, project, page)
        foreign = await _block(db, project, component)
        with pytest.raises(InvalidReorderError):
            await block_service.reorder_file_blocks(db, project.id, page.id, [b1.id, foreign.id])
        with pytest.raises(InvalidReorderError):
            await block_service.reorder_file_blocks(db, project.id, page.id, [b1.id, b1.id])


async def test_validate_project_ownership_and_counts(db, project, page, component):
    await _block(db, project, page)
    await _block(db, project, page)
    await _block(db, project, component)

    report = await block_service.validate_project_ownership(db, project.id)
    counts = await block_service.count_blocks(db, project.id)

    assert len(report.valid) == 3
    assert report.orphans == []
    assert counts == {page.id: 2, component.id: 1}
    rows = (await db.execute(select(VFSBlock))).scalars().all()
    assert len(rows) == 3


async def test_update_block_locks_the_project(db, project, page, monkeypatch):
    block = await _block(db, project, page)
    locked = []
    real_lock = block_service.lock_project

    async def recording_lock(session, project_id):
        locked.append(project_id)
        return await real_lock(session, project_id)

    monkeypatch.setattr(block_service, "lock_project", recording_lock)

    await block_service.update_block(db, project.id, block.id, BlockUpdate(props={"a": 1}))

    assert locked == [project.id]
