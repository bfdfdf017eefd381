"""Block ownership ledger.

Every block belongs to exactly one file; there are no orphan blocks. The
functions here answer ownership and tree questions over an in-memory working
set of blocks and files. They never persist anything and never mutate their
arguments: transfer and reorder return new lists in which changed blocks are
fresh copies, so callers can preview a change before committing it.

Sorting is stable, so blocks with equal ``order`` keep their input order.
"""
import logging
import uuid
from collections import Counter, deque
from typing import Iterable, Sequence

from pagecraft.schemas.vfs_block import BlockRead, BlockTreeNode, OwnershipReport

logger = logging.getLogger(__name__)


def _by_order(blocks: Iterable[BlockRead]) -> list[BlockRead]:
    return sorted(blocks, key=lambda b: b.order)


def validate_ownership(block: BlockRead, files: Iterable) -> bool:
    if any(f.id == block.file_id for f in files):
        return True
    logger.error("Orphan block detected: %s (file_id: %s)", block.id, block.file_id)
    return False


def validate_all_ownership(blocks: Iterable[BlockRead], files: Iterable) -> OwnershipReport:
    file_ids = {f.id for f in files}
    valid: list[BlockRead] = []
    orphans: list[BlockRead] = []
    for block in blocks:
        if block.file_id in file_ids:
            valid.append(block)
        else:
            orphans.append(block)
            logger.error("Orphan block: %s (file_id: %s)", block.id, block.file_id)
    return OwnershipReport(valid=valid, orphans=orphans)


def get_owner_file(block: BlockRead, files: Iterable):
    return next((f for f in files if f.id == block.file_id), None)


def get_file_blocks(file_id: uuid.UUID, blocks: Iterable[BlockRead]) -> list[BlockRead]:
    return _by_order(b for b in blocks if b.file_id == file_id)


def get_root_blocks(file_id: uuid.UUID, blocks: Iterable[BlockRead]) -> list[BlockRead]:
    return _by_order(b for b in blocks if b.file_id == file_id and b.parent_block_id is None)


def get_child_blocks(parent_block_id: uuid.UUID, blocks: Iterable[BlockRead]) -> list[BlockRead]:
    return _by_order(b for b in blocks if b.parent_block_id == parent_block_id)


def build_block_tree(file_id: uuid.UUID, blocks: Iterable[BlockRead]) -> list[BlockTreeNode]:
    """Nest a file's blocks under their parents, starting from root blocks.

    Each block is placed at most once. Blocks that are only reachable through a
    parent cycle (or whose parent lives in another file) never hang off a root
    and are left out of the forest.
    """
    file_blocks = get_file_blocks(file_id, blocks)
    children: dict[uuid.UUID | None, list[BlockRead]] = {}
    for block in file_blocks:
        children.setdefault(block.parent_block_id, []).append(block)

    visited: set[uuid.UUID] = set()

    def build_children(parent_id: uuid.UUID | None) -> list[BlockTreeNode]:
        nodes = []
        for block in children.get(parent_id, []):
            if block.id in visited:
                continue
            visited.add(block.id)
            nodes.append(BlockTreeNode(block=block, children=build_children(block.id)))
        return nodes

    forest = build_children(None)
    skipped = len(file_blocks) - len(visited)
    if skipped:
        logger.warning("Block tree for file %s skipped %d unreachable blocks", file_id, skipped)
    return forest


def collect_descendants(block_id: uuid.UUID, blocks: Iterable[BlockRead]) -> list[uuid.UUID]:
    """Ids of every block below ``block_id``, in breadth-first order."""
    children: dict[uuid.UUID, list[uuid.UUID]] = {}
    for block in blocks:
        if block.parent_block_id is not None:
            children.setdefault(block.parent_block_id, []).append(block.id)

    seen = {block_id}
    result: list[uuid.UUID] = []
    queue = deque([block_id])
    while queue:
        current = queue.popleft()
        for child_id in children.get(current, []):
            if child_id in seen:
                continue
            seen.add(child_id)
            result.append(child_id)
            queue.append(child_id)
    return result


def transfer_blocks(
    blocks: Sequence[BlockRead], from_file_id: uuid.UUID, to_file_id: uuid.UUID
) -> list[BlockRead]:
    """Move every block of ``from_file_id`` to ``to_file_id``.

    Used when a page section is promoted to a reusable component.
    """
    return [
        block.model_copy(update={"file_id": to_file_id}) if block.file_id == from_file_id else block
        for block in blocks
    ]


def transfer_specific_blocks(
    blocks: Sequence[BlockRead], block_ids: Iterable[uuid.UUID], to_file_id: uuid.UUID
) -> list[BlockRead]:
    ids_to_transfer = set(block_ids)
    return [
        block.model_copy(update={"file_id": to_file_id}) if block.id in ids_to_transfer else block
        for block in blocks
    ]


def count_blocks_per_file(blocks: Iterable[BlockRead]) -> dict[uuid.UUID, int]:
    return dict(Counter(block.file_id for block in blocks))


def reorder_blocks(
    blocks: Sequence[BlockRead], file_id: uuid.UUID, new_order: Sequence[uuid.UUID]
) -> list[BlockRead]:
    """Give each listed block of ``file_id`` its index in ``new_order``.

    Blocks of other files and blocks missing from ``new_order`` keep their
    current order value.
    """
    order_map = {block_id: index for index, block_id in enumerate(new_order)}
    return [
        block.model_copy(update={"order": order_map[block.id]})
        if block.file_id == file_id and block.id in order_map
        else block
        for block in blocks
    ]
