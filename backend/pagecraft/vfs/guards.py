"""Write-time guards run by the services before anything is flushed.

The ledger only answers questions; these checks are what actually stop an
invalid block or file from being persisted.
"""
import logging
import uuid
from datetime import datetime, timezone

from pagecraft.schemas.vfs_file import OperationResult
from pagecraft.vfs.errors import (
    ArchivedOwnerError,
    CrossFileParentError,
    MissingOwnerError,
    PolicyNotCheckedError,
    PolicyViolationError,
)
from pagecraft.vfs.types import STRUCTURAL_OPERATIONS, FileOperation

logger = logging.getLogger(__name__)


def ensure_block_owner(file, file_id: uuid.UUID):
    """Owner file of a new or reassigned block must exist and be active."""
    if file is None:
        logger.error("Cannot save block: owner file %s does not exist", file_id)
        raise MissingOwnerError(f"Cannot save block: owner file {file_id} does not exist")
    if file.is_archived:
        logger.error("Cannot add block to archived file %s", file_id)
        raise ArchivedOwnerError(f"Cannot add block to archived file {file_id}")
    return file


def ensure_same_file_parent(parent, file_id: uuid.UUID, parent_block_id: uuid.UUID) -> None:
    if parent.file_id != file_id:
        logger.error(
            "Rejected cross-file parent: block %s belongs to file %s, not %s",
            parent_block_id, parent.file_id, file_id,
        )
        raise CrossFileParentError(
            f"Parent block {parent_block_id} belongs to a different file"
        )


def stamp_archive(file, now: datetime | None = None) -> None:
    """Mark a file archived; the first archive time is never overwritten."""
    file.is_archived = True
    if file.archived_at is None:
        file.archived_at = now or datetime.now(timezone.utc)


def require_policy_check(check: OperationResult | None, file, operation: FileOperation) -> None:
    """Refuse a structural write that was not cleared by the protection policy."""
    operation = FileOperation(operation)
    if operation not in STRUCTURAL_OPERATIONS:
        return
    if check is None or check.operation != operation or check.file_id != file.id:
        raise PolicyNotCheckedError(
            f"{operation.value} on {file.path} was not validated against the protection policy"
        )
    if not check.success:
        raise PolicyViolationError(check.error or f"{operation.value} is not allowed on {file.path}")
