"""Virtual file system: protection policy, block ownership and write guards."""
from pagecraft.vfs.errors import (
    ArchivedOwnerError,
    CrossFileParentError,
    IntegrityViolationError,
    InvalidPathError,
    InvalidReorderError,
    MissingOwnerError,
    PathConflictError,
    PolicyNotCheckedError,
    PolicyViolationError,
    SnapshotError,
    VFSError,
)
from pagecraft.vfs.types import (
    ActionType,
    EventTrigger,
    FileOperation,
    FileType,
    ProtectionLevel,
    VersionTrigger,
)

__all__ = [
    "VFSError", "PolicyViolationError", "PolicyNotCheckedError", "IntegrityViolationError",
    "MissingOwnerError", "ArchivedOwnerError", "CrossFileParentError", "PathConflictError",
    "InvalidPathError", "InvalidReorderError", "SnapshotError",
    "ActionType", "EventTrigger", "FileOperation", "FileType", "ProtectionLevel", "VersionTrigger",
]
