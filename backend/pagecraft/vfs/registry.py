"""Protection policy for VFS files.

Single source of truth for what may be done to a file. Every decision is a pure
function of the file's type or protection level; nothing here touches the
database.

- PROTECTED files (pages, components, logic flows) are owned by the visual
  editor: no delete, rename, move or raw edit.
- SEMI_EDITABLE files (stores, config, design tokens) can be renamed and moved
  but are edited through forms.
- FREE_CODE files (custom css/js, head injections) allow everything.

Structured UI editing and archiving are allowed for every file.
"""
import re
import uuid
from collections import defaultdict
from typing import Any, Iterable

from pagecraft.schemas.vfs_file import (
    AllowedOperations,
    FileDraft,
    FileRead,
    FolderNode,
    OperationResult,
    ParsedPath,
)
from pagecraft.vfs.types import FileOperation, FileType, ProtectionLevel

PROTECTION_MAP: dict[FileType, ProtectionLevel] = {
    FileType.PAGE: ProtectionLevel.PROTECTED,
    FileType.COMPONENT: ProtectionLevel.PROTECTED,
    FileType.LOGIC_FLOW: ProtectionLevel.PROTECTED,
    FileType.STATE_STORE: ProtectionLevel.SEMI_EDITABLE,
    FileType.CONFIG: ProtectionLevel.SEMI_EDITABLE,
    FileType.TOKENS: ProtectionLevel.SEMI_EDITABLE,
    FileType.CUSTOM_CSS: ProtectionLevel.FREE_CODE,
    FileType.CUSTOM_JS: ProtectionLevel.FREE_CODE,
    FileType.HEAD_INJECT: ProtectionLevel.FREE_CODE,
}

FOLDER_MAP: dict[FileType, str] = {
    FileType.PAGE: "/pages",
    FileType.COMPONENT: "/components",
    FileType.LOGIC_FLOW: "/logic",
    FileType.STATE_STORE: "/data",
    FileType.CONFIG: "/data",
    FileType.TOKENS: "/styles",
    FileType.CUSTOM_CSS: "/custom",
    FileType.CUSTOM_JS: "/custom",
    FileType.HEAD_INJECT: "/custom",
}

EXTENSION_MAP: dict[FileType, str] = {
    FileType.PAGE: "page",
    FileType.COMPONENT: "comp",
    FileType.LOGIC_FLOW: "flow",
    FileType.STATE_STORE: "store",
    FileType.CONFIG: "config",
    FileType.TOKENS: "tokens",
    FileType.CUSTOM_CSS: "css",
    FileType.CUSTOM_JS: "js",
    FileType.HEAD_INJECT: "inject",
}

_WHITESPACE_RE = re.compile(r"\s+")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9-]")


def protection_for_type(file_type: FileType) -> ProtectionLevel:
    return PROTECTION_MAP[FileType(file_type)]


def folder_for_type(file_type: FileType) -> str:
    return FOLDER_MAP[FileType(file_type)]


def extension_for_type(file_type: FileType) -> str:
    return EXTENSION_MAP[FileType(file_type)]


def type_from_extension(extension: str) -> FileType | None:
    for file_type, ext in EXTENSION_MAP.items():
        if ext == extension:
            return file_type
    return None


def slugify(name: str) -> str:
    slug = _WHITESPACE_RE.sub("-", name.lower())
    return _SLUG_STRIP_RE.sub("", slug)


def generate_path(file_type: FileType, name: str) -> str:
    """Canonical path for a file, e.g. ``/pages/home.page``."""
    return f"{folder_for_type(file_type)}/{slugify(name)}.{extension_for_type(file_type)}"


def parse_path(path: str) -> ParsedPath:
    parts = path.split("/")
    filename = parts.pop() if parts else ""
    folder = "/" + "/".join(part for part in parts if part)
    if "." in filename:
        name, _, extension = filename.rpartition(".")
    else:
        name, extension = filename, ""
    return ParsedPath(folder=folder, name=name, extension=extension)


def join_path(folder: str, filename: str) -> str:
    folder = "/" + "/".join(part for part in folder.split("/") if part)
    return f"{folder.rstrip('/')}/{filename}"


def can_delete(file) -> bool:
    return file.protection == ProtectionLevel.FREE_CODE


def can_rename(file) -> bool:
    return file.protection != ProtectionLevel.PROTECTED


def can_raw_edit(file) -> bool:
    return file.protection == ProtectionLevel.FREE_CODE


def can_move(file) -> bool:
    return file.protection != ProtectionLevel.PROTECTED


def can_ui_edit(file) -> bool:
    return True


def _type_label(file) -> str:
    return FileType(file.type).value


def validate_operation(file, operation: FileOperation) -> OperationResult:
    """Check ``operation`` against the file's protection level.

    Never raises: a denied operation comes back with ``success=False`` and a
    message the editor can show as is.
    """
    operation = FileOperation(operation)
    error = None
    if operation == FileOperation.DELETE and not can_delete(file):
        error = f"Cannot delete {_type_label(file)} files. They are managed by the editor. Use archive instead."
    elif operation == FileOperation.RENAME and not can_rename(file):
        error = f"Cannot rename protected {_type_label(file)} files. They are managed by the editor."
    elif operation == FileOperation.RAW_EDIT and not can_raw_edit(file):
        error = f"Cannot raw edit {_type_label(file)} files. Use the visual editor instead."
    elif operation == FileOperation.MOVE and not can_move(file):
        error = f"Cannot move protected {_type_label(file)} files. They are auto-organized."

    return OperationResult(
        success=error is None,
        operation=operation,
        file_id=getattr(file, "id", None),
        error=error,
    )


def get_allowed_operations(file) -> AllowedOperations:
    return AllowedOperations(
        delete=can_delete(file),
        rename=can_rename(file),
        raw_edit=can_raw_edit(file),
        ui_edit=can_ui_edit(file),
        move=can_move(file),
    )


def create_file(
    project_id: uuid.UUID,
    name: str,
    file_type: FileType,
    schema: dict[str, Any] | None = None,
) -> FileDraft:
    """Build an unsaved file with path and protection derived from its type."""
    return FileDraft(
        project_id=project_id,
        name=name,
        path=generate_path(file_type, name),
        type=file_type,
        protection=protection_for_type(file_type),
        data_schema=dict(schema or {}),
    )


def build_folder_tree(files: Iterable) -> list[FolderNode]:
    """Group non-archived files by folder, folders and files sorted by path."""
    by_folder: dict[str, list[FileRead]] = defaultdict(list)
    for file in files:
        if file.is_archived:
            continue
        by_folder[parse_path(file.path).folder].append(FileRead.model_validate(file))
    return [
        FolderNode(folder=folder, files=sorted(entries, key=lambda f: f.path))
        for folder, entries in sorted(by_folder.items())
    ]
