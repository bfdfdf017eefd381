import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from pagecraft.vfs.types import ActionType, EventTrigger


class BlockAction(BaseModel):
    type: ActionType
    config: dict[str, Any] = Field(default_factory=dict)


class BlockEvent(BaseModel):
    trigger: EventTrigger
    actions: list[BlockAction] = []


class ResponsiveStyles(BaseModel):
    sm: list[str] | None = None
    md: list[str] | None = None
    lg: list[str] | None = None
    xl: list[str] | None = None


class TailwindStyles(BaseModel):
    # Utility classes only, raw CSS is never stored on a block
    base: list[str] = []
    hover: list[str] | None = None
    focus: list[str] | None = None
    responsive: ResponsiveStyles | None = None


class BlockConstraints(BaseModel):
    can_delete: bool = True
    can_move: bool = True
    can_edit: bool = True
    locked_props: list[str] = []


class BlockRead(BaseModel):
    id: uuid.UUID
    file_id: uuid.UUID
    project_id: uuid.UUID
    type: str
    props: dict[str, Any] = Field(default_factory=dict)
    events: list[BlockEvent] = []
    styles: TailwindStyles = Field(default_factory=TailwindStyles)
    constraints: BlockConstraints = Field(default_factory=BlockConstraints)
    order: int = 0
    parent_block_id: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class BlockCreate(BaseModel):
    file_id: uuid.UUID
    type: str = Field(min_length=1, max_length=100)
    props: dict[str, Any] = Field(default_factory=dict)
    events: list[BlockEvent] = []
    styles: TailwindStyles = Field(default_factory=TailwindStyles)
    constraints: BlockConstraints = Field(default_factory=BlockConstraints)
    order: int | None = None
    parent_block_id: uuid.UUID | None = None


class BlockUpdate(BaseModel):
    props: dict[str, Any] | None = None
    events: list[BlockEvent] | None = None
    styles: TailwindStyles | None = None
    constraints: BlockConstraints | None = None


class BlockMove(BaseModel):
    parent_block_id: uuid.UUID | None = None
    order: int


class BlockTransfer(BaseModel):
    to_file_id: uuid.UUID
    block_ids: list[uuid.UUID] | None = None


class BlockReorder(BaseModel):
    block_ids: list[uuid.UUID]


class BlockTreeNode(BaseModel):
    block: BlockRead
    children: list["BlockTreeNode"] = []


class OwnershipReport(BaseModel):
    valid: list[BlockRead]
    orphans: list[BlockRead]
