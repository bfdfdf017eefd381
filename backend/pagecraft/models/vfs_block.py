import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from pagecraft.db.base import Base
from pagecraft.models.types import JSONType


def _default_styles() -> dict:
    return {"base": []}


def _default_constraints() -> dict:
    return {"can_delete": True, "can_move": True, "can_edit": True, "locked_props": []}


class VFSBlock(Base):
    __tablename__ = "vfs_blocks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    file_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("vfs_files.id", ondelete="CASCADE"), nullable=False
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    props: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    events: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    styles: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=_default_styles)
    constraints: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=_default_constraints)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parent_block_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("vfs_blocks.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_vfs_blocks_file_order", "file_id", "order"),
        Index("ix_vfs_blocks_parent_order", "parent_block_id", "order"),
        Index("ix_vfs_blocks_project_type", "project_id", "type"),
    )
