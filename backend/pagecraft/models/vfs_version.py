import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pagecraft.db.base import Base
from pagecraft.models.types import JSONType, enum_values
from pagecraft.vfs.types import VersionTrigger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VFSVersion(Base):
    __tablename__ = "vfs_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    trigger: Mapped[VersionTrigger] = mapped_column(
        Enum(
            VersionTrigger, name="vfs_version_trigger",
            values_callable=enum_values, native_enum=False, length=30,
        ),
        nullable=False,
        default=VersionTrigger.AUTO,
    )
    # "metadata" is reserved on declarative classes
    meta: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONType, nullable=True)
    # Set client side so snapshots taken within the same second still sort
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("ix_vfs_versions_project_created", "project_id", "created_at"),
        Index("ix_vfs_versions_project_label", "project_id", "label"),
    )
