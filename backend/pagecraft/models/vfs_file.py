import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from pagecraft.db.base import Base
from pagecraft.models.types import JSONType, enum_values
from pagecraft.vfs.types import FileType, ProtectionLevel


class VFSFile(Base):
    __tablename__ = "vfs_files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    type: Mapped[FileType] = mapped_column(
        Enum(FileType, name="vfs_file_type", values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
    )
    # Derived from type; stored for query speed only
    protection: Mapped[ProtectionLevel] = mapped_column(
        Enum(ProtectionLevel, name="vfs_protection_level", values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
    )
    data_schema: Mapped[dict[str, Any]] = mapped_column("schema", JSONType, nullable=False, default=dict)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_home: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        # Unique path per project, only among non-archived files
        Index(
            "ux_vfs_files_project_path_active", "project_id", "path", unique=True,
            postgresql_where=text("NOT is_archived"), sqlite_where=text("is_archived = 0"),
        ),
        # At most one home page per project
        Index(
            "ux_vfs_files_project_home", "project_id", unique=True,
            postgresql_where=text("is_home"), sqlite_where=text("is_home = 1"),
        ),
        Index("ix_vfs_files_project_type", "project_id", "type"),
        Index("ix_vfs_files_project_archived", "project_id", "is_archived"),
    )
