# tender_system/models/tender.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String,
    DateTime,
    Integer,
    ForeignKey,
    CheckConstraint,
    Index,
    PrimaryKeyConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from tender_system.db.base import Base
from tender_system.models.enums import TenderStatus


def _now():
    return datetime.now(timezone.utc)


class Tender(Base):
    __tablename__ = "tender"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    service_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=TenderStatus.created.value,
        server_default=text(f"'{TenderStatus.created.value}'"),
    )

    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default=text("1")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, server_default=func.now()
    )

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    creator_username: Mapped[str] = mapped_column(
        String(50), ForeignKey("employee.username", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        CheckConstraint("version >= 1", name="ck_tender_version_positive"),
        Index("ix_tender_service_type", "service_type"),
        Index("ix_tender_creator", "creator_username"),
    )


class TenderHistory(Base):
    """
    Immutable copy of a tender's mutable fields at a prior version.
    Written right before the live row moves from `version` to `version + 1`.
    """

    __tablename__ = "tender_history"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tender.id", ondelete="CASCADE"), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    service_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)

    snapshotted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, server_default=func.now()
    )

    __table_args__ = (
        PrimaryKeyConstraint("tender_id", "version", name="pk_tender_history"),
    )
