# tender_system/models/bid.py
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
from tender_system.models.enums import BidStatus


def _now():
    return datetime.now(timezone.utc)


class Bid(Base):
    __tablename__ = "bid"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=BidStatus.created.value,
        server_default=text(f"'{BidStatus.created.value}'"),
    )

    tender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tender.id", ondelete="CASCADE"), nullable=False
    )

    # employee id when author_type=User, organization id when Organization
    author_type: Mapped[str] = mapped_column(String(50), nullable=False)
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default=text("1")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("version >= 1", name="ck_bid_version_positive"),
        Index("ix_bid_tender", "tender_id"),
        Index("ix_bid_author", "author_type", "author_id"),
    )


class BidHistory(Base):
    __tablename__ = "bid_history"

    bid_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bid.id", ondelete="CASCADE"), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)

    snapshotted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, server_default=func.now()
    )

    __table_args__ = (
        PrimaryKeyConstraint("bid_id", "version", name="pk_bid_history"),
    )
