# tender_system/models/decision.py
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
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from tender_system.db.base import Base
from tender_system.models.enums import DecisionStatus


def _now():
    return datetime.now(timezone.utc)


class Decision(Base):
    """
    Aggregate review outcome of one bid. Created lazily on the first vote;
    moves Pending -> Closed exactly once.
    """

    __tablename__ = "decision"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    bid_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bid.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(15),
        nullable=False,
        default=DecisionStatus.pending.value,
        server_default=text(f"'{DecisionStatus.pending.value}'"),
    )
    num_approved: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    __table_args__ = (
        UniqueConstraint("bid_id", name="uq_decision_bid"),
        CheckConstraint("num_approved >= 0", name="ck_decision_num_approved"),
    )


class Vote(Base):
    __tablename__ = "vote"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    bid_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bid.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    decision: Mapped[str] = mapped_column(String(15), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_vote_user", "user_id"),
        Index("ix_vote_bid_user", "bid_id", "user_id"),
    )
