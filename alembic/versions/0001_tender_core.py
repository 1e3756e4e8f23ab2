"""tender core: employees, organizations, tenders, bids, history, reviews, decisions

Revision ID: 0001_tender_core
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_tender_core"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid(name: str, **kw) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kw)


def _ts(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade():
    op.create_table(
        "employee",
        _uuid("id", primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False, unique=True),
        sa.Column("first_name", sa.String(length=50), nullable=True),
        sa.Column("last_name", sa.String(length=50), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )

    op.create_table(
        "organization",
        _uuid("id", primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )

    op.create_table(
        "organization_responsible",
        _uuid("id", primary_key=True, nullable=False),
        _uuid(
            "organization_id",
            sa.ForeignKey("organization.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _uuid("user_id", sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index(
        "ix_organization_responsible_org_user",
        "organization_responsible",
        ["organization_id", "user_id"],
    )
    op.create_index("ix_organization_responsible_user", "organization_responsible", ["user_id"])

    op.create_table(
        "tender",
        _uuid("id", primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("service_type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), server_default=sa.text("'Created'"), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        _ts("created_at"),
        _uuid(
            "organization_id",
            sa.ForeignKey("organization.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "creator_username",
            sa.String(length=50),
            sa.ForeignKey("employee.username", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.CheckConstraint("version >= 1", name="ck_tender_version_positive"),
    )
    op.create_index("ix_tender_service_type", "tender", ["service_type"])
    op.create_index("ix_tender_creator", "tender", ["creator_username"])

    op.create_table(
        "tender_history",
        _uuid("tender_id", sa.ForeignKey("tender.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("service_type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        _ts("snapshotted_at"),
        sa.PrimaryKeyConstraint("tender_id", "version", name="pk_tender_history"),
    )

    op.create_table(
        "bid",
        _uuid("id", primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("status", sa.String(length=50), server_default=sa.text("'Created'"), nullable=False),
        _uuid("tender_id", sa.ForeignKey("tender.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_type", sa.String(length=50), nullable=False),
        _uuid("author_id", nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        _ts("created_at"),
        sa.CheckConstraint("version >= 1", name="ck_bid_version_positive"),
    )
    op.create_index("ix_bid_tender", "bid", ["tender_id"])
    op.create_index("ix_bid_author", "bid", ["author_type", "author_id"])

    op.create_table(
        "bid_history",
        _uuid("bid_id", sa.ForeignKey("bid.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        _ts("snapshotted_at"),
        sa.PrimaryKeyConstraint("bid_id", "version", name="pk_bid_history"),
    )

    op.create_table(
        "feedback",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("bid_id", sa.ForeignKey("bid.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_feedback_bid_created", "feedback", ["bid_id", "created_at"])

    op.create_table(
        "decision",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("bid_id", sa.ForeignKey("bid.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=15), server_default=sa.text("'Pending'"), nullable=False),
        sa.Column("num_approved", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.UniqueConstraint("bid_id", name="uq_decision_bid"),
        sa.CheckConstraint("num_approved >= 0", name="ck_decision_num_approved"),
    )

    op.create_table(
        "vote",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("bid_id", sa.ForeignKey("bid.id", ondelete="CASCADE"), nullable=False),
        _uuid("user_id", sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("decision", sa.String(length=15), nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_vote_user", "vote", ["user_id"])
    op.create_index("ix_vote_bid_user", "vote", ["bid_id", "user_id"])


def downgrade():
    op.drop_index("ix_vote_bid_user", table_name="vote")
    op.drop_index("ix_vote_user", table_name="vote")
    op.drop_table("vote")
    op.drop_table("decision")
    op.drop_index("ix_feedback_bid_created", table_name="feedback")
    op.drop_table("feedback")
    op.drop_table("bid_history")
    op.drop_index("ix_bid_author", table_name="bid")
    op.drop_index("ix_bid_tender", table_name="bid")
    op.drop_table("bid")
    op.drop_table("tender_history")
    op.drop_index("ix_tender_creator", table_name="tender")
    op.drop_index("ix_tender_service_type", table_name="tender")
    op.drop_table("tender")
    op.drop_index("ix_organization_responsible_user", table_name="organization_responsible")
    op.drop_index("ix_organization_responsible_org_user", table_name="organization_responsible")
    op.drop_table("organization_responsible")
    op.drop_table("organization")
    op.drop_table("employee")
