"""V0.1 extraction jobs, collection cards and engagement tables

Revision ID: 4f1c2a9e7b10
Revises:
Create Date: 2026-10-19 10:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4f1c2a9e7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "extraction_jobs",
        sa.Column("id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("target_collection_id", sa.String(length=128), nullable=True),
        sa.Column("mode", sa.String(length=32), nullable=False, server_default="standard"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("total_cards", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("saved_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cards_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("run_id", sa.String(length=64), nullable=True),
        sa.Column("heartbeat_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_extraction_jobs_owner_id", "extraction_jobs", ["owner_id"])

    op.create_table(
        "collection_cards",
        sa.Column("owner_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("card_id", sa.String(length=160), primary_key=True, nullable=False),
        sa.Column("collection_id", sa.String(length=128), nullable=True),
        sa.Column("source_job_id", sa.String(length=128), nullable=True),
        sa.Column("auto_saved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("data_json", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("saved_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_collection_cards_collection_id", "collection_cards", ["collection_id"])
    op.create_index("ix_collection_cards_source_job_id", "collection_cards", ["source_job_id"])
    op.create_index("ix_collection_cards_created_at", "collection_cards", ["created_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("referral_code", sa.String(length=32), nullable=True, unique=True),
        sa.Column("referred_by", sa.String(length=128), nullable=True),
        sa.Column("security_question", sa.String(length=512), nullable=True),
        sa.Column("security_answer_salt", sa.String(length=64), nullable=True),
        sa.Column("security_answer_hash", sa.String(length=128), nullable=True),
        sa.Column("password_salt", sa.String(length=64), nullable=True),
        sa.Column("password_hash", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "share_stats",
        sa.Column("share_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("saves", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "share_interactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("share_id", sa.String(length=128), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("share_id", "user_id", "kind", name="uq_share_interaction"),
    )
    op.create_index("ix_share_interactions_share_id", "share_interactions", ["share_id"])

    op.create_table(
        "daily_checkins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("date_key", sa.String(length=10), nullable=False),
        sa.Column("credits_awarded", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "date_key", name="uq_checkin_user_date"),
    )
    op.create_index("ix_daily_checkins_user_id", "daily_checkins", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_daily_checkins_user_id", table_name="daily_checkins")
    op.drop_table("daily_checkins")
    op.drop_index("ix_share_interactions_share_id", table_name="share_interactions")
    op.drop_table("share_interactions")
    op.drop_table("share_stats")
    op.drop_table("users")
    op.drop_index("ix_collection_cards_created_at", table_name="collection_cards")
    op.drop_index("ix_collection_cards_source_job_id", table_name="collection_cards")
    op.drop_index("ix_collection_cards_collection_id", table_name="collection_cards")
    op.drop_table("collection_cards")
    op.drop_index("ix_extraction_jobs_owner_id", table_name="extraction_jobs")
    op.drop_table("extraction_jobs")
