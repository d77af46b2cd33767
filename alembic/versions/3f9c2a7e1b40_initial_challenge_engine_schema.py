"""Initial challenge engine schema

Revision ID: 3f9c2a7e1b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "3f9c2a7e1b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("avg_distance_m", sa.Float(), nullable=True),
        sa.Column("is_bot", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("bot_card_type", sa.String(20), nullable=True),
        sa.Column("bot_event_date", sa.Date(), nullable=True),
        sa.Column("bot_drop_rate", sa.Float(), nullable=True),
        sa.Column("bot_target_distance_m", sa.Float(), nullable=True),
        sa.Column("bot_season_int", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_is_bot", "users", ["is_bot"])

    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("number", sa.Integer(), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
    )
    op.create_index("ix_seasons_start_date", "seasons", ["start_date"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("distance", sa.Float(), nullable=False),
        sa.Column("type", sa.String(10), nullable=False, server_default="swim"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_sessions_user_date", "sessions", ["user_id", "date"])

    op.create_table(
        "user_challenges",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("bot_id", sa.String(36),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("target_distance_m", sa.Float(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_session_id", sa.String(36),
                  sa.ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "uq_user_challenges_one_active", "user_challenges", ["user_id"],
        unique=True, postgresql_where=sa.text("status = 'active'"),
    )
    op.create_index("ix_user_challenges_user_status", "user_challenges", ["user_id", "status"])
    op.create_index("ix_user_challenges_user_due", "user_challenges", ["user_id", "due_date"])
    op.create_index("ix_user_challenges_bot_start", "user_challenges", ["bot_id", "start_date"])

    op.create_table(
        "user_card_results",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("bot_id", sa.String(36),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("distance_m", sa.Float(), nullable=False),
        sa.Column("target_distance_m", sa.Float(), nullable=True),
        sa.Column("session_id", sa.String(36),
                  sa.ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("achieved_at", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_card_results_user_bot", "user_card_results", ["user_id", "bot_id"])
    op.create_index("ix_card_results_user_date", "user_card_results", ["user_id", "achieved_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("meta_json", postgresql.JSONB(), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"])

    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value_json", sa.Text(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_index("ix_notifications_user_created", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_card_results_user_date", table_name="user_card_results")
    op.drop_index("ix_card_results_user_bot", table_name="user_card_results")
    op.drop_table("user_card_results")
    op.drop_index("ix_user_challenges_bot_start", table_name="user_challenges")
    op.drop_index("ix_user_challenges_user_due", table_name="user_challenges")
    op.drop_index("ix_user_challenges_user_status", table_name="user_challenges")
    op.drop_index("uq_user_challenges_one_active", table_name="user_challenges")
    op.drop_table("user_challenges")
    op.drop_index("ix_sessions_user_date", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("ix_seasons_start_date", table_name="seasons")
    op.drop_table("seasons")
    op.drop_index("ix_users_is_bot", table_name="users")
    op.drop_table("users")
