"""Initial schema - users, stats, activities, friend edges, annotations

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(15), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("photo_url", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    # User stats
    op.create_table(
        "user_stats",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("master_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("strength_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cardio_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("recovery_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("weeks_won", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_workouts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("calories", sa.JSON(), nullable=True),
        sa.Column("steps", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_user_stats"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_user_stats_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_user_stats_user_id"),
    )

    # Activities
    op.create_table(
        "activities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("activity_type", sa.String(100), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(5), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("calories", sa.Integer(), nullable=True),
        sa.Column("distance_miles", sa.Float(), nullable=True),
        sa.Column("photo_url", sa.String(1024), nullable=True),
        sa.Column("is_photo_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("custom_emoji", sa.String(16), nullable=True),
        sa.Column("sport_emoji", sa.String(16), nullable=True),
        sa.Column("count_toward", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_activities"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_activities_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_activities_user_id", "activities", ["user_id"])
    op.create_index("ix_activities_user_date", "activities", ["user_id", "date"])

    # Friend edges (one row per unordered pair)
    op.create_table(
        "friend_edges",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id_1", sa.Uuid(), nullable=False),
        sa.Column("user_id_2", sa.Uuid(), nullable=False),
        sa.Column("requester_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_friend_edges"),
        sa.ForeignKeyConstraint(["user_id_1"], ["users.id"], name="fk_friend_edges_user_id_1_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id_2"], ["users.id"], name="fk_friend_edges_user_id_2_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"], name="fk_friend_edges_requester_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], name="fk_friend_edges_recipient_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id_1", "user_id_2", name="uq_friend_edges_pair"),
        sa.CheckConstraint("user_id_1 < user_id_2", name="ck_friend_edges_canonical_order"),
    )
    op.create_index("ix_friend_edges_user_id_1", "friend_edges", ["user_id_1"])
    op.create_index("ix_friend_edges_user_id_2", "friend_edges", ["user_id_2"])
    op.create_index("ix_friend_edges_recipient_id", "friend_edges", ["recipient_id"])

    # Reactions
    op.create_table(
        "reactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("activity_id", sa.String(64), nullable=False),
        sa.Column("reactor_id", sa.Uuid(), nullable=False),
        sa.Column("reaction_type", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_reactions"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_reactions_owner_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reactor_id"], ["users.id"], name="fk_reactions_reactor_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("owner_id", "activity_id", "reactor_id", name="uq_reactions_activity_reactor"),
    )

    # Comments
    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("activity_id", sa.String(64), nullable=False),
        sa.Column("commenter_id", sa.Uuid(), nullable=False),
        sa.Column("text", sa.String(500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_comments_owner_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["commenter_id"], ["users.id"], name="fk_comments_commenter_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_comments_activity", "comments", ["owner_id", "activity_id"])

    # Comment replies
    op.create_table(
        "comment_replies",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("comment_id", sa.Uuid(), nullable=False),
        sa.Column("replier_id", sa.Uuid(), nullable=False),
        sa.Column("text", sa.String(500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_comment_replies"),
        sa.ForeignKeyConstraint(["comment_id"], ["comments.id"], name="fk_comment_replies_comment_id_comments", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["replier_id"], ["users.id"], name="fk_comment_replies_replier_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_comment_replies_comment_id", "comment_replies", ["comment_id"])


def downgrade() -> None:
    op.drop_table("comment_replies")
    op.drop_table("comments")
    op.drop_table("reactions")
    op.drop_table("friend_edges")
    op.drop_table("activities")
    op.drop_table("user_stats")
    op.drop_table("users")
