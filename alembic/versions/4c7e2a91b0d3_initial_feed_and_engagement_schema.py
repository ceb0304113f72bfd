"""Initial feed and engagement schema

Profiles, posts with boost state, likes / helpful marks, threaded comments,
boards and saves, messages, friends, tasks, and the points_log journal.

Revision ID: 4c7e2a91b0d3
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "4c7e2a91b0d3"
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("avatar_url", sa.String(500)),
        sa.Column("city", sa.String(100)),
        sa.Column("points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_business", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("business_name", sa.String(200)),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.CheckConstraint("points >= 0", name="ck_profiles_points_non_negative"),
    )
    op.create_index("ix_profiles_is_business", "profiles", ["is_business"])

    op.create_table(
        "posts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("image_url", sa.String(500)),
        sa.Column("group_id", sa.String(36)),
        sa.Column("helpful_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("boost_until", sa.DateTime(timezone=True)),
        sa.Column("boost_level", sa.SmallInteger),
        _created_at(),
    )
    op.create_index("ix_posts_group_created", "posts", ["group_id", "created_at"])
    op.create_index("ix_posts_helpful_count", "posts", ["helpful_count"])

    for table in ("likes", "helpful_marks"):
        op.create_table(
            table,
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column(
                "post_id",
                sa.String(36),
                sa.ForeignKey("posts.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("user_id", sa.String(36), nullable=False),
            _created_at(),
            sa.UniqueConstraint("user_id", "post_id", name=f"uq_{table}_user_post"),
        )
        op.create_index(f"ix_{table}_post", table, ["post_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "post_id",
            sa.String(36),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column(
            "parent_id",
            sa.String(36),
            sa.ForeignKey("comments.id", ondelete="CASCADE"),
        ),
        sa.Column("content", sa.Text, nullable=False),
        _created_at(),
    )
    op.create_index("ix_comments_post_created", "comments", ["post_id", "created_at"])

    op.create_table(
        "boards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("profiles.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        _created_at(),
    )

    op.create_table(
        "saved_posts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column(
            "post_id",
            sa.String(36),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "board_id",
            sa.String(36),
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
        ),
        _created_at(),
        sa.UniqueConstraint(
            "user_id", "post_id", "board_id", name="uq_saved_posts_user_post_board"
        ),
    )
    op.create_index(
        "uq_saved_posts_unboarded",
        "saved_posts",
        ["user_id", "post_id"],
        unique=True,
        postgresql_where=sa.text("board_id IS NULL"),
        sqlite_where=sa.text("board_id IS NULL"),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("sender_id", sa.String(36), nullable=False),
        sa.Column("receiver_id", sa.String(36), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index(
        "ix_messages_receiver_created", "messages", ["receiver_id", "created_at"]
    )

    op.create_table(
        "friends",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("friend_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _created_at(),
        sa.UniqueConstraint("user_id", "friend_id", name="uq_friends_user_friend"),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("profiles.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        _created_at(),
    )

    op.create_table(
        "points_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "profile_id",
            sa.String(36),
            sa.ForeignKey("profiles.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sa.String(30), nullable=False),
        sa.Column("delta", sa.Integer, nullable=False),
        sa.Column("balance_after", sa.Integer),
        sa.Column("source_ref", sa.String(36)),
        sa.Column("metadata", postgresql.JSONB),
        _created_at(),
    )
    op.create_index(
        "ix_points_log_profile_time", "points_log", ["profile_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_table("points_log")
    op.drop_table("tasks")
    op.drop_table("friends")
    op.drop_table("messages")
    op.drop_index("uq_saved_posts_unboarded", table_name="saved_posts")
    op.drop_table("saved_posts")
    op.drop_table("boards")
    op.drop_table("comments")
    op.drop_table("helpful_marks")
    op.drop_table("likes")
    op.drop_table("posts")
    op.drop_table("profiles")
