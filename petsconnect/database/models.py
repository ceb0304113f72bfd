"""
petsconnect.database.models — SQLAlchemy 2.0 Data Models
=========================================================

Tables:
- profiles       — Member identity, business flag, point balance
- posts          — Feed items with denormalized helpful_count + boost state
- likes          — One row per (user, post)
- helpful_marks  — One row per (user, post)
- comments       — Post comments, one level of reply nesting
- boards         — User-owned collections of saved posts
- saved_posts    — Saved post, optionally on a board
- messages       — Direct messages (discount receipts live here)
- friends        — Friend requests / friendships
- tasks          — Point-earning member tasks
- points_log     — Append-only journal of every point credit / debit
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all PetsConnect ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RewardKind(enum.StrEnum):
    """Every reason a profile's point balance can change."""
    LIKE_RECEIVED = "LIKE_RECEIVED"
    HELPFUL_RECEIVED = "HELPFUL_RECEIVED"
    COMMENT_RECEIVED = "COMMENT_RECEIVED"
    TASK_COMPLETED = "TASK_COMPLETED"
    BOOST_REDEEMED = "BOOST_REDEEMED"
    DISCOUNT_REDEEMED = "DISCOUNT_REDEEMED"


class FriendStatus(enum.StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"


# ---------------------------------------------------------------------------
# Profiles — one row per member (keyed by the auth user id)
# ---------------------------------------------------------------------------
class Profile(Base):
    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500), default=None)
    city: Mapped[str | None] = mapped_column(String(100), default=None)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_business: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    business_name: Mapped[str | None] = mapped_column(String(200), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_profiles_points_non_negative"),
        Index("ix_profiles_is_business", "is_business"),
    )

    @property
    def display_name(self) -> str:
        """Business name for business accounts, username otherwise."""
        if self.is_business and self.business_name:
            return self.business_name
        return self.username

    def __repr__(self) -> str:
        return f"<Profile user_id={self.user_id} name={self.username!r} pts={self.points}>"


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
class Post(Base):
    """A feed item.

    ``group_id`` is ``None`` for the global feed.  A post is boosted while
    ``boost_until`` lies in the future; nothing ever clears the fields.
    """
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), default=None)
    group_id: Mapped[str | None] = mapped_column(String(36), default=None)
    helpful_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    boost_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    boost_level: Mapped[int | None] = mapped_column(SmallInteger, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_posts_group_created", "group_id", "created_at"),
        Index("ix_posts_helpful_count", "helpful_count"),
    )

    def __repr__(self) -> str:
        return f"<Post id={self.id} author={self.user_id} group={self.group_id}>"


# ---------------------------------------------------------------------------
# Likes / HelpfulMarks — unique per (user, post)
# ---------------------------------------------------------------------------
class Like(Base):
    __tablename__ = "likes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),
        Index("ix_likes_post", "post_id"),
    )

    def __repr__(self) -> str:
        return f"<Like post={self.post_id} user={self.user_id}>"


class HelpfulMark(Base):
    __tablename__ = "helpful_marks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_helpful_marks_user_post"),
        Index("ix_helpful_marks_post", "post_id"),
    )

    def __repr__(self) -> str:
        return f"<HelpfulMark post={self.post_id} user={self.user_id}>"


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("comments.id", ondelete="CASCADE"), default=None
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_comments_post_created", "post_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Comment id={self.id} post={self.post_id} parent={self.parent_id}>"


# ---------------------------------------------------------------------------
# Boards / SavedPosts
# ---------------------------------------------------------------------------
class Board(Base):
    __tablename__ = "boards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Board id={self.id} owner={self.user_id} name={self.name!r}>"


class SavedPost(Base):
    __tablename__ = "saved_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    board_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", "board_id", name="uq_saved_posts_user_post_board"),
        # NULLs are distinct in the constraint above; one unboarded save per post.
        Index(
            "uq_saved_posts_unboarded",
            "user_id",
            "post_id",
            unique=True,
            postgresql_where=text("board_id IS NULL"),
            sqlite_where=text("board_id IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<SavedPost user={self.user_id} post={self.post_id} board={self.board_id}>"


# ---------------------------------------------------------------------------
# Messages — direct messages, also the discount redemption receipt
# ---------------------------------------------------------------------------
class Message(Base):
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    sender_id: Mapped[str] = mapped_column(String(36), nullable=False)
    receiver_id: Mapped[str] = mapped_column(String(36), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_messages_receiver_created", "receiver_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message id={self.id} {self.sender_id}→{self.receiver_id}>"


# ---------------------------------------------------------------------------
# Friends
# ---------------------------------------------------------------------------
class Friend(Base):
    __tablename__ = "friends"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    friend_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FriendStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friends_user_friend"),
    )

    def __repr__(self) -> str:
        return f"<Friend {self.user_id}→{self.friend_id} status={self.status}>"


# ---------------------------------------------------------------------------
# Tasks — completing one credits its points to the owner
# ---------------------------------------------------------------------------
class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Task id={self.id} owner={self.user_id} done={self.completed}>"


# ---------------------------------------------------------------------------
# PointsLog — append-only reward journal
# ---------------------------------------------------------------------------
class PointsLog(Base):
    __tablename__ = "points_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int | None] = mapped_column(Integer, default=None)
    source_ref: Mapped[str | None] = mapped_column(String(36), default=None)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_points_log_profile_time", "profile_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<PointsLog profile={self.profile_id} kind={self.kind} delta={self.delta}>"
