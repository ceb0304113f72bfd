"""
petsconnect.services.engagement_service — Engagement Action Handlers
=====================================================================

Every handler takes the acting profile's id explicitly and runs as one
transaction (:func:`petsconnect.database.engine.get_session`): the primary
mutation and its point side effect commit together or not at all.

Per (user, post) and per kind, likes and helpful marks are a two-state
machine, ``ABSENT`` ↔ ``PRESENT``.  Inserting credits the post's author
(never for self-engagement); deleting never claws points back.

A concurrent toggle that loses the race to the ``(user_id, post_id)``
unique constraint is a soft no-op: the row exists, which is what the
caller wanted.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from petsconnect.constants import RECEIPT_TEMPLATE, DiscountTier
from petsconnect.database.engine import get_session
from petsconnect.database.models import (
    Board,
    Comment,
    Friend,
    FriendStatus,
    HelpfulMark,
    Like,
    Message,
    Post,
    Profile,
    RewardKind,
    SavedPost,
    Task,
)
from petsconnect.engine.events import reward_for
from petsconnect.engine.tiers import boost_tier, discount_tier
from petsconnect.errors import (
    DuplicateAction,
    NotAuthorized,
    NotFound,
    UpstreamFailure,
    ValidationFailed,
)
from petsconnect.services import ledger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
class EngagementState(enum.StrEnum):
    ABSENT = "absent"
    PRESENT = "present"


@dataclass(frozen=True, slots=True)
class ToggleResult:
    state: EngagementState
    points_awarded: int = 0
    duplicate: bool = False  # lost a race to a concurrent insert


@dataclass(frozen=True, slots=True)
class CommentResult:
    comment: Comment
    points_awarded: int = 0


@dataclass(frozen=True, slots=True)
class BoostResult:
    post_id: str
    boost_level: int
    boost_until: datetime
    balance: int


@dataclass(frozen=True, slots=True)
class DiscountResult:
    message: Message
    tier: DiscountTier
    balance: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
@contextmanager
def _unit_of_work(engine: Engine, action: str) -> Iterator[Session]:
    """:func:`get_session`, with driver and commit failures reported as
    :class:`UpstreamFailure`.  Domain errors pass through untouched.
    """
    try:
        with get_session(engine) as session:
            yield session
    except SQLAlchemyError as exc:
        logger.exception("Could not %s", action)
        raise UpstreamFailure(f"Could not {action}.") from exc


def _get_post(session: Session, post_id: str) -> Post:
    post = session.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found.")
    return post


def _find_existing(
    session: Session, model: type[Like] | type[HelpfulMark], user_id: str, post_id: str
) -> str | None:
    return session.scalar(
        select(model.id).where(model.user_id == user_id, model.post_id == post_id)
    )


def _find_saved(
    session: Session, user_id: str, post_id: str, board_id: str | None
) -> str | None:
    return session.scalar(
        select(SavedPost.id).where(
            SavedPost.user_id == user_id,
            SavedPost.post_id == post_id,
            SavedPost.board_id == board_id,  # IS NULL when unboarded
        )
    )


def _award_author(session: Session, kind: RewardKind, *, actor_id: str, post: Post) -> int:
    """Credit the post's author for *actor_id*'s engagement.

    A missing author profile skips the credit; the engagement itself still
    stands.  Any other ledger failure propagates and rolls back the whole
    unit of work.
    """
    event = reward_for(kind, actor_id=actor_id, author_id=post.user_id, source_ref=post.id)
    if event is None:
        return 0
    if not ledger.apply_reward_event(session, event):
        logger.warning(
            "No profile for author %s of post %s, %s reward skipped",
            post.user_id, post.id, kind,
        )
        return 0
    return event.amount


def _toggle(
    engine: Engine,
    model: type[Like] | type[HelpfulMark],
    kind: RewardKind,
    user_id: str,
    post_id: str,
) -> ToggleResult:
    with _unit_of_work(engine, "save the reaction") as session:
        post = _get_post(session, post_id)

        if _find_existing(session, model, user_id, post_id) is not None:
            removed = session.execute(
                delete(model).where(model.user_id == user_id, model.post_id == post_id)
            ).rowcount
            if removed and model is HelpfulMark:
                session.execute(
                    update(Post)
                    .where(Post.id == post_id, Post.helpful_count > 0)
                    .values(helpful_count=Post.helpful_count - 1)
                )
            return ToggleResult(EngagementState.ABSENT)

        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(model(user_id=user_id, post_id=post_id))
                session.flush()
        except IntegrityError:
            # A concurrent toggle inserted first; the savepoint rolled back
            # and the outer transaction is still usable.
            logger.info("%s on post %s by %s already present", model.__tablename__, post_id, user_id)
            return ToggleResult(EngagementState.PRESENT, duplicate=True)

        if model is HelpfulMark:
            session.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(helpful_count=Post.helpful_count + 1)
            )

        awarded = _award_author(session, kind, actor_id=user_id, post=post)
        return ToggleResult(EngagementState.PRESENT, points_awarded=awarded)


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
def create_post(
    engine: Engine,
    user_id: str,
    content: str,
    image_url: str | None = None,
    group_id: str | None = None,
) -> Post:
    """Publish a post to the global feed, or to *group_id*'s feed.

    Content is trimmed and must not be blank; a blank ``image_url`` is
    stored as ``None``.  New posts are never boosted and earn nothing.
    """
    text = (content or "").strip()
    if not text:
        raise ValidationFailed("Post cannot be empty.")

    with _unit_of_work(engine, "publish the post") as session:
        if session.get(Profile, user_id) is None:
            raise NotFound("Profile not found.")
        post = Post(
            user_id=user_id,
            content=text,
            image_url=(image_url or "").strip() or None,
            group_id=group_id or None,
            created_at=datetime.now(UTC),
        )
        session.add(post)
        session.flush()
        logger.debug("Post %s published by %s (group=%s)", post.id, user_id, post.group_id)
        return post


# ---------------------------------------------------------------------------
# Likes / helpful marks
# ---------------------------------------------------------------------------
def toggle_like(engine: Engine, user_id: str, post_id: str) -> ToggleResult:
    """Like or unlike *post_id*.  A new like credits the author +1."""
    return _toggle(engine, Like, RewardKind.LIKE_RECEIVED, user_id, post_id)


def toggle_helpful(engine: Engine, user_id: str, post_id: str) -> ToggleResult:
    """Mark or unmark *post_id* as helpful.  A new mark credits the author +2
    and bumps the post's ``helpful_count``.
    """
    return _toggle(engine, HelpfulMark, RewardKind.HELPFUL_RECEIVED, user_id, post_id)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def add_comment(
    engine: Engine,
    user_id: str,
    post_id: str,
    content: str,
    parent_id: str | None = None,
) -> CommentResult:
    """Comment on *post_id* (or reply to *parent_id*).

    Credits the post's author +1 unless they're commenting on their own
    post.  Carries no idempotency key: a retried call posts twice.
    """
    text = (content or "").strip()
    if not text:
        raise ValidationFailed("Comment cannot be empty.")

    with _unit_of_work(engine, "save the comment") as session:
        post = _get_post(session, post_id)
        if parent_id is not None:
            parent = session.get(Comment, parent_id)
            if parent is None or parent.post_id != post.id:
                raise NotFound("Parent comment not found.")

        comment = Comment(
            post_id=post.id,
            user_id=user_id,
            parent_id=parent_id,
            content=text,
            created_at=datetime.now(UTC),
        )
        session.add(comment)
        session.flush()

        awarded = _award_author(session, RewardKind.COMMENT_RECEIVED, actor_id=user_id, post=post)
        return CommentResult(comment=comment, points_awarded=awarded)


# ---------------------------------------------------------------------------
# Point redemption
# ---------------------------------------------------------------------------
def redeem_boost(
    engine: Engine,
    user_id: str,
    post_id: str,
    level: int,
    *,
    now: datetime | None = None,
) -> BoostResult:
    """Spend points to pin the actor's own post to the top of its feed.

    Raises
    ------
    ValidationFailed
        Unknown boost level.
    NotAuthorized
        Actor isn't a business account or isn't the post's author.
    InsufficientPoints
        Balance below the tier cost (from :func:`ledger.debit`).
    """
    tier = boost_tier(level)
    if tier is None:
        raise ValidationFailed(f"Unknown boost level {level}.")

    with _unit_of_work(engine, "boost the post") as session:
        post = _get_post(session, post_id)
        actor = session.get(Profile, user_id)
        if actor is None:
            raise NotFound("Profile not found.")
        if not actor.is_business:
            raise NotAuthorized("Only business accounts can boost posts.")
        if post.user_id != user_id:
            raise NotAuthorized("You can only boost your own posts.")

        balance = ledger.debit(
            session,
            user_id,
            tier.cost,
            kind=RewardKind.BOOST_REDEEMED,
            source_ref=post.id,
            metadata={"level": tier.level, "hours": tier.hours},
        )

        boost_until = (now or datetime.now(UTC)) + timedelta(hours=tier.hours)
        post.boost_until = boost_until
        post.boost_level = tier.level

        logger.info(
            "Post %s boosted to level %d until %s by %s (%d pts)",
            post.id, tier.level, boost_until.isoformat(), user_id, tier.cost,
        )
        return BoostResult(
            post_id=post.id,
            boost_level=tier.level,
            boost_until=boost_until,
            balance=balance,
        )


def redeem_discount(
    engine: Engine,
    user_id: str,
    business_id: str,
    tier_name: str,
) -> DiscountResult:
    """Spend points on a discount at *business_id*.

    The receipt is a message from the actor to the business; there is no
    separate redemption record.
    """
    tier = discount_tier(tier_name)
    if tier is None:
        raise ValidationFailed(f"Unknown discount tier {tier_name!r}.")
    if business_id == user_id:
        raise ValidationFailed("You can't redeem a discount at your own business.")

    with _unit_of_work(engine, "redeem the discount") as session:
        business = session.get(Profile, business_id)
        if business is None or not business.is_business:
            raise NotFound("Business not found.")

        balance = ledger.debit(
            session,
            user_id,
            tier.cost,
            kind=RewardKind.DISCOUNT_REDEEMED,
            source_ref=business.user_id,
            metadata={"tier": tier.name, "discount_percent": tier.discount_percent},
        )

        message = Message(
            sender_id=user_id,
            receiver_id=business.user_id,
            content=RECEIPT_TEMPLATE.format(
                label=tier.label,
                percent=tier.discount_percent,
                business=business.display_name,
                cost=tier.cost,
            ),
            created_at=datetime.now(UTC),
        )
        session.add(message)
        session.flush()

        logger.info(
            "%s redeemed %s (%d pts) at %s", user_id, tier.label, tier.cost, business.user_id
        )
        return DiscountResult(message=message, tier=tier, balance=balance)


# ---------------------------------------------------------------------------
# Boards / saves
# ---------------------------------------------------------------------------
def create_board(engine: Engine, user_id: str, name: str) -> Board:
    board_name = (name or "").strip()
    if not board_name:
        raise ValidationFailed("Board name cannot be empty.")

    with _unit_of_work(engine, "create the board") as session:
        if session.get(Profile, user_id) is None:
            raise NotFound("Profile not found.")
        board = Board(user_id=user_id, name=board_name, created_at=datetime.now(UTC))
        session.add(board)
        session.flush()
        return board


def save_post(
    engine: Engine,
    user_id: str,
    post_id: str,
    board_id: str | None = None,
) -> SavedPost:
    """Save *post_id*, optionally onto one of the actor's boards.

    Saving the same post to the same board twice raises
    :class:`DuplicateAction`.
    """
    with _unit_of_work(engine, "save the post") as session:
        _get_post(session, post_id)
        if board_id is not None:
            board = session.get(Board, board_id)
            if board is None or board.user_id != user_id:
                raise NotFound("Board not found.")

        if _find_saved(session, user_id, post_id, board_id) is not None:
            raise DuplicateAction("This post is already saved.")

        saved = SavedPost(
            user_id=user_id, post_id=post_id, board_id=board_id, created_at=datetime.now(UTC)
        )
        try:
            with session.begin_nested():
                session.add(saved)
                session.flush()
        except IntegrityError as exc:
            raise DuplicateAction("This post is already saved.") from exc
        return saved


# ---------------------------------------------------------------------------
# Friends
# ---------------------------------------------------------------------------
def send_friend_request(engine: Engine, user_id: str, friend_id: str) -> Friend:
    if friend_id == user_id:
        raise ValidationFailed("You can't send a friend request to yourself.")

    with _unit_of_work(engine, "send the friend request") as session:
        if session.get(Profile, friend_id) is None:
            raise NotFound("Profile not found.")

        existing = session.scalar(
            select(Friend.id).where(
                or_(
                    and_(Friend.user_id == user_id, Friend.friend_id == friend_id),
                    and_(Friend.user_id == friend_id, Friend.friend_id == user_id),
                )
            )
        )
        if existing is not None:
            raise DuplicateAction("Friend request already sent.")

        request = Friend(
            user_id=user_id,
            friend_id=friend_id,
            status=FriendStatus.PENDING.value,
            created_at=datetime.now(UTC),
        )
        try:
            with session.begin_nested():
                session.add(request)
                session.flush()
        except IntegrityError as exc:
            raise DuplicateAction("Friend request already sent.") from exc
        return request


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------
def complete_task(engine: Engine, user_id: str, task_id: str) -> int:
    """Mark the actor's task complete and credit its points.  Returns the
    points credited.
    """
    with _unit_of_work(engine, "complete the task") as session:
        flipped = session.execute(
            update(Task)
            .where(Task.id == task_id, Task.user_id == user_id, Task.completed.is_(False))
            .values(completed=True)
        ).rowcount
        if not flipped:
            task = session.get(Task, task_id)
            if task is None or task.user_id != user_id:
                raise NotFound("Task not found.")
            raise DuplicateAction("Task already completed.")

        points = session.scalar(select(Task.points).where(Task.id == task_id)) or 0
        if points > 0 and not ledger.credit(
            session, user_id, points, kind=RewardKind.TASK_COMPLETED, source_ref=task_id
        ):
            raise NotFound("Profile not found.")
        return points
