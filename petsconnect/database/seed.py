"""
petsconnect.database.seed — Demo Social Seeder
===============================================

Gives a brand-new member a populated experience: accepted friendships
with the oldest regular members, and a short inbox exchange with the
oldest business accounts.

Idempotent — a pair that already has a friendship (in either direction)
or any message between them is skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Engine, and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from petsconnect.database.engine import get_session
from petsconnect.database.models import Friend, FriendStatus, Message, Profile
from petsconnect.errors import UpstreamFailure

logger = logging.getLogger(__name__)

SEED_TARGETS = 3


@dataclass(frozen=True, slots=True)
class SeedResult:
    friends_created: int = 0
    messages_created: int = 0


def _oldest_profiles(session, user_id: str, *, business: bool) -> list[Profile]:
    return list(session.scalars(
        select(Profile)
        .where(Profile.is_business.is_(business), Profile.user_id != user_id)
        .order_by(Profile.created_at.asc(), Profile.user_id.asc())
        .limit(SEED_TARGETS)
    ).all())


def _pair_filter(left_a, left_b, a: str, b: str):
    return or_(
        and_(left_a == a, left_b == b),
        and_(left_a == b, left_b == a),
    )


def _seed(session, user_id: str) -> SeedResult:
    friends_created = 0
    messages_created = 0

    businesses = _oldest_profiles(session, user_id, business=True)
    members = _oldest_profiles(session, user_id, business=False)
    friend_targets = members or businesses
    message_targets = businesses or friend_targets

    for target in friend_targets:
        already = session.scalar(
            select(func.count())
            .select_from(Friend)
            .where(_pair_filter(Friend.user_id, Friend.friend_id, user_id, target.user_id))
        )
        if already:
            continue
        session.add(Friend(
            user_id=user_id,
            friend_id=target.user_id,
            status=FriendStatus.ACCEPTED.value,
            created_at=datetime.now(UTC),
        ))
        friends_created += 1

    for target in message_targets:
        already = session.scalar(
            select(func.count())
            .select_from(Message)
            .where(_pair_filter(Message.sender_id, Message.receiver_id, user_id, target.user_id))
        )
        if already:
            continue
        name = target.display_name
        if target.is_business:
            inbound = (
                f"Hi! This is {name}. Thanks for checking us out. "
                "How can we help your pet today?"
            )
            outbound = f"Hi {name}! I have a quick question about your services."
        else:
            inbound = "Hey! I saw your profile on PetsConnect, want to swap pet pics?"
            outbound = "Absolutely! What kind of pet do you have?"

        now = datetime.now(UTC)
        session.add_all([
            Message(sender_id=target.user_id, receiver_id=user_id, content=inbound, created_at=now),
            Message(sender_id=user_id, receiver_id=target.user_id, content=outbound, created_at=now),
        ])
        messages_created += 2

    return SeedResult(friends_created=friends_created, messages_created=messages_created)


def seed_demo_social(engine: Engine, user_id: str) -> SeedResult:
    """Seed friends and inbox messages for *user_id*.

    Friend targets are regular members, falling back to businesses when
    there are none; message targets are businesses, falling back to the
    friend targets.
    """
    try:
        with get_session(engine) as session:
            result = _seed(session, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Demo social seed failed for %s", user_id)
        raise UpstreamFailure("Could not set up your starter network.") from exc

    if result.friends_created or result.messages_created:
        logger.info(
            "Seeded %d friends and %d messages for %s",
            result.friends_created, result.messages_created, user_id,
        )
    return result
