"""
petsconnect.engine.ranking — Boost-Aware Feed Ordering
=======================================================

Pure ordering over an already-fetched candidate set.  No DB I/O.

Algorithm (global and group feeds only)::

    boosted     = posts with boost_until > now
    not boosted = everything else
    boosted     → boost_level desc, created_at desc, id desc
    not boosted → created_at desc, id desc
    result      = boosted + not boosted

The whole candidate set and a single ``now`` must be supplied up front so
the output is deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Protocol, TypeVar

__all__ = ["Rankable", "as_utc", "boost_aware_order", "is_boosted", "utc_isoformat"]


class Rankable(Protocol):
    id: str
    created_at: datetime
    boost_until: datetime | None
    boost_level: int | None


R = TypeVar("R", bound=Rankable)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_isoformat(value: datetime | None) -> str | None:
    """ISO-8601 in UTC for API payloads; ``None`` passes through."""
    return as_utc(value).isoformat() if value else None


def is_boosted(post: Rankable, now: datetime) -> bool:
    """A post is boosted iff ``boost_until`` is set and strictly after *now*."""
    if post.boost_until is None:
        return False
    return as_utc(post.boost_until) > as_utc(now)


def _recency_key(post: Rankable) -> tuple[datetime, str]:
    return as_utc(post.created_at), post.id


def _boost_key(post: Rankable) -> tuple[int, datetime, str]:
    return (post.boost_level or 0, *_recency_key(post))


def boost_aware_order(posts: Iterable[R], now: datetime) -> list[R]:
    """Order *posts* with currently boosted posts first.

    Parameters
    ----------
    posts:
        The full candidate set.  Input order does not affect the output.
    now:
        The single clock snapshot every boost window is compared against.
    """
    boosted: list[R] = []
    regular: list[R] = []
    for post in posts:
        (boosted if is_boosted(post, now) else regular).append(post)

    boosted.sort(key=_boost_key, reverse=True)
    regular.sort(key=_recency_key, reverse=True)
    return boosted + regular
