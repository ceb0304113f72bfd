"""
petsconnect.services.feed_service — Feed Composer
==================================================

Fetches candidate posts for a viewing scope, orders them, and hands them
to the hydrator.

============  ==============================  ===========================
Scope         Candidates                      Order
============  ==============================  ===========================
GLOBAL        ``group_id IS NULL``            boost-aware (engine.ranking)
GROUP(id)     ``group_id = id``               boost-aware
SEARCH(text)  content ILIKE ``%text%``        ``created_at`` desc
TOP_HELPFUL   all posts                       ``helpful_count`` desc
============  ==============================  ===========================

For GLOBAL/GROUP the default fetch truncates to ``limit`` *before*
ordering, so a boosted post can fall outside the window.  Pass
``order_before_limit=True`` to order the whole scope first.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from petsconnect.database.models import Post
from petsconnect.engine.ranking import boost_aware_order
from petsconnect.errors import UpstreamFailure
from petsconnect.services.hydrator import HydratedPost, hydrate

logger = logging.getLogger(__name__)


class ScopeKind(enum.StrEnum):
    GLOBAL = "global"
    GROUP = "group"
    SEARCH = "search"
    TOP_HELPFUL = "top_helpful"


@dataclass(frozen=True, slots=True)
class FeedScope:
    """Which posts a feed draws from.  Build with the classmethods."""

    kind: ScopeKind
    group_id: str | None = None
    text: str | None = None

    @classmethod
    def global_feed(cls) -> FeedScope:
        return cls(ScopeKind.GLOBAL)

    @classmethod
    def group(cls, group_id: str) -> FeedScope:
        return cls(ScopeKind.GROUP, group_id=group_id)

    @classmethod
    def search(cls, text: str) -> FeedScope:
        return cls(ScopeKind.SEARCH, text=text)

    @classmethod
    def top_helpful(cls) -> FeedScope:
        return cls(ScopeKind.TOP_HELPFUL)

    @property
    def boost_ordered(self) -> bool:
        return self.kind in (ScopeKind.GLOBAL, ScopeKind.GROUP)


def _candidate_query(scope: FeedScope) -> Select:
    query = select(Post)
    if scope.kind == ScopeKind.GLOBAL:
        return query.where(Post.group_id.is_(None))
    if scope.kind == ScopeKind.GROUP:
        return query.where(Post.group_id == scope.group_id)
    if scope.kind == ScopeKind.SEARCH:
        text = (scope.text or "").strip()
        return (
            query.where(Post.content.icontains(text, autoescape=True))
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
    return query.order_by(
        Post.helpful_count.desc(), Post.created_at.desc(), Post.id.desc()
    )


def compose_feed(
    session: Session,
    scope: FeedScope,
    limit: int,
    *,
    now: datetime | None = None,
    order_before_limit: bool = False,
) -> list[HydratedPost]:
    """Return up to *limit* hydrated posts for *scope*.

    Parameters
    ----------
    session:
        Used read-only.
    scope:
        The viewing context.
    limit:
        Maximum number of posts returned.
    now:
        Clock snapshot for boost windows.  Defaults to the current UTC time.
    order_before_limit:
        GLOBAL/GROUP only.  Fetch every candidate, order, then truncate.

    Raises
    ------
    ValueError
        If *limit* is less than 1.
    UpstreamFailure
        If the candidate fetch or hydration fails.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    now = now or datetime.now(UTC)

    query = _candidate_query(scope)
    if not (scope.boost_ordered and order_before_limit):
        query = query.limit(limit)

    try:
        candidates = list(session.scalars(query).all())
    except SQLAlchemyError as exc:
        logger.exception("Feed fetch failed for scope %s", scope.kind)
        raise UpstreamFailure("Could not load posts.") from exc

    if scope.boost_ordered:
        candidates = boost_aware_order(candidates, now)[:limit]

    logger.debug(
        "Composed %s feed: %d posts (limit=%d, order_before_limit=%s)",
        scope.kind, len(candidates), limit, order_before_limit,
    )
    return hydrate(session, candidates)
