"""
petsconnect.api.routes.feed — Read-only feed endpoints
=======================================================
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from petsconnect.api.deps import get_config, get_optional_profile_id, get_session
from petsconnect.config import PetsConnectConfig
from petsconnect.database.models import Profile
from petsconnect.engine.ranking import is_boosted, utc_isoformat
from petsconnect.services.feed_service import FeedScope, compose_feed
from petsconnect.services.hydrator import HydratedComment, HydratedPost

router = APIRouter(tags=["feed"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _profile_dict(p: Profile | None) -> dict | None:
    if p is None:
        return None
    return {
        "user_id": p.user_id,
        "username": p.username,
        "display_name": p.display_name,
        "avatar_url": p.avatar_url,
        "city": p.city,
        "is_business": p.is_business,
    }


def _comment_dict(hc: HydratedComment) -> dict:
    c = hc.comment
    return {
        "id": c.id,
        "user_id": c.user_id,
        "parent_id": c.parent_id,
        "content": c.content,
        "created_at": utc_isoformat(c.created_at),
        "profile": _profile_dict(hc.profile),
    }


def _post_dict(hp: HydratedPost, viewer_id: str | None, now: datetime) -> dict:
    p = hp.post
    return {
        "id": p.id,
        "user_id": p.user_id,
        "group_id": p.group_id,
        "content": p.content,
        "image_url": p.image_url,
        "created_at": utc_isoformat(p.created_at),
        "profile": _profile_dict(hp.profile),
        "like_count": hp.like_count,
        "helpful_count": p.helpful_count,
        "comment_count": hp.comment_count,
        "boosted": is_boosted(p, now),
        "boost_level": p.boost_level,
        "boost_until": utc_isoformat(p.boost_until),
        "liked_by_me": hp.liked_by(viewer_id) if viewer_id else False,
        "helpful_by_me": hp.marked_helpful_by(viewer_id) if viewer_id else False,
        "threads": [
            {
                **_comment_dict(t.root),
                "replies": [_comment_dict(r) for r in t.replies],
            }
            for t in hp.threads()
        ],
    }


def _feed_response(
    session: Session,
    scope: FeedScope,
    limit: int | None,
    default: int,
    cfg: PetsConnectConfig,
    viewer_id: str | None,
) -> dict:
    effective = min(limit or default, cfg.feed_max_limit)
    now = datetime.now(UTC)
    posts = compose_feed(
        session,
        scope,
        effective,
        now=now,
        order_before_limit=cfg.feed_order_before_limit,
    )
    return {
        "limit": effective,
        "posts": [_post_dict(hp, viewer_id, now) for hp in posts],
    }


# ---------------------------------------------------------------------------
# GET /feed
# ---------------------------------------------------------------------------
@router.get("/feed")
def get_global_feed(
    limit: int | None = Query(None, ge=1),
    session: Session = Depends(get_session),
    cfg: PetsConnectConfig = Depends(get_config),
    viewer_id: str | None = Depends(get_optional_profile_id),
):
    """Posts outside any group, boosted posts first."""
    return _feed_response(
        session, FeedScope.global_feed(), limit, cfg.feed_default_limit, cfg, viewer_id
    )


# ---------------------------------------------------------------------------
# GET /groups/{group_id}/feed
# ---------------------------------------------------------------------------
@router.get("/groups/{group_id}/feed")
def get_group_feed(
    group_id: str,
    limit: int | None = Query(None, ge=1),
    session: Session = Depends(get_session),
    cfg: PetsConnectConfig = Depends(get_config),
    viewer_id: str | None = Depends(get_optional_profile_id),
):
    return _feed_response(
        session, FeedScope.group(group_id), limit, cfg.feed_default_limit, cfg, viewer_id
    )


# ---------------------------------------------------------------------------
# GET /posts/search
# ---------------------------------------------------------------------------
@router.get("/posts/search")
def search_posts(
    q: str = Query(..., min_length=1),
    limit: int | None = Query(None, ge=1),
    session: Session = Depends(get_session),
    cfg: PetsConnectConfig = Depends(get_config),
    viewer_id: str | None = Depends(get_optional_profile_id),
):
    """Case-insensitive substring search over post content, newest first."""
    return _feed_response(
        session, FeedScope.search(q), limit, cfg.feed_search_limit, cfg, viewer_id
    )


# ---------------------------------------------------------------------------
# GET /posts/helpful
# ---------------------------------------------------------------------------
@router.get("/posts/helpful")
def get_top_helpful(
    limit: int | None = Query(None, ge=1),
    session: Session = Depends(get_session),
    cfg: PetsConnectConfig = Depends(get_config),
    viewer_id: str | None = Depends(get_optional_profile_id),
):
    return _feed_response(
        session, FeedScope.top_helpful(), limit, cfg.feed_helpful_limit, cfg, viewer_id
    )
