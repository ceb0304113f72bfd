"""
petsconnect.api.routes.engagement — Engagement endpoints (JWT-protected)
=========================================================================

Thin wrappers over :mod:`petsconnect.services.engagement_service`.  Domain
errors propagate to the app-level :class:`PetsConnectError` handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from petsconnect.api.deps import get_current_profile_id, get_engine
from petsconnect.database.seed import seed_demo_social
from petsconnect.engine.ranking import utc_isoformat
from petsconnect.services import engagement_service

router = APIRouter(tags=["engagement"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class PostCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    image_url: str | None = Field(None, max_length=500)
    group_id: str | None = None


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    parent_id: str | None = None


class BoostRequest(BaseModel):
    level: int


class SaveRequest(BaseModel):
    board_id: str | None = None


class BoardCreate(BaseModel):
    name: str = Field(..., max_length=100)


class DiscountRequest(BaseModel):
    tier: str


class FriendRequestCreate(BaseModel):
    friend_id: str


def _toggle_dict(result: engagement_service.ToggleResult) -> dict:
    return {
        "state": result.state.value,
        "points_awarded": result.points_awarded,
        "duplicate": result.duplicate,
    }


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
@router.post("/posts", status_code=201)
def create_post(
    body: PostCreate,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    """Publish a post to the global feed, or to a group feed."""
    post = engagement_service.create_post(
        engine, user_id, body.content, image_url=body.image_url, group_id=body.group_id
    )
    return {
        "id": post.id,
        "user_id": post.user_id,
        "group_id": post.group_id,
        "content": post.content,
        "image_url": post.image_url,
        "created_at": utc_isoformat(post.created_at),
    }


# ---------------------------------------------------------------------------
# Likes / helpful marks
# ---------------------------------------------------------------------------
@router.post("/posts/{post_id}/like")
def like_post(
    post_id: str,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    """Toggle the caller's like on a post."""
    return _toggle_dict(engagement_service.toggle_like(engine, user_id, post_id))


@router.post("/posts/{post_id}/helpful")
def mark_helpful(
    post_id: str,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    return _toggle_dict(engagement_service.toggle_helpful(engine, user_id, post_id))


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
@router.post("/posts/{post_id}/comments", status_code=201)
def create_comment(
    post_id: str,
    body: CommentCreate,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    result = engagement_service.add_comment(
        engine, user_id, post_id, body.content, parent_id=body.parent_id
    )
    c = result.comment
    return {
        "id": c.id,
        "post_id": c.post_id,
        "parent_id": c.parent_id,
        "content": c.content,
        "created_at": utc_isoformat(c.created_at),
        "points_awarded": result.points_awarded,
    }


# ---------------------------------------------------------------------------
# Point redemption
# ---------------------------------------------------------------------------
@router.post("/posts/{post_id}/boost")
def boost_post(
    post_id: str,
    body: BoostRequest,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    result = engagement_service.redeem_boost(engine, user_id, post_id, body.level)
    return {
        "post_id": result.post_id,
        "boost_level": result.boost_level,
        "boost_until": utc_isoformat(result.boost_until),
        "balance": result.balance,
    }


@router.post("/businesses/{business_id}/discounts", status_code=201)
def redeem_discount(
    business_id: str,
    body: DiscountRequest,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    """Spend points on a discount; the receipt is sent to the business inbox."""
    result = engagement_service.redeem_discount(engine, user_id, business_id, body.tier)
    return {
        "tier": result.tier.name,
        "discount_percent": result.tier.discount_percent,
        "cost": result.tier.cost,
        "balance": result.balance,
        "message_id": result.message.id,
        "receipt": result.message.content,
    }


# ---------------------------------------------------------------------------
# Boards / saves
# ---------------------------------------------------------------------------
@router.post("/boards", status_code=201)
def create_board(
    body: BoardCreate,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    board = engagement_service.create_board(engine, user_id, body.name)
    return {"id": board.id, "name": board.name}


@router.post("/posts/{post_id}/save", status_code=201)
def save_post(
    post_id: str,
    body: SaveRequest | None = None,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    board_id = body.board_id if body else None
    saved = engagement_service.save_post(engine, user_id, post_id, board_id)
    return {"id": saved.id, "post_id": saved.post_id, "board_id": saved.board_id}


# ---------------------------------------------------------------------------
# Friends / tasks / onboarding
# ---------------------------------------------------------------------------
@router.post("/friends/requests", status_code=201)
def send_friend_request(
    body: FriendRequestCreate,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    request = engagement_service.send_friend_request(engine, user_id, body.friend_id)
    return {"id": request.id, "friend_id": request.friend_id, "status": request.status}


@router.post("/tasks/{task_id}/complete")
def complete_task(
    task_id: str,
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    points = engagement_service.complete_task(engine, user_id, task_id)
    return {"task_id": task_id, "points_awarded": points}


@router.post("/profiles/me/seed")
def seed_my_network(
    user_id: str = Depends(get_current_profile_id),
    engine=Depends(get_engine),
):
    """Give the caller starter friends and an inbox.  Safe to call repeatedly."""
    result = seed_demo_social(engine, user_id)
    return {
        "friends_created": result.friends_created,
        "messages_created": result.messages_created,
    }
