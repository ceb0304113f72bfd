"""
petsconnect.api.routes.rewards — Reward catalogue and profile progress
=======================================================================
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from petsconnect.api.deps import get_session
from petsconnect.constants import BOOST_TIERS, DISCOUNT_TIERS, REWARD_TIERS
from petsconnect.engine.tiers import next_tier, tier_for
from petsconnect.services import ledger

router = APIRouter(tags=["rewards"])


@router.get("/rewards/tiers")
def get_reward_catalogue():
    return {
        "tiers": [asdict(t) for t in REWARD_TIERS],
        "boosts": [asdict(b) for b in BOOST_TIERS],
        "discounts": [{**asdict(d), "label": d.label} for d in DISCOUNT_TIERS],
    }


@router.get("/profiles/{profile_id}/rewards")
def get_profile_rewards(profile_id: str, session: Session = Depends(get_session)):
    """Balance, derived tier, and how far the profile is from the next one."""
    points = ledger.get_balance(session, profile_id)
    tier = tier_for(points)
    upcoming = next_tier(points)
    return {
        "profile_id": profile_id,
        "points": points,
        "tier": asdict(tier),
        "next_tier": asdict(upcoming) if upcoming else None,
        "points_to_next": upcoming.min_points - points if upcoming else 0,
    }
