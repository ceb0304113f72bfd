"""
petsconnect.engine.tiers — Tier, Boost & Discount Lookups
==========================================================

Pure functions over the tables in :mod:`petsconnect.constants`.
No DB I/O.  A profile's tier is recomputed from its points on every read.
"""

from __future__ import annotations

from petsconnect.constants import (
    BOOST_TIERS,
    DISCOUNT_TIERS,
    REWARD_TIERS,
    BoostTier,
    DiscountTier,
    Tier,
)

__all__ = ["boost_tier", "discount_tier", "next_tier", "tier_for"]


def _tier_index(points: int) -> int:
    if points < 0:
        raise ValueError(f"points must be non-negative, got {points}")
    index = 0
    for i, tier in enumerate(REWARD_TIERS):
        if points >= tier.min_points:
            index = i
    return index


def tier_for(points: int) -> Tier:
    """Return the reward tier for *points*.

    Breakpoints are inclusive on the lower bound::

        >>> tier_for(49).name, tier_for(50).name
        ('Starter', 'Bronze')
    """
    return REWARD_TIERS[_tier_index(points)]


def next_tier(points: int) -> Tier | None:
    """Return the tier above the current one, or ``None`` at the top."""
    index = _tier_index(points) + 1
    return REWARD_TIERS[index] if index < len(REWARD_TIERS) else None


def boost_tier(level: int) -> BoostTier | None:
    """Look up a boost option by level."""
    return next((t for t in BOOST_TIERS if t.level == level), None)


def discount_tier(name: str) -> DiscountTier | None:
    """Look up a discount option by name (case-insensitive)."""
    wanted = name.strip().lower()
    return next((t for t in DISCOUNT_TIERS if t.name.lower() == wanted), None)
