"""
petsconnect.constants — Shared Constants
=========================================

Single source of truth for the reward tier table and the two point-spend
catalogues (post boosts and business discounts).  Import from here instead
of duplicating values in services and routes.
"""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Reward tiers — derived from a profile's points, never stored
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Tier:
    name: str
    min_points: int
    discount_percent: int


# Ascending breakpoints; lower bound is inclusive.
REWARD_TIERS: tuple[Tier, ...] = (
    Tier("Starter", 0, 0),
    Tier("Bronze", 50, 5),
    Tier("Silver", 100, 10),
    Tier("Gold", 200, 15),
    Tier("Platinum", 500, 25),
)


# ---------------------------------------------------------------------------
# Post boosts — business accounts spend points for top-of-feed placement
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BoostTier:
    level: int
    cost: int
    hours: int
    label: str


BOOST_TIERS: tuple[BoostTier, ...] = (
    BoostTier(level=1, cost=10, hours=2, label="Top post for 2 hours"),
    BoostTier(level=2, cost=25, hours=6, label="Top post for 6 hours"),
    BoostTier(level=3, cost=50, hours=24, label="Top post for a full day"),
)


# ---------------------------------------------------------------------------
# Business discounts — members spend points, receipt lands in the inbox
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DiscountTier:
    name: str
    cost: int
    discount_percent: int

    @property
    def label(self) -> str:
        return f"{self.name} Discount"


DISCOUNT_TIERS: tuple[DiscountTier, ...] = (
    DiscountTier("Bronze", 10, 5),
    DiscountTier("Silver", 25, 10),
    DiscountTier("Gold", 50, 15),
    DiscountTier("Platinum", 100, 25),
)


RECEIPT_TEMPLATE = (
    "\U0001f39f\ufe0f DISCOUNT REDEEMED!\n\n"
    "{label}: {percent}% OFF\n"
    "Business: {business}\n"
    "Points Used: {cost}\n\n"
    "Show this message to redeem your discount!"
)
