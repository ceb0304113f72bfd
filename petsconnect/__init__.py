"""
PetsConnect — Feed Composition & Engagement Scoring Core
=========================================================
Decides which posts a member sees for a given viewing context (global
feed, group feed, search, "helpful" ranking), in what order, and keeps the
derived engagement and reward state (likes, helpful marks, comments,
saves, boosts, author points) consistent.

Package layout::

    petsconnect/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Reward tiers, boost + discount catalogues
    ├── errors.py          # Domain exception taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   ├── models.py      # All ORM models
    │   └── seed.py        # Demo friends + inbox seeder
    ├── engine/
    │   ├── events.py      # RewardKind, base point values, RewardEvent
    │   ├── ranking.py     # Boost-aware feed ordering
    │   └── tiers.py       # Tier / boost / discount lookups
    ├── services/
    │   ├── ledger.py              # Atomic point credit/debit + journal
    │   ├── hydrator.py            # Batched post hydration
    │   ├── feed_service.py        # Scoped feed composition
    │   └── engagement_service.py  # Like / helpful / comment / redeem handlers
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, config, acting-profile dependencies
        └── routes/        # Feed, engagement, rewards endpoints
"""

__version__ = "0.1.0"
