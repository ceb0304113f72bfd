"""
petsconnect.engine.events — RewardEvent and base point values
==============================================================

The reward-event envelope.  Engagement handlers never touch a balance
directly; they describe what happened as a :class:`RewardEvent` and hand
it to :func:`petsconnect.services.ledger.apply_reward_event`, which
applies it as an atomic increment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from petsconnect.database.models import RewardKind

__all__ = ["BASE_POINTS", "RewardEvent", "RewardKind", "reward_for"]

# ---------------------------------------------------------------------------
# Points credited to a post's author per engagement kind
# ---------------------------------------------------------------------------
BASE_POINTS: dict[RewardKind, int] = {
    RewardKind.LIKE_RECEIVED: 1,
    RewardKind.HELPFUL_RECEIVED: 2,
    RewardKind.COMMENT_RECEIVED: 1,
}


@dataclass(frozen=True, slots=True)
class RewardEvent:
    """A credit owed to ``recipient_id`` because ``actor_id`` engaged."""

    recipient_id: str
    actor_id: str
    kind: RewardKind
    amount: int
    source_ref: str | None = None
    metadata: dict = field(default_factory=dict)


def reward_for(
    kind: RewardKind,
    *,
    actor_id: str,
    author_id: str,
    source_ref: str | None = None,
) -> RewardEvent | None:
    """Build the reward owed to *author_id* for an engagement by *actor_id*.

    Returns ``None`` for self-engagement (liking, marking or commenting on
    your own post earns nothing) and for kinds with no base value.
    """
    if actor_id == author_id:
        return None
    amount = BASE_POINTS.get(kind, 0)
    if amount <= 0:
        return None
    return RewardEvent(
        recipient_id=author_id,
        actor_id=actor_id,
        kind=kind,
        amount=amount,
        source_ref=source_ref,
        metadata={"actor_id": actor_id},
    )
