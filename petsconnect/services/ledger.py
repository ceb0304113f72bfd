"""
petsconnect.services.ledger — Reward Ledger
============================================

Owns every change to ``profiles.points``.  Balances move only through
single SQL ``UPDATE … SET points = points ± n`` statements, never a
read-modify-write from an in-memory copy, so concurrent credits to the
same profile cannot lose updates.

:func:`debit` is the sole affordability gate: its ``WHERE points >= n``
guard decides, atomically, whether the spend happens.  Callers must not
pre-check balances.

All functions run inside the caller's session/transaction and append a
``points_log`` row alongside the balance change.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from petsconnect.database.models import PointsLog, Profile, RewardKind
from petsconnect.engine.events import RewardEvent
from petsconnect.errors import InsufficientPoints, NotFound

logger = logging.getLogger(__name__)


def _journal(
    session: Session,
    *,
    profile_id: str,
    kind: RewardKind,
    delta: int,
    source_ref: str | None,
    metadata: dict | None,
) -> int:
    """Append a points_log row and return the post-change balance."""
    balance = session.scalar(select(Profile.points).where(Profile.user_id == profile_id))
    session.add(PointsLog(
        profile_id=profile_id,
        kind=kind.value,
        delta=delta,
        balance_after=balance,
        source_ref=source_ref,
        metadata_=metadata or None,
    ))
    return balance


def get_balance(session: Session, profile_id: str) -> int:
    """Current point balance for *profile_id*."""
    balance = session.scalar(select(Profile.points).where(Profile.user_id == profile_id))
    if balance is None:
        raise NotFound("Profile not found.")
    return balance


def credit(
    session: Session,
    profile_id: str,
    amount: int,
    *,
    kind: RewardKind,
    source_ref: str | None = None,
    metadata: dict | None = None,
) -> bool:
    """Atomically add *amount* points to *profile_id*.

    Returns ``False`` (and writes nothing) when the profile doesn't exist.
    """
    if amount <= 0:
        raise ValueError(f"credit amount must be positive, got {amount}")

    result = session.execute(
        update(Profile)
        .where(Profile.user_id == profile_id)
        .values(points=Profile.points + amount)
    )
    if result.rowcount == 0:
        return False

    balance = _journal(
        session,
        profile_id=profile_id,
        kind=kind,
        delta=amount,
        source_ref=source_ref,
        metadata=metadata,
    )
    logger.debug("Credited %d pts to %s (%s) → %d", amount, profile_id, kind, balance)
    return True


def debit(
    session: Session,
    profile_id: str,
    amount: int,
    *,
    kind: RewardKind,
    source_ref: str | None = None,
    metadata: dict | None = None,
) -> int:
    """Atomically subtract *amount* points from *profile_id*.

    Either the full amount is taken or nothing is.  Returns the new balance.

    Raises
    ------
    NotFound
        If the profile doesn't exist.
    InsufficientPoints
        If the balance is below *amount*.  Carries the exact shortfall.
    """
    if amount <= 0:
        raise ValueError(f"debit amount must be positive, got {amount}")

    result = session.execute(
        update(Profile)
        .where(Profile.user_id == profile_id, Profile.points >= amount)
        .values(points=Profile.points - amount)
    )
    if result.rowcount == 0:
        balance = get_balance(session, profile_id)
        raise InsufficientPoints(required=amount, balance=balance)

    balance = _journal(
        session,
        profile_id=profile_id,
        kind=kind,
        delta=-amount,
        source_ref=source_ref,
        metadata=metadata,
    )
    logger.debug("Debited %d pts from %s (%s) → %d", amount, profile_id, kind, balance)
    return balance


def apply_reward_event(session: Session, event: RewardEvent) -> bool:
    """Credit the recipient of *event*.  ``False`` if they have no profile."""
    return credit(
        session,
        event.recipient_id,
        event.amount,
        kind=event.kind,
        source_ref=event.source_ref,
        metadata=event.metadata,
    )
