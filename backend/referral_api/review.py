# backend/referral_api/review.py
"""
Reviewer queue: list referrals by fit and move them between statuses.

Status transitions:
    pending  -> approved | rejected
    approved -> pending          (reopen)
    rejected -> pending          (reopen)
Re-applying the current status is a no-op. Anything else is refused and the
stored row is left untouched.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List

from sqlalchemy.orm import Session

from .core.errors import InvalidStatusError, ReferralNotFoundError, StatusTransitionError
from .db import crud
from .db.models import Referral, ReferralStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[ReferralStatus, FrozenSet[ReferralStatus]] = {
    ReferralStatus.PENDING: frozenset({ReferralStatus.APPROVED, ReferralStatus.REJECTED}),
    ReferralStatus.APPROVED: frozenset({ReferralStatus.PENDING}),
    ReferralStatus.REJECTED: frozenset({ReferralStatus.PENDING}),
}


def parse_status(value: str) -> ReferralStatus:
    try:
        return ReferralStatus((value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in ReferralStatus)
        raise InvalidStatusError(f"Unknown status {value!r}; expected one of: {allowed}")


def can_transition(current: ReferralStatus, target: ReferralStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def list_referrals(session: Session) -> List[Referral]:
    return crud.list_referrals(session)


def get_referral(session: Session, referral_id: int) -> Referral:
    row = crud.get_referral(session, referral_id)
    if row is None:
        raise ReferralNotFoundError(referral_id)
    return row


def set_status(session: Session, referral_id: int, status: str) -> Referral:
    target = parse_status(status)
    row = get_referral(session, referral_id)
    current = ReferralStatus(row.status)

    if current == target:
        return row
    if not can_transition(current, target):
        raise StatusTransitionError(current.value, target.value)

    updated = crud.update_status(session, referral_id, target.value)
    if updated is None:
        # deleted between read and write
        raise ReferralNotFoundError(referral_id)
    logger.info("referral %s: %s -> %s", referral_id, current.value, target.value)
    return updated


__all__ = [
    "ALLOWED_TRANSITIONS",
    "parse_status",
    "can_transition",
    "list_referrals",
    "get_referral",
    "set_status",
]
