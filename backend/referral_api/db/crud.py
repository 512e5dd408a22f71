# backend/referral_api/db/crud.py
"""
Tiny CRUD helpers for Referral.
Usage (with context manager):
    from .session import session_scope
    with session_scope() as s:
        insert_referral(s, fields)

Or with the FastAPI dependency `get_session()`.

Every write commits before returning; SQLAlchemy failures are rolled back and
re-raised as StorageError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc, asc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import StorageError
from .models import Referral, ReferralStatus

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "candidate_name",
    "candidate_email",
    "role_title",
    "job_ids",
    "why_fit",
    "context",
)


# ----------------- Inserts -----------------

def insert_referral(session: Session, fields: Dict[str, Any]) -> Referral:
    """
    Insert one referral row and return it with id/created_at populated.
    Not an upsert: identical submissions produce separate rows.
    id, created_at and status are always assigned here, never taken from `fields`.
    """
    missing = [k for k in REQUIRED_FIELDS if fields.get(k) in (None, "", [])]
    if missing:
        raise StorageError(f"Missing required fields: {', '.join(missing)}")

    row = Referral(
        candidate_name=fields["candidate_name"],
        candidate_email=fields["candidate_email"],
        role_title=fields["role_title"],
        job_ids=list(fields["job_ids"]),
        why_fit=fields["why_fit"],
        context=fields["context"],
        resume_text=fields.get("resume_text"),
        fit_score=fields.get("fit_score"),
        fit_summary=fields.get("fit_summary"),
        scoring_status=fields.get("scoring_status") or "scored",
        status=ReferralStatus.PENDING.value,
    )
    try:
        session.add(row)
        session.commit()
        session.refresh(row)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("referral insert failed: %s", e)
        raise StorageError(f"Failed to insert referral: {e}") from e
    return row


# ----------------- Queries -----------------

def list_referrals(session: Session) -> List[Referral]:
    """All referrals, highest fit score first; ties keep insertion order."""
    q = select(Referral).order_by(desc(Referral.fit_score), asc(Referral.id))
    try:
        return list(session.execute(q).scalars().all())
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("referral listing failed: %s", e)
        raise StorageError(f"Failed to list referrals: {e}") from e


def get_referral(session: Session, referral_id: int) -> Optional[Referral]:
    try:
        return session.get(Referral, referral_id)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("referral lookup failed for %s: %s", referral_id, e)
        raise StorageError(f"Failed to load referral {referral_id}: {e}") from e


# ----------------- Updates -----------------

def update_status(session: Session, referral_id: int, status: str) -> Optional[Referral]:
    """
    Set the status column of one row. Returns None when the id does not exist
    (nothing is written in that case).
    """
    row = get_referral(session, referral_id)
    if row is None:
        return None
    row.status = status
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("status update failed for referral %s: %s", referral_id, e)
        raise StorageError(f"Failed to update referral {referral_id}: {e}") from e
    return row


__all__ = ["REQUIRED_FIELDS", "insert_referral", "list_referrals", "get_referral", "update_status"]
