# backend/referral_api/db/models.py
"""
SQLAlchemy ORM models.
Only one table is needed:
- Referral: one candidate submission plus its fit assessment and review status.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from sqlalchemy import JSON, String, Integer, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base


class ReferralStatus(str, Enum):
    """Reviewer-facing status.

    Transitions (enforced by review.set_status):
        pending  ->  approved | rejected
        approved | rejected  ->  pending   (reopen)
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ScoringStatus(str, Enum):
    """Whether fit_score/fit_summary came from the oracle or the fallback."""

    SCORED = "scored"
    FALLBACK = "fallback"


class Referral(Base):
    __tablename__ = "referrals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # submission
    candidate_name: Mapped[str] = mapped_column(Text, nullable=False)
    candidate_email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    role_title: Mapped[str] = mapped_column(Text, nullable=False)
    # ordered list, stored as a JSON array
    job_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    why_fit: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[str] = mapped_column(String(64), nullable=False)
    resume_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    # fit assessment
    fit_score: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    fit_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    scoring_status: Mapped[str] = mapped_column(String(16), nullable=False, default=ScoringStatus.SCORED.value)

    # review
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ReferralStatus.PENDING.value,
        server_default=ReferralStatus.PENDING.value,
    )

    # server timestamp
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Referral id={self.id} candidate={self.candidate_name!r} "
            f"fit_score={self.fit_score} status={self.status}>"
        )
