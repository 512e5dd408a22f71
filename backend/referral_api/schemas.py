# backend/referral_api/schemas.py
"""
Pydantic models for request/response shapes.
- ReferralSubmission: a validated intake form (job_ids already decoded)
- ReferralOut: one row as returned by GET /api/referrals
- StatusUpdate: PATCH body
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .core.config import REFERRAL_CONTEXTS


class ReferralSubmission(BaseModel):
    candidate_name: str
    candidate_email: str
    role_title: str
    job_ids: List[str]
    why_fit: str
    context: str

    @field_validator("candidate_name", "candidate_email", "role_title", "why_fit", "context")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("job_ids")
    @classmethod
    def _job_ids(cls, v: List[str]) -> List[str]:
        # stored exactly as submitted; order and spelling are never rewritten
        if not any(j.strip() for j in v):
            raise ValueError("at least one job id is required")
        return v

    @field_validator("context")
    @classmethod
    def _known_context(cls, v: str) -> str:
        if v not in REFERRAL_CONTEXTS:
            raise ValueError(f"must be one of: {', '.join(REFERRAL_CONTEXTS)}")
        return v


class ReferralOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    candidate_name: str
    candidate_email: str
    role_title: str
    job_ids: List[str]
    why_fit: str
    context: str
    resume_text: Optional[str] = None
    fit_score: Optional[int] = None
    fit_summary: Optional[str] = None
    scoring_status: str
    status: str
    created_at: datetime


class StatusUpdate(BaseModel):
    status: str
