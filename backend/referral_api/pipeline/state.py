# backend/referral_api/pipeline/state.py
"""
Per-submission STATE for the intake pipeline.

A submission moves through
    received -> validated -> resume_extracted -> scored -> persisted
or stops at `rejected` when validation fails. Nothing here is shared between
requests; each call to run_intake builds its own state.
"""

from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict

logger = logging.getLogger(__name__)


class IntakeStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    RESUME_EXTRACTED = "resume_extracted"
    SCORED = "scored"
    PERSISTED = "persisted"
    REJECTED = "rejected"


class IntakeState(TypedDict, total=False):
    intake_id: str
    stage: IntakeStage
    history: List[IntakeStage]
    raw: Dict[str, Any]                 # form fields as received
    resume_path: Optional[str]
    resume_filename: Optional[str]
    submission: Any                     # schemas.ReferralSubmission once validated
    resume_text: Optional[str]
    extraction_failed: bool
    assessment: Any                     # pipeline.score.FitAssessment
    referral_id: Optional[int]


def new_state(
    raw: Dict[str, Any],
    resume_path: Optional[str] = None,
    resume_filename: Optional[str] = None,
) -> IntakeState:
    return IntakeState(
        intake_id=uuid.uuid4().hex[:12],
        stage=IntakeStage.RECEIVED,
        history=[IntakeStage.RECEIVED],
        raw=dict(raw or {}),
        resume_path=resume_path,
        resume_filename=resume_filename,
        submission=None,
        resume_text=None,
        extraction_failed=False,
        assessment=None,
        referral_id=None,
    )


def advance(state: IntakeState, stage: IntakeStage) -> IntakeState:
    """Record a stage transition on the state and log it."""
    logger.debug("intake %s: %s -> %s", state.get("intake_id"), state["stage"].value, stage.value)
    state["stage"] = stage
    state.setdefault("history", []).append(stage)
    return state


__all__ = ["IntakeStage", "IntakeState", "new_state", "advance"]
