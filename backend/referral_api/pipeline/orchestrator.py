# backend/referral_api/pipeline/orchestrator.py
"""
Glue for the intake pipeline.

Stages (strictly sequential, one pass per submission):
  1) validate.validate     → resume present, required fields, job_ids, context
  2) extract.run_extract   → resume text (falls back to placeholder)
  3) score.run_score       → exactly one oracle call (falls back to 5 / manual review)
  4) persist               → exactly one inserted row, status=pending

Public entry:
  run_intake(session, raw, resume_path, ...) -> state

Validation failures raise SubmissionValidationError before any oracle call or
write. Storage failures raise StorageError. Resubmissions are not deduplicated.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..db import crud
from .extract import ResumeExtractor, get_extractor, run_extract
from .score import FitScorer, run_score
from .state import IntakeStage, IntakeState, advance, new_state
from .validate import validate

logger = logging.getLogger(__name__)


def persist(session: Session, state: IntakeState) -> IntakeState:
    submission = state["submission"]
    assessment = state["assessment"]
    row = crud.insert_referral(session, {
        **submission.model_dump(),
        "resume_text": state.get("resume_text"),
        "fit_score": assessment.score,
        "fit_summary": assessment.summary,
        "scoring_status": assessment.scoring_status.value,
    })
    state["referral_id"] = row.id
    return advance(state, IntakeStage.PERSISTED)


def run_intake(
    session: Session,
    raw: Dict[str, Any],
    resume_path: Optional[str],
    resume_filename: Optional[str] = None,
    scorer: Optional[FitScorer] = None,
    extractor: Optional[ResumeExtractor] = None,
) -> IntakeState:
    """
    Main orchestrator used by FastAPI.

    Returns:
        state, with `referral_id` of the inserted row and the `assessment` used.
    """
    state = new_state(raw, resume_path=resume_path, resume_filename=resume_filename)

    state = validate(state)
    state = run_extract(state, extractor or get_extractor())
    state = run_score(state, scorer or FitScorer())
    state = persist(session, state)

    logger.info(
        "intake %s persisted referral %s for %s",
        state["intake_id"], state["referral_id"], state["submission"].candidate_name,
    )
    return state


__all__ = ["run_intake", "persist"]
