# backend/referral_api/pipeline/validate.py

from __future__ import annotations

import json
import logging
from typing import Any, List

from pydantic import ValidationError

from ..core.errors import SubmissionValidationError
from ..schemas import ReferralSubmission
from .state import IntakeStage, IntakeState, advance

logger = logging.getLogger(__name__)


def _decode_job_ids(raw: Any) -> Any:
    """job_ids arrive as a JSON-encoded array string from the form."""
    if raw is None or isinstance(raw, list):
        return raw
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        raise SubmissionValidationError("job_ids must be a JSON array of strings")
    if not isinstance(decoded, list):
        raise SubmissionValidationError("job_ids must be a JSON array of strings")
    return decoded


def _format_errors(exc: ValidationError) -> str:
    parts: List[str] = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "submission"
        parts.append(f"{field}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def validate(state: IntakeState) -> IntakeState:
    """
    Resume presence first (no file -> nothing else is looked at), then the
    form fields. Raises SubmissionValidationError and marks the state rejected.
    """
    try:
        if not state.get("resume_path"):
            raise SubmissionValidationError("Resume is required")

        raw = dict(state.get("raw") or {})
        raw["job_ids"] = _decode_job_ids(raw.get("job_ids"))
        try:
            submission = ReferralSubmission.model_validate(raw)
        except ValidationError as e:
            raise SubmissionValidationError(_format_errors(e)) from e
    except SubmissionValidationError as e:
        advance(state, IntakeStage.REJECTED)
        logger.info("intake %s rejected: %s", state.get("intake_id"), e)
        raise

    state["submission"] = submission
    return advance(state, IntakeStage.VALIDATED)


__all__ = ["validate"]
