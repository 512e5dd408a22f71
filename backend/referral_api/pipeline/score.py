# backend/referral_api/pipeline/score.py
"""
Fit scoring: one oracle call per submission → (score, summary).

Entry:
    FitScorer.assess(role_title, job_ids, why_fit, resume_text) -> FitAssessment
    run_score(state, scorer) -> state  (mutates & returns state)

The oracle is a black box. Whatever goes wrong with it (no key, network,
timeout, non-JSON, wrong shape) ends in the fallback assessment with
scoring_status="fallback"; nothing is raised to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, ValidationError, field_validator
from tenacity import RetryCallState, Retrying, stop_after_attempt, wait_exponential

from ..core.config import SCORING_OPTIONS
from ..core.errors import OracleError
from ..core.prompts import PROMPTS
from ..core.utils import clip, json_loose
from ..db.models import ScoringStatus
from .state import IntakeStage, IntakeState, advance

logger = logging.getLogger(__name__)


class FitAssessment(BaseModel):
    score: int
    summary: str
    scoring_status: ScoringStatus = ScoringStatus.SCORED

    @property
    def is_fallback(self) -> bool:
        return self.scoring_status == ScoringStatus.FALLBACK


class _OracleReply(BaseModel):
    score: int
    summary: str

    @field_validator("summary", mode="before")
    @classmethod
    def _join_bullets(cls, v: Any) -> Any:
        if isinstance(v, list) and all(isinstance(x, str) for x in v):
            return "\n".join(v)
        return v


def fallback_assessment(options: Optional[Dict[str, Any]] = None) -> FitAssessment:
    opts = options or SCORING_OPTIONS
    return FitAssessment(
        score=opts["fallback_score"],
        summary=opts["fallback_summary"],
        scoring_status=ScoringStatus.FALLBACK,
    )


def _message_text(response: Any) -> str:
    """AIMessage.content may be a plain string or a list of content parts."""
    content = getattr(response, "content", response)
    if isinstance(content, list):
        return "".join(
            p.get("text", "") if isinstance(p, dict) else str(p)
            for p in content
        )
    return str(content or "")


def parse_reply(text: str) -> _OracleReply:
    try:
        data = json_loose(text)
    except (ValueError, TypeError) as e:
        raise OracleError(f"oracle reply is not JSON: {clip(text, 200)!r}") from e
    if not isinstance(data, dict):
        raise OracleError(f"oracle reply is not a JSON object: {clip(text, 200)!r}")
    try:
        return _OracleReply.model_validate(data)
    except ValidationError as e:
        raise OracleError(f"oracle reply has wrong shape: {e.error_count()} error(s)") from e


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("scoring attempt %s failed, retrying: %s", retry_state.attempt_number, exc)


class FitScorer:
    """Scoring oracle adapter around a LangChain chat model."""

    def __init__(self, llm: Any = None, options: Optional[Dict[str, Any]] = None):
        self._llm = llm
        self.options: Dict[str, Any] = {**SCORING_OPTIONS, **(options or {})}
        self.prompt = ChatPromptTemplate.from_template(PROMPTS["referral_fit_check"])

    @property
    def llm(self) -> Any:
        if self._llm is None:
            # local import keeps the Gemini client off the import path until first use
            from ..core.llm import get_llm
            self._llm = get_llm()
        return self._llm

    def _ask_once(self, messages: List[Any]) -> _OracleReply:
        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            raise OracleError(f"oracle call failed: {e}") from e
        return parse_reply(_message_text(response))

    def _call_oracle(self, messages: List[Any]) -> _OracleReply:
        retrying = Retrying(
            stop=stop_after_attempt(max(1, int(self.options["max_attempts"]))),
            wait=wait_exponential(multiplier=self.options["retry_wait_s"], max=8),
            before_sleep=_log_retry,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._ask_once(messages)
        raise OracleError("oracle produced no result")  # unreachable with reraise=True

    def assess(self, role_title: str, job_ids: List[str], why_fit: str, resume_text: Optional[str]) -> FitAssessment:
        messages = self.prompt.format_messages(
            job_ids=json.dumps(list(job_ids)),
            role_title=role_title,
            why_fit=why_fit,
            resume_text=clip(resume_text, self.options["resume_clip_chars"]),
        )
        try:
            reply = self._call_oracle(messages)
        except OracleError as e:
            logger.error("fit scoring failed, using fallback: %s", e)
            return fallback_assessment(self.options)

        if not 1 <= reply.score <= 10:
            logger.warning("oracle score %s outside 1-10; keeping as returned", reply.score)
        return FitAssessment(score=reply.score, summary=reply.summary, scoring_status=ScoringStatus.SCORED)


def run_score(state: IntakeState, scorer: FitScorer) -> IntakeState:
    submission = state["submission"]
    assessment = scorer.assess(
        role_title=submission.role_title,
        job_ids=submission.job_ids,
        why_fit=submission.why_fit,
        resume_text=state.get("resume_text"),
    )
    state["assessment"] = assessment
    logger.info(
        "intake %s scored %s (%s)",
        state.get("intake_id"), assessment.score, assessment.scoring_status.value,
    )
    return advance(state, IntakeStage.SCORED)


__all__ = ["FitAssessment", "FitScorer", "fallback_assessment", "parse_reply", "run_score"]
