# backend/referral_api/core/config.py
"""
Central config & environment helpers.
- Loads env (.env) early
- Exposes GEMINI_API_KEY resolution and convenience flags
- Holds SCORING_OPTIONS used by the fit-scoring step and the intake constants
  (allowed contexts / statuses) shared by the pipeline and the API
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from dotenv import load_dotenv

# Load .env once for the whole app
load_dotenv(override=False)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int((os.getenv(name) or "").strip() or default)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float((os.getenv(name) or "").strip() or default)
    except ValueError:
        return default


# --- API keys ---------------------------------------------------------------

def get_gemini_api_key() -> str:
    """
    Returns the Gemini API key (GEMINI_API_KEY, then GOOGLE_API_KEY).
    Raises RuntimeError if missing.
    """
    key = (
        os.getenv("GEMINI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
        or ""
    ).strip()

    if not key:
        raise RuntimeError(
            "Missing Gemini key. Set GEMINI_API_KEY (or GOOGLE_API_KEY) in your environment."
        )

    # Ensure downstream libs see the same key
    os.environ["GOOGLE_API_KEY"] = key
    os.environ["GEMINI_API_KEY"] = key
    # Avoid ADC confusion in server envs
    os.environ.pop("GOOGLE_APPLICATION_CREDENTIALS", None)

    return key


# --- Database / storage -----------------------------------------------------

DATABASE_URL = (os.getenv("DATABASE_URL") or "sqlite:///referrals.db").strip()
DB_ECHO = _env_bool("DB_ECHO", False)
# create missing tables at startup; never drops anything
DB_AUTO_CREATE = _env_bool("DB_AUTO_CREATE", True)

UPLOAD_DIR = (os.getenv("UPLOAD_DIR") or "./uploads").strip()
RESUME_EXTRACTOR = (os.getenv("RESUME_EXTRACTOR") or "placeholder").strip().lower()

# --- HTTP -------------------------------------------------------------------

DEFAULT_ORIGINS = {
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
}


def allowed_origins() -> List[str]:
    extra = {o.strip() for o in (os.getenv("ALLOWED_ORIGINS") or "").split(",") if o.strip()}
    return sorted(DEFAULT_ORIGINS | extra)


# --- Scoring oracle ---------------------------------------------------------

FALLBACK_SCORE = 5
FALLBACK_SUMMARY = "AI analysis failed, manual review required."

SCORING_OPTIONS: Dict[str, Any] = {
    "model": (os.getenv("SCORING_MODEL") or "gemini-2.0-flash").strip(),
    "temperature": 0,
    # per-attempt timeout handed to the client
    "timeout_s": _env_float("SCORING_TIMEOUT_S", 30.0),
    # at-most-once by default
    "max_attempts": max(1, _env_int("SCORING_MAX_ATTEMPTS", 1)),
    # exponential backoff base between attempts (only used when max_attempts > 1)
    "retry_wait_s": _env_float("SCORING_RETRY_WAIT_S", 1.0),
    "fallback_score": FALLBACK_SCORE,
    "fallback_summary": FALLBACK_SUMMARY,
    # resume text is clipped before it goes into the prompt
    "resume_clip_chars": 6000,
}

# --- Intake vocabulary ------------------------------------------------------

REFERRAL_CONTEXTS: List[str] = [
    "Former Colleague",
    "University / Alumni",
    "Cold Reach Out",
    "Friend / Family",
    "Other",
]

# --- Logging ----------------------------------------------------------------

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()


def configure_logging(level: str | None = None) -> None:
    """Root logging setup; called once by the app entrypoint and CLI scripts."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


__all__ = [
    "get_gemini_api_key",
    "DATABASE_URL", "DB_ECHO", "DB_AUTO_CREATE",
    "UPLOAD_DIR", "RESUME_EXTRACTOR",
    "allowed_origins",
    "FALLBACK_SCORE", "FALLBACK_SUMMARY", "SCORING_OPTIONS",
    "REFERRAL_CONTEXTS",
    "LOG_LEVEL", "configure_logging",
]
