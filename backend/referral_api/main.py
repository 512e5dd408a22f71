# backend/referral_api/main.py
"""
FastAPI entrypoint for the referral intake & review API.
- Local friendly (uvicorn); exports `app`.
- POST /api/referrals: multipart form + resume file → validate, score, persist.
- GET /api/referrals: reviewer queue, highest fit score first.
- PATCH /api/referrals/{id}: move a referral between pending/approved/rejected.

Run locally:
  python -m referral_api.db.init_db        # once (add --reset to wipe)
  uvicorn referral_api.main:app --reload --port 8000

Env (.env):
  GEMINI_API_KEY=...
  DATABASE_URL=sqlite:///referrals.db                              # optional
  ALLOWED_ORIGINS=http://localhost:5173,http://localhost:3000      # optional
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from .core import config
from .core.errors import ReferralServiceError, StorageError
from .db import session as db_session
from .db.models import ReferralStatus
from .pipeline.extract import ResumeExtractor, get_extractor
from .pipeline.orchestrator import run_intake
from .pipeline.score import FitScorer
from . import review
from .schemas import ReferralOut, StatusUpdate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    config.configure_logging()
    if config.DB_AUTO_CREATE:
        db_session.ensure_tables()
    Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(title="Referral Intake API", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins() or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Dependencies -----------------------------------------------------------

def get_session():
    yield from db_session.get_session()

_scorer: Optional[FitScorer] = None

def get_scorer() -> FitScorer:
    global _scorer
    if _scorer is None:
        _scorer = FitScorer()
    return _scorer

def get_resume_extractor() -> ResumeExtractor:
    return get_extractor()

# --- Error handlers ---------------------------------------------------------

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "request"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return JSONResponse(status_code=400, content={"error": "; ".join(parts) or "Invalid request"})

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error in %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Failed to process referral"})

@app.exception_handler(ReferralServiceError)
async def service_error_handler(request: Request, exc: ReferralServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Service error in %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

# --- Utils ------------------------------------------------------------------

def _save_upload(upload_dir: Path, file: UploadFile) -> Path:
    """Persist an UploadFile under an opaque upload id and return its path."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    dst = upload_dir / uuid.uuid4().hex
    with dst.open("wb") as f:
        shutil.copyfileobj(file.file, f)
    return dst

# --- Routes -----------------------------------------------------------------

@app.get("/api/health")
def health(db: Session = Depends(get_session)):
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception as e:
        logger.warning("health check: database unreachable: %s", e)
        db_ok = False
    return {
        "ok": db_ok,
        "ts": datetime.now(timezone.utc).isoformat(),
        "db_ok": db_ok,
    }

@app.get("/api/config")
def config_view():
    return {
        "contexts": config.REFERRAL_CONTEXTS,
        "statuses": [s.value for s in ReferralStatus],
        "scoring": {
            "model": config.SCORING_OPTIONS["model"],
            "timeout_s": config.SCORING_OPTIONS["timeout_s"],
            "max_attempts": config.SCORING_OPTIONS["max_attempts"],
        },
        "resume_extractor": config.RESUME_EXTRACTOR,
    }

@app.post("/api/referrals")
def submit_referral(
    candidate_name: Optional[str] = Form(default=None),
    candidate_email: Optional[str] = Form(default=None),
    role_title: Optional[str] = Form(default=None),
    job_ids: Optional[str] = Form(default=None),
    why_fit: Optional[str] = Form(default=None),
    context: Optional[str] = Form(default=None),
    resume: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_session),
    scorer: FitScorer = Depends(get_scorer),
    extractor: ResumeExtractor = Depends(get_resume_extractor),
):
    """
    Accept one referral. The resume file is required; without it nothing is
    scored or stored.
    """
    raw = {
        "candidate_name": candidate_name,
        "candidate_email": candidate_email,
        "role_title": role_title,
        "job_ids": job_ids,
        "why_fit": why_fit,
        "context": context,
    }

    resume_path = None
    resume_filename = None
    try:
        if resume is not None and getattr(resume, "filename", None):
            resume_filename = resume.filename
            resume_path = str(_save_upload(Path(config.UPLOAD_DIR), resume))
        run_intake(
            db, raw,
            resume_path=resume_path,
            resume_filename=resume_filename,
            scorer=scorer,
            extractor=extractor,
        )
    except ReferralServiceError:
        raise
    except Exception as e:
        logger.exception("Error processing referral: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to process referral"})

    return {"success": True}

@app.get("/api/referrals", response_model=List[ReferralOut])
def list_referrals(db: Session = Depends(get_session)):
    return review.list_referrals(db)

@app.get("/api/referrals/{referral_id}", response_model=ReferralOut)
def get_referral(referral_id: int, db: Session = Depends(get_session)):
    return review.get_referral(db, referral_id)

@app.patch("/api/referrals/{referral_id}")
def update_referral_status(referral_id: int, body: StatusUpdate, db: Session = Depends(get_session)):
    review.set_status(db, referral_id, body.status)
    return {"success": True}

# For local dev convenience
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("referral_api.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
