# backend/referral_api/pipeline/extract.py
"""
Resume text extraction.

Extraction is optional enrichment for the scoring prompt: any ExtractionError
is logged and the pipeline continues with the placeholder text.

Extractors:
  PlaceholderExtractor  deterministic stand-in derived from the candidate name
  FileTextExtractor     pdf (PyMuPDF) / docx / txt
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..core import config
from ..core.errors import ExtractionError
from ..core.utils import read_docx_quick, read_pdf_pymupdf, read_text_file, sniff_kind
from .state import IntakeStage, IntakeState, advance

logger = logging.getLogger(__name__)


def placeholder_text(candidate_name: str) -> str:
    return f"Simulated resume content for {candidate_name}"


class ResumeExtractor(Protocol):
    def extract(self, path: str, candidate_name: str, filename: Optional[str] = None) -> str:
        """Return resume text for the file at `path`; raise ExtractionError on failure."""
        ...


class PlaceholderExtractor:
    def extract(self, path: str, candidate_name: str, filename: Optional[str] = None) -> str:
        return placeholder_text(candidate_name)


class FileTextExtractor:
    """Reads the stored upload. Empty output counts as a failure."""

    def extract(self, path: str, candidate_name: str, filename: Optional[str] = None) -> str:
        try:
            kind = sniff_kind(path, filename)
            if kind == "pdf":
                text = read_pdf_pymupdf(path)
            elif kind == "docx":
                text = read_docx_quick(path)
            else:
                text = read_text_file(path)
        except Exception as e:
            raise ExtractionError(f"could not read resume {filename or path}: {e}") from e
        text = (text or "").strip()
        if not text:
            raise ExtractionError(f"no text found in resume {filename or path}")
        return text


def get_extractor(name: Optional[str] = None) -> ResumeExtractor:
    name = (name or config.RESUME_EXTRACTOR).lower()
    if name == "file":
        return FileTextExtractor()
    if name != "placeholder":
        logger.warning("unknown RESUME_EXTRACTOR %r; using placeholder", name)
    return PlaceholderExtractor()


def run_extract(state: IntakeState, extractor: ResumeExtractor) -> IntakeState:
    submission = state["submission"]
    try:
        text = extractor.extract(state["resume_path"], submission.candidate_name, state.get("resume_filename"))
        state["extraction_failed"] = False
    except ExtractionError as e:
        logger.warning("intake %s: resume extraction failed, using placeholder: %s", state.get("intake_id"), e)
        text = placeholder_text(submission.candidate_name)
        state["extraction_failed"] = True
    state["resume_text"] = text
    return advance(state, IntakeStage.RESUME_EXTRACTED)


__all__ = [
    "ResumeExtractor",
    "PlaceholderExtractor",
    "FileTextExtractor",
    "placeholder_text",
    "get_extractor",
    "run_extract",
]
