# backend/referral_api/core/errors.py
"""
Error taxonomy for the referral service.

Validation and storage failures propagate to the HTTP boundary; extraction
and oracle failures are recovered where they happen (placeholder text /
fallback assessment) and never reach a caller.
"""

from __future__ import annotations


class ReferralServiceError(Exception):
    """Base exception for service layer errors."""

    status_code = 500


class SubmissionValidationError(ReferralServiceError):
    """Missing resume, missing/blank required field, or malformed value."""

    status_code = 400


class ExtractionError(ReferralServiceError):
    """Resume text could not be extracted from the uploaded file."""


class OracleError(ReferralServiceError):
    """Scoring oracle call failed, timed out, or returned an unusable payload."""


class StorageError(ReferralServiceError):
    """Insert/update against the referral store failed."""


class ReferralNotFoundError(ReferralServiceError):
    status_code = 404

    def __init__(self, referral_id: int):
        super().__init__(f"Referral {referral_id} not found")
        self.referral_id = referral_id


class InvalidStatusError(ReferralServiceError):
    status_code = 400


class StatusTransitionError(ReferralServiceError):
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move referral from '{current}' to '{requested}'; reopen it as 'pending' first"
        )
        self.current = current
        self.requested = requested


__all__ = [
    "ReferralServiceError",
    "SubmissionValidationError",
    "ExtractionError",
    "OracleError",
    "StorageError",
    "ReferralNotFoundError",
    "InvalidStatusError",
    "StatusTransitionError",
]
