"""
Unit tests for the intake pipeline stages and the orchestrator.
"""
import json
import zipfile
from unittest.mock import MagicMock

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from referral_api.core.errors import ExtractionError, StorageError, SubmissionValidationError
from referral_api.db import crud
from referral_api.pipeline import extract
from referral_api.pipeline.extract import FileTextExtractor, PlaceholderExtractor, get_extractor, run_extract
from referral_api.pipeline.orchestrator import run_intake
from referral_api.pipeline.state import IntakeStage, new_state
from referral_api.pipeline.validate import validate

from conftest import make_scorer, oracle_reply


class TestValidate:

    def test_valid_submission(self, valid_form):
        state = validate(new_state(valid_form, resume_path="/tmp/abc"))

        assert state["stage"] == IntakeStage.VALIDATED
        assert state["submission"].job_ids == ["JOB-9"]

    def test_resume_required_first(self):
        state = new_state({}, resume_path=None)
        with pytest.raises(SubmissionValidationError, match="Resume is required"):
            validate(state)
        assert state["stage"] == IntakeStage.REJECTED

    @pytest.mark.parametrize("field", ["candidate_name", "candidate_email", "role_title", "why_fit", "context"])
    def test_missing_field(self, valid_form, field):
        valid_form.pop(field)
        with pytest.raises(SubmissionValidationError, match=field):
            validate(new_state(valid_form, resume_path="/tmp/abc"))

    def test_blank_name(self, valid_form):
        valid_form["candidate_name"] = "   "
        with pytest.raises(SubmissionValidationError):
            validate(new_state(valid_form, resume_path="/tmp/abc"))

    @pytest.mark.parametrize("job_ids", ["JOB-1", json.dumps({"id": "JOB-1"}), json.dumps([]), json.dumps(["", " "]), None])
    def test_bad_job_ids(self, valid_form, job_ids):
        valid_form["job_ids"] = job_ids
        with pytest.raises(SubmissionValidationError):
            validate(new_state(valid_form, resume_path="/tmp/abc"))

    def test_job_ids_kept_exactly_as_submitted(self, valid_form):
        submitted = ["JOB-2", " JOB-1 ", "", "JOB-3"]
        valid_form["job_ids"] = json.dumps(submitted)
        state = validate(new_state(valid_form, resume_path="/tmp/abc"))
        assert state["submission"].job_ids == submitted

    def test_unknown_context(self, valid_form):
        valid_form["context"] = "Recruiter"
        with pytest.raises(SubmissionValidationError, match="context"):
            validate(new_state(valid_form, resume_path="/tmp/abc"))


class TestExtract:

    def test_placeholder(self):
        assert PlaceholderExtractor().extract("/nowhere", "Jane Doe") == "Simulated resume content for Jane Doe"

    def test_text_file(self, tmp_path):
        p = tmp_path / "upload1"
        p.write_text("Jane Doe\nGo, Kubernetes", encoding="utf-8")
        assert "Kubernetes" in FileTextExtractor().extract(str(p), "Jane Doe", "resume.txt")

    def test_docx_without_suffix(self, tmp_path):
        p = tmp_path / "upload2"
        body = (
            '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
            "<w:body><w:p><w:r><w:t>Staff Engineer</w:t></w:r></w:p></w:body></w:document>"
        )
        with zipfile.ZipFile(p, "w") as z:
            z.writestr("word/document.xml", body)
        assert FileTextExtractor().extract(str(p), "Jane Doe") == "Staff Engineer"

    def test_empty_file_fails(self, tmp_path):
        p = tmp_path / "empty.txt"
        p.write_text("")
        with pytest.raises(ExtractionError):
            FileTextExtractor().extract(str(p), "Jane Doe", "empty.txt")

    def test_missing_file_fails(self, tmp_path):
        with pytest.raises(ExtractionError):
            FileTextExtractor().extract(str(tmp_path / "gone"), "Jane Doe", "gone.txt")

    def test_failure_falls_back_to_placeholder(self, valid_form):
        failing = MagicMock()
        failing.extract.side_effect = ExtractionError("corrupt pdf")
        state = validate(new_state(valid_form, resume_path="/tmp/abc"))

        state = run_extract(state, failing)
        assert state["resume_text"] == "Simulated resume content for Jane Doe"
        assert state["extraction_failed"] is True
        assert state["stage"] == IntakeStage.RESUME_EXTRACTED

    def test_get_extractor(self, monkeypatch):
        assert isinstance(get_extractor("file"), FileTextExtractor)
        assert isinstance(get_extractor("placeholder"), PlaceholderExtractor)
        assert isinstance(get_extractor("ocr"), PlaceholderExtractor)
        monkeypatch.setattr(extract.config, "RESUME_EXTRACTOR", "file")
        assert isinstance(get_extractor(), FileTextExtractor)


class TestRunIntake:

    def test_persists_one_pending_row(self, session, valid_form, scorer):
        state = run_intake(session, valid_form, resume_path="/tmp/abc", scorer=scorer, extractor=PlaceholderExtractor())

        rows = crud.list_referrals(session)
        assert len(rows) == 1
        row = rows[0]
        assert row.id == state["referral_id"]
        assert row.status == "pending"
        assert row.fit_score == 8
        assert row.fit_summary
        assert row.scoring_status == "scored"
        assert row.resume_text == "Simulated resume content for Jane Doe"
        assert state["history"] == [
            IntakeStage.RECEIVED, IntakeStage.VALIDATED, IntakeStage.RESUME_EXTRACTED,
            IntakeStage.SCORED, IntakeStage.PERSISTED,
        ]

    def test_oracle_down_still_persists_fallback(self, session, valid_form):
        llm = MagicMock()
        llm.invoke.side_effect = ConnectionError("unreachable")
        run_intake(session, valid_form, resume_path="/tmp/abc", scorer=make_scorer(llm), extractor=PlaceholderExtractor())

        (row,) = crud.list_referrals(session)
        assert row.fit_score == 5
        assert row.fit_summary == "AI analysis failed, manual review required."
        assert row.scoring_status == "fallback"
        assert llm.invoke.call_count == 1

    def test_missing_resume_skips_oracle_and_store(self, session, valid_form):
        llm = MagicMock()
        with pytest.raises(SubmissionValidationError):
            run_intake(session, valid_form, resume_path=None, scorer=make_scorer(llm), extractor=PlaceholderExtractor())

        llm.invoke.assert_not_called()
        assert crud.list_referrals(session) == []

    def test_extraction_failure_still_scores_and_persists(self, session, valid_form, scorer):
        failing = MagicMock()
        failing.extract.side_effect = ExtractionError("corrupt pdf")
        state = run_intake(session, valid_form, resume_path="/tmp/abc", scorer=scorer, extractor=failing)

        (row,) = crud.list_referrals(session)
        assert row.id == state["referral_id"]
        assert row.resume_text == "Simulated resume content for Jane Doe"
        assert row.fit_score == 8
        assert row.scoring_status == "scored"
        assert state["extraction_failed"] is True

    def test_resubmission_creates_second_row(self, session, valid_form):
        scorer = make_scorer(FakeListChatModel(responses=[oracle_reply()]))
        for _ in range(2):
            run_intake(session, valid_form, resume_path="/tmp/abc", scorer=scorer, extractor=PlaceholderExtractor())
        assert len(crud.list_referrals(session)) == 2

    def test_job_ids_round_trip(self, session, valid_form, scorer):
        valid_form["job_ids"] = json.dumps(["JOB-1", "JOB-2"])
        state = run_intake(session, valid_form, resume_path="/tmp/abc", scorer=scorer, extractor=PlaceholderExtractor())
        assert crud.get_referral(session, state["referral_id"]).job_ids == ["JOB-1", "JOB-2"]

    def test_storage_error_propagates(self, session, valid_form, scorer, monkeypatch):
        def _boom(*args, **kwargs):
            raise StorageError("disk full")

        monkeypatch.setattr(crud, "insert_referral", _boom)
        with pytest.raises(StorageError):
            run_intake(session, valid_form, resume_path="/tmp/abc", scorer=scorer, extractor=PlaceholderExtractor())
