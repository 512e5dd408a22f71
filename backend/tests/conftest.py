"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database; the scoring oracle is a
LangChain fake chat model (or a MagicMock when a failure is needed), so no
test touches the network.
"""

import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from referral_api.core import config
from referral_api.db import session as db_session
from referral_api.pipeline.score import FitScorer


def oracle_reply(score=8, summary="Strong Go background\nRelevant domain\nNo people management"):
    return json.dumps({"score": score, "summary": summary})


def make_scorer(llm, **options):
    opts = {"retry_wait_s": 0}
    opts.update(options)
    return FitScorer(llm=llm, options=opts)


@pytest.fixture
def engine():
    eng = db_session.configure_engine("sqlite://")
    db_session.ensure_tables()
    yield eng


@pytest.fixture
def session(engine):
    s = db_session.SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def fake_llm():
    return FakeListChatModel(responses=[oracle_reply()])


@pytest.fixture
def scorer(fake_llm):
    return make_scorer(fake_llm)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    d = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(d))
    return d


@pytest.fixture
def valid_form():
    return {
        "candidate_name": "Jane Doe",
        "candidate_email": "jane@x.com",
        "role_title": "Engineer",
        "job_ids": json.dumps(["JOB-9"]),
        "why_fit": "5 years Go",
        "context": "Former Colleague",
    }
