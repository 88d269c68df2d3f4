"""Shared fixtures for all test modules."""
import os
import tempfile

import pytest

# Configure settings before anything imports daiary.config
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="daiary-tests-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")

import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from daiary.config import settings
from daiary.journal.journal_service import JournalService
from daiary.llm.feedback import FeedbackService
from daiary.memory.database import init_db


class FakeModelClient:
    """Stands in for ModelClient: canned replies, recorded prompts.

    ``replies`` items are returned in order; an Exception instance is raised
    instead of returned. The last reply repeats once the list runs out.
    """

    def __init__(self, *replies):
        self.replies = list(replies) or ['{"feedback": "ok", "mood": "calm"}']
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def journal(db):
    return JournalService(db)


@pytest.fixture
def fake_model():
    return FakeModelClient()


@pytest.fixture
def feedback_service(fake_model):
    return FeedbackService(client=fake_model)


def make_token(user_id: str = "user-1", email: str | None = "alice@example.com") -> str:
    payload = {"sub": user_id, "aud": settings.AUTH_JWT_AUDIENCE}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm="HS256")


def auth_header(user_id: str = "user-1", email: str | None = "alice@example.com") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


@pytest.fixture
def model_factory():
    return FakeModelClient


@pytest.fixture
def auth_headers():
    return auth_header
