import os
import tempfile

# Settings and the engine are built at import time: point them at a scratch
# SQLite file before anything from career_connect is imported.
_DB_DIR = tempfile.mkdtemp(prefix="career-connect-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ASSISTANT_API_KEY"] = ""
os.environ["DEBUG"] = "false"

import mongomock
import pytest
from fastapi.testclient import TestClient

from career_connect.core.auth import create_access_token
from career_connect.db import mongodb
from career_connect.db.database import Base, engine, get_db_session, init_db
from career_connect.models import User, utcnow
from career_connect.schemas.schemas import Participant


@pytest.fixture(autouse=True)
def fresh_stores(monkeypatch):
    """Empty SQL tables and an in-memory MongoDB for every test."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    monkeypatch.setattr(mongodb, "_client", mongomock.MongoClient())
    monkeypatch.setattr(mongodb, "_db", None)
    mongodb.init_mongo_indexes()
    yield


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def client():
    from career_connect.main import app

    with TestClient(app) as test_client:
        yield test_client


class ParticipantHandle:
    """A stored participant plus the credentials to act as them."""

    def __init__(self, participant: Participant, token: str):
        self.participant = participant
        self.token = token

    @property
    def id(self) -> int:
        return self.participant.id

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def make_participant():
    """Create participants directly in the store (skips bcrypt)."""
    counter = {"n": 0}

    def _make(full_name: str, role: str) -> ParticipantHandle:
        counter["n"] += 1
        with get_db_session() as db:
            user = User(
                email=f"user{counter['n']}@example.com",
                password_hash="!",
                full_name=full_name,
                role=role,
                is_active=True,
                created_at=utcnow(),
            )
            db.add(user)
            db.flush()
            participant = Participant.model_validate(user)
        token = create_access_token({"sub": str(participant.id), "role": role})
        return ParticipantHandle(participant, token)

    return _make


@pytest.fixture
def student(make_participant):
    return make_participant("Sara Student", "student")


@pytest.fixture
def job_giver(make_participant):
    return make_participant("Jon Employer", "job_giver")


@pytest.fixture
def mentor(make_participant):
    return make_participant("Mia Mentor", "mentor")
