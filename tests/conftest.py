import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="student-records-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from student_records.ai.client import GenerationConfig, GenerationFailed
from student_records.api.dependencies import get_generation_client
from student_records.core.database import get_db
from student_records.core.security import create_access_token, hash_password
from student_records.main import app
from student_records.models import Student, User, UserRole
from student_records.models.base import Base

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeGenerationClient:
    """Stands in for OllamaClient.

    Replies are consumed in order; when none are scripted every call raises
    ``error`` (connection refused by default), i.e. the model is offline.
    """

    def __init__(self, replies=None, error=None, available=False):
        self.config = GenerationConfig(base_url="http://ollama.test", model="fake-model")
        self.replies = list(replies or [])
        self.error = error or GenerationFailed("Ollama generation failed: connection refused")
        self.available = available
        self.prompts = []
        self.systems = []
        self.chats = []

    def _next(self):
        if not self.replies:
            raise self.error
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def generate(self, prompt, *, model=None, system=None, temperature=None, top_p=None):
        self.prompts.append(prompt)
        self.systems.append(system)
        return self._next()

    def chat(self, messages, *, model=None, temperature=None, top_p=None):
        self.chats.append(messages)
        return self._next()

    def is_available(self):
        return self.available

    def close(self):
        pass


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_llm():
    return FakeGenerationClient()


@pytest.fixture
def client(db, fake_llm):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_generation_client] = lambda: fake_llm
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, role=UserRole.admin, email=None, password="secret123"):
    user = User(
        email=email or f"{role.value}@school.edu",
        hashed_password=hash_password(password),
        role=role,
        first_name=role.value.title(),
        last_name="User",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token(user.id, user.email, user.role.value)
    return {"Authorization": f"Bearer {token}"}


def make_student(db, student_id, email=None, **fields):
    fields.setdefault("first_name", "Test")
    fields.setdefault("last_name", "Student")
    student = Student(student_id=student_id, email=email or f"{student_id.lower()}@school.edu", **fields)
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


@pytest.fixture
def admin(db):
    return make_user(db, UserRole.admin)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
