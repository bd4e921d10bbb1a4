import os

# Must be set before the app modules read their settings.
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ["CARD_RETRY_BACKOFF_SEC"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402


class FakeTextClient:
    """
    Scripted stand-in for the generation service.

    responder(prompt) returns the raw text, or raises to simulate a failure.
    Every prompt is recorded in .prompts.
    """

    def __init__(self, responder):
        self.responder = responder
        self.prompts: list[str] = []

    def generate(self, prompt: str, json_mode: bool = True) -> str:
        self.prompts.append(prompt)
        return self.responder(prompt)

    @property
    def outline_calls(self) -> int:
        return sum(1 for p in self.prompts if is_outline_prompt(p))

    def card_calls(self, title: str | None = None) -> int:
        return sum(
            1
            for p in self.prompts
            if not is_outline_prompt(p) and (title is None or f"Topic: {title}\n" in p)
        )


def is_outline_prompt(prompt: str) -> bool:
    return "split it into distinct knowledge topics" in prompt


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
