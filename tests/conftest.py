"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Every test gets its own user id, so rows never collide across tests even
though the database is shared for the whole session.
"""
import json
import uuid
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base, get_db, get_session_factory
from app.main import app
from app.models.daily_summary import DailySummary
from app.models.mood_entry import MoodEntry
from app.routers.daily_summaries import get_sync_model
from app.services.llm import get_reflection_model
from app.services.search import get_web_searcher
from app.services.search_quota import SearchQuotaStore, get_search_quota

SQLITE_URL = "sqlite:///./test_echos.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_REPLY = {
    "achievements": ["Finished the draft", "Went for a run"],
    "commitments": ["Call mum on Sunday"],
    "mood": {"overall": "hopeful", "reason": "Steady progress on the draft."},
    "flashback": "The quiet walk after lunch.",
    "stats": {"entryCount": 3, "topEmotions": ["Calm"], "keywords": ["draft", "run"]},
}


class FakeReflectionModel:
    """Returns canned replies in order (the last one repeats) and records prompts."""

    def __init__(self, replies=None):
        self.replies = list(replies) if replies else [DEFAULT_REPLY]
        self.calls: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        reply = self.replies[min(len(self.calls) - 1, len(self.replies) - 1)]
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)

    @property
    def user_prompts(self) -> list[str]:
        return [user for _, user in self.calls]


class FakeWebSearcher:
    def __init__(self, reply: str = ""):
        self.reply = reply or json.dumps({
            "results": [
                {"title": "Box breathing", "url": "https://example.com/box", "snippet": "4-4-4-4"},
            ]
        })
        self.queries: list[str] = []

    def search(self, query: str) -> str:
        self.queries.append(query)
        return self.reply


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def user_id() -> str:
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture()
def headers(user_id) -> dict[str, str]:
    return {"X-User-Id": user_id}


@pytest.fixture()
def fake_model() -> FakeReflectionModel:
    return FakeReflectionModel()


@pytest.fixture()
def fake_searcher() -> FakeWebSearcher:
    return FakeWebSearcher()


@pytest.fixture()
def quota() -> SearchQuotaStore:
    return SearchQuotaStore(limit=5, today=lambda: date(2025, 11, 15))


@pytest.fixture()
def client(fake_model, fake_searcher, quota):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_reflection_model] = lambda: fake_model
    app.dependency_overrides[get_sync_model] = lambda: fake_model
    app.dependency_overrides[get_web_searcher] = lambda: fake_searcher
    app.dependency_overrides[get_search_quota] = lambda: quota
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

def add_summary(
    db,
    user_id: str,
    day: date,
    summary: str = "Wrote, walked, cooked dinner.",
    entry_count: int = 1,
    mood_quality=None,
    dominant_emotions=None,
    **reflection,
) -> DailySummary:
    row = DailySummary(
        user_id=user_id,
        date=day,
        summary=summary,
        entry_count=entry_count,
        mood_quality=mood_quality,
        dominant_emotions=dominant_emotions,
        **reflection,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def add_mood(db, user_id: str, created_at: datetime, day_quality: str = "good", emotions=None) -> MoodEntry:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    row = MoodEntry(
        user_id=user_id,
        day_quality=day_quality,
        emotions=emotions or [],
        created_at=created_at,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
