import asyncio
import os

# Settings are read once at import time; point them away from the real database and APIs first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GROQ_API_KEY"] = ""
os.environ["ELEVENLABS_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from ulingo.database import get_db, init_db
from ulingo.main import app
from ulingo.schemas.level import LevelCreate, PronunciationItem, QuizIn
from ulingo.schemas.user import UserCreate
from ulingo.services import auth_service, level_service, session_service
from ulingo.services.session_registry import SessionRegistry, get_sessions

PASSWORD = "secret123"


class FixedScorer:
    """Pronunciation scorer that always returns the same score"""

    def __init__(self, value: float):
        self.value = value
        self.calls = []

    async def score(self, item, audio):
        self.calls.append((item.word, audio))
        return self.value


def level_payload(level_id: int, quizzes: int = 2, pronunciations: int = 2) -> LevelCreate:
    return LevelCreate(
        level_id=level_id,
        title=f"Level {level_id}",
        description="Test level",
        quizzes=[
            QuizIn(question=f"Q{level_id}.{i}", options=["right", "wrong", "other"], correct="right", audio="你好")
            for i in range(quizzes)
        ],
        pronunciations=[
            PronunciationItem(word=f"字{i}", pinyin="zì", translation="character", tips="Falling tone")
            for i in range(pronunciations)
        ],
    )


async def _add_user(db, username="learner", is_admin=False, **progress):
    user = await auth_service.create_user(
        db, UserCreate(username=username, password=PASSWORD, name=username.title()), is_admin=is_admin
    )
    if progress:
        for column, value in progress.items():
            setattr(user, column, value)
        await db.commit()
        await db.refresh(user)
    return user


async def _add_level(db, level_id, **kwargs):
    return await level_service.create_level(db, level_payload(level_id, **kwargs))


@pytest.fixture
def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_db(bind=engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def run(session_factory):
    """run(lambda db: coroutine) executes it in a fresh session and returns the result"""
    def runner(fn):
        async def main():
            async with session_factory() as db:
                return await fn(db)
        return asyncio.run(main())
    return runner


@pytest.fixture
def add_user():
    return _add_user


@pytest.fixture
def add_level():
    return _add_level


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def scorer():
    return FixedScorer(92.0)


@pytest.fixture
def client(session_factory, registry, scorer):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sessions] = lambda: registry
    app.dependency_overrides[session_service.get_scorer] = lambda: scorer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Register (if needed) and log in; returns Authorization headers"""
    def _login(username="learner", password=PASSWORD):
        client.post("/auth/register", json={"username": username, "password": password})
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200
        # keep requests explicit about who they are
        client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login
