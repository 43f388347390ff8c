from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from quizhub.core.constants import Role
from quizhub.core.ratelimit import limiter
from quizhub.core.security import Identity
from quizhub.db.base import Base
from quizhub.db.session import build_engine, build_sessionmaker
from quizhub.models import domain  # noqa: F401
from quizhub.services.contest_service import ContestService

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

ADMIN = Identity(id="admin-1", email="admin@quizhub.io", role=Role.ADMIN)
SUB_ADMIN = Identity(id="editor-1", email="editor@quizhub.io", role=Role.SUB_ADMIN)
ALICE = Identity(id="user-alice", email="alice@quizhub.io", role=Role.USER)
BOB = Identity(id="user-bob", email="bob@quizhub.io", role=Role.USER)
CAROL = Identity(id="user-carol", email="carol@quizhub.io", role=Role.USER)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def question(text: str, options: list[str], correct: str, category: str = "GENERAL", points: float = 1) -> dict:
    return {"text": text, "options": options, "correctAnswer": correct, "category": category, "points": points}


def contest_payload(start: datetime | None = None, end: datetime | None = None, **overrides) -> dict:
    payload = {
        "title": "Friday Quiz",
        "description": "General knowledge",
        "price": 0,
        "startDate": start,
        "endDate": end,
        "scoringType": "count-correct",
        "questions": [
            question("2 + 2", ["3", "4", "5"], "4", category="MATH"),
            question("Capital of France", ["Paris", "Rome"], "Paris", category="GEOGRAPHY"),
            question("3 * 3", ["6", "9"], "9", category="MATH", points=2),
        ],
    }
    payload.update(overrides)
    return payload


def answers_for(detail: dict, correct: int) -> dict[str, str]:
    """Answer the first ``correct`` questions right and the rest wrong."""
    answers = {}
    for idx, q in enumerate(detail["questions"]):
        wrong = next(opt for opt in q["options"] if opt != q["correctAnswer"])
        answers[str(q["id"])] = q["correctAnswer"] if idx < correct else wrong
    return answers


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'quizhub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def make_contest(db, clock):
    """Create a contest as SUB_ADMIN; dates are minutes relative to the clock."""

    async def _make(start_in: int | None = 0, length: int = 60, **overrides) -> dict:
        start = clock() + timedelta(minutes=start_in) if start_in is not None else None
        end = start + timedelta(minutes=length) if start is not None else None
        service = ContestService(db, clock)
        return await service.create_contest(SUB_ADMIN, contest_payload(start, end, **overrides))

    return _make
