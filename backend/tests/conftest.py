"""
Shared test fixtures: in-memory SQLite async database + FastAPI client.

Strategy:
1. Set DATABASE_URL to SQLite before riskledger loads its settings
2. One StaticPool engine so every session sees the same in-memory database
3. Routers get their session through dependency_overrides[get_session]
"""
import os
from collections.abc import AsyncGenerator
from datetime import date

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# ── 1. Environment ──
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DEBUG"] = "false"

# ── 2. Test engine (SQLite in-memory) ──
TEST_ENGINE = create_async_engine(
    "sqlite+aiosqlite://",
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)

TestSession = async_sessionmaker(
    TEST_ENGINE,
    class_=AsyncSession,
    expire_on_commit=False,
)

# ── 3. Now import the app ──
from riskledger.database import get_session  # noqa: E402
from riskledger.main import app as fastapi_app  # noqa: E402
from riskledger.models import Base  # noqa: E402
from riskledger.services.store import RecordStore  # noqa: E402


async def _test_get_session() -> AsyncGenerator[AsyncSession, None]:
    async with TestSession() as session:
        yield session


fastapi_app.dependency_overrides[get_session] = _test_get_session


# ── Fixtures ──

@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Create all tables before each test, drop after."""
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def engine():
    return TEST_ENGINE


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def store(db: AsyncSession) -> RecordStore:
    return RecordStore(db)


# ── Seed data helpers ──

IMPACT_LABELS = ["Minimal", "Minor", "Moderate", "Major", "Severe"]
LIKELIHOOD_LABELS = ["Rare", "Unlikely", "Possible", "Likely", "Almost certain"]


@pytest_asyncio.fixture
async def seed_matrix(store: RecordStore) -> dict[int, int]:
    """Active 5x5 matrix; returns {impact level: impact level row id}."""
    m = await store.insert("risk_matrices", {"name": "Default 5x5", "size": 5, "is_active": True})
    impact_ids = {}
    for level, label in enumerate(IMPACT_LABELS, 1):
        row = await store.insert("matrix_impact_levels", {"matrix_id": m.id, "level": level, "label": label})
        impact_ids[level] = row.id
    for level, label in enumerate(LIKELIHOOD_LABELS, 1):
        await store.insert("matrix_likelihood_levels", {"matrix_id": m.id, "level": level, "label": label})
    await store.commit()
    return impact_ids


@pytest_asyncio.fixture
async def seed_appetite(store: RecordStore) -> int:
    """Active appetite with a gap at 13-15 and an overlap at 5-6."""
    a = await store.insert("risk_appetites", {"name": "Board appetite", "is_active": True})
    bands = [
        ("low", "Acceptable", 1, 6),
        ("medium", "Tolerable", 5, 12),
        ("high", "Escalate", 16, 19),
        ("critical", "Unacceptable", 20, 25),
    ]
    for order, (code, label, lo, hi) in enumerate(bands):
        await store.insert("risk_appetite_bands", {
            "appetite_id": a.id, "band": code, "label": label,
            "min_score": lo, "max_score": hi, "sort_order": order,
        })
    await store.commit()
    return a.id


@pytest_asyncio.fixture
async def seed_controls(store: RecordStore) -> tuple[int, int]:
    """One internal control and one framework control; returns their ids."""
    ic = await store.insert("internal_controls", {"internal_control_code": "IC-01", "title": "Access review"})
    fw = await store.insert("control_frameworks", {"name": "ISO 27001", "version": "2022"})
    fc = await store.insert("framework_controls", {
        "framework_id": fw.id, "control_code": "A.5.15", "title": "Access control",
    })
    await store.commit()
    return ic.id, fc.id


@pytest_asyncio.fixture
async def seed_risk(store: RecordStore) -> int:
    r = await store.insert("risks", {
        "title": "Ransomware on file server",
        "inherent_severity": "critical",
        "inherent_likelihood": "likely",
        "inherent_score": 20,
        "status": "approved",
        "review_date": date(2030, 1, 1),
    })
    await store.commit()
    return r.id
