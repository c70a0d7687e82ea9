"""테스트 인프라 — 인메모리 SQLite DB, 세션, 가짜 푸시 프로바이더, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite DB, session, fake push provider and
httpx client fixtures.
Every test gets a fresh schema on its own in-memory database, so no
cleanup pass is needed between tests.
"""

import asyncio
import os
from collections.abc import AsyncGenerator

# 앱 임포트 전에 테스트 DB 지정 — Point settings at SQLite before stitchwell is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AXIOM_API_TOKEN", "")
os.environ.setdefault("FCM_CREDENTIALS_FILE", "")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from stitchwell.api.deps import get_push_provider
from stitchwell.constants import WorkflowStatus
from stitchwell.database import Base, get_db
from stitchwell.main import app
from stitchwell.models import *  # noqa: F401,F403 — register all models with metadata
from stitchwell.repositories.roster_repository import RosterRepository
from stitchwell.services.assignment_engine import AssignmentEngine
from stitchwell.services.events import ItemEventHub
from stitchwell.services.notification_service import NotificationService
from stitchwell.services.push_service import PushDispatcher, PushProvider, SendResult
from stitchwell.utils.exceptions import DispatchError

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ---------------------------------------------------------------------------
# 가짜 푸시 프로바이더
# ---------------------------------------------------------------------------
class FakePushProvider(PushProvider):
    """발송 내역을 기록하는 테스트용 프로바이더.

    Records every send. Tokens in ``failing`` raise DispatchError and tokens
    in ``hanging`` never answer (until the dispatcher times them out).
    """

    provider_name = "fake"

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.failing: set[str] = set()
        self.hanging: set[str] = set()

    async def send(self, token: str, title: str, body: str, data: dict[str, str]) -> SendResult:
        if token in self.hanging:
            await asyncio.sleep(3600)
        if token in self.failing:
            raise DispatchError(token, "unregistered")
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        return SendResult.ok(self.provider_name, token, f"fake-{len(self.sent)}")

    def tokens_sent(self) -> list[str]:
        return [message["token"] for message in self.sent]


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 하나의 연결을 공유하는 인메모리 DB에 스키마를 생성합니다."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def push_provider() -> FakePushProvider:
    """기록용 가짜 푸시 프로바이더."""
    return FakePushProvider()


@pytest_asyncio.fixture
async def client(
    db: AsyncSession,
    push_provider: FakePushProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션과 푸시 프로바이더를 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_push_provider] = lambda: push_provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 서비스 조립 헬퍼
# ---------------------------------------------------------------------------
def build_notification_service(
    provider: PushProvider,
    timeout_seconds: float = 5.0,
) -> NotificationService:
    """가짜 프로바이더로 알림 서비스를 조립합니다."""
    return NotificationService(PushDispatcher(provider, timeout_seconds=timeout_seconds))


def build_engine(
    provider: PushProvider,
    first_stage: WorkflowStatus = WorkflowStatus.AWAITING_CUTTING,
    **kwargs,
) -> AssignmentEngine:
    """알림 리스너가 연결된 배정 엔진을 조립합니다 (API와 같은 배선)."""
    notification_service = build_notification_service(provider)
    return AssignmentEngine(
        first_stage=first_stage,
        events=ItemEventHub([notification_service.on_item_changed]),
        **kwargs,
    )


@pytest.fixture
def assignment_engine(push_provider: FakePushProvider) -> AssignmentEngine:
    """기본 설정의 배정 엔진."""
    return build_engine(push_provider)


async def set_roster(db: AsyncSession, roster: dict[str, list[str]]) -> None:
    """역할별 명단을 그대로 저장합니다 (Store the given lists verbatim)."""
    repository = RosterRepository()
    for role, workers in roster.items():
        await repository.save_workers(db, role, workers)
    await db.commit()


# 전체 파이프라인을 덮는 명단 — Roster covering every stage
FULL_ROSTER: dict[str, list[str]] = {
    "admin": ["Admin"],
    "threading_worker": ["Abdul"],
    "cutting_worker": ["Feroz"],
    "tailor": ["Salim", "Hanif"],
    "buttoning_worker": ["Abdul"],
    "ironing_worker": ["Abdul Kadir"],
    "packaging_worker": ["Abdul Kadir"],
}


@pytest_asyncio.fixture
async def full_roster(db: AsyncSession) -> dict[str, list[str]]:
    """모든 역할이 채워진 명단을 저장합니다."""
    await set_roster(db, FULL_ROSTER)
    return FULL_ROSTER


def actor_header(name: str, role: str | None = None) -> dict[str, str]:
    """호출자 식별 헤더를 생성합니다."""
    headers = {"X-Actor-Name": name}
    if role is not None:
        headers["X-Actor-Role"] = role
    return headers
