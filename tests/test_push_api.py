"""푸시 API 테스트.

Push API tests — Token registration, unregistration and ad-hoc sends.
"""

from unittest.mock import AsyncMock

from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.api.deps import get_token_service
from stitchwell.main import app
from stitchwell.models.device_token import DeviceToken
from stitchwell.services.token_service import TokenService

PUSH_URL = "/api/v1/push"


async def count_tokens(db: AsyncSession, user_name: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(DeviceToken).where(DeviceToken.user_name == user_name)
    )
    return result.scalar() or 0


class TestRegisterToken:
    """토큰 등록 API 테스트."""

    async def test_register(self, client: AsyncClient, db: AsyncSession):
        res = await client.post(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": "abc"})
        assert res.status_code == 200
        assert res.json()["ok"] is True
        assert await count_tokens(db, "Feroz") == 1

    async def test_register_twice_keeps_one(self, client: AsyncClient, db: AsyncSession):
        """같은 토큰을 두 번 등록해도 한 건."""
        for _ in range(2):
            res = await client.post(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": "abc"})
            assert res.status_code == 200
        assert await TokenService().get_tokens(db, "Feroz") == ["abc"]

    async def test_same_token_for_two_users(self, client: AsyncClient, db: AsyncSession):
        """공용 기기 — 같은 토큰이 여러 작업자에 등록 가능."""
        await client.post(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": "shared"})
        await client.post(f"{PUSH_URL}/register-token", json={"userName": "Abdul", "token": "shared"})
        assert await count_tokens(db, "Feroz") == 1
        assert await count_tokens(db, "Abdul") == 1

    async def test_missing_fields(self, client: AsyncClient):
        """userName 또는 token 누락 시 400."""
        for body in ({"token": "abc"}, {"userName": "Feroz"}, {"userName": "", "token": "abc"}, {}):
            res = await client.post(f"{PUSH_URL}/register-token", json=body)
            assert res.status_code == 400, body

    async def test_missing_or_non_json_body(self, client: AsyncClient):
        """본문 없음, 비 JSON, 잘못된 타입은 422가 아닌 400."""
        res = await client.post(f"{PUSH_URL}/register-token")
        assert res.status_code == 400
        res = await client.post(
            f"{PUSH_URL}/register-token",
            content="userName=Feroz&token=abc",
            headers={"Content-Type": "text/plain"},
        )
        assert res.status_code == 400
        res = await client.post(f"{PUSH_URL}/register-token", json=["Feroz", "abc"])
        assert res.status_code == 400
        res = await client.post(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": 123})
        assert res.status_code == 400

    async def test_wrong_method(self, client: AsyncClient):
        """POST 외 메서드는 405."""
        res = await client.get(f"{PUSH_URL}/register-token")
        assert res.status_code == 405
        res = await client.put(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": "abc"})
        assert res.status_code == 405

    async def test_preflight(self, client: AsyncClient):
        res = await client.options(f"{PUSH_URL}/register-token")
        assert res.status_code == 204

    async def test_storage_failure(self, client: AsyncClient):
        """저장 실패 시 500."""
        failing = TokenService()
        failing.register_token = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))
        app.dependency_overrides[get_token_service] = lambda: failing

        res = await client.post(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": "abc"})

        assert res.status_code == 500
        assert res.json()["detail"] == "Failed to register token"


class TestUnregisterToken:
    """토큰 해제 API 테스트."""

    async def test_unregister(self, client: AsyncClient, db: AsyncSession):
        await client.post(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": "abc"})
        await client.post(f"{PUSH_URL}/register-token", json={"userName": "Feroz", "token": "def"})

        res = await client.post(f"{PUSH_URL}/unregister-token", json={"userName": "Feroz", "token": "abc"})

        assert res.status_code == 200
        assert await TokenService().get_tokens(db, "Feroz") == ["def"]

    async def test_unregister_unknown_is_ok(self, client: AsyncClient):
        res = await client.post(f"{PUSH_URL}/unregister-token", json={"userName": "Feroz", "token": "nope"})
        assert res.status_code == 200

    async def test_missing_body(self, client: AsyncClient):
        res = await client.post(f"{PUSH_URL}/unregister-token")
        assert res.status_code == 400


class TestSendPush:
    """푸시 발송 API 테스트."""

    async def test_send_to_user(self, client: AsyncClient, push_provider):
        """작업자의 모든 토큰으로 발송하고 성공 수 반환."""
        await client.post(f"{PUSH_URL}/register-token", json={"userName": "Abdul", "token": "one"})
        await client.post(f"{PUSH_URL}/register-token", json={"userName": "Abdul", "token": "two"})
        push_provider.failing.add("two")

        res = await client.post(
            f"{PUSH_URL}/send",
            json={"userName": "Abdul", "title": "Hello", "body": "Ironing queue", "data": {"n": 1}},
        )

        assert res.status_code == 200
        assert res.json() == {"ok": 1, "total": 2}
        assert push_provider.sent[0]["data"] == {"n": "1"}

    async def test_token_takes_precedence(self, client: AsyncClient, push_provider):
        """token이 있으면 userName 조회보다 우선."""
        await client.post(f"{PUSH_URL}/register-token", json={"userName": "Abdul", "token": "registered"})

        res = await client.post(
            f"{PUSH_URL}/send",
            json={"userName": "Abdul", "token": "explicit", "title": "Hi", "body": "x"},
        )

        assert res.json() == {"ok": 1, "total": 1}
        assert push_provider.tokens_sent() == ["explicit"]

    async def test_no_tokens(self, client: AsyncClient, push_provider):
        res = await client.post(f"{PUSH_URL}/send", json={"userName": "Nobody", "title": "Hi"})
        assert res.status_code == 200
        assert res.json() == {"ok": 0, "message": "No tokens"}
        assert push_provider.sent == []

    async def test_missing_or_non_json_body(self, client: AsyncClient, push_provider):
        """본문이 없거나 JSON이 아니면 대상 없음으로 처리."""
        res = await client.post(f"{PUSH_URL}/send")
        assert res.status_code == 200
        assert res.json() == {"ok": 0, "message": "No tokens"}

        res = await client.post(f"{PUSH_URL}/send", content="hello", headers={"Content-Type": "text/plain"})
        assert res.status_code == 200
        assert res.json() == {"ok": 0, "message": "No tokens"}
        assert push_provider.sent == []

    async def test_wrong_method(self, client: AsyncClient):
        res = await client.get(f"{PUSH_URL}/send")
        assert res.status_code == 405
