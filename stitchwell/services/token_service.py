"""디바이스 토큰 서비스 — 푸시 토큰 등록/조회/해제.

Device Token Service — Registers and resolves push tokens per worker.
Registration has set-union semantics; tokens are never removed on send
failure, only by an explicit unregister.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.repositories.device_token_repository import DeviceTokenRepository
from stitchwell.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _require(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


class TokenService:
    """디바이스 토큰 서비스."""

    def __init__(self, repository: DeviceTokenRepository | None = None) -> None:
        self.repository: DeviceTokenRepository = repository or DeviceTokenRepository()

    async def register_token(
        self,
        db: AsyncSession,
        user_name: str | None,
        token: str | None,
    ) -> bool:
        """토큰을 사용자에게 등록합니다. 중복 등록은 무시.

        Add ``token`` to the user's set. Registering an existing pair is
        absorbed, including when two requests race on the same pair.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_name: 작업자 이름 (Worker name)
            token: 디바이스 토큰 (Device token)

        Returns:
            bool: 새로 추가되었는지 여부 (Whether the token was newly added)

        Raises:
            ValidationError: 이름 또는 토큰이 비어 있음 (Empty user name or token)
        """
        name: str = _require(user_name, "userName")
        value: str = _require(token, "token")

        if await self.repository.has_token(db, name, value):
            return False
        try:
            await self.repository.add_token(db, name, value)
            await db.commit()
        except IntegrityError:
            # 동시 등록 — 유니크 제약이 중복을 흡수 (Concurrent registration of the same pair)
            await db.rollback()
            return False
        logger.info("Registered push token ...%s for %s", value[-8:], name)
        return True

    async def get_tokens(self, db: AsyncSession, user_name: str) -> list[str]:
        """사용자의 토큰을 등록 순서대로 조회합니다 (Tokens in registration order)."""
        return await self.repository.get_tokens(db, user_name)

    async def unregister_token(
        self,
        db: AsyncSession,
        user_name: str | None,
        token: str | None,
    ) -> bool:
        """로그아웃 시 토큰을 해제합니다. 없으면 변경 없음.

        Remove a token on explicit logout. Removing an unknown pair is a no-op.

        Raises:
            ValidationError: 이름 또는 토큰이 비어 있음 (Empty user name or token)
        """
        name: str = _require(user_name, "userName")
        value: str = _require(token, "token")
        removed: bool = await self.repository.remove_token(db, name, value)
        await db.commit()
        return removed
