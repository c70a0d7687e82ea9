"""디바이스 토큰 레포지토리 — 푸시 토큰 DB 쿼리 담당.

Device Token Repository — Handles push token lookups and registration.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.models.device_token import DeviceToken
from stitchwell.repositories.base import BaseRepository


class DeviceTokenRepository(BaseRepository[DeviceToken]):
    """디바이스 토큰 레포지토리.

    Extends:
        BaseRepository[DeviceToken]
    """

    def __init__(self) -> None:
        super().__init__(DeviceToken)

    async def get_tokens(self, db: AsyncSession, user_name: str) -> list[str]:
        """사용자의 토큰 목록을 등록 순서대로 조회합니다.

        Return the user's tokens in registration order.
        """
        result = await db.execute(
            select(DeviceToken.token)
            .where(DeviceToken.user_name == user_name)
            .order_by(DeviceToken.created_at, DeviceToken.token)
        )
        return list(result.scalars().all())

    async def has_token(self, db: AsyncSession, user_name: str, token: str) -> bool:
        result = await db.execute(
            select(DeviceToken.id).where(
                DeviceToken.user_name == user_name,
                DeviceToken.token == token,
            )
        )
        return result.first() is not None

    async def add_token(self, db: AsyncSession, user_name: str, token: str) -> DeviceToken:
        return await self.create(db, {"user_name": user_name, "token": token})

    async def remove_token(self, db: AsyncSession, user_name: str, token: str) -> bool:
        """토큰을 삭제합니다. 없으면 False (Returns False if the pair was absent)."""
        result = await db.execute(
            delete(DeviceToken).where(
                DeviceToken.user_name == user_name,
                DeviceToken.token == token,
            )
        )
        await db.flush()
        return result.rowcount > 0
