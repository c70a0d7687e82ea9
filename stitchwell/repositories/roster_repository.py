"""작업자 명단 레포지토리 — 역할별 명단 DB 쿼리 담당.

Roster Repository — Reads and writes the per-role worker lists.
Writes always replace the full list for a role.
"""

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.models.roster import RosterRole
from stitchwell.repositories.base import BaseRepository


class RosterRepository(BaseRepository[RosterRole]):
    """작업자 명단 레포지토리.

    Roster repository; one row per role.

    Extends:
        BaseRepository[RosterRole]
    """

    def __init__(self) -> None:
        super().__init__(RosterRole)

    async def get_all(self, db: AsyncSession) -> dict[str, list[str]]:
        """전체 명단을 {역할: [이름, ...]} 형태로 조회합니다.

        Load the whole roster as ``{role: [name, ...]}``. Rows already in the
        session are refreshed so another writer's change is visible.
        """
        result = await db.execute(select(RosterRole).execution_options(populate_existing=True))
        return {row.role: list(row.workers or []) for row in result.scalars().all()}

    async def get_workers(self, db: AsyncSession, role: str) -> list[str]:
        """역할의 작업자 목록을 조회합니다. 없으면 빈 목록.

        Load one role's ordered worker list (empty if the role has no row).
        """
        row: RosterRole | None = await db.get(RosterRole, role, populate_existing=True)
        return list(row.workers or []) if row is not None else []

    async def save_workers(
        self,
        db: AsyncSession,
        role: str,
        workers: list[str],
    ) -> list[str]:
        """역할의 작업자 목록 전체를 저장합니다 (마지막 쓰기 우선).

        Persist the full ordered list for a role (last-writer-wins).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            role: 역할 키 (Role key)
            workers: 저장할 전체 목록 (Full ordered list)

        Returns:
            list[str]: 저장된 목록 (Stored list)
        """
        now: datetime = datetime.now(timezone.utc)
        row: RosterRole | None = await db.get(RosterRole, role)
        if row is None:
            row = RosterRole(role=role, workers=list(workers), updated_at=now)
            db.add(row)
        else:
            # 새 리스트 객체를 할당해야 JSON 변경이 감지됨 — Assign a new list so the change is tracked
            row.workers = list(workers)
            row.updated_at = now
        await db.flush()
        return list(row.workers)

    async def is_empty(self, db: AsyncSession) -> bool:
        """명단 테이블이 비어 있는지 확인합니다 (Whether no role has been stored yet)."""
        count: int = (await db.execute(select(func.count()).select_from(RosterRole))).scalar() or 0
        return count == 0
