"""작업자 명단 서비스 — 역할별 작업자 추가/삭제/기본값 지정.

Roster Service — Business logic for the per-role worker roster.
Reads are always served from the database so every transition decision
sees the latest roster.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.constants import DEFAULT_ROSTER, WorkerRole
from stitchwell.repositories.roster_repository import RosterRepository
from stitchwell.utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _parse_role(role: str | None) -> WorkerRole:
    """역할 문자열을 검증합니다 (Validate and parse a role key)."""
    if role is None or not role.strip():
        raise ValidationError("Role is required")
    try:
        return WorkerRole(role.strip())
    except ValueError:
        raise ValidationError(f"Unknown role: {role}")


def _clean_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError("Worker name is required")
    return name.strip()


class RosterService:
    """작업자 명단 서비스.

    Worker roster service. Each mutation rewrites the full list for one
    role; concurrent writers resolve last-writer-wins.
    """

    def __init__(self, repository: RosterRepository | None = None) -> None:
        self.repository: RosterRepository = repository or RosterRepository()

    async def list_roster(self, db: AsyncSession) -> dict[str, list[str]]:
        """전체 명단을 조회합니다. 저장되지 않은 역할은 빈 목록.

        Return the roster for every role; roles never written are empty.
        """
        stored: dict[str, list[str]] = await self.repository.get_all(db)
        return {role.value: stored.get(role.value, []) for role in WorkerRole}

    async def list_workers(self, db: AsyncSession, role: str) -> list[str]:
        """역할의 작업자 목록을 조회합니다 (List one role's workers, default first)."""
        parsed: WorkerRole = _parse_role(role)
        return await self.repository.get_workers(db, parsed.value)

    async def add_worker(self, db: AsyncSession, role: str, name: str) -> list[str]:
        """역할에 작업자를 추가합니다. 이미 있으면 변경 없음.

        Append a worker to a role. Adding an existing name is a no-op.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            role: 역할 키 (Role key)
            name: 작업자 이름 (Worker name, whitespace-stripped)

        Returns:
            list[str]: 변경 후 목록 (Role list after the call)

        Raises:
            ValidationError: 역할 또는 이름이 비어 있음 (Empty role or name)
        """
        parsed: WorkerRole = _parse_role(role)
        cleaned: str = _clean_name(name)
        workers: list[str] = await self.repository.get_workers(db, parsed.value)
        if cleaned in workers:
            return workers
        workers.append(cleaned)
        saved: list[str] = await self.repository.save_workers(db, parsed.value, workers)
        await db.commit()
        logger.info("Added worker %s to %s", cleaned, parsed.value)
        return saved

    async def remove_worker(self, db: AsyncSession, role: str, name: str) -> list[str]:
        """역할에서 작업자를 제거합니다. 없으면 변경 없음.

        Remove a worker from a role. Removing the default (index 0) promotes
        the next worker. Items already assigned to the removed worker keep
        their assignee.

        Raises:
            ValidationError: 역할 또는 이름이 비어 있음 (Empty role or name)
        """
        parsed: WorkerRole = _parse_role(role)
        cleaned: str = _clean_name(name)
        workers: list[str] = await self.repository.get_workers(db, parsed.value)
        if cleaned not in workers:
            return workers
        workers.remove(cleaned)
        saved: list[str] = await self.repository.save_workers(db, parsed.value, workers)
        await db.commit()
        logger.info("Removed worker %s from %s", cleaned, parsed.value)
        return saved

    async def set_default_worker(self, db: AsyncSession, role: str, name: str) -> list[str]:
        """작업자를 역할의 기본 담당자(0번)로 지정합니다.

        Move ``name`` to index 0 of the role's list.

        Raises:
            ValidationError: 역할 또는 이름이 비어 있음 (Empty role or name)
            NotFoundError: 역할에 해당 작업자가 없음 (Name not on the role)
        """
        parsed: WorkerRole = _parse_role(role)
        cleaned: str = _clean_name(name)
        workers: list[str] = await self.repository.get_workers(db, parsed.value)
        if cleaned not in workers:
            raise NotFoundError(f"Worker {cleaned} is not on the {parsed.value} roster")
        workers.remove(cleaned)
        workers.insert(0, cleaned)
        saved: list[str] = await self.repository.save_workers(db, parsed.value, workers)
        await db.commit()
        return saved

    async def seed_defaults(self, db: AsyncSession) -> bool:
        """명단이 비어 있을 때만 기본 명단을 저장합니다.

        Write the default roster once. Returns False when a roster already
        exists, so re-running never overwrites admin edits.
        """
        if not await self.repository.is_empty(db):
            return False
        for role, workers in DEFAULT_ROSTER.items():
            await self.repository.save_workers(db, role.value, list(workers))
        await db.commit()
        logger.info("Seeded default roster for %d roles", len(DEFAULT_ROSTER))
        return True
