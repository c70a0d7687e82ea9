"""작업자 명단 서비스 테스트.

Roster service tests — Add, remove, set default and seeding.
"""

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.constants import DEFAULT_ROSTER, WorkerRole
from stitchwell.models.roster import RosterRole
from stitchwell.services.roster_service import RosterService
from stitchwell.utils.exceptions import NotFoundError, ValidationError


@pytest.fixture
def service() -> RosterService:
    return RosterService()


class TestAddWorker:
    """작업자 추가 테스트."""

    async def test_add_appends(self, db: AsyncSession, service: RosterService):
        """추가된 작업자는 목록 끝에 위치."""
        await service.add_worker(db, "tailor", "Salim")
        workers = await service.add_worker(db, "tailor", "Hanif")
        assert workers == ["Salim", "Hanif"]
        assert await service.list_workers(db, "tailor") == ["Salim", "Hanif"]

    async def test_add_is_idempotent(self, db: AsyncSession, service: RosterService):
        """같은 이름을 두 번 추가해도 한 번만 저장."""
        await service.add_worker(db, "tailor", "Salim")
        workers = await service.add_worker(db, "tailor", " Salim ")
        assert workers == ["Salim"]

    async def test_same_name_in_two_roles(self, db: AsyncSession, service: RosterService):
        """한 작업자가 여러 역할에 속할 수 있음."""
        await service.add_worker(db, "threading_worker", "Abdul")
        await service.add_worker(db, "buttoning_worker", "Abdul")
        roster = await service.list_roster(db)
        assert roster["threading_worker"] == ["Abdul"]
        assert roster["buttoning_worker"] == ["Abdul"]

    @pytest.mark.parametrize("role, name", [("", "Salim"), ("tailor", ""), ("tailor", "   "), ("chef", "Salim")])
    async def test_invalid_input(self, db: AsyncSession, service: RosterService, role, name):
        """빈 역할/이름 또는 알 수 없는 역할은 ValidationError."""
        with pytest.raises(ValidationError):
            await service.add_worker(db, role, name)
        assert (await service.list_roster(db))["tailor"] == []


class TestRemoveWorker:
    """작업자 제거 테스트."""

    async def test_remove_default_promotes_next(self, db: AsyncSession, service: RosterService):
        """기본 담당자를 제거하면 다음 작업자가 기본이 됨."""
        await service.add_worker(db, "cutting_worker", "Feroz")
        await service.add_worker(db, "cutting_worker", "Ravi")
        workers = await service.remove_worker(db, "cutting_worker", "Feroz")
        assert workers == ["Ravi"]

    async def test_remove_absent_is_noop(self, db: AsyncSession, service: RosterService):
        """없는 작업자 제거는 변경 없음."""
        await service.add_worker(db, "cutting_worker", "Feroz")
        workers = await service.remove_worker(db, "cutting_worker", "Nobody")
        assert workers == ["Feroz"]

    async def test_remove_requires_name(self, db: AsyncSession, service: RosterService):
        with pytest.raises(ValidationError):
            await service.remove_worker(db, "cutting_worker", None)


class TestSetDefaultWorker:
    """기본 담당자 지정 테스트."""

    async def test_moves_to_front(self, db: AsyncSession, service: RosterService):
        """지정된 작업자가 0번이 되고 나머지 순서는 유지."""
        for name in ("Salim", "Hanif", "Lala"):
            await service.add_worker(db, "tailor", name)
        await service.set_default_worker(db, "tailor", "Lala")
        workers = await service.list_workers(db, "tailor")
        assert workers[0] == "Lala"
        assert workers == ["Lala", "Salim", "Hanif"]

    async def test_unknown_worker(self, db: AsyncSession, service: RosterService):
        """역할에 없는 작업자는 NotFoundError."""
        await service.add_worker(db, "tailor", "Salim")
        with pytest.raises(NotFoundError):
            await service.set_default_worker(db, "tailor", "Hanif")
        assert await service.list_workers(db, "tailor") == ["Salim"]


class TestSeedDefaults:
    """기본 명단 시드 테스트."""

    async def test_seeds_once(self, db: AsyncSession, service: RosterService):
        """비어 있을 때만 시드하고 관리자 변경을 덮어쓰지 않음."""
        assert await service.seed_defaults(db) is True
        roster = await service.list_roster(db)
        assert roster["cutting_worker"] == DEFAULT_ROSTER[WorkerRole.CUTTING_WORKER]

        await service.remove_worker(db, "cutting_worker", "Feroz")
        assert await service.seed_defaults(db) is False
        assert await service.list_workers(db, "cutting_worker") == []

    async def test_list_roster_has_every_role(self, db: AsyncSession, service: RosterService):
        """저장되지 않은 역할도 빈 목록으로 포함."""
        roster = await service.list_roster(db)
        assert set(roster) == {role.value for role in WorkerRole}
        assert all(workers == [] for workers in roster.values())

    async def test_list_roster_sees_other_writers(self, db: AsyncSession, service: RosterService):
        """세션에 로드된 행도 다른 쓰기 결과로 갱신."""
        await service.add_worker(db, "tailor", "Salim")
        assert (await service.list_roster(db))["tailor"] == ["Salim"]

        # ORM 식별 맵을 우회하는 쓰기 — Write that bypasses the identity map
        await db.execute(
            update(RosterRole)
            .where(RosterRole.role == "tailor")
            .values(workers=["Hanif", "Salim"])
            .execution_options(synchronize_session=False)
        )

        assert (await service.list_roster(db))["tailor"] == ["Hanif", "Salim"]
        assert await service.list_workers(db, "tailor") == ["Hanif", "Salim"]
