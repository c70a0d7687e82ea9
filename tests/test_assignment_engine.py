"""배정 엔진 테스트.

Assignment engine tests — Creation, stage completion, admin overrides,
backfill, deletion and the optimistic-concurrency guarantees.
"""

import asyncio
import uuid

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stitchwell.constants import ActionCode, WorkflowStatus
from stitchwell.database import Base
from stitchwell.models.cloth_item import ClothItem
from stitchwell.models.roster import RosterRole
from stitchwell.repositories.cloth_item_repository import ClothItemRepository
from stitchwell.repositories.notification_repository import NotificationRepository
from stitchwell.services.assignment_engine import AssignmentEngine
from stitchwell.services.events import ItemChangedEvent, ItemEventHub
from stitchwell.services.roster_service import RosterService
from stitchwell.services.token_service import TokenService
from stitchwell.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    NoTransitionError,
    ValidationError,
)
from tests.conftest import FULL_ROSTER, build_engine, set_roster


def assert_history_head(item: ClothItem) -> None:
    """아이템 상태/담당자가 마지막 이력과 일치하는지 확인."""
    assert item.history, "item has no history"
    last = item.history[-1]
    assert item.status == last.status
    assert item.assigned_to == last.assigned_to
    assert [entry.sequence for entry in item.history] == list(range(len(item.history)))


async def notifications_for(db: AsyncSession, name: str) -> list:
    items, _ = await NotificationRepository().get_user_notifications(db, name, 1, 100)
    return list(items)


class TestCreateItem:
    """아이템 생성 테스트."""

    async def test_created_in_first_stage(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        """생성 시 첫 단계 기본 담당자에게 배정되고 이력 1건."""
        await set_roster(db, {"cutting_worker": ["Feroz"], "admin": ["Admin"]})

        item = await assignment_engine.create_item(db, "Shirt", "SH001")

        assert item.status == WorkflowStatus.AWAITING_CUTTING.value
        assert item.assigned_to == "Feroz"
        assert item.version == 1
        assert len(item.history) == 1
        assert item.history[0].action_code == ActionCode.CREATED_BY_ADMIN.value
        assert_history_head(item)

    async def test_configured_first_stage(self, db: AsyncSession, push_provider):
        """시작 상태는 설정값을 따름."""
        await set_roster(db, FULL_ROSTER)
        engine = build_engine(push_provider, first_stage=WorkflowStatus.AWAITING_THREADING)

        item = await engine.create_item(db, "Kurta", "KU001", quantity=2, customer_name="Ravi")

        assert item.status == WorkflowStatus.AWAITING_THREADING.value
        assert item.assigned_to == "Abdul"
        assert item.quantity == 2
        assert item.customer_name == "Ravi"

    async def test_empty_first_stage_role(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        """첫 단계 역할이 비어 있으면 미배정으로 생성."""
        item = await assignment_engine.create_item(db, "Pant", "PA001")
        assert item.assigned_to is None
        assert_history_head(item)

    async def test_notifies_first_assignee(self, db: AsyncSession, assignment_engine: AssignmentEngine, push_provider):
        """생성 시 담당자에게 알림과 푸시 발송."""
        await set_roster(db, FULL_ROSTER)
        await TokenService().register_token(db, "Feroz", "tok-feroz")

        item = await assignment_engine.create_item(db, "Shirt", "SH001")

        notes = await notifications_for(db, "Feroz")
        assert len(notes) == 1
        assert notes[0].message == "Item SH001 (Shirt) has been assigned to you for Awaiting Cutting."
        assert notes[0].item_id == item.id
        assert push_provider.sent == [
            {
                "token": "tok-feroz",
                "title": "New Task Assigned",
                "body": "Item SH001 (Shirt) assigned for Awaiting Cutting",
                "data": {"itemId": str(item.id)},
            }
        ]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"cloth_type": "Shirt", "bill_number": ""},
            {"cloth_type": "Shirt", "bill_number": "SH001", "quantity": 0},
            {"cloth_type": "Saree", "bill_number": "SA001"},
        ],
    )
    async def test_invalid_input(self, db: AsyncSession, assignment_engine: AssignmentEngine, kwargs):
        """잘못된 입력은 아무것도 저장하지 않음."""
        with pytest.raises(ValidationError):
            await assignment_engine.create_item(db, **kwargs)
        _, total = await assignment_engine.list_items(db)
        assert total == 0


class TestCompleteTask:
    """단계 완료 테스트."""

    async def test_cutting_to_stitching_assignment(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        """재단 완료 시 관리자에게 배정되고 관리자 알림 생성."""
        await set_roster(db, {"cutting_worker": ["Feroz"], "admin": ["Admin"]})
        item = await assignment_engine.create_item(db, "Shirt", "SH001")

        item = await assignment_engine.complete_task(db, item.id)

        assert item.status == WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT.value
        assert item.assigned_to == "Admin"
        assert len(item.history) == 2
        assert item.history[-1].action_code == ActionCode.COMPLETED_STAGE.value
        assert item.history[-1].action_params == {"from_status": "awaiting_cutting"}
        assert_history_head(item)
        assert len(await notifications_for(db, "Admin")) == 1

    async def test_full_pipeline(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """생성부터 READY까지 — 매 단계 이력 일치."""
        item = await assignment_engine.create_item(db, "Safari", "SF001")
        item = await assignment_engine.complete_task(db, item.id)
        item = await assignment_engine.assign_item_to_worker(db, item.id, "Hanif")
        assert_history_head(item)

        expected = [
            (WorkflowStatus.AWAITING_STITCHING, "Hanif"),
            (WorkflowStatus.AWAITING_BUTTONING, "Abdul"),
            (WorkflowStatus.AWAITING_IRONING, "Abdul Kadir"),
            (WorkflowStatus.AWAITING_PACKAGING, "Abdul Kadir"),
            (WorkflowStatus.READY, None),
        ]
        for status, assignee in expected:
            item = await assignment_engine.complete_task(db, item.id)
            assert item.status == status.value
            assert item.assigned_to == assignee
            assert_history_head(item)

        assert len(item.history) == 8
        assert item.version == 8

    async def test_unassigned_stitching_stays_unassigned(
        self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster
    ):
        """재단사 지정 없이 넘어가면 봉제 단계는 미배정."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        item = await assignment_engine.complete_task(db, item.id)
        assert item.assigned_to == "Admin"

        item = await assignment_engine.complete_task(db, item.id)

        assert item.status == WorkflowStatus.AWAITING_STITCHING.value
        assert item.assigned_to is None

    async def test_ready_has_no_transition(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        """READY 아이템 완료 시 NoTransitionError, 아이템 변경 없음."""
        item = await assignment_engine.create_item(db, "Pant", "PA001")
        while item.status != WorkflowStatus.READY.value:
            item = await assignment_engine.complete_task(db, item.id)
        before = (item.status, item.assigned_to, item.version, len(item.history))

        with pytest.raises(NoTransitionError):
            await assignment_engine.complete_task(db, item.id)

        after = await assignment_engine.get_item(db, item.id)
        assert (after.status, after.assigned_to, after.version, len(after.history)) == before

    async def test_expected_status_mismatch(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """호출자가 본 상태와 다르면 ConflictError."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        await assignment_engine.complete_task(db, item.id)

        with pytest.raises(ConflictError):
            await assignment_engine.complete_task(db, item.id, expected_status="awaiting_cutting")

        item = await assignment_engine.get_item(db, item.id)
        assert item.status == WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT.value
        assert len(item.history) == 2

    async def test_empty_role_still_advances(self, db: AsyncSession, push_provider):
        """다음 역할의 유일한 작업자를 제거해도 전이는 성공, 담당자 None."""
        await set_roster(db, {"threading_worker": ["Abdul"], "cutting_worker": ["Feroz"]})
        engine = build_engine(push_provider, first_stage=WorkflowStatus.AWAITING_THREADING)
        item = await engine.create_item(db, "Shirt", "SH001")

        await RosterService().remove_worker(db, "cutting_worker", "Feroz")
        item = await engine.complete_task(db, item.id)

        assert item.status == WorkflowStatus.AWAITING_CUTTING.value
        assert item.assigned_to is None
        assert_history_head(item)
        assert await notifications_for(db, "Feroz") == []

    async def test_roster_read_fresh_each_time(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """기본 담당자 변경이 다음 전이에 바로 반영."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        roster = RosterService()
        await roster.add_worker(db, "admin", "Owner")
        await roster.set_default_worker(db, "admin", "Owner")

        item = await assignment_engine.complete_task(db, item.id)

        assert item.assigned_to == "Owner"

    async def test_roster_change_from_other_writer(
        self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster
    ):
        """세션에 로드된 명단 행도 다른 쓰기 결과로 갱신되어 전이에 반영."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        item_id = item.id

        # ORM 식별 맵을 우회하는 쓰기 — Write that bypasses the identity map
        await db.execute(
            update(RosterRole)
            .where(RosterRole.role == "admin")
            .values(workers=["Owner", "Admin"])
            .execution_options(synchronize_session=False)
        )

        item = await assignment_engine.complete_task(db, item_id)

        assert item.assigned_to == "Owner"
        assert_history_head(item)

    async def test_unknown_item(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        with pytest.raises(NotFoundError):
            await assignment_engine.complete_task(db, uuid.uuid4())


class TestAssignItemToWorker:
    """관리자 재배정 테스트."""

    async def test_status_unchanged(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """재배정 시 상태는 유지, 이력 1건 추가."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        item = await assignment_engine.complete_task(db, item.id)

        item = await assignment_engine.assign_item_to_worker(db, item.id, "Tailor 1")

        assert item.status == WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT.value
        assert item.assigned_to == "Tailor 1"
        assert len(item.history) == 3
        assert item.history[-1].action_code == ActionCode.ASSIGNED_FOR_STAGE.value
        assert item.history[-1].action_params == {"worker": "Tailor 1"}
        assert_history_head(item)
        assert len(await notifications_for(db, "Tailor 1")) == 1

    async def test_tailor_kept_through_stitching(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """지정한 재단사는 봉제 단계까지 유지."""
        item = await assignment_engine.create_item(db, "Kurta", "KU001")
        item = await assignment_engine.complete_task(db, item.id)
        item = await assignment_engine.assign_item_to_worker(db, item.id, "Hanif")

        item = await assignment_engine.complete_task(db, item.id)

        assert item.status == WorkflowStatus.AWAITING_STITCHING.value
        assert item.assigned_to == "Hanif"

    async def test_reassign_in_any_status(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """첫 단계에서도 재배정 가능, 상태는 유지."""
        item = await assignment_engine.create_item(db, "Pant", "PA001")
        item = await assignment_engine.assign_item_to_worker(db, item.id, "Ravi")
        assert item.status == WorkflowStatus.AWAITING_CUTTING.value
        assert item.assigned_to == "Ravi"

    async def test_empty_worker(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        item = await assignment_engine.create_item(db, "Pant", "PA001")
        with pytest.raises(ValidationError):
            await assignment_engine.assign_item_to_worker(db, item.id, "  ")
        item = await assignment_engine.get_item(db, item.id)
        assert len(item.history) == 1


class TestBackfill:
    """미배정 아이템 일괄 배정 테스트."""

    async def test_assigns_unassigned_first_stage_items(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        """첫 단계 미배정 아이템만 현재 기본 담당자에게 배정."""
        first = await assignment_engine.create_item(db, "Shirt", "SH001")
        second = await assignment_engine.create_item(db, "Shirt", "SH002")
        assert first.assigned_to is None and second.assigned_to is None

        await RosterService().add_worker(db, "cutting_worker", "Feroz")
        assert await assignment_engine.backfill_unassigned(db) == 2

        for item_id in (first.id, second.id):
            item = await assignment_engine.get_item(db, item_id)
            assert item.assigned_to == "Feroz"
            assert item.history[-1].action_params == {"worker": "Feroz", "backfill": True}
            assert_history_head(item)
        assert len(await notifications_for(db, "Feroz")) == 2

        assert await assignment_engine.backfill_unassigned(db) == 0

    async def test_no_default_worker(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        await assignment_engine.create_item(db, "Shirt", "SH001")
        assert await assignment_engine.backfill_unassigned(db) == 0


class TestDeleteItem:
    """아이템 삭제 테스트."""

    async def test_admin_only(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """관리자가 아니면 ForbiddenError, 아이템 유지."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        with pytest.raises(ForbiddenError):
            await assignment_engine.delete_item(db, item.id, is_admin=False)
        assert (await assignment_engine.get_item(db, item.id)).id == item.id

    async def test_delete(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        await assignment_engine.delete_item(db, item.id, is_admin=True)
        with pytest.raises(NotFoundError):
            await assignment_engine.get_item(db, item.id)

    async def test_delete_unknown(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        with pytest.raises(NotFoundError):
            await assignment_engine.delete_item(db, uuid.uuid4(), is_admin=True)


class TestListing:
    """목록 조회 테스트."""

    async def test_filters(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """상태/담당자 필터와 작업자별 작업 목록."""
        first = await assignment_engine.create_item(db, "Shirt", "SH001")
        await assignment_engine.create_item(db, "Pant", "PA001")
        await assignment_engine.complete_task(db, first.id)

        items, total = await assignment_engine.list_items(db, status="awaiting_cutting")
        assert total == 1
        assert items[0].bill_number == "PA001"

        tasks = await assignment_engine.list_tasks_for(db, "Admin")
        assert [task.bill_number for task in tasks] == ["SH001"]

    async def test_unknown_status_filter(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        with pytest.raises(ValidationError):
            await assignment_engine.list_items(db, status="sewing")

    async def test_response_projects_action_text(self, db: AsyncSession, assignment_engine: AssignmentEngine, full_roster):
        """응답의 이력 설명은 액션 코드에서 계산."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        item = await assignment_engine.complete_task(db, item.id)
        item = await assignment_engine.assign_item_to_worker(db, item.id, "Salim")

        response = assignment_engine.build_response(item)

        assert response["status_label"] == "Awaiting Stitching Assignment"
        assert [entry["action"] for entry in response["history"]] == [
            "Item created",
            "Completed Awaiting Cutting",
            "Assigned to Salim",
        ]


class TestWriteFailures:
    """쓰기 실패 시 일관성 테스트."""

    async def test_history_failure_rolls_back_status(self, db: AsyncSession, push_provider, full_roster):
        """이력 저장 실패 시 상태도 이전 그대로."""

        class DuplicateSequenceRepository(ClothItemRepository):
            async def append_history(self, db, item_id, sequence, **kwargs):
                return await super().append_history(db, item_id, 0, **kwargs)

        engine = build_engine(push_provider, repository=DuplicateSequenceRepository())
        item = await engine.create_item(db, "Shirt", "SH001")
        # 롤백 후 ORM 객체가 만료되므로 id를 먼저 보관 — Rollback expires the instance
        item_id = item.id

        with pytest.raises(ConflictError):
            await engine.complete_task(db, item_id)

        item = await engine.get_item(db, item_id)
        assert item.status == WorkflowStatus.AWAITING_CUTTING.value
        assert item.assigned_to == "Feroz"
        assert item.version == 1
        assert len(item.history) == 1

    async def test_listener_failure_keeps_write(self, db: AsyncSession, full_roster):
        """리스너 실패는 커밋된 쓰기와 다른 리스너에 영향 없음."""
        seen: list[ItemChangedEvent] = []

        async def broken(db, event):
            raise RuntimeError("listener down")

        async def recorder(db, event):
            seen.append(event)

        engine = AssignmentEngine(events=ItemEventHub([broken, recorder]))
        item = await engine.create_item(db, "Shirt", "SH001")
        item = await engine.complete_task(db, item.id)

        assert item.status == WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT.value
        assert [event.action_code for event in seen] == [
            ActionCode.CREATED_BY_ADMIN,
            ActionCode.COMPLETED_STAGE,
        ]
        assert seen[-1].previous_status == "awaiting_cutting"
        assert seen[-1].assigned_to == "Admin"


class TestConcurrency:
    """동시 변경 테스트."""

    async def test_compare_and_swap_once_per_version(self, db: AsyncSession, assignment_engine: AssignmentEngine):
        """같은 (상태, 버전)으로는 한 번만 갱신 성공."""
        item = await assignment_engine.create_item(db, "Shirt", "SH001")
        repository = ClothItemRepository()
        values = {"status": "awaiting_stitching_assignment", "assigned_to": "Admin"}

        assert await repository.compare_and_swap(db, item.id, "awaiting_cutting", 1, values) is True
        assert await repository.compare_and_swap(db, item.id, "awaiting_cutting", 1, values) is False
        await db.rollback()

    async def test_two_completions_one_wins(self, tmp_path, push_provider):
        """같은 상태를 읽은 두 완료 요청 중 하나만 성공."""
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        a_read, b_read, a_done = asyncio.Event(), asyncio.Event(), asyncio.Event()

        class PausingRepository(ClothItemRepository):
            """첫 조회 직후 신호를 보내고 대기 (Pause once, right after the first read)."""

            def __init__(self, reached: asyncio.Event, resume: asyncio.Event) -> None:
                super().__init__()
                self.reached = reached
                self.resume = resume
                self.paused = False

            async def get_fresh(self, db, item_id):
                item = await super().get_fresh(db, item_id)
                if not self.paused:
                    self.paused = True
                    self.reached.set()
                    await self.resume.wait()
                return item

        try:
            async with factory() as setup:
                await set_roster(setup, FULL_ROSTER)
                item = await build_engine(push_provider).create_item(setup, "Shirt", "SH001")
                item_id = item.id

            first = build_engine(push_provider, repository=PausingRepository(a_read, b_read))
            second = build_engine(push_provider, repository=PausingRepository(b_read, a_done))

            async def run_first():
                async with factory() as session:
                    try:
                        return await first.complete_task(session, item_id)
                    finally:
                        a_done.set()

            async def run_second():
                await a_read.wait()
                async with factory() as session:
                    return await second.complete_task(session, item_id)

            results = await asyncio.wait_for(
                asyncio.gather(run_first(), run_second(), return_exceptions=True),
                timeout=10,
            )

            winners = [r for r in results if isinstance(r, ClothItem)]
            losers = [r for r in results if isinstance(r, ConflictError)]
            assert len(winners) == 1
            assert len(losers) == 1

            async with factory() as check:
                final = await AssignmentEngine().get_item(check, item_id)
                assert final.status == WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT.value
                assert len(final.history) == 2
                assert final.version == 2
                assert_history_head(final)
        finally:
            await engine.dispose()
