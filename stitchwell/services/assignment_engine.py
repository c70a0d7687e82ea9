"""배정 엔진 — 아이템 상태/담당자/이력의 유일한 작성자.

Assignment Engine — The only writer of item status, assignee and history.

Every write follows the same sequence:
    1. 아이템과 명단을 읽음 (Read the item and the roster)
    2. 전이 계산 (Compute the transition from the workflow table)
    3. 상태+버전 비교 후 갱신 (Compare-and-swap on status and version)
    4. 이력 추가 후 커밋 (Append one history entry, commit both together)
    5. 아이템 변경 이벤트 발행 (Publish ItemChangedEvent to listeners)

A write that loses the compare-and-swap raises ConflictError and leaves
the item untouched; the caller re-reads and retries.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.constants import ActionCode, ClothType, WorkflowStatus, WorkerRole
from stitchwell.models.cloth_item import ClothItem
from stitchwell.repositories.cloth_item_repository import ClothItemRepository
from stitchwell.services.events import ItemChangedEvent, ItemEventHub
from stitchwell.services.roster_service import RosterService
from stitchwell.services.workflow import Transition, first_stage_assignee, next_transition
from stitchwell.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    NoTransitionError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _parse_status(value: str) -> WorkflowStatus:
    try:
        return WorkflowStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown status: {value}")


class AssignmentEngine:
    """배정 엔진.

    Applies workflow transitions and admin overrides to items.
    Constructed per request with its collaborators; holds no item state.

    Attributes:
        first_stage: 신규 아이템 시작 상태 (Status new items start in)
        events: 아이템 변경 이벤트 허브 (Hub notified after every commit)
        roster_service: 명단 서비스 (Roster reads)
        repository: 아이템 레포지토리 (Item persistence)
    """

    def __init__(
        self,
        first_stage: WorkflowStatus = WorkflowStatus.AWAITING_CUTTING,
        events: ItemEventHub | None = None,
        roster_service: RosterService | None = None,
        repository: ClothItemRepository | None = None,
    ) -> None:
        self.first_stage: WorkflowStatus = first_stage
        self.events: ItemEventHub = events or ItemEventHub()
        self.roster_service: RosterService = roster_service or RosterService()
        self.repository: ClothItemRepository = repository or ClothItemRepository()

    # --- 조회 (Queries) ---

    async def get_item(self, db: AsyncSession, item_id: UUID) -> ClothItem:
        """아이템을 이력과 함께 조회합니다.

        Load an item with its history.

        Raises:
            NotFoundError: 아이템이 없음 (Unknown item id)
        """
        item: ClothItem | None = await self.repository.get_fresh(db, item_id)
        if item is None:
            raise NotFoundError("Item not found")
        return item

    async def list_items(
        self,
        db: AsyncSession,
        status: str | None = None,
        assigned_to: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ClothItem], int]:
        """관리자용 아이템 목록 (Paginated item list for the admin board)."""
        if status is not None:
            status = _parse_status(status).value
        return await self.repository.get_by_filters(db, status, assigned_to, page, per_page)

    async def list_tasks_for(self, db: AsyncSession, worker_name: str) -> Sequence[ClothItem]:
        """작업자에게 배정된 아이템 목록 (Items currently assigned to a worker)."""
        if not worker_name or not worker_name.strip():
            raise ValidationError("Worker name is required")
        return await self.repository.get_assigned_to(db, worker_name.strip())

    # --- 쓰기 (Writes) ---

    async def create_item(
        self,
        db: AsyncSession,
        cloth_type: str,
        bill_number: str,
        quantity: int = 1,
        customer_name: str | None = None,
        images: list[dict[str, Any]] | None = None,
    ) -> ClothItem:
        """아이템을 생성하고 첫 단계 담당자에게 배정합니다.

        Create an item in the configured first stage, assigned to that
        stage's default worker, with a ``created_by_admin`` history head.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            cloth_type: 의류 유형 (Shirt | Pant | Kurta | Safari)
            bill_number: 영수증 번호 (Bill number, required)
            quantity: 수량 (Quantity, >= 1)
            customer_name: 고객 이름 (Optional customer name)
            images: 이미지 URL 목록 (Optional [{full_url, thumb_url}] list)

        Returns:
            ClothItem: 생성된 아이템 (Created item)

        Raises:
            ValidationError: 필수 값 누락 또는 잘못된 값 (Missing or invalid field)
        """
        if not bill_number or not bill_number.strip():
            raise ValidationError("Bill number is required")
        if quantity is None or quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        try:
            parsed_type: ClothType = ClothType(cloth_type)
        except ValueError:
            raise ValidationError(f"Unknown cloth type: {cloth_type}")

        roster: dict[str, list[str]] = await self.roster_service.list_roster(db)
        assignee: str | None = first_stage_assignee(self.first_stage, roster)

        item: ClothItem = await self.repository.create_with_history(
            db,
            {
                "type": parsed_type.value,
                "bill_number": bill_number.strip(),
                "quantity": quantity,
                "customer_name": customer_name.strip() if customer_name else None,
                "status": self.first_stage.value,
                "assigned_to": assignee,
                "images": list(images or []),
            },
            action_code=ActionCode.CREATED_BY_ADMIN.value,
            action_params={"worker": assignee} if assignee else {},
        )
        await db.commit()
        item_id: UUID = item.id
        logger.info("Created item %s (bill %s) in %s for %s", item_id, item.bill_number, item.status, assignee)

        await self.events.publish(
            db,
            ItemChangedEvent(
                item_id=item_id,
                bill_number=item.bill_number,
                cloth_type=item.type,
                previous_status=None,
                status=item.status,
                assigned_to=assignee,
                action_code=ActionCode.CREATED_BY_ADMIN,
            ),
        )
        return await self.get_item(db, item_id)

    async def complete_task(
        self,
        db: AsyncSession,
        item_id: UUID,
        expected_status: str | None = None,
    ) -> ClothItem:
        """현재 단계를 완료하고 다음 단계로 이동합니다.

        Complete the current stage: advance to the next status and assign
        the next stage's current default worker.

        Leaving ``awaiting_stitching_assignment`` keeps the assignee when it
        is a tailor on the roster (the tailor an admin picked with
        assign_item_to_worker).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_id: 아이템 UUID (Item UUID)
            expected_status: 호출자가 본 상태, 선택 (Status the caller saw, optional)

        Returns:
            ClothItem: 갱신된 아이템 (Updated item)

        Raises:
            NotFoundError: 아이템이 없음 (Unknown item id)
            ConflictError: 상태가 이미 바뀜 (Item changed since it was read)
            NoTransitionError: 종료 상태 (Item is already ready)
        """
        item: ClothItem = await self.get_item(db, item_id)
        current: WorkflowStatus = WorkflowStatus(item.status)

        if expected_status is not None and _parse_status(expected_status) != current:
            raise ConflictError(f"Item is in {current.label}, not {_parse_status(expected_status).label}")

        roster: dict[str, list[str]] = await self.roster_service.list_roster(db)
        transition: Transition | None = next_transition(current, roster)
        if transition is None:
            raise NoTransitionError(f"Item is already {current.label}")

        next_assignee: str | None = transition.next_assignee
        if (
            current == WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT
            and item.assigned_to in roster.get(WorkerRole.TAILOR.value, [])
        ):
            next_assignee = item.assigned_to

        return await self._apply(
            db,
            item,
            status=transition.next_status,
            assigned_to=next_assignee,
            action_code=ActionCode.COMPLETED_STAGE,
            action_params={"from_status": current.value},
        )

    async def assign_item_to_worker(
        self,
        db: AsyncSession,
        item_id: UUID,
        worker_name: str,
    ) -> ClothItem:
        """관리자 재배정 — 상태는 유지하고 담당자만 변경합니다.

        Admin override: set the assignee at any status without moving the
        item. The new assignee is always notified.

        Raises:
            ValidationError: 작업자 이름이 비어 있음 (Empty worker name)
            NotFoundError: 아이템이 없음 (Unknown item id)
            ConflictError: 동시 변경 (Concurrent modification)
        """
        if not worker_name or not worker_name.strip():
            raise ValidationError("Worker name is required")
        worker: str = worker_name.strip()

        item: ClothItem = await self.get_item(db, item_id)
        return await self._apply(
            db,
            item,
            status=WorkflowStatus(item.status),
            assigned_to=worker,
            action_code=ActionCode.ASSIGNED_FOR_STAGE,
            action_params={"worker": worker},
        )

    async def delete_item(self, db: AsyncSession, item_id: UUID, is_admin: bool) -> None:
        """아이템을 삭제합니다 (관리자 전용).

        Delete an item and its history. Admin only.

        Raises:
            ForbiddenError: 관리자가 아님 (Caller is not an admin)
            NotFoundError: 아이템이 없음 (Unknown item id)
        """
        if not is_admin:
            raise ForbiddenError("Only admins can delete items")
        deleted: bool = await self.repository.delete(db, item_id)
        if not deleted:
            raise NotFoundError("Item not found")
        await db.commit()
        logger.info("Deleted item %s", item_id)

    async def backfill_unassigned(self, db: AsyncSession) -> int:
        """첫 단계의 미배정 아이템을 현재 기본 담당자에게 배정합니다.

        Assign unassigned items sitting in the first stage to that stage's
        current default worker. Items changed concurrently are skipped.

        Returns:
            int: 배정된 아이템 수 (Number of items assigned)
        """
        roster: dict[str, list[str]] = await self.roster_service.list_roster(db)
        worker: str | None = first_stage_assignee(self.first_stage, roster)
        if worker is None:
            return 0

        item_ids: list[UUID] = [
            item.id
            for item in await self.repository.get_unassigned_in_status(db, self.first_stage.value)
        ]
        assigned: int = 0
        for item_id in item_ids:
            # 앞선 쓰기 이후 다시 읽음 — Re-read, earlier writes may have touched the item
            item: ClothItem = await self.get_item(db, item_id)
            if item.status != self.first_stage.value or item.assigned_to is not None:
                continue
            try:
                await self._apply(
                    db,
                    item,
                    status=self.first_stage,
                    assigned_to=worker,
                    action_code=ActionCode.ASSIGNED_FOR_STAGE,
                    action_params={"worker": worker, "backfill": True},
                )
            except ConflictError:
                logger.info("Skipped backfill of item %s (changed concurrently)", item_id)
                continue
            assigned += 1
        return assigned

    # --- 내부 (Internal) ---

    async def _apply(
        self,
        db: AsyncSession,
        item: ClothItem,
        status: WorkflowStatus,
        assigned_to: str | None,
        action_code: ActionCode,
        action_params: dict[str, Any],
    ) -> ClothItem:
        """비교 후 갱신 + 이력 추가를 하나의 트랜잭션으로 커밋합니다.

        Commit the compare-and-swap update and the history entry together,
        then publish the change.

        Raises:
            ConflictError: 읽은 뒤 아이템이 바뀜 (Item changed since it was read)
        """
        # 롤백 시 ORM 객체가 만료되므로 필요한 값은 먼저 복사 — Rollback expires the instance
        item_id: UUID = item.id
        previous_status: str = item.status
        event: ItemChangedEvent = ItemChangedEvent(
            item_id=item_id,
            bill_number=item.bill_number,
            cloth_type=item.type,
            previous_status=previous_status,
            status=status.value,
            assigned_to=assigned_to,
            action_code=action_code,
        )
        sequence: int = len(item.history)
        now: datetime = datetime.now(timezone.utc)

        swapped: bool = await self.repository.compare_and_swap(
            db,
            item_id,
            expected_status=previous_status,
            expected_version=item.version,
            values={"status": status.value, "assigned_to": assigned_to, "updated_at": now},
        )
        if not swapped:
            await db.rollback()
            raise ConflictError()

        try:
            await self.repository.append_history(
                db,
                item_id,
                sequence=sequence,
                status=status.value,
                assigned_to=assigned_to,
                action_code=action_code.value,
                action_params=action_params,
                timestamp=now,
            )
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError()

        logger.info(
            "Item %s: %s -> %s, assigned to %s (%s)",
            item_id,
            previous_status,
            status.value,
            assigned_to,
            action_code.value,
        )
        await self.events.publish(db, event)
        return await self.get_item(db, item_id)

    def build_response(self, item: ClothItem) -> dict:
        """아이템 응답 딕셔너리를 구성합니다 (이력 설명 포함).

        Build the item response dict, projecting each history entry's
        action code to its human-readable description.

        Args:
            item: 의류 아이템 ORM 객체 (Cloth item ORM object with history loaded)

        Returns:
            dict: ItemResponse 형태의 딕셔너리 (Dict shaped like ItemResponse)
        """
        return {
            "id": str(item.id),
            "type": item.type,
            "bill_number": item.bill_number,
            "quantity": item.quantity,
            "customer_name": item.customer_name,
            "status": item.status,
            "status_label": WorkflowStatus(item.status).label,
            "assigned_to": item.assigned_to,
            "images": item.images or [],
            "version": item.version,
            "created_at": item.created_at,
            "updated_at": item.updated_at,
            "history": [
                {
                    "sequence": entry.sequence,
                    "status": entry.status,
                    "assigned_to": entry.assigned_to,
                    "action_code": entry.action_code,
                    "action_params": entry.action_params or {},
                    "action": ActionCode(entry.action_code).describe(entry.action_params),
                    "timestamp": entry.timestamp,
                }
                for entry in item.history
            ],
        }
