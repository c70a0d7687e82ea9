"""의류 아이템 레포지토리 — 아이템 및 이력 DB 쿼리 담당.

Cloth Item Repository — Handles all item and history database queries.
Status/assignee writes go through compare_and_swap so that two writers
that read the same item state can never both succeed.
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.models.cloth_item import ClothItem, ItemHistoryEntry
from stitchwell.repositories.base import BaseRepository


class ClothItemRepository(BaseRepository[ClothItem]):
    """의류 아이템 레포지토리.

    Cloth item repository with filtering, worker task queries and
    optimistic-concurrency updates.

    Extends:
        BaseRepository[ClothItem]
    """

    def __init__(self) -> None:
        """레포지토리를 초기화합니다.

        Initialize the item repository with ClothItem model.
        """
        super().__init__(ClothItem)

    async def get_fresh(
        self,
        db: AsyncSession,
        item_id: UUID,
    ) -> ClothItem | None:
        """세션 캐시를 무시하고 아이템과 이력을 다시 읽습니다.

        Re-read an item and its history from the database, overwriting any
        stale state held in the session identity map.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_id: 아이템 UUID (Item UUID)

        Returns:
            ClothItem | None: 최신 아이템 또는 None (Fresh item or None)
        """
        result = await db.execute(
            select(ClothItem)
            .where(ClothItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_filters(
        self,
        db: AsyncSession,
        status: str | None = None,
        assigned_to: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ClothItem], int]:
        """필터 조건에 맞는 아이템을 페이지네이션하여 조회합니다.

        Retrieve paginated items matching the given filters, newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            status: 상태 필터, 선택 (Optional status filter)
            assigned_to: 담당자 필터, 선택 (Optional assignee filter)
            page: 페이지 번호, 1부터 시작 (Page number, 1-based)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[ClothItem], int]: (아이템 목록, 전체 개수)
                                              (List of items, total count)
        """
        query: Select = select(ClothItem)
        if status is not None:
            query = query.where(ClothItem.status == status)
        if assigned_to is not None:
            query = query.where(ClothItem.assigned_to == assigned_to)
        query = query.order_by(ClothItem.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def get_assigned_to(
        self,
        db: AsyncSession,
        worker_name: str,
    ) -> Sequence[ClothItem]:
        """작업자에게 배정된 아이템 목록을 조회합니다 (내 작업).

        Retrieve all items currently assigned to a worker ("my tasks").

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            worker_name: 작업자 이름 (Worker name)

        Returns:
            Sequence[ClothItem]: 배정된 아이템 목록 (Assigned items, newest first)
        """
        result = await db.execute(
            select(ClothItem)
            .where(ClothItem.assigned_to == worker_name)
            .order_by(ClothItem.created_at.desc())
        )
        return result.scalars().all()

    async def get_unassigned_in_status(
        self,
        db: AsyncSession,
        status: str,
    ) -> Sequence[ClothItem]:
        """특정 상태에서 담당자가 없는 아이템을 조회합니다.

        Retrieve items sitting in ``status`` with no assignee.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            status: 상태 값 (Status value)

        Returns:
            Sequence[ClothItem]: 미배정 아이템 목록 (Unassigned items, oldest first)
        """
        result = await db.execute(
            select(ClothItem)
            .where(ClothItem.status == status, ClothItem.assigned_to.is_(None))
            .order_by(ClothItem.created_at)
        )
        return result.scalars().all()

    async def create_with_history(
        self,
        db: AsyncSession,
        item_data: dict[str, Any],
        action_code: str,
        action_params: dict[str, Any],
    ) -> ClothItem:
        """아이템과 첫 번째 이력을 함께 생성합니다.

        Create an item together with its first history entry in one flush,
        so the item never exists without a matching history head.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_data: 아이템 필드 딕셔너리 (Item field values)
            action_code: 첫 이력의 액션 코드 (Action code of the first entry)
            action_params: 첫 이력의 파라미터 (Params of the first entry)

        Returns:
            ClothItem: 생성된 아이템 (Created item)
        """
        now: datetime = datetime.now(timezone.utc)
        item: ClothItem = ClothItem(**item_data, version=1, created_at=now, updated_at=now)
        item.history = [
            ItemHistoryEntry(
                sequence=0,
                status=item.status,
                assigned_to=item.assigned_to,
                action_code=action_code,
                action_params=action_params,
                timestamp=now,
            )
        ]
        db.add(item)
        await db.flush()
        return item

    async def compare_and_swap(
        self,
        db: AsyncSession,
        item_id: UUID,
        expected_status: str,
        expected_version: int,
        values: dict[str, Any],
    ) -> bool:
        """읽은 상태/버전이 그대로일 때만 아이템을 갱신합니다.

        Update the item only if its status and version still match what the
        caller read. Bumps the version on success.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_id: 아이템 UUID (Item UUID)
            expected_status: 읽은 시점의 상태 (Status as read)
            expected_version: 읽은 시점의 버전 (Version as read)
            values: 갱신할 필드 (Fields to set)

        Returns:
            bool: 갱신 성공 여부 — False면 다른 요청이 먼저 변경함
                  (False when another writer got there first)
        """
        result = await db.execute(
            update(ClothItem)
            .where(
                ClothItem.id == item_id,
                ClothItem.status == expected_status,
                ClothItem.version == expected_version,
            )
            .values(version=ClothItem.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def append_history(
        self,
        db: AsyncSession,
        item_id: UUID,
        sequence: int,
        status: str,
        assigned_to: str | None,
        action_code: str,
        action_params: dict[str, Any],
        timestamp: datetime,
    ) -> ItemHistoryEntry:
        """이력 항목을 추가합니다 (수정/삭제 없음).

        Append one history entry. Entries are never updated or removed.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_id: 아이템 UUID (Item UUID)
            sequence: 이력 순번 (Position in the item's history)
            status: 전이 후 상태 (Status after the change)
            assigned_to: 전이 후 담당자 (Assignee after the change)
            action_code: 액션 코드 (ActionCode value)
            action_params: 액션 파라미터 (Structured params)
            timestamp: 기록 일시 (Change timestamp)

        Returns:
            ItemHistoryEntry: 추가된 이력 (Appended entry)
        """
        entry: ItemHistoryEntry = ItemHistoryEntry(
            item_id=item_id,
            sequence=sequence,
            status=status,
            assigned_to=assigned_to,
            action_code=action_code,
            action_params=action_params,
            timestamp=timestamp,
        )
        db.add(entry)
        await db.flush()
        return entry
