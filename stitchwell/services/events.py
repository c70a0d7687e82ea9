"""아이템 변경 이벤트 — 엔진 쓰기 이후 리스너 호출.

Item-changed event hub. The assignment engine publishes one event after
every committed write; listeners (push notification, audit, ...) subscribe
to it instead of reacting to storage triggers.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.constants import ActionCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemChangedEvent:
    """커밋된 아이템 변경 (A committed item change).

    Attributes:
        item_id: 아이템 UUID (Item UUID)
        bill_number: 영수증 번호 (Bill number)
        cloth_type: 의류 유형 (Cloth type)
        previous_status: 변경 전 상태, 생성 시 None (None on creation)
        status: 변경 후 상태 (Status after the change)
        assigned_to: 변경 후 담당자 (Assignee after the change)
        action_code: 변경 종류 (Kind of change)
    """

    item_id: UUID
    bill_number: str
    cloth_type: str
    previous_status: str | None
    status: str
    assigned_to: str | None
    action_code: ActionCode


ItemChangedListener = Callable[[AsyncSession, ItemChangedEvent], Awaitable[None]]


class ItemEventHub:
    """동기 이벤트 허브 — 등록 순서대로 리스너를 await 합니다.

    Synchronous in-process hub: listeners are awaited in registration order
    on the publishing request. A listener failure is logged and does not
    affect the already committed write or the other listeners.
    """

    def __init__(self, listeners: list[ItemChangedListener] | None = None) -> None:
        self._listeners: list[ItemChangedListener] = list(listeners or [])

    def subscribe(self, listener: ItemChangedListener) -> None:
        self._listeners.append(listener)

    async def publish(self, db: AsyncSession, event: ItemChangedEvent) -> None:
        for listener in self._listeners:
            try:
                await listener(db, event)
            except Exception:
                logger.exception(
                    "Item-changed listener failed for item %s (%s)",
                    event.item_id,
                    event.action_code.value,
                )
                # 실패한 리스너의 미완료 작업 정리 — Leave the session usable for the next listener
                await db.rollback()
