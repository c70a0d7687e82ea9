"""알림 서비스 — 알림 생성, 푸시 발송, 읽음 처리.

Notification Service — Business logic for notification dispatch.
Creates the in-app notification record, fans the push out to the
recipient's tokens, and serves the inbox read/unread operations.
"""

import logging
from dataclasses import dataclass
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.constants import (
    NOTIFICATION_TYPE_TASK_ASSIGNED,
    PUSH_TITLE_TASK_ASSIGNED,
    WorkflowStatus,
)
from stitchwell.models.notification import Notification
from stitchwell.repositories.notification_repository import NotificationRepository
from stitchwell.services.events import ItemChangedEvent
from stitchwell.services.push_service import PushDispatcher, PushSummary
from stitchwell.services.token_service import TokenService
from stitchwell.utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    """notify 결과 — 저장된 알림과 푸시 집계.

    Outcome of one notify call: the stored record and the push tally.
    """

    notification: Notification
    ok: int
    total: int


class NotificationService:
    """알림 서비스.

    Notification service providing dispatch, ad-hoc push and the shared
    read/unread operations.
    """

    def __init__(
        self,
        dispatcher: PushDispatcher,
        token_service: TokenService | None = None,
        repository: NotificationRepository | None = None,
    ) -> None:
        self.dispatcher: PushDispatcher = dispatcher
        self.token_service: TokenService = token_service or TokenService()
        self.repository: NotificationRepository = repository or NotificationRepository()

    # --- 발송 (Dispatch) ---

    async def notify(
        self,
        db: AsyncSession,
        recipient: str,
        message: str,
        title: str | None = None,
        data: dict[str, Any] | None = None,
        item_id: UUID | None = None,
        push_body: str | None = None,
        notification_type: str = NOTIFICATION_TYPE_TASK_ASSIGNED,
    ) -> DispatchResult:
        """알림을 저장한 뒤 수신자의 모든 토큰으로 푸시를 발송합니다.

        Persist a notification, then push it to every token of the recipient.
        The record is committed before any push is attempted, so it exists
        even when the recipient has no tokens or every send fails.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            recipient: 수신자 이름 (Recipient name)
            message: 인앱 메시지 (In-app message)
            title: 푸시 제목 (Push title, default title when omitted)
            data: 푸시 데이터 (Push data payload)
            item_id: 참조 아이템 (Source item, optional)
            push_body: 푸시 본문, 없으면 message 사용 (Push body, defaults to message)
            notification_type: 알림 유형 (Notification type)

        Returns:
            DispatchResult: (알림, 성공 수, 토큰 수) (Record, successes, token count)

        Raises:
            ValidationError: 수신자가 비어 있음 (Empty recipient)
        """
        if not recipient or not recipient.strip():
            raise ValidationError("Recipient is required")

        notification: Notification = await self.repository.create_notification(
            db,
            user_name=recipient,
            notification_type=notification_type,
            message=message,
            item_id=item_id,
        )
        await db.commit()

        tokens: list[str] = await self.token_service.get_tokens(db, recipient)
        summary: PushSummary = await self.dispatcher.send_to_tokens(
            tokens,
            title=title,
            body=push_body or message,
            data=data,
        )
        return DispatchResult(notification=notification, ok=summary.ok, total=summary.total)

    async def send_push(
        self,
        db: AsyncSession,
        title: str | None = None,
        body: str | None = None,
        data: dict[str, Any] | None = None,
        user_name: str | None = None,
        token: str | None = None,
    ) -> PushSummary:
        """알림 레코드 없이 푸시만 발송합니다.

        Send a push without creating a notification record. An explicit
        token takes precedence over looking up the user's tokens.

        Returns:
            PushSummary: total이 0이면 대상 토큰 없음 (total 0 means no tokens)
        """
        if token:
            tokens: list[str] = [token]
        elif user_name:
            tokens = await self.token_service.get_tokens(db, user_name)
        else:
            tokens = []
        return await self.dispatcher.send_to_tokens(tokens, title=title, body=body, data=data)

    async def on_item_changed(self, db: AsyncSession, event: ItemChangedEvent) -> None:
        """아이템 변경 리스너 — 담당자가 있으면 작업 배정 알림 발송.

        Item-changed listener: notify the resulting assignee, if any.
        """
        if not event.assigned_to:
            return
        stage: str = WorkflowStatus(event.status).label
        result: DispatchResult = await self.notify(
            db,
            recipient=event.assigned_to,
            message=(
                f"Item {event.bill_number} ({event.cloth_type}) "
                f"has been assigned to you for {stage}."
            ),
            title=PUSH_TITLE_TASK_ASSIGNED,
            push_body=f"Item {event.bill_number} ({event.cloth_type}) assigned for {stage}",
            data={"itemId": str(event.item_id)},
            item_id=event.item_id,
        )
        logger.info(
            "Notified %s about item %s (%d/%d pushes delivered)",
            event.assigned_to,
            event.item_id,
            result.ok,
            result.total,
        )

    # --- 조회/읽음 처리 (Read/unread operations) ---

    async def list_notifications(
        self,
        db: AsyncSession,
        user_name: str,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """수신자의 알림 목록을 페이지네이션하여 조회합니다.

        List paginated notifications for a recipient, newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_name: 수신자 이름 (Recipient name)
            page: 페이지 번호 (Page number)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[Notification], int]: (알림 목록, 전체 개수)
                                                 (List of notifications, total count)
        """
        return await self.repository.get_user_notifications(db, user_name, page, per_page)

    async def get_unread_count(self, db: AsyncSession, user_name: str) -> int:
        """수신자의 읽지 않은 알림 수를 조회합니다 (Unread count for a recipient)."""
        return await self.repository.get_unread_count(db, user_name)

    async def mark_read(self, db: AsyncSession, notification_id: UUID) -> None:
        """단일 알림을 읽음 처리합니다. 이미 읽은 알림은 그대로 성공.

        Mark a single notification as read (idempotent).

        Raises:
            NotFoundError: 알림이 없음 (Unknown notification id)
        """
        found: bool = await self.repository.mark_read(db, notification_id)
        if not found:
            await db.rollback()
            raise NotFoundError("Notification not found")
        await db.commit()

    async def mark_all_read(self, db: AsyncSession, user_name: str) -> int:
        """수신자의 모든 읽지 않은 알림을 읽음 처리합니다.

        Mark all unread notifications as read for a recipient.

        Returns:
            int: 읽음 처리된 알림 수 (Count of notifications marked as read)
        """
        count: int = await self.repository.mark_all_read(db, user_name)
        await db.commit()
        return count

    def build_response(self, notification: Notification) -> dict:
        """알림 응답 딕셔너리를 구성합니다 (Build the notification response dict)."""
        return {
            "id": str(notification.id),
            "type": notification.type,
            "message": notification.message,
            "item_id": str(notification.item_id) if notification.item_id else None,
            "is_read": notification.is_read,
            "created_at": notification.created_at,
        }
