"""앱 알림 라우터 — 작업자용 알림 API.

App Notification Router — API endpoints for the worker's notifications.
Provides list, unread count, mark read, and mark all read operations.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.api.deps import Actor, get_notification_service, require_actor
from stitchwell.database import get_db
from stitchwell.schemas.common import MessageResponse, PaginatedResponse, UnreadCountResponse
from stitchwell.services.notification_service import NotificationService

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
    actor: Annotated[Actor, Depends(require_actor)],
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """내 알림 목록을 조회합니다.

    List notifications for the calling worker, newest first.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        notification_service: 알림 서비스 (Notification service)
        actor: 호출 작업자 (Calling worker)
        page: 페이지 번호 (Page number)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        dict: 페이지네이션된 알림 목록 (Paginated notification list)
    """
    notifications, total = await notification_service.list_notifications(
        db,
        user_name=actor.name,
        page=page,
        per_page=per_page,
    )
    return {
        "items": [notification_service.build_response(n) for n in notifications],
        "total": total,
        "page": page,
        "per_page": per_page,
    }


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
    actor: Annotated[Actor, Depends(require_actor)],
) -> dict:
    """읽지 않은 알림 수를 조회합니다 (Unread notification count)."""
    count: int = await notification_service.get_unread_count(db, user_name=actor.name)
    return {"unread_count": count}


@router.patch("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
    actor: Annotated[Actor, Depends(require_actor)],
) -> dict:
    """모든 읽지 않은 알림을 읽음 처리합니다.

    Mark all unread notifications of the caller as read.
    """
    count: int = await notification_service.mark_all_read(db, user_name=actor.name)
    return {"message": f"{count} notifications marked as read"}


@router.patch("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
    actor: Annotated[Actor, Depends(require_actor)],
) -> dict:
    """단일 알림을 읽음 처리합니다. 이미 읽은 알림도 성공.

    Mark a single notification as read (idempotent).

    Args:
        notification_id: 알림 UUID (Notification UUID)
        db: 비동기 데이터베이스 세션 (Async database session)
        notification_service: 알림 서비스 (Notification service)
        actor: 호출 작업자 (Calling worker)

    Returns:
        dict: 처리 결과 메시지 (Result message)
    """
    await notification_service.mark_read(db, notification_id)
    return {"message": "Notification marked as read"}
