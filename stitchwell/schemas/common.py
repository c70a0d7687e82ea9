"""공통 Pydantic 요청/응답 스키마 정의.

Common Pydantic request/response schema definitions.
Includes pagination, generic messages and notification schemas shared by
the admin and app routers.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


# === 알림 (Notification) 스키마 ===

class NotificationResponse(BaseModel):
    """알림 응답 스키마.

    Notification response schema.

    Attributes:
        id: 알림 UUID (Notification unique identifier)
        type: 알림 유형 (Notification type, e.g. "task_assigned")
        message: 알림 메시지 (Notification message)
        item_id: 참조 아이템 UUID (Source item, nullable)
        is_read: 읽음 여부 (Read status)
        created_at: 생성 일시 (Creation timestamp)
    """

    id: str  # 알림 UUID 문자열 (Notification UUID as string)
    type: str  # 알림 유형 (Notification type)
    message: str  # 알림 메시지 (Notification message text)
    item_id: str | None = None  # 참조 아이템 UUID (Source item UUID, nullable)
    is_read: bool  # 읽음 여부 (Whether the notification has been read)
    created_at: datetime  # 생성 일시 (Creation timestamp)


class UnreadCountResponse(BaseModel):
    """읽지 않은 알림 수 응답 (Unread notification count)."""

    unread_count: int


# === 공통 (Common) 스키마 ===

class PaginatedResponse(BaseModel):
    """페이지네이션 응답 스키마.

    Generic paginated response wrapper.

    Attributes:
        items: 현재 페이지 항목 목록 (Items on the current page)
        total: 전체 항목 수 (Total number of items)
        page: 현재 페이지 번호 (Current page number)
        per_page: 페이지당 항목 수 (Items per page)
    """

    items: list[Any]  # 현재 페이지 항목 목록 (Items on the current page)
    total: int  # 전체 항목 수 (Total count across all pages)
    page: int  # 현재 페이지 번호 (Current page number, 1-based)
    per_page: int  # 페이지당 항목 수 (Items per page)


class MessageResponse(BaseModel):
    """단순 메시지 응답 스키마.

    Simple message response schema.

    Attributes:
        message: 응답 메시지 (Response message)
    """

    message: str  # 응답 메시지 (Response message text)
