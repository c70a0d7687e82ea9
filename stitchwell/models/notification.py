"""알림 관련 SQLAlchemy ORM 모델 정의.

Notification SQLAlchemy ORM model definitions.
Each notification is an in-app inbox record for one recipient, created
whether or not the recipient has any push device registered.

Tables:
    - notifications: 작업자 알림 (Worker notifications)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stitchwell.database import Base


class Notification(Base):
    """알림 모델 — 작업자에게 전달되는 시스템 알림.

    Notification model — System notifications delivered to workers.
    Workers are identified by roster name, not by an account id.

    Notification Types (type 필드 값):
        - "task_assigned": 작업 배정 알림 (Item assigned to the recipient)

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        user_name: 수신자 이름 (Recipient worker name)
        type: 알림 유형 (Notification type, see above)
        message: 알림 메시지 (Human-readable notification message)
        item_id: 참조 아이템 ID (Source item, nulled if the item is deleted)
        is_read: 읽음 여부 (Whether the recipient has read this notification)
        created_at: 생성 일시 UTC (Creation timestamp)
    """

    __tablename__ = "notifications"

    # 알림 고유 식별자 — Notification unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 수신자 — Target worker who receives this notification
    user_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # 알림 유형 — Notification type (task_assigned)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    # 알림 메시지 — Human-readable message displayed to the worker
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    # 참조 아이템 — Item that triggered the notification
    item_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("cloth_items.id", ondelete="SET NULL"), nullable=True
    )
    # 읽음 여부 — False=미읽음, True=읽음 (Unread by default)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    # 생성 일시 — Notification creation timestamp (UTC, immutable)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
