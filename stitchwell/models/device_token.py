"""디바이스 토큰 모델 — 사용자별 푸시 토큰 저장.

Device Token model — Stores push registration tokens per worker.
A worker may own many tokens (one per browser/device); the set only grows
except for an explicit unregister on logout.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stitchwell.database import Base


class DeviceToken(Base):
    """디바이스 토큰 테이블.

    Push token table. (user_name, token) is unique, which gives set-union
    semantics to registration.

    Attributes:
        id: 고유 식별자 (Primary key UUID)
        user_name: 소유 작업자 이름 (Owner worker name)
        token: 푸시 등록 토큰 (FCM registration token)
        created_at: 등록 일시 (Registration timestamp)
    """

    __tablename__ = "device_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    token: Mapped[str] = mapped_column(String(512), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("user_name", "token", name="uq_device_token_user_token"),
    )
