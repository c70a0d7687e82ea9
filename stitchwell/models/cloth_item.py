"""의류 아이템 관련 SQLAlchemy ORM 모델 정의.

Cloth item SQLAlchemy ORM model definitions.
An item moves through the tailoring workflow; every move is recorded as an
append-only history entry. The assignment engine is the only writer of
status / assigned_to / history.

Tables:
    - cloth_items: 의류 아이템 (Garment items with workflow state)
    - item_history_entries: 상태/담당자 변경 이력 (Append-only transition log)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, DateTime, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stitchwell.database import Base, JSONType


class ClothItem(Base):
    """의류 아이템 모델 — 워크플로를 따라 이동하는 작업 단위.

    Cloth item model — the unit of work moved through the tailoring pipeline.

    Images Structure (images):
        아이템 생성 시 업로드된 이미지 URL 목록 (Ordered list owned by the item)
        [
            {"full_url": "https://.../full.jpg", "thumb_url": "https://.../thumb.jpg"},
            ...
        ]

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        type: 의류 유형 (Shirt | Pant | Kurta | Safari)
        bill_number: 영수증 번호, 중복 가능 (User-supplied bill number, not unique)
        quantity: 수량 (Quantity, >= 1)
        customer_name: 고객 이름 (Optional customer name)
        status: 진행 상태 (WorkflowStatus value)
        assigned_to: 현재 담당자 이름 (Current assignee name, nullable)
        images: 이미지 목록 JSON (Image URL pairs)
        version: 낙관적 동시성 버전 (Bumped on every engine write)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "cloth_items"

    # 아이템 고유 식별자 — Item unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 의류 유형 — Shirt | Pant | Kurta | Safari
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    # 영수증 번호 — User-supplied, not guaranteed unique
    bill_number: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # 수량 — Garment count on the bill
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # 고객 이름 — Optional customer name
    customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    # 진행 상태 — WorkflowStatus value (mirrors the latest history entry)
    status: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    # 현재 담당자 — Worker name (mirrors the latest history entry)
    assigned_to: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    # 이미지 목록 — [{full_url, thumb_url}, ...]
    images: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    # 버전 — Compare-and-swap counter, incremented on every engine write
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    history: Mapped[list["ItemHistoryEntry"]] = relationship(
        back_populates="item",
        order_by="ItemHistoryEntry.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ItemHistoryEntry(Base):
    """아이템 이력 모델 — 한 번 추가되면 변경되지 않는 전이 기록.

    Item history entry — one immutable record of a status/assignee change.
    Ordered per item by ``sequence``; (item_id, sequence) is unique so two
    writers can never append the same position.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        item_id: 아이템 FK (Owning item)
        sequence: 아이템 내 순번, 0부터 시작 (Position within the item's history)
        status: 전이 후 상태 (Status after this change)
        assigned_to: 전이 후 담당자 (Assignee after this change)
        action_code: 액션 코드 (ActionCode value)
        action_params: 액션 파라미터 JSON (Structured params for action_code)
        timestamp: 기록 일시 UTC (When the change happened)
    """

    __tablename__ = "item_history_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cloth_items.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(40), nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # 액션 코드 — created_by_admin | assigned_for_stage | completed_stage
    action_code: Mapped[str] = mapped_column(String(40), nullable=False)
    action_params: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    item: Mapped[ClothItem] = relationship(back_populates="history")

    __table_args__ = (
        UniqueConstraint("item_id", "sequence", name="uq_item_history_sequence"),
    )
