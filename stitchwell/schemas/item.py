"""의류 아이템 Pydantic 요청/응답 스키마 정의.

Cloth item Pydantic request/response schema definitions.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ImageRef(BaseModel):
    """이미지 URL 쌍 (Full-size and thumbnail URL pair)."""

    full_url: str  # 원본 이미지 URL (Full-size image URL)
    thumb_url: str | None = None  # 썸네일 URL (Thumbnail URL, optional)


class ItemCreate(BaseModel):
    """아이템 생성 요청 스키마.

    Item creation request schema. Status and assignee are decided by the
    assignment engine, never by the caller.

    Attributes:
        type: 의류 유형 (Shirt | Pant | Kurta | Safari)
        bill_number: 영수증 번호 (Bill number)
        quantity: 수량 (Quantity, default 1)
        customer_name: 고객 이름 (Customer name, optional)
        images: 이미지 목록 (Image URL pairs, optional)
    """

    type: str  # 의류 유형 (Cloth type)
    bill_number: str  # 영수증 번호 (Bill number, required and non-empty)
    quantity: int = 1  # 수량 (Quantity, validated >= 1 by the engine)
    customer_name: str | None = None  # 고객 이름 (Customer name, optional)
    images: list[ImageRef] = Field(default_factory=list)  # 이미지 목록 (Image URL pairs)


class ItemAssign(BaseModel):
    """관리자 재배정 요청 스키마 (Admin assignment override request)."""

    worker_name: str  # 담당자 이름 (Worker to assign)


class ItemComplete(BaseModel):
    """단계 완료 요청 스키마.

    Stage completion request. ``expected_status`` lets the caller assert the
    status it saw; a mismatch is rejected with 409.
    """

    expected_status: str | None = None  # 호출자가 본 상태 (Status the caller saw, optional)


class HistoryEntryResponse(BaseModel):
    """이력 항목 응답 스키마.

    History entry response schema.

    Attributes:
        sequence: 순번 (Position in the history)
        status: 전이 후 상태 (Status after the change)
        assigned_to: 전이 후 담당자 (Assignee after the change)
        action_code: 액션 코드 (Action code)
        action_params: 액션 파라미터 (Structured params)
        action: 사람이 읽는 설명 (Human-readable description)
        timestamp: 기록 일시 (Change timestamp)
    """

    sequence: int
    status: str
    assigned_to: str | None = None
    action_code: str
    action_params: dict[str, Any] = Field(default_factory=dict)
    action: str  # action_code에서 계산된 설명 (Projection of action_code, not stored)
    timestamp: datetime


class ItemResponse(BaseModel):
    """아이템 응답 스키마.

    Item response schema with the full history.
    """

    id: str  # 아이템 UUID 문자열 (Item UUID as string)
    type: str  # 의류 유형 (Cloth type)
    bill_number: str  # 영수증 번호 (Bill number)
    quantity: int  # 수량 (Quantity)
    customer_name: str | None = None  # 고객 이름 (Customer name)
    status: str  # 진행 상태 (Workflow status value)
    status_label: str  # 표시용 상태 이름 (Display label, e.g. "Awaiting Cutting")
    assigned_to: str | None = None  # 현재 담당자 (Current assignee)
    images: list[dict[str, Any]] = Field(default_factory=list)  # 이미지 목록 (Image URL pairs)
    version: int  # 동시성 버전 (Concurrency version)
    created_at: datetime  # 생성 일시 (Creation timestamp)
    updated_at: datetime  # 수정 일시 (Last update timestamp)
    history: list[HistoryEntryResponse] = Field(default_factory=list)  # 이력 (Ordered history)


class BackfillResponse(BaseModel):
    """미배정 아이템 배정 결과 (Number of items assigned by the backfill)."""

    assigned: int
