"""관리자 아이템 라우터 — 의류 아이템 생성/조회/배정/완료/삭제 API.

Admin Item Router — API endpoints for the cloth item board.
Every state change goes through the assignment engine.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.api.deps import Actor, get_actor, get_assignment_engine
from stitchwell.database import get_db
from stitchwell.schemas.common import MessageResponse, PaginatedResponse
from stitchwell.schemas.item import (
    BackfillResponse,
    ItemAssign,
    ItemComplete,
    ItemCreate,
    ItemResponse,
)
from stitchwell.services.assignment_engine import AssignmentEngine

router: APIRouter = APIRouter()


@router.post("", response_model=ItemResponse, status_code=201)
async def create_item(
    data: ItemCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
) -> dict:
    """새 아이템을 생성합니다. 첫 단계 기본 담당자에게 자동 배정.

    Create a new item in the first workflow stage, assigned to that stage's
    default worker.

    Args:
        data: 아이템 생성 데이터 (Item creation data)
        db: 비동기 데이터베이스 세션 (Async database session)
        engine: 배정 엔진 (Assignment engine)

    Returns:
        dict: 생성된 아이템 (Created item with history)
    """
    item = await engine.create_item(
        db,
        cloth_type=data.type,
        bill_number=data.bill_number,
        quantity=data.quantity,
        customer_name=data.customer_name,
        images=[image.model_dump() for image in data.images],
    )
    return engine.build_response(item)


@router.get("", response_model=PaginatedResponse)
async def list_items(
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
    status: str | None = None,
    assigned_to: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """아이템 목록을 필터링하여 조회합니다.

    List items with optional status/assignee filters, newest first.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        engine: 배정 엔진 (Assignment engine)
        status: 상태 필터 (Status filter, optional)
        assigned_to: 담당자 필터 (Assignee filter, optional)
        page: 페이지 번호 (Page number)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        dict: 페이지네이션된 아이템 목록 (Paginated item list)
    """
    items, total = await engine.list_items(
        db,
        status=status,
        assigned_to=assigned_to,
        page=page,
        per_page=per_page,
    )
    return {
        "items": [engine.build_response(item) for item in items],
        "total": total,
        "page": page,
        "per_page": per_page,
    }


@router.post("/backfill-assignments", response_model=BackfillResponse)
async def backfill_assignments(
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
) -> dict:
    """첫 단계의 미배정 아이템을 기본 담당자에게 배정합니다.

    Assign unassigned first-stage items to the stage's current default worker.
    """
    assigned: int = await engine.backfill_unassigned(db)
    return {"assigned": assigned}


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
) -> dict:
    """아이템 상세를 이력과 함께 조회합니다 (Item detail with history)."""
    item = await engine.get_item(db, item_id)
    return engine.build_response(item)


@router.post("/{item_id}/assign", response_model=ItemResponse)
async def assign_item(
    item_id: UUID,
    data: ItemAssign,
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
) -> dict:
    """아이템을 특정 작업자에게 배정합니다 (상태 유지).

    Assign an item to a specific worker without changing its status.

    Args:
        item_id: 아이템 UUID (Item UUID)
        data: 담당자 이름 (Worker to assign)
        db: 비동기 데이터베이스 세션 (Async database session)
        engine: 배정 엔진 (Assignment engine)

    Returns:
        dict: 갱신된 아이템 (Updated item)
    """
    item = await engine.assign_item_to_worker(db, item_id, data.worker_name)
    return engine.build_response(item)


@router.post("/{item_id}/complete", response_model=ItemResponse)
async def complete_item_stage(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
    data: ItemComplete | None = None,
) -> dict:
    """아이템의 현재 단계를 완료 처리합니다.

    Complete the item's current stage and move it to the next one.
    """
    item = await engine.complete_task(
        db,
        item_id,
        expected_status=data.expected_status if data else None,
    )
    return engine.build_response(item)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_item(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
    actor: Annotated[Actor, Depends(get_actor)],
) -> dict:
    """아이템을 삭제합니다 (관리자 전용).

    Delete an item. Requires ``X-Actor-Role: admin``.

    Args:
        item_id: 아이템 UUID (Item UUID)
        db: 비동기 데이터베이스 세션 (Async database session)
        engine: 배정 엔진 (Assignment engine)
        actor: 호출자 (Caller identity)

    Returns:
        dict: 삭제 결과 메시지 (Deletion result message)
    """
    await engine.delete_item(db, item_id, is_admin=actor.is_admin)
    return {"message": "Item deleted successfully"}
