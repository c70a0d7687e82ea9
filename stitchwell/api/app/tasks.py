"""앱 작업 라우터 — 작업자용 내 작업 API.

App Task Router — API endpoints for the worker's own tasks.
Workers see the items assigned to them and complete their current stage.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.api.deps import Actor, get_assignment_engine, require_actor
from stitchwell.database import get_db
from stitchwell.schemas.item import ItemResponse
from stitchwell.services.assignment_engine import AssignmentEngine
from stitchwell.utils.exceptions import ForbiddenError

router: APIRouter = APIRouter()


@router.get("", response_model=list[ItemResponse])
async def list_my_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
    actor: Annotated[Actor, Depends(require_actor)],
) -> list[dict]:
    """내게 배정된 아이템 목록을 조회합니다.

    List items currently assigned to the calling worker.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        engine: 배정 엔진 (Assignment engine)
        actor: 호출 작업자 (Calling worker)

    Returns:
        list[dict]: 배정된 아이템 목록 (Assigned items)
    """
    items = await engine.list_tasks_for(db, actor.name)
    return [engine.build_response(item) for item in items]


@router.post("/{item_id}/complete", response_model=ItemResponse)
async def complete_my_task(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[AssignmentEngine, Depends(get_assignment_engine)],
    actor: Annotated[Actor, Depends(require_actor)],
) -> dict:
    """내 작업의 현재 단계를 완료합니다.

    Complete the current stage of an item assigned to the caller. The
    status the worker saw is passed on, so a concurrent move yields 409.

    Raises:
        ForbiddenError: 다른 작업자에게 배정된 아이템 (Item assigned to someone else)
    """
    item = await engine.get_item(db, item_id)
    if item.assigned_to != actor.name and not actor.is_admin:
        raise ForbiddenError("Item is not assigned to you")
    updated = await engine.complete_task(db, item_id, expected_status=item.status)
    return engine.build_response(updated)
