"""관리자 작업자 명단 라우터 — 역할별 작업자 관리 API.

Admin Worker Router — API endpoints for the per-role worker roster.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.api.deps import get_roster_service
from stitchwell.database import get_db
from stitchwell.schemas.roster import RoleWorkersResponse, RosterResponse, WorkerNameRequest
from stitchwell.services.roster_service import RosterService

router: APIRouter = APIRouter()


@router.get("", response_model=RosterResponse)
async def list_roster(
    db: Annotated[AsyncSession, Depends(get_db)],
    roster_service: Annotated[RosterService, Depends(get_roster_service)],
) -> dict:
    """전체 명단을 조회합니다 (Full roster keyed by role)."""
    roster: dict[str, list[str]] = await roster_service.list_roster(db)
    return {"roster": roster}


@router.get("/{role}", response_model=RoleWorkersResponse)
async def list_workers(
    role: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    roster_service: Annotated[RosterService, Depends(get_roster_service)],
) -> dict:
    """역할의 작업자 목록을 조회합니다 (Workers of one role, default first)."""
    workers: list[str] = await roster_service.list_workers(db, role)
    return {"role": role, "workers": workers}


@router.post("/{role}", response_model=RoleWorkersResponse)
async def add_worker(
    role: str,
    data: WorkerNameRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    roster_service: Annotated[RosterService, Depends(get_roster_service)],
) -> dict:
    """역할에 작업자를 추가합니다.

    Add a worker to a role. Adding an existing worker is a no-op.

    Args:
        role: 역할 키 (Role key)
        data: 작업자 이름 (Worker name)
        db: 비동기 데이터베이스 세션 (Async database session)
        roster_service: 명단 서비스 (Roster service)

    Returns:
        dict: 변경 후 작업자 목록 (Role workers after the change)
    """
    workers: list[str] = await roster_service.add_worker(db, role, data.name)
    return {"role": role, "workers": workers}


@router.delete("/{role}/{name}", response_model=RoleWorkersResponse)
async def remove_worker(
    role: str,
    name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    roster_service: Annotated[RosterService, Depends(get_roster_service)],
) -> dict:
    """역할에서 작업자를 제거합니다. 이미 배정된 아이템은 그대로 유지.

    Remove a worker from a role. Items already assigned keep their assignee.
    """
    workers: list[str] = await roster_service.remove_worker(db, role, name)
    return {"role": role, "workers": workers}


@router.put("/{role}/default", response_model=RoleWorkersResponse)
async def set_default_worker(
    role: str,
    data: WorkerNameRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    roster_service: Annotated[RosterService, Depends(get_roster_service)],
) -> dict:
    """작업자를 역할의 기본 담당자로 지정합니다.

    Make a worker the role's default assignee (index 0).
    """
    workers: list[str] = await roster_service.set_default_worker(db, role, data.name)
    return {"role": role, "workers": workers}
