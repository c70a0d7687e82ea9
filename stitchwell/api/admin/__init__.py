"""관리자 API 라우터 패키지 — 모든 관리자 엔드포인트 통합.

Admin API Router package — Aggregates all admin-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - items: 의류 아이템 보드 (Cloth item board: create, assign, complete, delete)
    - workers: 작업자 명단 관리 (Worker roster management)
"""

from fastapi import APIRouter

from stitchwell.api.admin.items import router as items_router
from stitchwell.api.admin.workers import router as workers_router

admin_router: APIRouter = APIRouter()

# 아이템: /items 하위 (Cloth items and their workflow actions)
admin_router.include_router(items_router, prefix="/items", tags=["Items"])
# 작업자: /workers 하위 (Roster per role)
admin_router.include_router(workers_router, prefix="/workers", tags=["Workers"])
