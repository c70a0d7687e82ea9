"""앱 API 라우터 패키지 — 모든 앱(작업자용) 엔드포인트 통합.

App API Router package — Aggregates all worker-facing endpoints
into a single router for inclusion in the FastAPI application.
Every route requires the X-Actor-Name header.

Included routers:
    - tasks: 내 작업 (My assigned items)
    - notifications: 내 알림 (My notifications)
"""

from fastapi import APIRouter

from stitchwell.api.app.notifications import router as notifications_router
from stitchwell.api.app.tasks import router as tasks_router

app_router: APIRouter = APIRouter()

app_router.include_router(tasks_router, prefix="/my/tasks", tags=["App Tasks"])
app_router.include_router(notifications_router, prefix="/my/notifications", tags=["App Notifications"])
