"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어 및 라우터 등록.

FastAPI application entry point — Middleware and router registration.
Configures CORS, Axiom logging, the Firebase app for push, health check,
and includes the admin, app and push routers.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import firebase_admin
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stitchwell.config import settings
from stitchwell.middleware.axiom_logging import AxiomLoggingMiddleware
from stitchwell.services.push_service import init_firebase_app


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """앱 수명 주기 — Firebase 앱을 초기화하고 종료 시 해제합니다.

    Initialize the Firebase app used by the FCM provider (None when FCM is
    not configured) and release it on shutdown.
    """
    app.state.firebase_app = init_firebase_app(settings)
    try:
        yield
    finally:
        if app.state.firebase_app is not None:
            firebase_admin.delete_app(app.state.firebase_app)


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Axiom API 로깅 미들웨어 — Axiom API request/response logging
# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
# admin_router: 아이템 보드 + 작업자 명단 (Item board and roster)
# app_router: 내 작업 + 내 알림 (Worker tasks and notifications)
# push_router: 토큰 등록 + 푸시 발송 (Token registry and ad-hoc push)
from stitchwell.api.admin import admin_router  # noqa: E402
from stitchwell.api.app import app_router  # noqa: E402
from stitchwell.api.push import router as push_router  # noqa: E402

app.include_router(admin_router, prefix="/api/v1/admin")
app.include_router(app_router, prefix="/api/v1/app")
app.include_router(push_router, prefix="/api/v1/push", tags=["Push"])
