"""FastAPI 의존성 주입 모듈 — 서비스 조립 및 호출자 식별.

FastAPI dependency injection module — Service wiring and caller identity.
Services are assembled per request from settings, the Firebase app
and fresh repositories; nothing is kept in module-level singletons, so
tests swap any collaborator through ``app.dependency_overrides``.

Caller Identity:
    인증은 상위 계층이 담당하며, 호출자는 헤더로 전달됩니다.
    (Authentication is handled upstream; the caller arrives as headers.)
    - X-Actor-Name: 작업자 이름 (Worker name, required on app routes)
    - X-Actor-Role: 역할 키 (Role key; "admin" grants admin operations)
"""

from dataclasses import dataclass
from typing import Annotated, Optional

import firebase_admin
from fastapi import Depends, Header, Request

from stitchwell.config import Settings, settings
from stitchwell.constants import WorkerRole
from stitchwell.services.assignment_engine import AssignmentEngine
from stitchwell.services.events import ItemEventHub
from stitchwell.services.notification_service import NotificationService
from stitchwell.services.push_service import PushDispatcher, PushProvider, build_push_provider
from stitchwell.services.roster_service import RosterService
from stitchwell.services.token_service import TokenService
from stitchwell.utils.exceptions import UnauthorizedError


def get_settings() -> Settings:
    """애플리케이션 설정을 반환합니다 (Application settings)."""
    return settings


def get_firebase_app(request: Request) -> Optional[firebase_admin.App]:
    """앱 수명 동안 유지되는 Firebase 앱 (None when FCM is not configured)."""
    return request.app.state.firebase_app


def get_push_provider(
    firebase_app: Annotated[Optional[firebase_admin.App], Depends(get_firebase_app)],
) -> PushProvider:
    """설정에 맞는 푸시 프로바이더 (FCM when configured, console otherwise)."""
    return build_push_provider(firebase_app)


def get_token_service() -> TokenService:
    return TokenService()


def get_roster_service() -> RosterService:
    return RosterService()


def get_notification_service(
    app_settings: Annotated[Settings, Depends(get_settings)],
    provider: Annotated[PushProvider, Depends(get_push_provider)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> NotificationService:
    """알림 서비스를 조립합니다.

    Assemble the notification service around a dispatcher for the
    configured provider.
    """
    dispatcher: PushDispatcher = PushDispatcher(
        provider,
        timeout_seconds=app_settings.PUSH_SEND_TIMEOUT_SECONDS,
        default_title=app_settings.PUSH_DEFAULT_TITLE,
    )
    return NotificationService(dispatcher, token_service=token_service)


def get_assignment_engine(
    app_settings: Annotated[Settings, Depends(get_settings)],
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
    roster_service: Annotated[RosterService, Depends(get_roster_service)],
) -> AssignmentEngine:
    """배정 엔진을 조립합니다 — 알림 리스너를 이벤트 허브에 연결.

    Assemble the assignment engine with the notification listener
    subscribed to its item-changed events.
    """
    return AssignmentEngine(
        first_stage=app_settings.WORKFLOW_FIRST_STAGE,
        events=ItemEventHub([notification_service.on_item_changed]),
        roster_service=roster_service,
    )


@dataclass(frozen=True)
class Actor:
    """요청 호출자 (Caller asserted by the upstream layer)."""

    name: str | None
    role: str | None

    @property
    def is_admin(self) -> bool:
        return self.role == WorkerRole.ADMIN.value


async def get_actor(
    x_actor_name: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """헤더에서 호출자를 읽습니다. 없어도 오류 없음.

    Read the caller from the identity headers (both optional here).
    """
    name: str | None = x_actor_name.strip() if x_actor_name and x_actor_name.strip() else None
    role: str | None = x_actor_role.strip() if x_actor_role and x_actor_role.strip() else None
    return Actor(name=name, role=role)


async def require_actor(
    actor: Annotated[Actor, Depends(get_actor)],
) -> Actor:
    """작업자 이름이 필요한 앱 라우트용 의존성.

    Dependency for worker-facing routes: the caller's name is required.

    Raises:
        UnauthorizedError: X-Actor-Name 헤더 없음 (Missing X-Actor-Name header)
    """
    if actor.name is None:
        raise UnauthorizedError("X-Actor-Name header is required")
    return actor
