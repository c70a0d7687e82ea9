"""푸시 발송 서비스 — 프로바이더 및 토큰 팬아웃.

Push delivery — provider interface, the FCM (Firebase Admin SDK) and console
providers, and the dispatcher that fans one message out to many device tokens.

Providers raise DispatchError for a failed token. The dispatcher turns
each failure (including a timeout) into a failed SendResult, so one bad
token never fails the whole fan-out.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from stitchwell.config import Settings
from stitchwell.utils.exceptions import DispatchError

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """단일 토큰 발송 결과 (Result of one token send)."""

    success: bool
    provider: str
    token: str
    message_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, provider: str, token: str, message_id: str = "") -> "SendResult":
        return cls(success=True, provider=provider, token=token, message_id=message_id)

    @classmethod
    def fail(cls, provider: str, token: str, error: str) -> "SendResult":
        return cls(success=False, provider=provider, token=token, error=error)


@dataclass(frozen=True)
class PushSummary:
    """팬아웃 집계 — ok: 성공 수, total: 대상 토큰 수."""

    ok: int
    total: int


class PushProvider(ABC):
    """푸시 프로바이더 추상 클래스.

    Abstract base class for push providers.
    """

    provider_name: str = "base"

    @abstractmethod
    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str],
    ) -> SendResult:
        """토큰 하나로 푸시를 발송합니다.

        Send one push message to one device token.

        Args:
            token: 디바이스 토큰 (Device registration token)
            title: 알림 제목 (Notification title)
            body: 알림 본문 (Notification body)
            data: 문자열 데이터 페이로드 (String-only data payload)

        Returns:
            SendResult: 성공 결과 (Successful result)

        Raises:
            DispatchError: 발송 실패 (Delivery failed for this token)
        """
        raise NotImplementedError


class FCMPushProvider(PushProvider):
    """FCM 프로바이더 — Firebase Admin SDK 사용.

    Sends through ``firebase_admin.messaging`` on an initialized Firebase
    app. The app holds the service-account credentials and refreshes its
    OAuth access token on its own. ``messaging.send`` blocks, so it runs
    in a worker thread.
    """

    provider_name = "fcm"

    def __init__(self, app: firebase_admin.App) -> None:
        self.app: firebase_admin.App = app

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str],
    ) -> SendResult:
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=data,
        )
        try:
            message_id: str = await asyncio.to_thread(messaging.send, message, app=self.app)
        except (FirebaseError, ValueError) as exc:
            raise DispatchError(token, f"{type(exc).__name__}: {exc}") from exc

        return SendResult.ok(self.provider_name, token, message_id)


class ConsolePushProvider(PushProvider):
    """콘솔 프로바이더 — 실제 발송 없이 로그만 남김 (개발용).

    Push provider that only logs (for development without FCM credentials).
    """

    provider_name = "console_push"

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str],
    ) -> SendResult:
        fake_message_id = f"push-console-{uuid.uuid4().hex[:12]}"
        logger.info(
            "CONSOLE PUSH (not actually sent) to ...%s | %s | %s | data=%s",
            token[-8:],
            title,
            body,
            data,
        )
        return SendResult.ok(self.provider_name, token, fake_message_id)


def init_firebase_app(settings: Settings) -> Optional[firebase_admin.App]:
    """서비스 계정 파일로 Firebase 앱을 초기화합니다 (None when FCM is not configured).

    The app is registered under ``settings.APP_NAME`` and must be released
    with ``firebase_admin.delete_app`` on shutdown.
    """
    if not settings.fcm_configured:
        logger.info("FCM not configured, pushes will only be logged")
        return None

    options = {"projectId": settings.FCM_PROJECT_ID} if settings.FCM_PROJECT_ID else None
    return firebase_admin.initialize_app(
        credentials.Certificate(settings.FCM_CREDENTIALS_FILE),
        options,
        name=settings.APP_NAME,
    )


def build_push_provider(firebase_app: Optional[firebase_admin.App]) -> PushProvider:
    """Firebase 앱이 있으면 FCM, 없으면 콘솔 프로바이더를 생성합니다."""
    if firebase_app is not None:
        return FCMPushProvider(firebase_app)
    return ConsolePushProvider()


class PushDispatcher:
    """토큰 팬아웃 디스패처.

    Sends one message to every token concurrently. Each send is bounded by
    ``timeout_seconds``; failures are logged and counted, never raised.
    """

    def __init__(
        self,
        provider: PushProvider,
        timeout_seconds: float = 10.0,
        default_title: str = "StitchWell",
    ) -> None:
        self.provider: PushProvider = provider
        self.timeout_seconds: float = timeout_seconds
        self.default_title: str = default_title

    async def send_to_tokens(
        self,
        tokens: Iterable[str],
        title: str | None = None,
        body: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> PushSummary:
        """모든 토큰으로 동시에 발송하고 성공 수를 집계합니다.

        Fan a message out to every token and count the successes.

        Args:
            tokens: 대상 토큰 목록 (Target tokens; blanks are dropped)
            title: 제목, 없으면 기본 제목 (Title, falls back to the default)
            body: 본문 (Body, empty when omitted)
            data: 데이터 — 값은 문자열로 변환 (Data; values are stringified)

        Returns:
            PushSummary: (성공 수, 전체 토큰 수) (Success count and token count)
        """
        targets: list[str] = [str(t) for t in tokens if t]
        if not targets:
            return PushSummary(ok=0, total=0)

        safe_data: dict[str, str] = {str(k): str(v) for k, v in (data or {}).items()}
        results: list[SendResult] = await asyncio.gather(
            *(
                self._send_one(token, title or self.default_title, body or "", safe_data)
                for token in targets
            )
        )
        ok: int = sum(1 for result in results if result.success)
        logger.info("Push fan-out via %s: %d/%d delivered", self.provider.provider_name, ok, len(targets))
        return PushSummary(ok=ok, total=len(targets))

    async def _send_one(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str],
    ) -> SendResult:
        try:
            return await asyncio.wait_for(
                self.provider.send(token, title, body, data),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = DispatchError(token, f"timed out after {self.timeout_seconds}s")
        except DispatchError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Unexpected error sending push")
            error = DispatchError(token, str(exc))
        logger.warning("%s", error)
        return SendResult.fail(self.provider.provider_name, token, error.reason)
