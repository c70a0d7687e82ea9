"""푸시 엔드포인트 Pydantic 스키마 정의.

Push endpoint Pydantic schema definitions.
Field names follow the web client's camelCase payload (``userName``).
Required fields are optional here and the router validates the parsed body
itself, so a missing value is reported as 400 instead of 422.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RegisterTokenRequest(BaseModel):
    """토큰 등록/해제 요청 스키마 (Token register / unregister request)."""

    model_config = ConfigDict(populate_by_name=True)

    user_name: str | None = Field(default=None, alias="userName")  # 작업자 이름 (Worker name)
    token: str | None = None  # 디바이스 토큰 (Device token)


class RegisterTokenResponse(BaseModel):
    """토큰 등록 응답 (Registration result)."""

    ok: bool
    message: str


class SendPushRequest(BaseModel):
    """푸시 발송 요청 스키마.

    Ad-hoc push request. ``token`` takes precedence over ``userName``.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_name: str | None = Field(default=None, alias="userName")  # 대상 작업자 (Target worker)
    token: str | None = None  # 대상 토큰 (Explicit target token)
    title: str | None = None  # 제목 (Title, default title when omitted)
    body: str | None = None  # 본문 (Body)
    data: dict[str, Any] | None = None  # 데이터 — 값은 문자열로 변환 (Values are stringified)
