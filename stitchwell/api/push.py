"""푸시 라우터 — 디바이스 토큰 등록 및 푸시 발송 API.

Push Router — Device token registration and ad-hoc push endpoints used by
the web client. Only POST (plus the OPTIONS preflight) is accepted; any
other method is answered with 405 by the router. Bodies are parsed by hand:
a missing or non-JSON body counts as an empty object, never a 422.
"""

import logging
from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stitchwell.api.deps import get_notification_service, get_token_service
from stitchwell.database import get_db
from stitchwell.schemas.push import RegisterTokenRequest, RegisterTokenResponse, SendPushRequest
from stitchwell.services.notification_service import NotificationService
from stitchwell.services.push_service import PushSummary
from stitchwell.services.token_service import TokenService
from stitchwell.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

router: APIRouter = APIRouter()

RequestModel = TypeVar("RequestModel", bound=BaseModel)


def json_body(model: type[BaseModel]) -> dict[str, Any]:
    """수동 파싱 엔드포인트의 OpenAPI 요청 본문 문서 (Request body docs for manual parsing)."""
    return {
        "requestBody": {
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }


async def read_json_object(request: Request) -> dict[str, Any]:
    """요청 본문을 JSON 객체로 읽습니다. 본문 없음/비 JSON은 빈 객체.

    Read the request body as a JSON object. A missing, non-JSON or non-object
    body reads as ``{}``, so missing fields are reported as 400 downstream.
    """
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def validate_payload(model: type[RequestModel], payload: dict[str, Any]) -> RequestModel:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise ValidationError(f"Invalid {field}: {error['msg']}")


async def token_request(
    payload: Annotated[dict[str, Any], Depends(read_json_object)],
) -> RegisterTokenRequest:
    return validate_payload(RegisterTokenRequest, payload)


async def send_request(
    payload: Annotated[dict[str, Any], Depends(read_json_object)],
) -> SendPushRequest:
    return validate_payload(SendPushRequest, payload)


@router.options("/register-token", include_in_schema=False)
@router.options("/unregister-token", include_in_schema=False)
@router.options("/send", include_in_schema=False)
async def preflight() -> Response:
    """CORS 사전 요청 — 본문 없는 204 (Preflight answered with an empty 204)."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/register-token",
    response_model=RegisterTokenResponse,
    openapi_extra=json_body(RegisterTokenRequest),
)
async def register_token(
    data: Annotated[RegisterTokenRequest, Depends(token_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> dict:
    """작업자의 디바이스 토큰을 등록합니다. 중복 등록은 무시.

    Register a device token for a worker (idempotent).

    Args:
        data: {userName, token}
        db: 비동기 데이터베이스 세션 (Async database session)
        token_service: 토큰 서비스 (Token service)

    Returns:
        dict: {"ok": true, "message": "Token registered successfully"}

    Raises:
        ValidationError(400): userName 또는 token 누락 (Missing userName or token)
        HTTPException(500): 저장 실패 (Storage failure)
    """
    try:
        await token_service.register_token(db, data.user_name, data.token)
    except SQLAlchemyError:
        logger.exception("Failed to register token for %s", data.user_name)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register token",
        )
    return {"ok": True, "message": "Token registered successfully"}


@router.post(
    "/unregister-token",
    response_model=RegisterTokenResponse,
    openapi_extra=json_body(RegisterTokenRequest),
)
async def unregister_token(
    data: Annotated[RegisterTokenRequest, Depends(token_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> dict:
    """로그아웃 시 디바이스 토큰을 해제합니다.

    Remove a device token on explicit logout. Unknown pairs are ignored.
    """
    try:
        await token_service.unregister_token(db, data.user_name, data.token)
    except SQLAlchemyError:
        logger.exception("Failed to unregister token for %s", data.user_name)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to unregister token",
        )
    return {"ok": True, "message": "Token unregistered successfully"}


@router.post("/send", openapi_extra=json_body(SendPushRequest))
async def send_push(
    data: Annotated[SendPushRequest, Depends(send_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
) -> dict:
    """토큰 또는 작업자 이름으로 푸시를 발송합니다.

    Send a push to an explicit token, or to every token of ``userName``.

    Returns:
        dict: {"ok": 성공 수, "total": 토큰 수} 또는 {"ok": 0, "message": "No tokens"}
              (Success tally, or the no-token marker)
    """
    try:
        summary: PushSummary = await notification_service.send_push(
            db,
            title=data.title,
            body=data.body,
            data=data.data,
            user_name=data.user_name,
            token=data.token,
        )
    except SQLAlchemyError:
        logger.exception("Failed to resolve tokens for push")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send push",
        )
    if summary.total == 0:
        return {"ok": 0, "message": "No tokens"}
    return {"ok": summary.ok, "total": summary.total}
