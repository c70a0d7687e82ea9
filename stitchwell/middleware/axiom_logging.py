"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Captures request/response data and sends structured logs to Axiom.
Logs: endpoint, method, calling worker, data (body/params), status code,
error reason. Device tokens and other secrets are masked before shipping.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from stitchwell.config import settings

logger = logging.getLogger(__name__)

# 마스킹 대상 필드 패턴 — Fields to mask in request/response bodies
_SENSITIVE_KEYS = re.compile(
    r"(token|secret|authorization|api_key|apikey|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def _mask_dict(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 — Recursively mask sensitive fields in dicts/lists."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(k) else _mask_dict(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask_dict(item, depth + 1) for item in data[:20]]
    return data


def _truncate(value: Any, max_len: int = 2000) -> Any:
    """로그 크기 제한 — Truncate large string values."""
    if isinstance(value, str) and len(value) > max_len:
        return value[:max_len] + "...(truncated)"
    return value


async def _read_error_body(response: Response) -> tuple[bytes, str]:
    """에러 응답 본문을 소비하고 사유를 추출합니다 (Drain the body, extract detail)."""
    body = b""
    async for chunk in response.body_iterator:
        body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
    try:
        detail = json.loads(body).get("detail", "")
        detail = detail if isinstance(detail, str) else json.dumps(detail)
    except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        detail = body.decode("utf-8", errors="replace")
    return body, detail[:500]


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Middleware that logs all API requests and responses to Axiom.
    Passes requests straight through when Axiom is not configured.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 제외 경로 또는 Axiom 미설정 — Skipped path or Axiom not configured
        if not self._client or request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start_time = time.time()
        method = request.method
        log_event: dict[str, Any] = {
            "method": method,
            "path": request.url.path,
            "actor": request.headers.get("x-actor-name"),
            "actor_role": request.headers.get("x-actor-role"),
        }
        if request.query_params:
            log_event["query_params"] = _mask_dict(dict(request.query_params))

        # Request body 읽기 — Read request body (only for methods with body)
        if method in ("POST", "PUT", "PATCH", "DELETE"):
            body_bytes = await request.body()
            if body_bytes:
                try:
                    log_event["request_body"] = _truncate(_mask_dict(json.loads(body_bytes)))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    log_event["request_body"] = "(non-json body)"

        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            # 에러 응답시 body에서 사유 추출 후 재구성 — Re-wrap consumed error body
            if status_code >= 400:
                body, log_event["error"] = await _read_error_body(response)
                response = Response(
                    content=body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            log_event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            log_event["status_code"] = status_code
            log_event["duration_ms"] = round((time.time() - start_time) * 1000, 2)
            try:
                self._client.ingest_events(self._dataset, [log_event])
            except Exception:
                # 로깅 실패가 요청 처리에 영향주지 않도록 — Never break a request on log failure
                logger.warning("Axiom ingest failed for %s %s", method, request.url.path, exc_info=True)

        return response
