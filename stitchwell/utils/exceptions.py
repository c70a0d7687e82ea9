"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for the workflow error
taxonomy. Services raise these directly so routers never have to translate
status codes.

Usage:
    from stitchwell.utils.exceptions import NotFoundError, ConflictError
    raise NotFoundError("Item not found")
    raise ConflictError("Item changed since it was read")
"""

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """400 Bad Request 예외 — 필수 값 누락/빈 값 시 사용.

    400 Bad Request exception.
    Raised when a required field (role, name, token, user name, bill number)
    is missing or empty. No state is mutated before it is raised.

    Args:
        detail: 오류 메시지 (Error message, default: "Invalid request")
    """

    def __init__(self, detail: str = "Invalid request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a referenced item, worker or notification does not exist.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class NoTransitionError(HTTPException):
    """400 Bad Request 예외 — 더 이상 진행할 단계가 없을 때 사용.

    400 Bad Request exception for invalid state transitions.
    Raised by complete_task on a terminal (or unmappable) status;
    the item is left unchanged.

    Args:
        detail: 오류 메시지 (Error message, default: "No valid transition available")
    """

    def __init__(self, detail: str = "No valid transition available") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(HTTPException):
    """409 Conflict 예외 — 읽은 뒤 다른 요청이 아이템을 변경했을 때 사용.

    409 Conflict exception.
    Raised when the optimistic-concurrency check on an item update fails.
    The caller should re-read the item and retry.

    Args:
        detail: 오류 메시지 (Error message, default: "Item was modified concurrently")
    """

    def __init__(self, detail: str = "Item was modified concurrently") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    403 Forbidden exception.
    Raised when a non-admin caller attempts an admin-only operation
    (e.g. deleting an item).

    Args:
        detail: 오류 메시지 (Error message, default: "Insufficient permissions")
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 호출자 식별 정보가 없을 때 사용.

    401 Unauthorized exception.
    Raised when the upstream identity headers are missing.

    Args:
        detail: 오류 메시지 (Error message, default: "Caller identity required")
    """

    def __init__(self, detail: str = "Caller identity required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class DispatchError(Exception):
    """토큰 단위 푸시 발송 실패 — 호출자에게 전파되지 않음.

    Per-token push send failure (non-fatal).
    Raised by push providers and caught by the dispatcher, which logs and
    counts it; it never fails the enclosing notify call.

    Args:
        token: 실패한 토큰 (Token whose send failed)
        reason: 실패 사유 (Failure reason)
    """

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"Push to token ...{token[-8:]} failed: {reason}")
        self.token: str = token
        self.reason: str = reason
