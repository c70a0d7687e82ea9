"""워크플로 상수 — 상태, 역할, 의류 유형, 이력 액션 코드.

Workflow constants — statuses, worker roles, cloth types and history action codes.
Values are stored as plain strings in the database; the enums are the single
place where the closed sets are spelled out.
"""

from enum import Enum
from typing import Any


class WorkflowStatus(str, Enum):
    """아이템 진행 상태 — 순서대로 나열, 마지막이 종료 상태.

    Item workflow status, listed in pipeline order (terminal last).
    """

    AWAITING_THREADING = "awaiting_threading"
    AWAITING_CUTTING = "awaiting_cutting"
    AWAITING_STITCHING_ASSIGNMENT = "awaiting_stitching_assignment"
    AWAITING_STITCHING = "awaiting_stitching"
    AWAITING_BUTTONING = "awaiting_buttoning"
    AWAITING_IRONING = "awaiting_ironing"
    AWAITING_PACKAGING = "awaiting_packaging"
    READY = "ready"

    @property
    def label(self) -> str:
        """표시용 이름 — "awaiting_cutting" -> "Awaiting Cutting"."""
        return self.value.replace("_", " ").title()


class WorkerRole(str, Enum):
    """작업자 역할 — 단계별 담당 카테고리 (Stage-specific worker category)."""

    ADMIN = "admin"
    THREADING_WORKER = "threading_worker"
    CUTTING_WORKER = "cutting_worker"
    TAILOR = "tailor"
    BUTTONING_WORKER = "buttoning_worker"
    IRONING_WORKER = "ironing_worker"
    PACKAGING_WORKER = "packaging_worker"


class ClothType(str, Enum):
    """의류 유형 (Garment type). 모든 유형이 동일한 파이프라인을 공유합니다."""

    SHIRT = "Shirt"
    PANT = "Pant"
    KURTA = "Kurta"
    SAFARI = "Safari"


class ActionCode(str, Enum):
    """이력 액션 코드 — 구조화된 로그, 사람이 읽는 문구는 describe()로 투영.

    History action code. Human-readable text is a projection computed from
    the code and its params; it is never stored.
    """

    CREATED_BY_ADMIN = "created_by_admin"
    ASSIGNED_FOR_STAGE = "assigned_for_stage"
    COMPLETED_STAGE = "completed_stage"

    def describe(self, params: dict[str, Any] | None = None) -> str:
        params = params or {}
        if self is ActionCode.CREATED_BY_ADMIN:
            return "Item created"
        if self is ActionCode.ASSIGNED_FOR_STAGE:
            return f"Assigned to {params.get('worker', 'unknown')}"
        from_status: str | None = params.get("from_status")
        if from_status:
            return f"Completed {WorkflowStatus(from_status).label}"
        return "Completed stage"


# 알림 유형 — Notification type stored on every task notification
NOTIFICATION_TYPE_TASK_ASSIGNED: str = "task_assigned"

# 푸시 제목 — Title used for the item-changed push
PUSH_TITLE_TASK_ASSIGNED: str = "New Task Assigned"

# 기본 작업자 명단 — 최초 실행 시 한 번만 시드 (Seeded once on first run)
DEFAULT_ROSTER: dict[WorkerRole, list[str]] = {
    WorkerRole.ADMIN: ["Admin"],
    WorkerRole.CUTTING_WORKER: ["Feroz"],
    WorkerRole.THREADING_WORKER: ["Abdul"],
    WorkerRole.TAILOR: ["Salim", "Hanif", "Shiv Muhrat", "Lala", "Mama", "Mehboob", "Shambhu"],
    WorkerRole.BUTTONING_WORKER: ["Abdul"],
    WorkerRole.IRONING_WORKER: ["Abdul Kadir"],
    WorkerRole.PACKAGING_WORKER: ["Abdul Kadir"],
}
