"""워크플로 전이 테이블 — 상태별 다음 단계와 담당자 규칙.

Workflow transition table — maps each status to the next status and the
rule for picking the next assignee from the roster.

Pure functions only: no I/O, no session, no clock. The same inputs always
produce the same Transition, which makes this module the single source of
workflow ordering for the assignment engine.
"""

from dataclasses import dataclass
from typing import Mapping

from stitchwell.constants import WorkflowStatus, WorkerRole

# 명단 타입 — {역할 값: [이름, ...]} (Roster as loaded from storage)
Roster = Mapping[str, list[str]]


@dataclass(frozen=True)
class Transition:
    """전이 결과 (Result of a transition lookup).

    Attributes:
        next_status: 다음 상태 (Status after completing the current stage)
        next_assignee: 다음 담당자, 없으면 None (Default worker of the next stage)
    """

    next_status: WorkflowStatus
    next_assignee: str | None


# 상태 → (다음 상태, 다음 담당 역할) — None 역할은 자동 배정 없음
# Status -> (next status, role whose default worker is assigned)
TRANSITION_RULES: dict[WorkflowStatus, tuple[WorkflowStatus, WorkerRole | None]] = {
    WorkflowStatus.AWAITING_THREADING: (WorkflowStatus.AWAITING_CUTTING, WorkerRole.CUTTING_WORKER),
    WorkflowStatus.AWAITING_CUTTING: (WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT, WorkerRole.ADMIN),
    # 재단사는 관리자가 직접 지정 — Tailor is chosen by an admin override
    WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT: (WorkflowStatus.AWAITING_STITCHING, None),
    WorkflowStatus.AWAITING_STITCHING: (WorkflowStatus.AWAITING_BUTTONING, WorkerRole.BUTTONING_WORKER),
    WorkflowStatus.AWAITING_BUTTONING: (WorkflowStatus.AWAITING_IRONING, WorkerRole.IRONING_WORKER),
    WorkflowStatus.AWAITING_IRONING: (WorkflowStatus.AWAITING_PACKAGING, WorkerRole.PACKAGING_WORKER),
    WorkflowStatus.AWAITING_PACKAGING: (WorkflowStatus.READY, None),
}

# 상태별 담당 역할 — Role that works on an item sitting in each status
STAGE_ROLES: dict[WorkflowStatus, WorkerRole] = {
    WorkflowStatus.AWAITING_THREADING: WorkerRole.THREADING_WORKER,
    WorkflowStatus.AWAITING_CUTTING: WorkerRole.CUTTING_WORKER,
    WorkflowStatus.AWAITING_STITCHING_ASSIGNMENT: WorkerRole.ADMIN,
    WorkflowStatus.AWAITING_STITCHING: WorkerRole.TAILOR,
    WorkflowStatus.AWAITING_BUTTONING: WorkerRole.BUTTONING_WORKER,
    WorkflowStatus.AWAITING_IRONING: WorkerRole.IRONING_WORKER,
    WorkflowStatus.AWAITING_PACKAGING: WorkerRole.PACKAGING_WORKER,
}


def default_worker(roster: Roster, role: WorkerRole) -> str | None:
    """역할의 기본 담당자(0번)를 반환합니다. 비어 있으면 None.

    Return index 0 of the role's list, or None when the role is empty.
    """
    workers: list[str] = roster.get(role.value) or []
    return workers[0] if workers else None


def is_terminal(status: WorkflowStatus | str) -> bool:
    """더 이상 진행할 단계가 없는 상태인지 확인합니다."""
    return WorkflowStatus(status) not in TRANSITION_RULES


def next_transition(
    current_status: WorkflowStatus | str,
    roster: Roster,
) -> Transition | None:
    """현재 상태에서의 다음 전이를 계산합니다.

    Compute the transition out of ``current_status``.

    Every cloth type shares this table. An empty role yields a None assignee
    but the status still advances.

    Args:
        current_status: 현재 상태 (Current workflow status)
        roster: 역할별 작업자 명단 (Current roster snapshot)

    Returns:
        Transition | None: 다음 전이, 종료 상태면 None
                           (Next transition, None for the terminal status)
    """
    rule = TRANSITION_RULES.get(WorkflowStatus(current_status))
    if rule is None:
        return None
    next_status, assignee_role = rule
    next_assignee: str | None = (
        default_worker(roster, assignee_role) if assignee_role is not None else None
    )
    return Transition(next_status=next_status, next_assignee=next_assignee)


def first_stage_assignee(status: WorkflowStatus | str, roster: Roster) -> str | None:
    """해당 상태에 새로 들어온 아이템의 담당자를 반환합니다.

    Assignee for an item entering ``status`` directly (creation, backfill).
    """
    role: WorkerRole | None = STAGE_ROLES.get(WorkflowStatus(status))
    return default_worker(roster, role) if role is not None else None
