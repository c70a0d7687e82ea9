"""작업자 명단 Pydantic 스키마 정의.

Worker roster Pydantic schema definitions.
"""

from pydantic import BaseModel


class WorkerNameRequest(BaseModel):
    """작업자 이름 요청 (Worker name in add / set-default requests)."""

    name: str  # 작업자 이름 (Worker name, whitespace-stripped by the service)


class RoleWorkersResponse(BaseModel):
    """역할별 작업자 목록 응답.

    Role worker list response. ``workers[0]`` is the default assignee.
    """

    role: str  # 역할 키 (Role key)
    workers: list[str]  # 작업자 목록 (Ordered names, index 0 = default)


class RosterResponse(BaseModel):
    """전체 명단 응답 (Full roster keyed by role)."""

    roster: dict[str, list[str]]
