"""작업자 명단 모델 — 역할별 작업자 이름 목록.

Worker roster model — ordered list of worker names per role.
Index 0 of the list is the role's default assignee.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from stitchwell.database import Base, JSONType


class RosterRole(Base):
    """역할별 명단 테이블.

    One row per role holding the full ordered worker list. Every mutation
    rewrites the whole list (last-writer-wins, no optimistic locking).

    Attributes:
        role: 역할 키 (WorkerRole value, primary key)
        workers: 작업자 이름 목록 — 0번이 기본 담당자 (Ordered names, index 0 = default)
        updated_at: 수정 일시 (Last write timestamp)
    """

    __tablename__ = "worker_rosters"

    role: Mapped[str] = mapped_column(String(40), primary_key=True)
    workers: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
