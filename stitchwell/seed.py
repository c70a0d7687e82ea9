"""초기 데이터 시드 스크립트 — 테이블 생성 및 기본 작업자 명단 저장.

Seed script — Creates the tables and stores the default worker roster.
Run this script once to bootstrap a fresh database.

Usage:
    python -m stitchwell.seed

Creates:
    - 모든 테이블 (All tables from the ORM metadata)
    - 7개 역할의 기본 명단 (Default roster for the 7 roles)

Idempotent: 명단이 이미 있으면 건너뜁니다 (Skips when a roster already exists).
"""

import asyncio

from stitchwell.database import Base, async_session, engine
from stitchwell.models import *  # noqa: F401,F403 — register all models with metadata
from stitchwell.services.roster_service import RosterService


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with initial data.
    Creates tables if they don't exist, then writes the default roster
    unless one is already stored.
    """
    # 테이블 생성 — DDL 실행 (Create all tables from ORM metadata)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        seeded: bool = await RosterService().seed_defaults(db)

    if seeded:
        print("Seeded default worker roster.")
    else:
        print("Roster already present. Skipping.")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
