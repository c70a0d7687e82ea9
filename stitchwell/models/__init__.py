"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    cloth_item: 의류 아이템 및 이력 (Cloth items and their history entries)
    roster: 역할별 작업자 명단 (Worker roster per role)
    notification: 알림 (Worker notifications)
    device_token: 푸시 토큰 (Push device tokens)
"""

from stitchwell.models.cloth_item import ClothItem, ItemHistoryEntry
from stitchwell.models.roster import RosterRole
from stitchwell.models.notification import Notification
from stitchwell.models.device_token import DeviceToken

__all__ = [
    "ClothItem", "ItemHistoryEntry",
    "RosterRole",
    "Notification",
    "DeviceToken",
]
