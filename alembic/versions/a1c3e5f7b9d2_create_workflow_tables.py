"""create_workflow_tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-18 09:00:00.000000

워크플로 테이블 생성: cloth_items, item_history_entries, worker_rosters, notifications, device_tokens.
Create workflow tables: cloth_items, item_history_entries, worker_rosters, notifications, device_tokens.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # cloth_items — 의류 아이템 (workflow state + concurrency version)
    # Garment items moving through the tailoring pipeline
    op.create_table(
        'cloth_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('bill_number', sa.String(100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('customer_name', sa.String(200), nullable=True),
        sa.Column('status', sa.String(40), nullable=False),
        sa.Column('assigned_to', sa.String(100), nullable=True),
        sa.Column('images', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('version', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_cloth_items_bill_number', 'cloth_items', ['bill_number'])
    op.create_index('ix_cloth_items_status', 'cloth_items', ['status'])
    op.create_index('ix_cloth_items_assigned_to', 'cloth_items', ['assigned_to'])

    # item_history_entries — 추가 전용 이력 (one row per transition, unique sequence per item)
    # Append-only transition log
    op.create_table(
        'item_history_entries',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('item_id', UUID(as_uuid=True), sa.ForeignKey('cloth_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(40), nullable=False),
        sa.Column('assigned_to', sa.String(100), nullable=True),
        sa.Column('action_code', sa.String(40), nullable=False),
        sa.Column('action_params', JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('item_id', 'sequence', name='uq_item_history_sequence'),
    )

    # worker_rosters — 역할별 작업자 명단 (one row per role, index 0 = default)
    # Worker roster per role
    op.create_table(
        'worker_rosters',
        sa.Column('role', sa.String(40), primary_key=True),
        sa.Column('workers', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # notifications — 작업자 알림 (in-app inbox)
    # Worker notifications
    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_name', sa.String(100), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('message', sa.String(1000), nullable=False),
        sa.Column('item_id', UUID(as_uuid=True), sa.ForeignKey('cloth_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_name', 'notifications', ['user_name'])

    # device_tokens — 푸시 토큰 (set per worker)
    # Push registration tokens
    op.create_table(
        'device_tokens',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_name', sa.String(100), nullable=False),
        sa.Column('token', sa.String(512), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_name', 'token', name='uq_device_token_user_token'),
    )
    op.create_index('ix_device_tokens_user_name', 'device_tokens', ['user_name'])


def downgrade() -> None:
    op.drop_index('ix_device_tokens_user_name', table_name='device_tokens')
    op.drop_table('device_tokens')
    op.drop_index('ix_notifications_user_name', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('worker_rosters')
    op.drop_table('item_history_entries')
    op.drop_index('ix_cloth_items_assigned_to', table_name='cloth_items')
    op.drop_index('ix_cloth_items_status', table_name='cloth_items')
    op.drop_index('ix_cloth_items_bill_number', table_name='cloth_items')
    op.drop_table('cloth_items')
