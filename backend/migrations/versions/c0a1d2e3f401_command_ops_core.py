"""command ops core tables

Revision ID: c0a1d2e3f401
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c0a1d2e3f401'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

mission_status = sa.Enum('ACTIVE', 'ARCHIVED', name='mission_status')
quest_status = sa.Enum('PLANNING', 'ACTIVE', 'COMPLETED', 'ARCHIVED', name='quest_status')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_auth_sessions_user_id', 'auth_sessions', ['user_id'])

    op.create_table(
        'missions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('objective', sa.Text(), nullable=True),
        sa.Column('status', mission_status, nullable=False, server_default='ACTIVE'),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('after_action_report', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_missions_user_status', 'missions', ['user_id', 'status'])
    op.create_index('ix_missions_archived_at', 'missions', ['archived_at'])

    op.create_table(
        'quests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('mission_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_critical', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', quest_status, nullable=False, server_default='PLANNING'),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('estimated_time', sa.Integer(), nullable=True),
        sa.Column('actual_time', sa.Integer(), nullable=True),
        sa.Column('first_tactical_step', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('debrief_notes', sa.Text(), nullable=True),
        sa.Column('debrief_satisfaction', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['mission_id'], ['missions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quests_user_mission', 'quests', ['user_id', 'mission_id'])
    op.create_index('ix_quests_user_status', 'quests', ['user_id', 'status'])
    op.create_index('ix_quests_completed_at', 'quests', ['completed_at'])
    op.create_index('ix_quests_satisfaction', 'quests', ['debrief_satisfaction'])

    op.create_table(
        'feedback',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_feedback_user_id', 'feedback', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_feedback_user_id', table_name='feedback')
    op.drop_table('feedback')
    op.drop_index('ix_quests_satisfaction', table_name='quests')
    op.drop_index('ix_quests_completed_at', table_name='quests')
    op.drop_index('ix_quests_user_status', table_name='quests')
    op.drop_index('ix_quests_user_mission', table_name='quests')
    op.drop_table('quests')
    op.drop_index('ix_missions_archived_at', table_name='missions')
    op.drop_index('ix_missions_user_status', table_name='missions')
    op.drop_table('missions')
    op.drop_index('ix_auth_sessions_user_id', table_name='auth_sessions')
    op.drop_table('auth_sessions')
    op.drop_table('users')
    quest_status.drop(op.get_bind(), checkfirst=True)
    mission_status.drop(op.get_bind(), checkfirst=True)
