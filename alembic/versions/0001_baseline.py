"""Baseline migration - identity, onboarding profile, RBAC and settings tables

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Creates every table the API needs. Column types are portable so the same
migration runs on PostgreSQL and SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*names: str) -> list[sa.Column]:
    return [
        sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        for name in names
    ]


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # RBAC
    # ==========================================================================
    op.create_table(
        'permissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.String(255), nullable=True),
    )

    op.create_table(
        'roles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps('created_at'),
    )

    op.create_table(
        'role_permissions',
        sa.Column('role_id', sa.Uuid(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column(
            'permission_id', sa.Uuid(),
            sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True,
        ),
    )

    # ==========================================================================
    # Users and login codes
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('role', sa.String(30), nullable=True),
        sa.Column('service_type', sa.String(30), nullable=True),
        sa.Column('interested_in', sa.String(20), nullable=True),
        sa.Column('pairing_types', sa.JSON(), nullable=False),
        sa.Column('terms_accepted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('onboarding_step', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('profile_status', sa.String(30), nullable=False, server_default='DRAFT'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column(
            'access_role_id', sa.Uuid(),
            sa.ForeignKey('roles.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps('created_at', 'updated_at'),
        sa.CheckConstraint('onboarding_step BETWEEN 0 AND 6', name='ck_users_onboarding_step'),
    )
    op.create_index('idx_users_profile_status', 'users', ['profile_status', 'submitted_at'])

    op.create_table(
        'otp_challenges',
        sa.Column(
            'id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'),
            primary_key=True, autoincrement=True,
        ),
        sa.Column(
            'user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('code_hash', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('consumed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps('created_at'),
    )
    op.create_index('idx_otp_challenges_user_created', 'otp_challenges', ['user_id', 'created_at'])

    # ==========================================================================
    # Profile sub-records
    # ==========================================================================
    def _owned(name: str, *columns: sa.Column, unique_user: bool = True) -> None:
        op.create_table(
            name,
            sa.Column('id', sa.Uuid(), primary_key=True),
            sa.Column(
                'user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                nullable=False, unique=unique_user,
            ),
            *columns,
        )

    _owned(
        'user_profiles',
        sa.Column('legal_name', sa.String(100), nullable=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('phone_number', sa.String(50), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('baby_photo_url', sa.String(500), nullable=True),
        sa.Column('current_photo_url', sa.String(500), nullable=True),
        sa.Column('education', sa.String(200), nullable=True),
        sa.Column('occupation', sa.String(200), nullable=True),
        sa.Column('nationality', sa.String(100), nullable=True),
        sa.Column('diet', sa.String(30), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('weight', sa.Integer(), nullable=True),
        sa.Column('body_build', sa.String(30), nullable=True),
        sa.Column('hair_color', sa.String(30), nullable=True),
        sa.Column('eye_color', sa.String(30), nullable=True),
        sa.Column('race', sa.String(100), nullable=True),
        sa.Column('orientation', sa.String(30), nullable=True),
        sa.Column('bio', sa.String(500), nullable=True),
        *_timestamps('updated_at'),
    )

    _owned(
        'identity_documents',
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('file_url', sa.String(500), nullable=False),
        *_timestamps('uploaded_at'),
        unique_user=False,
    )
    op.create_index('ix_identity_documents_user_id', 'identity_documents', ['user_id'])

    health_flags = [
        'has_diabetes', 'has_heart_condition', 'has_autoimmune', 'has_cancer',
        'has_neuro_disorder', 'has_respiratory', 'allergies', 'biological_children',
        'reproductive_issues', 'reproductive_conds', 'menstrual_regularity',
        'pregnancy_history', 'hiv_hep_status', 'needle_usage', 'transfusion_history',
        'malaria_risk', 'zika_risk',
    ]
    _owned(
        'user_health',
        *[sa.Column(flag, sa.Boolean(), nullable=True) for flag in health_flags],
        sa.Column('mental_health_history', sa.Text(), nullable=True),
        sa.Column('other_conditions', sa.Text(), nullable=True),
        sa.Column('major_surgeries', sa.Text(), nullable=True),
        sa.Column('medications', sa.Text(), nullable=True),
        sa.Column('allergies_details', sa.Text(), nullable=True),
        sa.Column('cmv_status', sa.String(20), nullable=True),
        *_timestamps('updated_at'),
    )

    _owned(
        'user_genetics',
        sa.Column('carrier_conditions', sa.JSON(), nullable=False),
        sa.Column('report_file_url', sa.String(500), nullable=True),
        *_timestamps('updated_at'),
    )

    _owned(
        'user_compensation',
        sa.Column('is_interested', sa.Boolean(), nullable=True),
        sa.Column('allow_bidding', sa.Boolean(), nullable=True),
        sa.Column('asking_price', sa.Float(), nullable=True),
        sa.Column('min_accepted_price', sa.Float(), nullable=True),
        sa.Column('buy_now_price', sa.Float(), nullable=True),
        *_timestamps('updated_at'),
    )

    _owned(
        'user_legal',
        sa.Column('consent_agreed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('anonymity_preference', sa.String(30), nullable=True),
        *_timestamps('updated_at'),
    )

    # ==========================================================================
    # System settings
    # ==========================================================================
    op.create_table(
        'settings',
        sa.Column('key', sa.String(100), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        *_timestamps('created_at', 'updated_at'),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('settings')
    for name in (
        'user_legal', 'user_compensation', 'user_genetics', 'user_health',
        'identity_documents', 'user_profiles',
    ):
        op.drop_table(name)
    op.drop_index('idx_otp_challenges_user_created', table_name='otp_challenges')
    op.drop_table('otp_challenges')
    op.drop_index('idx_users_profile_status', table_name='users')
    op.drop_table('users')
    op.drop_table('role_permissions')
    op.drop_table('roles')
    op.drop_table('permissions')
