"""Initial schema - Multi-tenant identifier sequencing and grading

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tenants table
    op.create_table('tenants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('subdomain', sa.String(100), nullable=False),
        sa.Column('admission_format_type', sa.String(30), nullable=False, server_default='PREFIX_START'),
        sa.Column('branch_separator', sa.String(1), nullable=False, server_default='-'),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subdomain')
    )

    # Branches table
    op.create_table('branches',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(10), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'code', name='uq_branch_tenant_code')
    )

    # Sequence counters table - one row per (tenant, scope key)
    op.create_table('sequence_counters',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('scope_key', sa.String(50), nullable=False),
        sa.Column('current_value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'scope_key', name='uq_sequence_tenant_scope'),
        sa.CheckConstraint('current_value >= 0', name='ck_sequence_non_negative')
    )

    # Aggregation configs table
    op.create_table('aggregation_configs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('assessment_type', sa.String(50), nullable=False),
        sa.Column('grade', sa.String(50), nullable=True),
        sa.Column('learning_area', sa.String(100), nullable=True),
        sa.Column('strategy', sa.String(30), nullable=False, server_default='SIMPLE_AVERAGE'),
        sa.Column('n_value', sa.Integer(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=False, server_default='1.0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_aggregation_tenant_type', 'aggregation_configs', ['tenant_id', 'assessment_type'])
    op.create_index(
        'uq_aggregation_config_tier',
        'aggregation_configs',
        ['tenant_id', 'assessment_type', sa.text("coalesce(grade, '')"), sa.text("coalesce(learning_area, '')")],
        unique=True,
    )

    # Grading systems table
    op.create_table('grading_systems',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=True),
        sa.Column('default_key', sa.String(20), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'default_key', name='uq_grading_system_default')
    )

    # Grading ranges table
    op.create_table('grading_ranges',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('system_id', sa.Uuid(), nullable=False),
        sa.Column('label', sa.String(50), nullable=False),
        sa.Column('min_percentage', sa.Float(), nullable=False),
        sa.Column('max_percentage', sa.Float(), nullable=False),
        sa.Column('code', sa.String(10), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('color', sa.String(7), nullable=True),
        sa.Column('description', sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(['system_id'], ['grading_systems.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Term configs table
    op.create_table('term_configs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('academic_year', sa.Integer(), nullable=False),
        sa.Column('term', sa.String(20), nullable=False),
        sa.Column('formative_weight', sa.Float(), nullable=False, server_default='40.0'),
        sa.Column('summative_weight', sa.Float(), nullable=False, server_default='60.0'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'academic_year', 'term', name='uq_term_config')
    )

    # Audit log table
    op.create_table('audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('actor', sa.String(255), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(100), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_tenant_action', 'audit_logs', ['tenant_id', 'action'])
    op.create_index('ix_audit_tenant_created', 'audit_logs', ['tenant_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('term_configs')
    op.drop_table('grading_ranges')
    op.drop_table('grading_systems')
    op.drop_table('aggregation_configs')
    op.drop_table('sequence_counters')
    op.drop_table('branches')
    op.drop_table('tenants')
