"""
Initial migration - Create profiles, reports and certificates

Revision ID: 001_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

severity_enum = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='severity')
status_enum = sa.Enum('PENDING', 'VALIDATED', 'REJECTED', name='reportstatus')
role_enum = sa.Enum('USER', 'ADMIN', name='userrole')
tier_enum = sa.Enum('BRONZE', 'SILVER', 'GOLD', 'DIAMOND', name='tier')


def upgrade() -> None:
    """Create all tables."""

    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, server_default=''),
        sa.Column('role', role_enum, nullable=False, server_default='USER'),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create reports table
    op.create_table(
        'reports',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.String(64), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('severity', severity_enum, nullable=False),
        sa.Column('risk_score', sa.Integer(), nullable=False),
        sa.Column('ai_classification', sa.String(200)),
        sa.Column('status', status_enum, nullable=False, server_default='PENDING'),
        sa.Column('validated_at', sa.DateTime(timezone=True)),
        sa.Column('validated_by', sa.String(64)),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('address_text', sa.String(300)),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('photo_url', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            '(latitude IS NULL) = (longitude IS NULL)',
            name='ck_report_coordinates_pair',
        ),
        sa.CheckConstraint(
            'risk_score >= 0 AND risk_score <= 100',
            name='ck_report_risk_score_range',
        ),
    )

    op.create_index('idx_report_status', 'reports', ['status'])
    op.create_index('idx_report_user_created', 'reports', ['user_id', 'created_at'])
    op.create_index('ix_reports_created_at', 'reports', ['created_at'])

    # Create certificates table
    op.create_table(
        'certificates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(64), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('tier', tier_enum, nullable=False),
        sa.Column('verify_code', sa.String(50), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'tier', name='uq_certificate_user_tier'),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('certificates')
    op.drop_index('ix_reports_created_at', table_name='reports')
    op.drop_index('idx_report_user_created', table_name='reports')
    op.drop_index('idx_report_status', table_name='reports')
    op.drop_table('reports')
    op.drop_table('profiles')
    for enum in (tier_enum, status_enum, severity_enum, role_enum):
        enum.drop(op.get_bind(), checkfirst=True)
