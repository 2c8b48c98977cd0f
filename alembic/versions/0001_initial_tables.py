"""Create surveys, access_requests and access_tokens.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'surveys',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('age_group', sa.String(length=20), nullable=False),
        sa.Column('occupation', sa.String(length=40), nullable=False),
        sa.Column('loan_experience', sa.String(length=20), nullable=False),
        sa.Column('interest_rate_understanding', sa.String(length=20), nullable=False),
        sa.Column('total_repayment_calculation', sa.String(length=20), nullable=False),
        sa.Column('hidden_charges_experience', sa.String(length=20), nullable=False),
        sa.Column('apr_knowledge', sa.String(length=20), nullable=False),
        sa.Column('agreement_reading_confidence', sa.String(length=30), nullable=False),
        sa.Column('processing_fee_uncertainty', sa.String(length=20), nullable=False),
        sa.Column('fraud_experience', sa.String(length=20), nullable=False),
        sa.Column('agreement_reading_habit', sa.String(length=20), nullable=False),
        sa.Column('rental_agreement_experience', sa.String(length=20), nullable=False),
        sa.Column('rental_terms_understanding', sa.String(length=20), nullable=False),
        sa.Column('platform_usage_willingness', sa.String(length=20), nullable=False),
        sa.Column('platform_features', sa.JSON(), nullable=False),
        sa.Column('biggest_fear', sa.Text(), nullable=False),
        sa.Column('risk_scale', sa.Integer(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_surveys_email', 'surveys', ['email'])
    op.create_index('ix_surveys_email_verified', 'surveys', ['email_verified'])
    op.create_index('ix_surveys_submitted_at', 'surveys', ['submitted_at'])
    op.create_index('ix_surveys_age_group_occupation', 'surveys', ['age_group', 'occupation'])

    op.create_table(
        'access_requests',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('approval_token', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_access_requests_email', 'access_requests', ['email'])
    op.create_index('ix_access_requests_status', 'access_requests', ['status'])
    op.create_index('ix_access_requests_approval_token', 'access_requests', ['approval_token'], unique=True)

    op.create_table(
        'access_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_access_tokens_token_hash', 'access_tokens', ['token_hash'], unique=True)
    op.create_index('ix_access_tokens_expires_at', 'access_tokens', ['expires_at'])


def downgrade() -> None:
    op.drop_index('ix_access_tokens_expires_at', table_name='access_tokens')
    op.drop_index('ix_access_tokens_token_hash', table_name='access_tokens')
    op.drop_table('access_tokens')
    op.drop_index('ix_access_requests_approval_token', table_name='access_requests')
    op.drop_index('ix_access_requests_status', table_name='access_requests')
    op.drop_index('ix_access_requests_email', table_name='access_requests')
    op.drop_table('access_requests')
    op.drop_index('ix_surveys_age_group_occupation', table_name='surveys')
    op.drop_index('ix_surveys_submitted_at', table_name='surveys')
    op.drop_index('ix_surveys_email_verified', table_name='surveys')
    op.drop_index('ix_surveys_email', table_name='surveys')
    op.drop_table('surveys')
