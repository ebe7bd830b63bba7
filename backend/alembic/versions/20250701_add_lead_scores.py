"""add lead scores

Revision ID: 20250701_add_lead_scores
Revises: 20250601_initial_schema
Create Date: 2025-07-01

Notas de interesse, sentimento e geral do lead.
"""
from alembic import op
import sqlalchemy as sa

revision = '20250701_add_lead_scores'
down_revision = '20250601_initial_schema'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('leads', sa.Column('interest_score', sa.Integer(), nullable=True))
    op.add_column('leads', sa.Column('sentiment_score', sa.Integer(), nullable=True))
    op.add_column('leads', sa.Column('overall_score', sa.Integer(), nullable=True))
    op.add_column('leads', sa.Column('last_score_update', sa.DateTime(timezone=True), nullable=True))
    op.create_index(op.f('ix_leads_overall_score'), 'leads', ['overall_score'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_leads_overall_score'), table_name='leads')
    for column in ('last_score_update', 'overall_score', 'sentiment_score', 'interest_score'):
        op.drop_column('leads', column)
