"""initial schema

Revision ID: 20250601_initial_schema
Revises:
Create Date: 2025-06-01

Cria as tabelas de usuários, leads, mensagens, notificações, agendamentos
e imóveis (busca + matches).
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '20250601_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def create_index(table: str, column: str, unique: bool = False) -> None:
    op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=unique)


def upgrade() -> None:
    """Cria todas as tabelas."""

    # ==========================================
    # USERS
    # ==========================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),

        # Google Calendar
        sa.Column('google_access_token', sa.Text(), nullable=True),
        sa.Column('google_refresh_token', sa.Text(), nullable=True),
        sa.Column('google_token_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('google_calendar_id', sa.String(length=255), nullable=True, server_default='primary'),

        # Stripe
        sa.Column('stripe_customer_id', sa.String(length=100), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=100), nullable=True),
        sa.Column('subscription_status', sa.String(length=30), nullable=False, server_default='trialing'),
        sa.Column('subscription_plan', sa.String(length=100), nullable=True),
        sa.Column('subscription_current_period_end', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    create_index('users', 'email', unique=True)
    create_index('users', 'stripe_customer_id')

    op.create_table(
        'user_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('agent_name', sa.String(length=200), nullable=False, server_default='Your Name'),
        sa.Column('company_name', sa.String(length=200), nullable=False, server_default='Your Company'),
        sa.Column('agent_city', sa.String(length=100), nullable=True),
        sa.Column('agent_state', sa.String(length=50), nullable=True),
        sa.Column('ai_assistant_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('follow_up_interval_new', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('follow_up_interval_in_conversation', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('follow_up_interval_qualified', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('follow_up_interval_appointment_set', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('follow_up_interval_converted', sa.Integer(), nullable=False, server_default='14'),
        sa.Column('follow_up_interval_inactive', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('buyer_prompt', sa.Text(), nullable=True),
        sa.Column('seller_prompt', sa.Text(), nullable=True),
        sa.Column('follow_up_prompt', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    create_index('user_settings', 'user_id', unique=True)

    # ==========================================
    # LEADS + MENSAGENS
    # ==========================================
    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=False),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='New'),
        sa.Column('lead_type', sa.String(length=20), nullable=False, server_default='buyer'),
        sa.Column('is_ai_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('enable_follow_ups', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('follow_up_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('opted_out', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_inbound_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'phone_number', name='uq_leads_user_phone'),
    )
    create_index('leads', 'user_id')
    create_index('leads', 'phone_number')
    create_index('leads', 'status')
    create_index('leads', 'is_archived')

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False, server_default=''),
        sa.Column('sender', sa.String(length=10), nullable=False),
        sa.Column('direction', sa.String(length=10), nullable=False),
        sa.Column('is_ai_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_follow_up', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('twilio_sid', sa.String(length=64), nullable=True),
        sa.Column('delivery_status', sa.String(length=20), nullable=False, server_default='queued'),
        sa.Column('error_code', sa.String(length=50), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('status_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('metadata', JSONB, nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    create_index('messages', 'lead_id')
    create_index('messages', 'twilio_sid', unique=True)
    create_index('messages', 'delivery_status')
    create_index('messages', 'scheduled_at')

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('metadata', JSONB, nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    create_index('notifications', 'user_id')
    create_index('notifications', 'lead_id')
    create_index('notifications', 'is_read')

    # ==========================================
    # AGENDAMENTOS
    # ==========================================
    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=500), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        sa.Column('source', sa.String(length=20), nullable=False, server_default='manual'),
        sa.Column('google_event_id', sa.String(length=255), nullable=True),
        sa.Column('google_event_link', sa.Text(), nullable=True),
        sa.Column('google_event_status', sa.String(length=30), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    create_index('appointments', 'user_id')
    create_index('appointments', 'lead_id')
    create_index('appointments', 'start_time')
    create_index('appointments', 'status')

    # ==========================================
    # IMÓVEIS
    # ==========================================
    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('external_id', sa.String(length=100), nullable=False),
        sa.Column('address', sa.String(length=300), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=50), nullable=True),
        sa.Column('zip_code', sa.String(length=20), nullable=True),
        sa.Column('price', sa.Integer(), nullable=True),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Float(), nullable=True),
        sa.Column('square_feet', sa.Integer(), nullable=True),
        sa.Column('property_type', sa.String(length=50), nullable=True),
        sa.Column('images', JSONB, nullable=True),
        sa.Column('features', JSONB, nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Active'),
        *timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    create_index('properties', 'external_id', unique=True)
    create_index('properties', 'city')
    create_index('properties', 'zip_code')
    create_index('properties', 'price')
    create_index('properties', 'status')

    op.create_table(
        'lead_property_searches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('min_bedrooms', sa.Integer(), nullable=True),
        sa.Column('max_bedrooms', sa.Integer(), nullable=True),
        sa.Column('min_bathrooms', sa.Float(), nullable=True),
        sa.Column('max_bathrooms', sa.Float(), nullable=True),
        sa.Column('min_price', sa.Integer(), nullable=True),
        sa.Column('max_price', sa.Integer(), nullable=True),
        sa.Column('min_square_feet', sa.Integer(), nullable=True),
        sa.Column('max_square_feet', sa.Integer(), nullable=True),
        sa.Column('locations', JSONB, nullable=True),
        sa.Column('property_types', JSONB, nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('original_search_text', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    create_index('lead_property_searches', 'lead_id')
    create_index('lead_property_searches', 'is_active')

    op.create_table(
        'property_matches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('search_id', sa.Integer(), nullable=False),
        sa.Column('match_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('was_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('was_viewed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('lead_interest', sa.String(length=20), nullable=False, server_default='unknown'),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['search_id'], ['lead_property_searches.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('lead_id', 'property_id', 'search_id', name='uq_property_match'),
    )
    create_index('property_matches', 'lead_id')
    create_index('property_matches', 'property_id')
    create_index('property_matches', 'search_id')


def downgrade() -> None:
    """Remove todas as tabelas (ordem inversa das FKs)."""
    for table in (
        'property_matches',
        'lead_property_searches',
        'properties',
        'appointments',
        'notifications',
        'messages',
        'leads',
        'user_settings',
        'users',
    ):
        op.drop_table(table)
