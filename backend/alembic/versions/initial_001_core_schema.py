"""Core schema: reward programs, bookings, promotions, benefit valuations

Revision ID: initial_001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = 'initial_001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Reward programs ---
    op.create_table('point_types',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('cents_per_point', sa.Numeric(10, 6), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table('hotel_chains',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('loyalty_program', sa.String(length=100), nullable=True),
        sa.Column('base_point_rate', sa.Numeric(10, 4), nullable=True),
        sa.Column('point_type_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['point_type_id'], ['point_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table('hotel_chain_sub_brands',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('hotel_chain_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('base_point_rate', sa.Numeric(10, 4), nullable=True),
        sa.ForeignKeyConstraint(['hotel_chain_id'], ['hotel_chains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('hotel_chain_id', 'name', name='uq_sub_brand_chain_name'),
    )

    op.create_table('elite_statuses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('hotel_chain_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('bonus_percentage', sa.Numeric(6, 4), nullable=True),
        sa.Column('fixed_rate', sa.Numeric(10, 4), nullable=True),
        sa.Column('is_fixed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('tier_level', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['hotel_chain_id'], ['hotel_chains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('hotel_chain_id', 'name', name='uq_elite_status_chain_name'),
    )

    op.create_table('user_statuses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('hotel_chain_id', sa.Integer(), nullable=False),
        sa.Column('elite_status_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['hotel_chain_id'], ['hotel_chains.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['elite_status_id'], ['elite_statuses.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('hotel_chain_id'),
    )

    op.create_table('credit_cards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('reward_type', sa.String(length=20), nullable=False, server_default='points'),
        sa.Column('reward_rate', sa.Numeric(10, 4), nullable=False),
        sa.Column('point_type_id', sa.Integer(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.ForeignKeyConstraint(['point_type_id'], ['point_types.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('shopping_portals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('reward_type', sa.String(length=20), nullable=False, server_default='cashback'),
        sa.Column('point_type_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['point_type_id'], ['point_types.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('ota_agencies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table('benefit_valuations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('hotel_chain_id', sa.Integer(), nullable=True),
        sa.Column('is_eqn', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('cert_type', sa.String(length=50), nullable=True),
        sa.Column('benefit_type', sa.String(length=50), nullable=True),
        sa.Column('value', sa.Numeric(12, 4), nullable=True),
        sa.Column('value_type', sa.String(length=10), nullable=False, server_default='dollar'),
        sa.ForeignKeyConstraint(['hotel_chain_id'], ['hotel_chains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_benefit_valuations_chain', 'benefit_valuations', ['hotel_chain_id'])

    # --- Promotions ---
    op.create_table('promotions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('value_type', sa.String(length=20), nullable=False),
        sa.Column('value', sa.Numeric(10, 4), nullable=False),
        sa.Column('hotel_chain_id', sa.Integer(), nullable=True),
        sa.Column('hotel_chain_sub_brand_id', sa.Integer(), nullable=True),
        sa.Column('credit_card_id', sa.Integer(), nullable=True),
        sa.Column('shopping_portal_id', sa.Integer(), nullable=True),
        sa.Column('min_spend', sa.Numeric(10, 2), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['hotel_chain_id'], ['hotel_chains.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['hotel_chain_sub_brand_id'], ['hotel_chain_sub_brands.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['credit_card_id'], ['credit_cards.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['shopping_portal_id'], ['shopping_portals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_promotions_is_active', 'promotions', ['is_active'])

    # --- Bookings ---
    op.create_table('bookings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('hotel_chain_id', sa.Integer(), nullable=False),
        sa.Column('hotel_chain_sub_brand_id', sa.Integer(), nullable=True),
        sa.Column('property_name', sa.String(length=255), nullable=False),
        sa.Column('check_in', sa.Date(), nullable=False),
        sa.Column('check_out', sa.Date(), nullable=False),
        sa.Column('num_nights', sa.Integer(), nullable=False),
        sa.Column('pretax_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('total_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=True, server_default='USD'),
        sa.Column('credit_card_id', sa.Integer(), nullable=True),
        sa.Column('shopping_portal_id', sa.Integer(), nullable=True),
        sa.Column('portal_cashback_rate', sa.Numeric(10, 4), nullable=True),
        sa.Column('portal_cashback_on_total', sa.Boolean(), nullable=True, server_default=sa.text('false')),
        sa.Column('loyalty_points_earned', sa.Integer(), nullable=True),
        sa.Column('loyalty_points_manual', sa.Boolean(), nullable=True, server_default=sa.text('false')),
        sa.Column('points_redeemed', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('booking_source', sa.String(length=20), nullable=True),
        sa.Column('ota_agency_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('check_out > check_in', name='ck_bookings_date_order'),
        sa.CheckConstraint('total_cost >= pretax_cost', name='ck_bookings_total_ge_pretax'),
        sa.ForeignKeyConstraint(['hotel_chain_id'], ['hotel_chains.id']),
        sa.ForeignKeyConstraint(['hotel_chain_sub_brand_id'], ['hotel_chain_sub_brands.id']),
        sa.ForeignKeyConstraint(['credit_card_id'], ['credit_cards.id']),
        sa.ForeignKeyConstraint(['shopping_portal_id'], ['shopping_portals.id']),
        sa.ForeignKeyConstraint(['ota_agency_id'], ['ota_agencies.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bookings_hotel_chain_id', 'bookings', ['hotel_chain_id'])
    op.create_index('ix_bookings_check_in', 'bookings', ['check_in'])

    op.create_table('booking_certificates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('cert_type', sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('booking_benefits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('benefit_type', sa.String(length=50), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=True),
        sa.Column('dollar_value', sa.Numeric(10, 2), nullable=True),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('booking_promotions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('promotion_id', sa.Integer(), nullable=False),
        sa.Column('applied_value', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='auto_applied'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['promotion_id'], ['promotions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_id', 'promotion_id', name='uq_booking_promotion'),
    )
    op.create_index('ix_booking_promotions_promotion_id', 'booking_promotions', ['promotion_id'])


def downgrade() -> None:
    op.drop_index('ix_booking_promotions_promotion_id', table_name='booking_promotions')
    op.drop_table('booking_promotions')
    op.drop_table('booking_benefits')
    op.drop_table('booking_certificates')
    op.drop_index('ix_bookings_check_in', table_name='bookings')
    op.drop_index('ix_bookings_hotel_chain_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_promotions_is_active', table_name='promotions')
    op.drop_table('promotions')
    op.drop_index('ix_benefit_valuations_chain', table_name='benefit_valuations')
    op.drop_table('benefit_valuations')
    op.drop_table('ota_agencies')
    op.drop_table('shopping_portals')
    op.drop_table('credit_cards')
    op.drop_table('user_statuses')
    op.drop_table('elite_statuses')
    op.drop_table('hotel_chain_sub_brands')
    op.drop_table('hotel_chains')
    op.drop_table('point_types')
