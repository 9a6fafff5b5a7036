"""Promotion rewards: fixed points, certificate and EQN rewards, min nights, sub-brand exclusions

Revision ID: rewards_002
Revises: initial_001
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "rewards_002"
down_revision = "initial_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("promotions", sa.Column("cert_type", sa.String(50), nullable=True))
    op.add_column("promotions", sa.Column("min_nights", sa.Integer(), nullable=True))

    op.create_table(
        "promotion_excluded_sub_brands",
        sa.Column("promotion_id", sa.Integer(), nullable=False),
        sa.Column("hotel_chain_sub_brand_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["promotion_id"], ["promotions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hotel_chain_sub_brand_id"], ["hotel_chain_sub_brands.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("promotion_id", "hotel_chain_sub_brand_id"),
    )
    op.create_index(
        "ix_promotion_excluded_sub_brands_sub_brand",
        "promotion_excluded_sub_brands",
        ["hotel_chain_sub_brand_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_promotion_excluded_sub_brands_sub_brand", table_name="promotion_excluded_sub_brands")
    op.drop_table("promotion_excluded_sub_brands")
    op.drop_column("promotions", "min_nights")
    op.drop_column("promotions", "cert_type")
