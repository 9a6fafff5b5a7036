from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Table, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staycost.database import Base

promotion_excluded_sub_brands = Table(
    "promotion_excluded_sub_brands",
    Base.metadata,
    Column("promotion_id", ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True),
    Column("hotel_chain_sub_brand_id", ForeignKey("hotel_chain_sub_brands.id", ondelete="CASCADE"), primary_key=True),
)


class Promotion(Base):
    __tablename__ = "promotions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # credit_card | portal | loyalty
    # fixed | percentage | points_multiplier | fixed_points | certificate | eqn
    value_type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    cert_type: Mapped[str | None] = mapped_column(String(50))  # certificate rewards only
    hotel_chain_id: Mapped[int | None] = mapped_column(ForeignKey("hotel_chains.id", ondelete="CASCADE"))
    hotel_chain_sub_brand_id: Mapped[int | None] = mapped_column(
        ForeignKey("hotel_chain_sub_brands.id", ondelete="CASCADE")
    )
    credit_card_id: Mapped[int | None] = mapped_column(ForeignKey("credit_cards.id", ondelete="CASCADE"))
    shopping_portal_id: Mapped[int | None] = mapped_column(
        ForeignKey("shopping_portals.id", ondelete="CASCADE")
    )
    min_spend: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    min_nights: Mapped[int | None] = mapped_column(Integer)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    hotel_chain: Mapped["HotelChain"] = relationship()
    hotel_chain_sub_brand: Mapped["HotelChainSubBrand"] = relationship()
    credit_card: Mapped["CreditCard"] = relationship()
    shopping_portal: Mapped["ShoppingPortal"] = relationship()
    excluded_sub_brands: Mapped[list["HotelChainSubBrand"]] = relationship(
        secondary=promotion_excluded_sub_brands, lazy="selectin", order_by="HotelChainSubBrand.id"
    )

    @property
    def excluded_sub_brand_ids(self) -> list[int]:
        return [sb.id for sb in self.excluded_sub_brands]
