from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staycost.database import Base


class BookingPromotionStatus:
    AUTO_APPLIED = "auto_applied"  # created by the matcher, not yet reviewed
    VERIFIED = "verified"  # matcher result confirmed by the user
    MANUAL = "manual"  # applied value overridden by the user

    ALL = (AUTO_APPLIED, VERIFIED, MANUAL)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_bookings_date_order"),
        CheckConstraint("total_cost >= pretax_cost", name="ck_bookings_total_ge_pretax"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hotel_chain_id: Mapped[int] = mapped_column(ForeignKey("hotel_chains.id"), nullable=False)
    hotel_chain_sub_brand_id: Mapped[int | None] = mapped_column(ForeignKey("hotel_chain_sub_brands.id"))
    property_name: Mapped[str] = mapped_column(String(255), nullable=False)
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    num_nights: Mapped[int] = mapped_column(Integer, nullable=False)
    pretax_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    credit_card_id: Mapped[int | None] = mapped_column(ForeignKey("credit_cards.id"))
    shopping_portal_id: Mapped[int | None] = mapped_column(ForeignKey("shopping_portals.id"))
    portal_cashback_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 4))
    portal_cashback_on_total: Mapped[bool] = mapped_column(Boolean, default=False)
    loyalty_points_earned: Mapped[int | None] = mapped_column(Integer)
    # True when the user typed the points in; loyalty recalculation leaves these alone
    loyalty_points_manual: Mapped[bool] = mapped_column(Boolean, default=False)
    points_redeemed: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)
    booking_source: Mapped[str | None] = mapped_column(String(20))  # direct_web | direct_app | ota | other
    ota_agency_id: Mapped[int | None] = mapped_column(ForeignKey("ota_agencies.id"))
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
    ota_agency: Mapped["OtaAgency"] = relationship()
    certificates: Mapped[list["BookingCertificate"]] = relationship(
        back_populates="booking", cascade="all, delete-orphan", order_by="BookingCertificate.id"
    )
    benefits: Mapped[list["BookingBenefit"]] = relationship(
        back_populates="booking", cascade="all, delete-orphan", order_by="BookingBenefit.id"
    )
    booking_promotions: Mapped[list["BookingPromotion"]] = relationship(
        back_populates="booking", cascade="all, delete-orphan", order_by="BookingPromotion.id"
    )


class BookingCertificate(Base):
    __tablename__ = "booking_certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    cert_type: Mapped[str] = mapped_column(String(50), nullable=False)

    booking: Mapped["Booking"] = relationship(back_populates="certificates")


class BookingBenefit(Base):
    __tablename__ = "booking_benefits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    benefit_type: Mapped[str] = mapped_column(String(50), nullable=False)
    label: Mapped[str | None] = mapped_column(String(255))
    dollar_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    booking: Mapped["Booking"] = relationship(back_populates="benefits")


class BookingPromotion(Base):
    __tablename__ = "booking_promotions"
    __table_args__ = (
        UniqueConstraint("booking_id", "promotion_id", name="uq_booking_promotion"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    promotion_id: Mapped[int] = mapped_column(
        ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False
    )
    applied_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=BookingPromotionStatus.AUTO_APPLIED)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    booking: Mapped["Booking"] = relationship(back_populates="booking_promotions")
    promotion: Mapped["Promotion"] = relationship()

    @property
    def auto_applied(self) -> bool:
        return self.status != BookingPromotionStatus.MANUAL

    @property
    def verified(self) -> bool:
        return self.status in (BookingPromotionStatus.VERIFIED, BookingPromotionStatus.MANUAL)
