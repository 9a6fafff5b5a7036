"""Reward-program configuration: point currencies, chains, cards, portals, valuations."""

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staycost.database import Base


class PointType(Base):
    __tablename__ = "point_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)  # hotel | airline | transferable
    # Dollar value of a single point (0.02 == 2 cents)
    cents_per_point: Mapped[Decimal] = mapped_column(Numeric(10, 6), nullable=False, default=Decimal("0"))


class HotelChain(Base):
    __tablename__ = "hotel_chains"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    loyalty_program: Mapped[str | None] = mapped_column(String(100))
    base_point_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 4))
    point_type_id: Mapped[int | None] = mapped_column(ForeignKey("point_types.id"))

    point_type: Mapped["PointType"] = relationship()
    sub_brands: Mapped[list["HotelChainSubBrand"]] = relationship(
        back_populates="hotel_chain", cascade="all, delete-orphan", order_by="HotelChainSubBrand.name"
    )
    elite_statuses: Mapped[list["EliteStatus"]] = relationship(
        back_populates="hotel_chain", cascade="all, delete-orphan", order_by="EliteStatus.tier_level"
    )
    user_status: Mapped["UserStatus"] = relationship(
        back_populates="hotel_chain", cascade="all, delete-orphan", uselist=False
    )


class HotelChainSubBrand(Base):
    __tablename__ = "hotel_chain_sub_brands"
    __table_args__ = (UniqueConstraint("hotel_chain_id", "name", name="uq_sub_brand_chain_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hotel_chain_id: Mapped[int] = mapped_column(
        ForeignKey("hotel_chains.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    # Overrides the chain's base rate when set (e.g. Element, Residence Inn)
    base_point_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 4))

    hotel_chain: Mapped["HotelChain"] = relationship(back_populates="sub_brands")


class EliteStatus(Base):
    __tablename__ = "elite_statuses"
    __table_args__ = (UniqueConstraint("hotel_chain_id", "name", name="uq_elite_status_chain_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hotel_chain_id: Mapped[int] = mapped_column(
        ForeignKey("hotel_chains.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Bonus on base points, 0.5 == +50%
    bonus_percentage: Mapped[Decimal | None] = mapped_column(Numeric(6, 4))
    # Points per pretax dollar replacing the base rate entirely (GHA style)
    fixed_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 4))
    is_fixed: Mapped[bool] = mapped_column(Boolean, default=False)
    tier_level: Mapped[int] = mapped_column(Integer, default=0)

    hotel_chain: Mapped["HotelChain"] = relationship(back_populates="elite_statuses")


class UserStatus(Base):
    __tablename__ = "user_statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hotel_chain_id: Mapped[int] = mapped_column(
        ForeignKey("hotel_chains.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    elite_status_id: Mapped[int | None] = mapped_column(
        ForeignKey("elite_statuses.id", ondelete="SET NULL")
    )

    hotel_chain: Mapped["HotelChain"] = relationship(back_populates="user_status")
    elite_status: Mapped["EliteStatus"] = relationship()


class CreditCard(Base):
    __tablename__ = "credit_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    reward_type: Mapped[str] = mapped_column(String(20), nullable=False, default="points")
    reward_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    point_type_id: Mapped[int | None] = mapped_column(ForeignKey("point_types.id"))
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)

    point_type: Mapped["PointType"] = relationship()


class ShoppingPortal(Base):
    __tablename__ = "shopping_portals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    reward_type: Mapped[str] = mapped_column(String(20), nullable=False, default="cashback")
    point_type_id: Mapped[int | None] = mapped_column(ForeignKey("point_types.id"))

    point_type: Mapped["PointType"] = relationship()


class OtaAgency(Base):
    __tablename__ = "ota_agencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)


class BenefitValuation(Base):
    """Worth of an EQN, certificate type or named perk, optionally per chain.

    Exactly one of is_eqn / cert_type / benefit_type identifies the benefit.
    A NULL value marks an explicit "no value at this scope" and is skipped
    during resolution.
    """

    __tablename__ = "benefit_valuations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hotel_chain_id: Mapped[int | None] = mapped_column(
        ForeignKey("hotel_chains.id", ondelete="CASCADE")
    )
    is_eqn: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    cert_type: Mapped[str | None] = mapped_column(String(50))
    benefit_type: Mapped[str | None] = mapped_column(String(50))
    value: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    value_type: Mapped[str] = mapped_column(String(10), nullable=False, default="dollar")  # dollar | points
