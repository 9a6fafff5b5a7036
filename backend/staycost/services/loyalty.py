"""Loyalty points — earn-rate arithmetic and chain-wide recalculation."""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.exceptions import NotFoundError
from staycost.models.booking import Booking
from staycost.models.rewards import EliteStatus, HotelChain, HotelChainSubBrand, UserStatus
from staycost.services.net_cost import to_decimal
from staycost.services.promotion_matching import ReevaluationResult, promotion_matcher

logger = logging.getLogger(__name__)


def _round_points(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_points(pretax_cost, base_point_rate, elite_status: EliteStatus | None = None) -> int:
    """Points earned on the pretax cost.

    A fixed-rate tier replaces the base rate; a percentage tier adds its bonus
    on top of the base points.
    """
    is_fixed = bool(elite_status is not None and elite_status.is_fixed)
    if base_point_rate is None and not is_fixed:
        return 0

    pretax = to_decimal(pretax_cost)
    base_rate = to_decimal(base_point_rate)

    if elite_status is not None:
        if elite_status.is_fixed and elite_status.fixed_rate is not None:
            return _round_points(pretax * to_decimal(elite_status.fixed_rate))
        if elite_status.bonus_percentage is not None:
            return _round_points(pretax * base_rate * (1 + to_decimal(elite_status.bonus_percentage)))

    return _round_points(pretax * base_rate)


def effective_base_rate(chain: HotelChain | None, sub_brand: HotelChainSubBrand | None) -> Decimal | None:
    if sub_brand is not None and sub_brand.base_point_rate is not None:
        return sub_brand.base_point_rate
    return chain.base_point_rate if chain is not None else None


@dataclass
class LoyaltyRecalculationResult:
    hotel_chain_id: int
    updated: list[int] = field(default_factory=list)
    skipped_manual: list[int] = field(default_factory=list)
    reevaluation: ReevaluationResult = field(default_factory=ReevaluationResult)

    def to_dict(self) -> dict:
        return {
            "hotel_chain_id": self.hotel_chain_id,
            "updated": len(self.updated),
            "skipped_manual": len(self.skipped_manual),
            "reevaluation": self.reevaluation.to_dict(),
        }


class LoyaltyService:
    async def _load_chain(self, db: AsyncSession, hotel_chain_id: int) -> HotelChain | None:
        result = await db.execute(
            select(HotelChain)
            .where(HotelChain.id == hotel_chain_id)
            .options(selectinload(HotelChain.user_status).selectinload(UserStatus.elite_status))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def points_for(
        self,
        db: AsyncSession,
        hotel_chain_id: int,
        sub_brand_id: int | None,
        pretax_cost,
    ) -> int:
        """Auto-computed points for a booking being created or edited."""
        chain = await self._load_chain(db, hotel_chain_id)
        if chain is None:
            raise NotFoundError(f"Hotel chain {hotel_chain_id} not found")
        sub_brand = await db.get(HotelChainSubBrand, sub_brand_id) if sub_brand_id else None
        elite = chain.user_status.elite_status if chain.user_status is not None else None
        return calculate_points(pretax_cost, effective_base_rate(chain, sub_brand), elite)

    async def recalculate_loyalty_for_hotel_chain(
        self, db: AsyncSession, hotel_chain_id: int
    ) -> LoyaltyRecalculationResult:
        """Recompute points for every auto-computed booking of the chain, then
        re-match promotions for them since multipliers depend on points."""
        chain = await self._load_chain(db, hotel_chain_id)
        if chain is None:
            raise NotFoundError(f"Hotel chain {hotel_chain_id} not found")

        elite = chain.user_status.elite_status if chain.user_status is not None else None
        result = await db.execute(
            select(Booking)
            .where(Booking.hotel_chain_id == hotel_chain_id)
            .options(selectinload(Booking.hotel_chain_sub_brand))
            .order_by(Booking.id)
            .execution_options(populate_existing=True)
        )
        outcome = LoyaltyRecalculationResult(hotel_chain_id=hotel_chain_id)

        for booking in result.scalars().all():
            if booking.loyalty_points_manual:
                outcome.skipped_manual.append(booking.id)
                continue
            points = calculate_points(
                booking.pretax_cost,
                effective_base_rate(chain, booking.hotel_chain_sub_brand),
                elite,
            )
            if booking.loyalty_points_earned != points:
                booking.loyalty_points_earned = points
            outcome.updated.append(booking.id)

        await db.flush()
        outcome.reevaluation = await promotion_matcher.reevaluate_bookings(db, outcome.updated)
        logger.info(
            f"Loyalty recalculated for chain {hotel_chain_id}: {len(outcome.updated)} updated, "
            f"{len(outcome.skipped_manual)} manual entries kept"
        )
        return outcome


loyalty_service = LoyaltyService()
