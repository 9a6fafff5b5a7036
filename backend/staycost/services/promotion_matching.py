"""Promotion matching — decides which active promotions apply to a booking and
keeps the stored BookingPromotion rows in step with configuration changes."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.exceptions import NotFoundError
from staycost.models.booking import Booking, BookingPromotion, BookingPromotionStatus
from staycost.models.promotion import Promotion
from staycost.services.loaders import load_booking, load_bookings
from staycost.services.net_cost import promotion_value, to_decimal
from staycost.services.valuations import ValuationRow, get_all_valuations

logger = logging.getLogger(__name__)

# Promotion type → booking attribute that must be present for the type to apply
TYPE_REQUIREMENTS = {
    "credit_card": "credit_card_id",
    "portal": "shopping_portal_id",
    "loyalty": "hotel_chain_id",
}

SCOPE_FIELDS = ("hotel_chain_id", "hotel_chain_sub_brand_id", "credit_card_id", "shopping_portal_id")


@dataclass(frozen=True)
class PromotionMatch:
    promotion_id: int
    applied_value: Decimal


@dataclass
class ReevaluationResult:
    evaluated: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"evaluated": len(self.evaluated), "failed": list(self.failed)}


def is_eligible(promotion: Promotion, booking: Booking) -> bool:
    if not promotion.is_active:
        return False

    required = TYPE_REQUIREMENTS.get(promotion.type)
    if required is None or getattr(booking, required) is None:
        return False

    for scope_field in SCOPE_FIELDS:
        scope_value = getattr(promotion, scope_field)
        if scope_value is not None and scope_value != getattr(booking, scope_field):
            return False

    if (
        booking.hotel_chain_sub_brand_id is not None
        and booking.hotel_chain_sub_brand_id in promotion.excluded_sub_brand_ids
    ):
        return False

    if promotion.start_date is not None and booking.check_in < promotion.start_date:
        return False
    if promotion.end_date is not None and booking.check_in > promotion.end_date:
        return False

    if promotion.min_spend is not None and to_decimal(booking.total_cost) < to_decimal(promotion.min_spend):
        return False
    if promotion.min_nights is not None and (booking.num_nights or 0) < promotion.min_nights:
        return False

    return True


def calculate_matched_promotions(
    booking: Booking, promotions: list[Promotion], valuations: Iterable[ValuationRow] = ()
) -> list[PromotionMatch]:
    """Which promotions apply to the booking and for how much. No side effects."""
    valuation_rows = list(valuations)
    matched = [
        PromotionMatch(promotion_id=promo.id, applied_value=promotion_value(promo, booking, valuation_rows))
        for promo in promotions
        if is_eligible(promo, booking)
    ]
    return sorted(matched, key=lambda m: m.promotion_id)


class PromotionMatcher:
    """Runs matching for one booking or a batch. Never commits; the caller owns the transaction."""

    async def active_promotions(self, db: AsyncSession) -> list[Promotion]:
        result = await db.execute(
            select(Promotion)
            .where(Promotion.is_active == True)  # noqa: E712
            .options(selectinload(Promotion.excluded_sub_brands))
            .order_by(Promotion.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def apply_matched_promotions(
        self,
        db: AsyncSession,
        booking: Booking,
        matched: list[PromotionMatch],
        promotions_by_id: dict[int, Promotion],
    ) -> list[BookingPromotion]:
        """Reconcile the booking's rows with a fresh match.

        Every existing row survives only while its promotion still matches.
        auto_applied and verified rows get the value refreshed; manual rows keep
        the user's value. New matches become auto_applied rows.
        """
        matched_by_id = {m.promotion_id: m for m in matched}
        existing_ids = set()

        for bp in list(booking.booking_promotions):
            existing_ids.add(bp.promotion_id)
            match = matched_by_id.get(bp.promotion_id)
            if match is None:
                booking.booking_promotions.remove(bp)
            elif bp.status == BookingPromotionStatus.MANUAL:
                continue
            elif to_decimal(bp.applied_value) != match.applied_value:
                bp.applied_value = match.applied_value

        for match in matched:
            if match.promotion_id in existing_ids:
                continue
            booking.booking_promotions.append(
                BookingPromotion(
                    promotion=promotions_by_id[match.promotion_id],
                    applied_value=match.applied_value,
                    status=BookingPromotionStatus.AUTO_APPLIED,
                )
            )

        await db.flush()
        return list(booking.booking_promotions)

    async def match_promotions_for_booking(self, db: AsyncSession, booking_id: int) -> list[BookingPromotion]:
        booking = await load_booking(db, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking with id {booking_id} not found")

        promotions = await self.active_promotions(db)
        valuations = await get_all_valuations(db)
        matched = calculate_matched_promotions(booking, promotions, valuations)
        applied = await self.apply_matched_promotions(db, booking, matched, {p.id: p for p in promotions})
        logger.debug(f"Booking {booking_id}: {len(matched)} promotions matched")
        return applied

    async def reevaluate_bookings(self, db: AsyncSession, booking_ids: list[int]) -> ReevaluationResult:
        """Re-match a batch. Each booking runs in its own savepoint so one failure
        does not undo or stop the others; failures are reported in the result."""
        outcome = ReevaluationResult()
        if not booking_ids:
            return outcome

        promotions = await self.active_promotions(db)
        promotions_by_id = {p.id: p for p in promotions}
        valuations = await get_all_valuations(db)
        bookings = await load_bookings(db, list(set(booking_ids)))

        for booking in bookings:
            booking_id = booking.id
            try:
                async with db.begin_nested():
                    matched = calculate_matched_promotions(booking, promotions, valuations)
                    await self.apply_matched_promotions(db, booking, matched, promotions_by_id)
            except Exception:
                logger.exception(f"Promotion reevaluation failed for booking {booking_id}")
                outcome.failed.append(booking_id)
            else:
                outcome.evaluated.append(booking_id)

        missing = set(booking_ids) - {b.id for b in bookings}
        if missing:
            logger.warning(f"Reevaluation skipped unknown bookings: {sorted(missing)}")

        logger.info(
            f"Reevaluated {len(outcome.evaluated)} bookings"
            + (f", {len(outcome.failed)} failed" if outcome.failed else "")
        )
        return outcome

    async def all_booking_ids(self, db: AsyncSession) -> list[int]:
        result = await db.execute(select(Booking.id).order_by(Booking.id))
        return list(result.scalars().all())

    async def booking_ids_for_promotion(self, db: AsyncSession, promotion_id: int) -> list[int]:
        """Bookings currently carrying the promotion."""
        result = await db.execute(
            select(BookingPromotion.booking_id)
            .where(BookingPromotion.promotion_id == promotion_id)
            .order_by(BookingPromotion.booking_id)
        )
        return list(result.scalars().all())

    async def match_promotions_for_affected_bookings(
        self, db: AsyncSession, promotion_id: int
    ) -> ReevaluationResult:
        """Re-match after a promotion was created or changed.

        A changed scope can both add and drop bookings, so every booking is
        re-matched rather than only the ones carrying the promotion today.
        """
        promotion = await db.get(Promotion, promotion_id)
        if promotion is None:
            return await self.reevaluate_bookings(db, await self.booking_ids_for_promotion(db, promotion_id))
        return await self.reevaluate_bookings(db, await self.all_booking_ids(db))

    async def reevaluate_all(self, db: AsyncSession) -> ReevaluationResult:
        return await self.reevaluate_bookings(db, await self.all_booking_ids(db))


promotion_matcher = PromotionMatcher()
