"""Booking service — validates and persists bookings, then re-matches their promotions."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from staycost.data.catalog import BENEFIT_TYPES, CERT_TYPES
from staycost.exceptions import NotFoundError, ValidationError
from staycost.models.booking import Booking, BookingBenefit, BookingCertificate
from staycost.models.rewards import CreditCard, HotelChain, HotelChainSubBrand, OtaAgency, ShoppingPortal
from staycost.schemas.booking import BookingCreate, BookingUpdate
from staycost.services.loaders import load_booking
from staycost.services.loyalty import loyalty_service
from staycost.services.promotion_matching import promotion_matcher

logger = logging.getLogger(__name__)

# Plain columns copied straight from the request
_SCALAR_FIELDS = (
    "hotel_chain_id",
    "hotel_chain_sub_brand_id",
    "property_name",
    "check_in",
    "check_out",
    "num_nights",
    "pretax_cost",
    "tax_amount",
    "total_cost",
    "currency",
    "credit_card_id",
    "shopping_portal_id",
    "portal_cashback_rate",
    "portal_cashback_on_total",
    "points_redeemed",
    "notes",
    "booking_source",
    "ota_agency_id",
)

_REQUIRED_FIELDS = {
    "hotel_chain_id",
    "property_name",
    "check_in",
    "check_out",
    "num_nights",
    "pretax_cost",
    "tax_amount",
    "total_cost",
    "currency",
    "portal_cashback_on_total",
}


class BookingService:
    def _validate_dates_and_costs(self, booking: Booking) -> None:
        if booking.check_out <= booking.check_in:
            raise ValidationError("check_out must be after check_in")
        span = (booking.check_out - booking.check_in).days
        if booking.num_nights != span:
            raise ValidationError(
                f"num_nights ({booking.num_nights}) does not match the stay length ({span} nights)"
            )
        if booking.total_cost < booking.pretax_cost:
            raise ValidationError("total_cost must be greater than or equal to pretax_cost")

    async def _validate_references(self, db: AsyncSession, booking: Booking, previous_card_id: int | None) -> None:
        if await db.get(HotelChain, booking.hotel_chain_id) is None:
            raise ValidationError(f"Hotel chain {booking.hotel_chain_id} not found")

        if booking.hotel_chain_sub_brand_id is not None:
            sub_brand = await db.get(HotelChainSubBrand, booking.hotel_chain_sub_brand_id)
            if sub_brand is None or sub_brand.hotel_chain_id != booking.hotel_chain_id:
                raise ValidationError("Sub-brand does not belong to the booking's hotel chain")

        if booking.credit_card_id is not None:
            card = await db.get(CreditCard, booking.credit_card_id)
            # A soft-deleted card may stay on bookings that already used it
            if card is None or (card.is_deleted and booking.credit_card_id != previous_card_id):
                raise ValidationError(f"Credit card {booking.credit_card_id} not found")

        if booking.shopping_portal_id is not None:
            if await db.get(ShoppingPortal, booking.shopping_portal_id) is None:
                raise ValidationError(f"Shopping portal {booking.shopping_portal_id} not found")

        if booking.booking_source != "ota":
            booking.ota_agency_id = None
        elif booking.ota_agency_id is not None:
            if await db.get(OtaAgency, booking.ota_agency_id) is None:
                raise ValidationError(f"OTA agency {booking.ota_agency_id} not found")

    def _replace_children(self, booking: Booking, certificates, benefits) -> None:
        if certificates is not None:
            for cert in certificates:
                if cert.cert_type not in CERT_TYPES:
                    raise ValidationError(f"Unknown certificate type: {cert.cert_type}")
            booking.certificates.clear()
            for cert in certificates:
                booking.certificates.append(BookingCertificate(cert_type=cert.cert_type))

        if benefits is not None:
            for benefit in benefits:
                if benefit.benefit_type not in BENEFIT_TYPES:
                    raise ValidationError(f"Unknown benefit type: {benefit.benefit_type}")
            booking.benefits.clear()
            for benefit in benefits:
                booking.benefits.append(
                    BookingBenefit(
                        benefit_type=benefit.benefit_type,
                        label=benefit.label,
                        dollar_value=benefit.dollar_value,
                    )
                )

    async def _apply_loyalty_points(self, db: AsyncSession, booking: Booking, entered: int | None) -> None:
        if entered is not None:
            booking.loyalty_points_earned = entered
            booking.loyalty_points_manual = True
            return
        booking.loyalty_points_manual = False
        booking.loyalty_points_earned = await loyalty_service.points_for(
            db, booking.hotel_chain_id, booking.hotel_chain_sub_brand_id, booking.pretax_cost
        )

    async def create_booking(self, db: AsyncSession, req: BookingCreate) -> Booking:
        booking = Booking(certificates=[], benefits=[], booking_promotions=[])
        for name in _SCALAR_FIELDS:
            setattr(booking, name, getattr(req, name))

        self._validate_dates_and_costs(booking)
        await self._validate_references(db, booking, previous_card_id=None)
        self._replace_children(booking, req.certificates, req.benefits)
        await self._apply_loyalty_points(db, booking, req.loyalty_points_earned)

        db.add(booking)
        await db.flush()
        await promotion_matcher.match_promotions_for_booking(db, booking.id)
        logger.info(f"Booking {booking.id} created for {booking.property_name}")
        return await load_booking(db, booking.id)

    async def update_booking(self, db: AsyncSession, booking_id: int, req: BookingUpdate) -> Booking:
        booking = await load_booking(db, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking with id {booking_id} not found")

        changes = req.model_dump(exclude_unset=True)
        previous_card_id = booking.credit_card_id
        for name in _SCALAR_FIELDS:
            if name not in changes:
                continue
            if changes[name] is None and name in _REQUIRED_FIELDS:
                raise ValidationError(f"{name} cannot be null")
            setattr(booking, name, changes[name])

        if "hotel_chain_id" in changes and "hotel_chain_sub_brand_id" not in changes:
            sub_brand = booking.hotel_chain_sub_brand
            if sub_brand is not None and sub_brand.hotel_chain_id != booking.hotel_chain_id:
                booking.hotel_chain_sub_brand_id = None

        self._validate_dates_and_costs(booking)
        await self._validate_references(db, booking, previous_card_id=previous_card_id)
        self._replace_children(booking, req.certificates, req.benefits)

        if "loyalty_points_earned" in changes:
            await self._apply_loyalty_points(db, booking, changes["loyalty_points_earned"])
        elif not booking.loyalty_points_manual:
            await self._apply_loyalty_points(db, booking, None)

        await db.flush()
        await promotion_matcher.match_promotions_for_booking(db, booking.id)
        logger.info(f"Booking {booking.id} updated")
        return await load_booking(db, booking.id)

    async def delete_booking(self, db: AsyncSession, booking_id: int) -> None:
        booking = await load_booking(db, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking with id {booking_id} not found")
        await db.delete(booking)
        await db.flush()
        logger.info(f"Booking {booking_id} deleted")


booking_service = BookingService()
