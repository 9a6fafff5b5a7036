"""Eager-load options for bookings. Async sessions cannot lazy-load, so every
reader that hands a booking to the calculator or matcher goes through here."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.models.booking import Booking, BookingPromotion
from staycost.models.rewards import CreditCard, HotelChain, ShoppingPortal, UserStatus


def booking_load_options() -> list:
    return [
        selectinload(Booking.hotel_chain).selectinload(HotelChain.point_type),
        selectinload(Booking.hotel_chain)
        .selectinload(HotelChain.user_status)
        .selectinload(UserStatus.elite_status),
        selectinload(Booking.hotel_chain_sub_brand),
        selectinload(Booking.credit_card).selectinload(CreditCard.point_type),
        selectinload(Booking.shopping_portal).selectinload(ShoppingPortal.point_type),
        selectinload(Booking.ota_agency),
        selectinload(Booking.certificates),
        selectinload(Booking.benefits),
        selectinload(Booking.booking_promotions).selectinload(BookingPromotion.promotion),
    ]


async def load_booking(db: AsyncSession, booking_id: int) -> Booking | None:
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .options(*booking_load_options())
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def load_bookings(db: AsyncSession, booking_ids: list[int] | None = None) -> list[Booking]:
    """Bookings ordered by check-in; all of them when booking_ids is None."""
    stmt = select(Booking).options(*booking_load_options()).execution_options(populate_existing=True)
    if booking_ids is not None:
        stmt = stmt.where(Booking.id.in_(booking_ids))
    result = await db.execute(stmt.order_by(Booking.check_in, Booking.id))
    return list(result.scalars().all())
