"""Bookings and the promotions applied to them."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.data.catalog import BENEFIT_TYPES, cert_type_label
from staycost.database import get_db
from staycost.models.booking import Booking, BookingPromotion, BookingPromotionStatus
from staycost.schemas.booking import BookingCreate, BookingPromotionPatch, BookingUpdate
from staycost.services.booking_service import booking_service
from staycost.services.loaders import booking_load_options, load_booking
from staycost.services.net_cost import calculate_net_cost, money, to_decimal
from staycost.services.promotion_matching import promotion_matcher
from staycost.services.valuations import get_all_valuations

router = APIRouter()


def _num(value) -> float | None:
    return float(value) if value is not None else None


def _ref(obj) -> dict | None:
    return {"id": obj.id, "name": obj.name} if obj is not None else None


def serialize_booking_promotion(bp: BookingPromotion) -> dict:
    promotion = bp.promotion
    return {
        "id": bp.id,
        "booking_id": bp.booking_id,
        "promotion_id": bp.promotion_id,
        "applied_value": _num(bp.applied_value),
        "status": bp.status,
        "auto_applied": bp.auto_applied,
        "verified": bp.verified,
        "promotion": {
            "id": promotion.id,
            "name": promotion.name,
            "type": promotion.type,
            "value_type": promotion.value_type,
            "value": _num(promotion.value),
        } if promotion is not None else None,
    }


def serialize_booking(booking: Booking, valuations) -> dict:
    """Booking with joined reward data, its net cost, and the itemized breakdown."""
    breakdown = calculate_net_cost(booking, valuations)
    return {
        "id": booking.id,
        "property_name": booking.property_name,
        "hotel_chain_id": booking.hotel_chain_id,
        "hotel_chain": _ref(booking.hotel_chain),
        "hotel_chain_sub_brand_id": booking.hotel_chain_sub_brand_id,
        "hotel_chain_sub_brand": _ref(booking.hotel_chain_sub_brand),
        "check_in": booking.check_in.isoformat(),
        "check_out": booking.check_out.isoformat(),
        "num_nights": booking.num_nights,
        "pretax_cost": _num(booking.pretax_cost),
        "tax_amount": _num(booking.tax_amount),
        "total_cost": _num(booking.total_cost),
        "currency": booking.currency,
        "credit_card_id": booking.credit_card_id,
        "credit_card": _ref(booking.credit_card),
        "shopping_portal_id": booking.shopping_portal_id,
        "shopping_portal": _ref(booking.shopping_portal),
        "portal_cashback_rate": _num(booking.portal_cashback_rate),
        "portal_cashback_on_total": bool(booking.portal_cashback_on_total),
        "loyalty_points_earned": booking.loyalty_points_earned,
        "loyalty_points_manual": bool(booking.loyalty_points_manual),
        "points_redeemed": booking.points_redeemed,
        "notes": booking.notes,
        "booking_source": booking.booking_source,
        "ota_agency_id": booking.ota_agency_id,
        "ota_agency": _ref(booking.ota_agency),
        "certificates": [
            {"id": c.id, "cert_type": c.cert_type, "label": cert_type_label(c.cert_type)}
            for c in booking.certificates
        ],
        "benefits": [
            {
                "id": b.id,
                "benefit_type": b.benefit_type,
                "label": b.label or BENEFIT_TYPES.get(b.benefit_type, b.benefit_type),
                "dollar_value": _num(b.dollar_value),
            }
            for b in booking.benefits
        ],
        "booking_promotions": [serialize_booking_promotion(bp) for bp in booking.booking_promotions],
        "net_cost": float(breakdown.net_cost),
        "net_cost_per_night": _num(breakdown.net_cost_per_night),
        "breakdown": breakdown.to_dict(),
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
        "updated_at": booking.updated_at.isoformat() if booking.updated_at else None,
    }


@router.get("/bookings")
async def list_bookings(
    hotel_chain_id: int | None = Query(None),
    start: date | None = Query(None, description="Check-in on or after"),
    end: date | None = Query(None, description="Check-in on or before"),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Booking).options(*booking_load_options())
    if hotel_chain_id is not None:
        stmt = stmt.where(Booking.hotel_chain_id == hotel_chain_id)
    if start is not None:
        stmt = stmt.where(Booking.check_in >= start)
    if end is not None:
        stmt = stmt.where(Booking.check_in <= end)
    result = await db.execute(stmt.order_by(Booking.check_in, Booking.id))

    valuations = await get_all_valuations(db)
    return [serialize_booking(b, valuations) for b in result.scalars().all()]


@router.get("/bookings/{booking_id}")
async def get_booking(booking_id: int, db: AsyncSession = Depends(get_db)):
    booking = await load_booking(db, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return serialize_booking(booking, await get_all_valuations(db))


@router.post("/bookings", status_code=201)
async def create_booking(req: BookingCreate, db: AsyncSession = Depends(get_db)):
    booking = await booking_service.create_booking(db, req)
    await db.commit()
    return serialize_booking(booking, await get_all_valuations(db))


@router.put("/bookings/{booking_id}")
async def update_booking(booking_id: int, req: BookingUpdate, db: AsyncSession = Depends(get_db)):
    booking = await booking_service.update_booking(db, booking_id, req)
    await db.commit()
    return serialize_booking(booking, await get_all_valuations(db))


@router.delete("/bookings/{booking_id}")
async def delete_booking(booking_id: int, db: AsyncSession = Depends(get_db)):
    await booking_service.delete_booking(db, booking_id)
    await db.commit()
    return {"deleted": True}


# ── Booking promotions ──


async def _load_booking_promotion(db: AsyncSession, bp_id: int) -> BookingPromotion | None:
    result = await db.execute(
        select(BookingPromotion)
        .where(BookingPromotion.id == bp_id)
        .options(selectinload(BookingPromotion.promotion))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.get("/booking-promotions/{bp_id}")
async def get_booking_promotion(bp_id: int, db: AsyncSession = Depends(get_db)):
    bp = await _load_booking_promotion(db, bp_id)
    if not bp:
        raise HTTPException(status_code=404, detail="Booking promotion not found")
    return serialize_booking_promotion(bp)


@router.patch("/booking-promotions/{bp_id}")
async def patch_booking_promotion(bp_id: int, req: BookingPromotionPatch, db: AsyncSession = Depends(get_db)):
    """Confirm a matched promotion or override its value.

    Setting applied_value makes the row manual; matching keeps that value for
    as long as the promotion still applies to the booking.
    verified=false on a manual row hands it back to the matcher, which may
    revalue or drop it.
    """
    bp = await _load_booking_promotion(db, bp_id)
    if not bp:
        raise HTTPException(status_code=404, detail="Booking promotion not found")

    booking_id = bp.booking_id
    rematch = False
    if req.applied_value is not None:
        bp.applied_value = money(to_decimal(req.applied_value))
        bp.status = BookingPromotionStatus.MANUAL
    elif req.verified is True and bp.status == BookingPromotionStatus.AUTO_APPLIED:
        bp.status = BookingPromotionStatus.VERIFIED
    elif req.verified is False and bp.status != BookingPromotionStatus.AUTO_APPLIED:
        rematch = bp.status == BookingPromotionStatus.MANUAL
        bp.status = BookingPromotionStatus.AUTO_APPLIED
    await db.flush()

    if rematch:
        await promotion_matcher.match_promotions_for_booking(db, booking_id)
    await db.commit()

    bp = await _load_booking_promotion(db, bp_id)
    if bp is None:
        return {"id": bp_id, "booking_id": booking_id, "removed": True}
    return serialize_booking_promotion(bp)
