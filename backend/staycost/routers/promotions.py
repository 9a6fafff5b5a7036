"""Promotions CRUD plus on-demand matching and reevaluation."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staycost.data.catalog import CERT_TYPES
from staycost.database import get_db
from staycost.models.booking import BookingPromotion
from staycost.models.promotion import Promotion
from staycost.models.rewards import CreditCard, HotelChain, HotelChainSubBrand, ShoppingPortal
from staycost.routers.bookings import serialize_booking_promotion
from staycost.schemas.promotion import MatchRequest, PromotionCreate, PromotionUpdate, ReevaluateRequest
from staycost.services.promotion_matching import promotion_matcher

logger = logging.getLogger(__name__)

router = APIRouter()


def _num(value) -> float | None:
    return float(value) if value is not None else None


def _serialize(promotion: Promotion, applied_count: int | None = None) -> dict:
    data = {
        "id": promotion.id,
        "name": promotion.name,
        "description": promotion.description,
        "type": promotion.type,
        "value_type": promotion.value_type,
        "value": _num(promotion.value),
        "cert_type": promotion.cert_type,
        "hotel_chain_id": promotion.hotel_chain_id,
        "hotel_chain_sub_brand_id": promotion.hotel_chain_sub_brand_id,
        "credit_card_id": promotion.credit_card_id,
        "shopping_portal_id": promotion.shopping_portal_id,
        "excluded_sub_brand_ids": promotion.excluded_sub_brand_ids,
        "min_spend": _num(promotion.min_spend),
        "min_nights": promotion.min_nights,
        "start_date": promotion.start_date.isoformat() if promotion.start_date else None,
        "end_date": promotion.end_date.isoformat() if promotion.end_date else None,
        "is_active": promotion.is_active,
        "created_at": promotion.created_at.isoformat() if promotion.created_at else None,
        "updated_at": promotion.updated_at.isoformat() if promotion.updated_at else None,
    }
    if applied_count is not None:
        data["applied_count"] = applied_count
    return data


async def _validate_scope(db: AsyncSession, promotion: Promotion) -> None:
    if promotion.hotel_chain_id is not None and await db.get(HotelChain, promotion.hotel_chain_id) is None:
        raise HTTPException(status_code=400, detail=f"Hotel chain {promotion.hotel_chain_id} not found")
    if promotion.hotel_chain_sub_brand_id is not None:
        sub_brand = await db.get(HotelChainSubBrand, promotion.hotel_chain_sub_brand_id)
        if sub_brand is None:
            raise HTTPException(status_code=400, detail=f"Sub-brand {promotion.hotel_chain_sub_brand_id} not found")
        if promotion.hotel_chain_id is not None and sub_brand.hotel_chain_id != promotion.hotel_chain_id:
            raise HTTPException(status_code=400, detail="Sub-brand does not belong to the promotion's hotel chain")
    if promotion.credit_card_id is not None and await db.get(CreditCard, promotion.credit_card_id) is None:
        raise HTTPException(status_code=400, detail=f"Credit card {promotion.credit_card_id} not found")
    if promotion.shopping_portal_id is not None and await db.get(ShoppingPortal, promotion.shopping_portal_id) is None:
        raise HTTPException(status_code=400, detail=f"Shopping portal {promotion.shopping_portal_id} not found")
    if promotion.start_date and promotion.end_date and promotion.end_date < promotion.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    if promotion.value_type == "certificate":
        if promotion.cert_type not in CERT_TYPES:
            raise HTTPException(status_code=400, detail=f"Unknown certificate type: {promotion.cert_type}")
    else:
        promotion.cert_type = None
    for sub_brand in promotion.excluded_sub_brands:
        if promotion.hotel_chain_id is not None and sub_brand.hotel_chain_id != promotion.hotel_chain_id:
            raise HTTPException(status_code=400, detail="Excluded sub-brand does not belong to the promotion's hotel chain")


async def _load_exclusions(db: AsyncSession, sub_brand_ids: list[int]) -> list[HotelChainSubBrand]:
    sub_brands = []
    for sub_brand_id in dict.fromkeys(sub_brand_ids):
        sub_brand = await db.get(HotelChainSubBrand, sub_brand_id)
        if sub_brand is None:
            raise HTTPException(status_code=400, detail=f"Sub-brand {sub_brand_id} not found")
        sub_brands.append(sub_brand)
    return sub_brands


async def _applied_counts(db: AsyncSession) -> dict[int, int]:
    result = await db.execute(
        select(BookingPromotion.promotion_id, func.count()).group_by(BookingPromotion.promotion_id)
    )
    return {promotion_id: count for promotion_id, count in result.all()}


@router.get("")
async def list_promotions(
    active: bool | None = Query(None),
    type: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Promotion)
    if active is not None:
        stmt = stmt.where(Promotion.is_active == active)
    if type:
        stmt = stmt.where(Promotion.type == type)
    result = await db.execute(stmt.order_by(Promotion.id))
    counts = await _applied_counts(db)
    return [_serialize(p, counts.get(p.id, 0)) for p in result.scalars().all()]


@router.get("/{promotion_id}")
async def get_promotion(promotion_id: int, db: AsyncSession = Depends(get_db)):
    promotion = await db.get(Promotion, promotion_id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    counts = await _applied_counts(db)
    return _serialize(promotion, counts.get(promotion_id, 0))


@router.post("", status_code=201)
async def create_promotion(req: PromotionCreate, db: AsyncSession = Depends(get_db)):
    data = req.model_dump()
    excluded = await _load_exclusions(db, data.pop("excluded_sub_brand_ids"))
    promotion = Promotion(**data, excluded_sub_brands=excluded)
    await _validate_scope(db, promotion)
    db.add(promotion)
    await db.flush()

    reevaluation = await promotion_matcher.match_promotions_for_affected_bookings(db, promotion.id)
    await db.commit()
    await db.refresh(promotion, attribute_names=["created_at", "updated_at"])
    logger.info(f"Promotion {promotion.id} created, {len(reevaluation.evaluated)} bookings re-matched")
    return {**_serialize(promotion), "reevaluation": reevaluation.to_dict()}


@router.put("/{promotion_id}")
async def update_promotion(promotion_id: int, req: PromotionUpdate, db: AsyncSession = Depends(get_db)):
    """Update a promotion and re-match every booking, since a new scope can add or drop any of them."""
    promotion = await db.get(Promotion, promotion_id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")

    changes = req.model_dump(exclude_unset=True)
    for key in ("name", "type", "value_type", "value", "is_active", "excluded_sub_brand_ids"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    if "excluded_sub_brand_ids" in changes:
        promotion.excluded_sub_brands = await _load_exclusions(db, changes.pop("excluded_sub_brand_ids"))
    for field, value in changes.items():
        setattr(promotion, field, value)
    await _validate_scope(db, promotion)
    await db.flush()

    reevaluation = await promotion_matcher.match_promotions_for_affected_bookings(db, promotion_id)
    await db.commit()
    await db.refresh(promotion, attribute_names=["created_at", "updated_at"])
    return {**_serialize(promotion), "reevaluation": reevaluation.to_dict()}


@router.delete("/{promotion_id}")
async def delete_promotion(promotion_id: int, db: AsyncSession = Depends(get_db)):
    promotion = await db.get(Promotion, promotion_id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")

    affected = await promotion_matcher.booking_ids_for_promotion(db, promotion_id)
    await db.execute(delete(BookingPromotion).where(BookingPromotion.promotion_id == promotion_id))
    await db.delete(promotion)
    await db.flush()

    reevaluation = await promotion_matcher.reevaluate_bookings(db, affected)
    await db.commit()
    logger.info(f"Promotion {promotion_id} deleted, removed from {len(affected)} bookings")
    return {"deleted": True, "removed_from": len(affected), "reevaluation": reevaluation.to_dict()}


@router.post("/match")
async def match_booking(req: MatchRequest, db: AsyncSession = Depends(get_db)):
    applied = await promotion_matcher.match_promotions_for_booking(db, req.booking_id)
    await db.commit()
    return {
        "booking_id": req.booking_id,
        "booking_promotions": [serialize_booking_promotion(bp) for bp in applied],
    }


@router.post("/reevaluate")
async def reevaluate(req: ReevaluateRequest | None = None, db: AsyncSession = Depends(get_db)):
    if req is None or req.booking_ids is None:
        reevaluation = await promotion_matcher.reevaluate_all(db)
    else:
        reevaluation = await promotion_matcher.reevaluate_bookings(db, req.booking_ids)
    await db.commit()
    return {"reevaluation": reevaluation.to_dict()}
