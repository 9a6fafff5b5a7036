"""Hotel chains with their sub-brands and elite tiers."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.database import get_db
from staycost.models.booking import Booking
from staycost.models.promotion import Promotion
from staycost.models.rewards import (
    BenefitValuation,
    EliteStatus,
    HotelChain,
    HotelChainSubBrand,
    PointType,
    UserStatus,
)
from staycost.schemas.reference import (
    EliteStatusCreate,
    EliteStatusResponse,
    EliteStatusUpdate,
    HotelChainCreate,
    HotelChainUpdate,
    PointTypeResponse,
    SubBrandCreate,
    SubBrandResponse,
    SubBrandUpdate,
)
from staycost.services.loyalty import loyalty_service
from staycost.services.promotion_matching import promotion_matcher

logger = logging.getLogger(__name__)

router = APIRouter()

_ELITE_RATE_FIELDS = ("bonus_percentage", "fixed_rate", "is_fixed")


def _serialize_chain(chain: HotelChain) -> dict:
    user_status = chain.user_status
    return {
        "id": chain.id,
        "name": chain.name,
        "loyalty_program": chain.loyalty_program,
        "base_point_rate": float(chain.base_point_rate) if chain.base_point_rate is not None else None,
        "point_type_id": chain.point_type_id,
        "point_type": PointTypeResponse.model_validate(chain.point_type).model_dump() if chain.point_type else None,
        "sub_brands": [SubBrandResponse.model_validate(sb).model_dump() for sb in chain.sub_brands],
        "elite_statuses": [EliteStatusResponse.model_validate(es).model_dump() for es in chain.elite_statuses],
        "user_status": {
            "id": user_status.id,
            "elite_status_id": user_status.elite_status_id,
        } if user_status else None,
    }


async def _load_chain(db: AsyncSession, chain_id: int) -> HotelChain | None:
    result = await db.execute(
        select(HotelChain)
        .where(HotelChain.id == chain_id)
        .options(
            selectinload(HotelChain.point_type),
            selectinload(HotelChain.sub_brands),
            selectinload(HotelChain.elite_statuses),
            selectinload(HotelChain.user_status),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _validate_point_type(db: AsyncSession, point_type_id: int | None) -> None:
    if point_type_id is not None and await db.get(PointType, point_type_id) is None:
        raise HTTPException(status_code=400, detail=f"Point type {point_type_id} not found")


async def _count_bookings(db: AsyncSession, *criteria) -> int:
    return await db.scalar(select(func.count()).select_from(Booking).where(*criteria)) or 0


@router.get("/hotel-chains")
async def list_hotel_chains(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(HotelChain)
        .options(
            selectinload(HotelChain.point_type),
            selectinload(HotelChain.sub_brands),
            selectinload(HotelChain.elite_statuses),
            selectinload(HotelChain.user_status),
        )
        .order_by(HotelChain.name)
    )
    return [_serialize_chain(c) for c in result.scalars().all()]


@router.get("/hotel-chains/{chain_id}")
async def get_hotel_chain(chain_id: int, db: AsyncSession = Depends(get_db)):
    chain = await _load_chain(db, chain_id)
    if not chain:
        raise HTTPException(status_code=404, detail="Hotel chain not found")
    return _serialize_chain(chain)


@router.post("/hotel-chains", status_code=201)
async def create_hotel_chain(req: HotelChainCreate, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(HotelChain).where(HotelChain.name == req.name))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail=f"Hotel chain '{req.name}' already exists")
    await _validate_point_type(db, req.point_type_id)

    chain = HotelChain(**req.model_dump())
    db.add(chain)
    await db.commit()
    return _serialize_chain(await _load_chain(db, chain.id))


@router.put("/hotel-chains/{chain_id}")
async def update_hotel_chain(chain_id: int, req: HotelChainUpdate, db: AsyncSession = Depends(get_db)):
    """Update a chain. Changing the base earn rate recomputes points on its auto-computed bookings."""
    chain = await _load_chain(db, chain_id)
    if not chain:
        raise HTTPException(status_code=404, detail="Hotel chain not found")

    changes = req.model_dump(exclude_unset=True)
    if changes.get("name") is None:
        changes.pop("name", None)
    if "point_type_id" in changes:
        await _validate_point_type(db, changes["point_type_id"])

    rate_changed = "base_point_rate" in changes and changes["base_point_rate"] != chain.base_point_rate
    point_type_changed = "point_type_id" in changes and changes["point_type_id"] != chain.point_type_id
    for field, value in changes.items():
        setattr(chain, field, value)
    await db.flush()

    response_extra = {}
    if rate_changed:
        outcome = await loyalty_service.recalculate_loyalty_for_hotel_chain(db, chain_id)
        response_extra["loyalty"] = outcome.to_dict()
        response_extra["reevaluation"] = outcome.reevaluation.to_dict()
    elif point_type_changed:
        booking_ids = (await db.execute(select(Booking.id).where(Booking.hotel_chain_id == chain_id))).scalars().all()
        reevaluation = await promotion_matcher.reevaluate_bookings(db, list(booking_ids))
        response_extra["reevaluation"] = reevaluation.to_dict()

    await db.commit()
    return {**_serialize_chain(await _load_chain(db, chain_id)), **response_extra}


@router.delete("/hotel-chains/{chain_id}")
async def delete_hotel_chain(chain_id: int, db: AsyncSession = Depends(get_db)):
    chain = await _load_chain(db, chain_id)
    if not chain:
        raise HTTPException(status_code=404, detail="Hotel chain not found")

    booking_count = await _count_bookings(db, Booking.hotel_chain_id == chain_id)
    if booking_count:
        logger.info(f"Refused to delete hotel chain {chain_id}: {booking_count} bookings")
        raise HTTPException(status_code=409, detail="Cannot delete hotel chain with existing bookings")

    sub_brand_ids = [sb.id for sb in chain.sub_brands]
    scope = Promotion.hotel_chain_id == chain_id
    if sub_brand_ids:
        scope = scope | Promotion.hotel_chain_sub_brand_id.in_(sub_brand_ids)
    await db.execute(delete(Promotion).where(scope))
    await db.execute(delete(BenefitValuation).where(BenefitValuation.hotel_chain_id == chain_id))
    await db.delete(chain)
    await db.commit()
    logger.info(f"Hotel chain {chain_id} deleted")
    return {"deleted": True}


# ── Sub-brands ──


@router.post("/hotel-chains/{chain_id}/sub-brands", status_code=201, response_model=SubBrandResponse)
async def create_sub_brand(chain_id: int, req: SubBrandCreate, db: AsyncSession = Depends(get_db)):
    chain = await _load_chain(db, chain_id)
    if not chain:
        raise HTTPException(status_code=404, detail="Hotel chain not found")
    if any(sb.name == req.name for sb in chain.sub_brands):
        raise HTTPException(status_code=409, detail=f"Sub-brand '{req.name}' already exists for this chain")

    sub_brand = HotelChainSubBrand(name=req.name, base_point_rate=req.base_point_rate)
    chain.sub_brands.append(sub_brand)
    await db.commit()
    return SubBrandResponse.model_validate(sub_brand)


@router.put("/hotel-chain-sub-brands/{sub_brand_id}")
async def update_sub_brand(sub_brand_id: int, req: SubBrandUpdate, db: AsyncSession = Depends(get_db)):
    sub_brand = await db.get(HotelChainSubBrand, sub_brand_id)
    if not sub_brand:
        raise HTTPException(status_code=404, detail="Sub-brand not found")

    changes = req.model_dump(exclude_unset=True)
    if changes.get("name") is None:
        changes.pop("name", None)
    rate_changed = "base_point_rate" in changes and changes["base_point_rate"] != sub_brand.base_point_rate
    for field, value in changes.items():
        setattr(sub_brand, field, value)
    await db.flush()

    response = SubBrandResponse.model_validate(sub_brand).model_dump()
    if rate_changed:
        outcome = await loyalty_service.recalculate_loyalty_for_hotel_chain(db, sub_brand.hotel_chain_id)
        response["loyalty"] = outcome.to_dict()
        response["reevaluation"] = outcome.reevaluation.to_dict()

    await db.commit()
    return response


@router.delete("/hotel-chain-sub-brands/{sub_brand_id}")
async def delete_sub_brand(sub_brand_id: int, db: AsyncSession = Depends(get_db)):
    sub_brand = await db.get(HotelChainSubBrand, sub_brand_id)
    if not sub_brand:
        raise HTTPException(status_code=404, detail="Sub-brand not found")

    if await _count_bookings(db, Booking.hotel_chain_sub_brand_id == sub_brand_id):
        logger.info(f"Refused to delete sub-brand {sub_brand_id}: used by bookings")
        raise HTTPException(status_code=409, detail="Cannot delete sub-brand used by existing bookings")

    await db.execute(delete(Promotion).where(Promotion.hotel_chain_sub_brand_id == sub_brand_id))
    await db.delete(sub_brand)
    await db.commit()
    return {"deleted": True}


# ── Elite statuses ──


async def _is_current_tier(db: AsyncSession, elite_status: EliteStatus) -> bool:
    user_status = await db.scalar(
        select(UserStatus).where(UserStatus.hotel_chain_id == elite_status.hotel_chain_id)
    )
    return user_status is not None and user_status.elite_status_id == elite_status.id


@router.post("/hotel-chains/{chain_id}/elite-statuses", status_code=201, response_model=EliteStatusResponse)
async def create_elite_status(chain_id: int, req: EliteStatusCreate, db: AsyncSession = Depends(get_db)):
    chain = await _load_chain(db, chain_id)
    if not chain:
        raise HTTPException(status_code=404, detail="Hotel chain not found")
    if any(es.name == req.name for es in chain.elite_statuses):
        raise HTTPException(status_code=409, detail=f"Elite status '{req.name}' already exists for this chain")

    elite_status = EliteStatus(**req.model_dump())
    chain.elite_statuses.append(elite_status)
    await db.commit()
    return EliteStatusResponse.model_validate(elite_status)


@router.put("/elite-statuses/{elite_status_id}")
async def update_elite_status(elite_status_id: int, req: EliteStatusUpdate, db: AsyncSession = Depends(get_db)):
    """Update a tier. Rate edits on the user's current tier recompute that chain's points."""
    elite_status = await db.get(EliteStatus, elite_status_id)
    if not elite_status:
        raise HTTPException(status_code=404, detail="Elite status not found")

    changes = req.model_dump(exclude_unset=True)
    for key in ("name", "is_fixed", "tier_level"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    rates_changed = any(
        field in changes and changes[field] != getattr(elite_status, field) for field in _ELITE_RATE_FIELDS
    )
    for field, value in changes.items():
        setattr(elite_status, field, value)
    await db.flush()

    response = EliteStatusResponse.model_validate(elite_status).model_dump()
    if rates_changed and await _is_current_tier(db, elite_status):
        outcome = await loyalty_service.recalculate_loyalty_for_hotel_chain(db, elite_status.hotel_chain_id)
        response["loyalty"] = outcome.to_dict()
        response["reevaluation"] = outcome.reevaluation.to_dict()

    await db.commit()
    return response


@router.delete("/elite-statuses/{elite_status_id}")
async def delete_elite_status(elite_status_id: int, db: AsyncSession = Depends(get_db)):
    elite_status = await db.get(EliteStatus, elite_status_id)
    if not elite_status:
        raise HTTPException(status_code=404, detail="Elite status not found")

    chain_id = elite_status.hotel_chain_id
    user_status = await db.scalar(select(UserStatus).where(UserStatus.hotel_chain_id == chain_id))
    was_current = user_status is not None and user_status.elite_status_id == elite_status_id
    if was_current:
        user_status.elite_status_id = None

    await db.delete(elite_status)
    await db.flush()

    response = {"deleted": True}
    if was_current:
        outcome = await loyalty_service.recalculate_loyalty_for_hotel_chain(db, chain_id)
        response["loyalty"] = outcome.to_dict()
        response["reevaluation"] = outcome.reevaluation.to_dict()

    await db.commit()
    return response
