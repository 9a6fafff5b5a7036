"""Point currencies and their dollar valuation."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staycost.database import get_db
from staycost.models.rewards import CreditCard, HotelChain, PointType, ShoppingPortal
from staycost.schemas.reference import PointTypeCreate, PointTypeResponse, PointTypeUpdate
from staycost.services.promotion_matching import promotion_matcher

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_point_types(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(PointType).order_by(PointType.name))
    return [PointTypeResponse.model_validate(pt) for pt in result.scalars().all()]


@router.post("", status_code=201, response_model=PointTypeResponse)
async def create_point_type(req: PointTypeCreate, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(PointType).where(PointType.name == req.name))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail=f"Point type '{req.name}' already exists")

    point_type = PointType(name=req.name, category=req.category, cents_per_point=req.cents_per_point)
    db.add(point_type)
    await db.commit()
    return PointTypeResponse.model_validate(point_type)


@router.put("/{point_type_id}")
async def update_point_type(point_type_id: int, req: PointTypeUpdate, db: AsyncSession = Depends(get_db)):
    """Update a point type. A new valuation re-prices points-multiplier promotions on every booking."""
    point_type = await db.get(PointType, point_type_id)
    if not point_type:
        raise HTTPException(status_code=404, detail="Point type not found")

    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    value_changed = (
        "cents_per_point" in changes and changes["cents_per_point"] != point_type.cents_per_point
    )
    for field, value in changes.items():
        setattr(point_type, field, value)
    await db.flush()

    response = PointTypeResponse.model_validate(point_type).model_dump()
    if value_changed:
        reevaluation = await promotion_matcher.reevaluate_all(db)
        response["reevaluation"] = reevaluation.to_dict()

    await db.commit()
    return response


@router.delete("/{point_type_id}")
async def delete_point_type(point_type_id: int, db: AsyncSession = Depends(get_db)):
    point_type = await db.get(PointType, point_type_id)
    if not point_type:
        raise HTTPException(status_code=404, detail="Point type not found")

    in_use = 0
    for model in (HotelChain, CreditCard, ShoppingPortal):
        count = await db.scalar(select(func.count()).select_from(model).where(model.point_type_id == point_type_id))
        in_use += count or 0
    if in_use:
        logger.info(f"Refused to delete point type {point_type_id}: referenced {in_use} times")
        raise HTTPException(
            status_code=409,
            detail="Cannot delete point type: it is referenced by hotel chains, credit cards, or portals",
        )

    await db.delete(point_type)
    await db.commit()
    return {"deleted": True}
