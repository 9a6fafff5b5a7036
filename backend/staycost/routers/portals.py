import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.database import get_db
from staycost.models.booking import Booking
from staycost.models.promotion import Promotion
from staycost.models.rewards import PointType, ShoppingPortal
from staycost.schemas.reference import PortalCreate, PortalResponse, PortalUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


async def _load_portal(db: AsyncSession, portal_id: int) -> ShoppingPortal | None:
    result = await db.execute(
        select(ShoppingPortal)
        .where(ShoppingPortal.id == portal_id)
        .options(selectinload(ShoppingPortal.point_type))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _validate_points_portal(db: AsyncSession, reward_type: str, point_type_id: int | None) -> None:
    if point_type_id is not None and await db.get(PointType, point_type_id) is None:
        raise HTTPException(status_code=400, detail=f"Point type {point_type_id} not found")
    if reward_type == "points" and point_type_id is None:
        raise HTTPException(status_code=400, detail="Points portals need a point type")


@router.get("", response_model=list[PortalResponse])
async def list_portals(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(ShoppingPortal).options(selectinload(ShoppingPortal.point_type)).order_by(ShoppingPortal.name)
    )
    return [PortalResponse.model_validate(p) for p in result.scalars().all()]


@router.post("", status_code=201, response_model=PortalResponse)
async def create_portal(req: PortalCreate, db: AsyncSession = Depends(get_db)):
    await _validate_points_portal(db, req.reward_type, req.point_type_id)
    portal = ShoppingPortal(**req.model_dump())
    db.add(portal)
    await db.commit()
    return PortalResponse.model_validate(await _load_portal(db, portal.id))


@router.put("/{portal_id}", response_model=PortalResponse)
async def update_portal(portal_id: int, req: PortalUpdate, db: AsyncSession = Depends(get_db)):
    portal = await _load_portal(db, portal_id)
    if not portal:
        raise HTTPException(status_code=404, detail="Shopping portal not found")

    changes = req.model_dump(exclude_unset=True)
    for key in ("name", "reward_type"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    await _validate_points_portal(
        db,
        changes.get("reward_type", portal.reward_type),
        changes.get("point_type_id", portal.point_type_id),
    )

    for field, value in changes.items():
        setattr(portal, field, value)
    await db.commit()
    return PortalResponse.model_validate(await _load_portal(db, portal_id))


@router.delete("/{portal_id}")
async def delete_portal(portal_id: int, db: AsyncSession = Depends(get_db)):
    portal = await db.get(ShoppingPortal, portal_id)
    if not portal:
        raise HTTPException(status_code=404, detail="Shopping portal not found")

    in_use = await db.scalar(
        select(func.count()).select_from(Booking).where(Booking.shopping_portal_id == portal_id)
    )
    if in_use:
        logger.info(f"Refused to delete portal {portal_id}: used by {in_use} bookings")
        raise HTTPException(status_code=409, detail="Cannot delete portal used by existing bookings")

    await db.execute(delete(Promotion).where(Promotion.shopping_portal_id == portal_id))
    await db.delete(portal)
    await db.commit()
    return {"deleted": True}
