"""The user's current elite tier per hotel chain."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.database import get_db
from staycost.models.rewards import EliteStatus, HotelChain, UserStatus
from staycost.schemas.reference import EliteStatusResponse, UserStatusUpsert
from staycost.services.loyalty import loyalty_service

router = APIRouter()


def _serialize(user_status: UserStatus) -> dict:
    return {
        "id": user_status.id,
        "hotel_chain_id": user_status.hotel_chain_id,
        "elite_status_id": user_status.elite_status_id,
        "elite_status": EliteStatusResponse.model_validate(user_status.elite_status).model_dump()
        if user_status.elite_status
        else None,
    }


async def _load(db: AsyncSession, hotel_chain_id: int) -> UserStatus | None:
    result = await db.execute(
        select(UserStatus)
        .where(UserStatus.hotel_chain_id == hotel_chain_id)
        .options(selectinload(UserStatus.elite_status))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.get("")
async def list_user_statuses(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(UserStatus).options(selectinload(UserStatus.elite_status)).order_by(UserStatus.hotel_chain_id)
    )
    return [_serialize(us) for us in result.scalars().all()]


@router.post("")
async def upsert_user_status(req: UserStatusUpsert, db: AsyncSession = Depends(get_db)):
    """Set the tier held with a chain. A changed tier recomputes points on the chain's bookings."""
    if await db.get(HotelChain, req.hotel_chain_id) is None:
        raise HTTPException(status_code=400, detail=f"Hotel chain {req.hotel_chain_id} not found")

    if req.elite_status_id is not None:
        elite_status = await db.get(EliteStatus, req.elite_status_id)
        if elite_status is None or elite_status.hotel_chain_id != req.hotel_chain_id:
            raise HTTPException(status_code=400, detail="Elite status does not belong to this hotel chain")

    user_status = await _load(db, req.hotel_chain_id)
    if user_status is None:
        user_status = UserStatus(hotel_chain_id=req.hotel_chain_id, elite_status_id=req.elite_status_id)
        db.add(user_status)
        changed = req.elite_status_id is not None
    else:
        changed = user_status.elite_status_id != req.elite_status_id
        user_status.elite_status_id = req.elite_status_id
    await db.flush()

    extra = {}
    if changed:
        outcome = await loyalty_service.recalculate_loyalty_for_hotel_chain(db, req.hotel_chain_id)
        extra["loyalty"] = outcome.to_dict()
        extra["reevaluation"] = outcome.reevaluation.to_dict()

    await db.commit()
    return {**_serialize(await _load(db, req.hotel_chain_id)), **extra}
