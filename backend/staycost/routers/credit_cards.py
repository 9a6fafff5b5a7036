from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staycost.database import get_db
from staycost.models.rewards import CreditCard, PointType
from staycost.schemas.reference import CreditCardCreate, CreditCardResponse, CreditCardUpdate

router = APIRouter()


async def _load_card(db: AsyncSession, card_id: int) -> CreditCard | None:
    result = await db.execute(
        select(CreditCard)
        .where(CreditCard.id == card_id, CreditCard.is_deleted == False)  # noqa: E712
        .options(selectinload(CreditCard.point_type))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.get("", response_model=list[CreditCardResponse])
async def list_credit_cards(db: AsyncSession = Depends(get_db)):
    """Active cards only; soft-deleted cards still resolve on the bookings that used them."""
    result = await db.execute(
        select(CreditCard)
        .where(CreditCard.is_deleted == False)  # noqa: E712
        .options(selectinload(CreditCard.point_type))
        .order_by(CreditCard.name)
    )
    return [CreditCardResponse.model_validate(c) for c in result.scalars().all()]


@router.post("", status_code=201, response_model=CreditCardResponse)
async def create_credit_card(req: CreditCardCreate, db: AsyncSession = Depends(get_db)):
    if req.point_type_id is not None and await db.get(PointType, req.point_type_id) is None:
        raise HTTPException(status_code=400, detail=f"Point type {req.point_type_id} not found")

    card = CreditCard(**req.model_dump())
    db.add(card)
    await db.commit()
    return CreditCardResponse.model_validate(await _load_card(db, card.id))


@router.put("/{card_id}", response_model=CreditCardResponse)
async def update_credit_card(card_id: int, req: CreditCardUpdate, db: AsyncSession = Depends(get_db)):
    card = await _load_card(db, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Credit card not found")

    changes = req.model_dump(exclude_unset=True)
    for key in ("name", "reward_type", "reward_rate"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    if changes.get("point_type_id") is not None and await db.get(PointType, changes["point_type_id"]) is None:
        raise HTTPException(status_code=400, detail=f"Point type {changes['point_type_id']} not found")

    for field, value in changes.items():
        setattr(card, field, value)
    await db.commit()
    return CreditCardResponse.model_validate(await _load_card(db, card_id))


@router.delete("/{card_id}")
async def delete_credit_card(card_id: int, db: AsyncSession = Depends(get_db)):
    card = await _load_card(db, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Credit card not found")

    card.is_deleted = True
    await db.commit()
    return {"deleted": True}
