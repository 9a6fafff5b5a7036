from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staycost.database import get_db
from staycost.models.booking import Booking
from staycost.models.rewards import OtaAgency
from staycost.schemas.reference import OtaAgencyCreate, OtaAgencyResponse

router = APIRouter()


async def _ensure_unique(db: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    stmt = select(OtaAgency).where(OtaAgency.name == name)
    if exclude_id is not None:
        stmt = stmt.where(OtaAgency.id != exclude_id)
    if (await db.execute(stmt)).scalar_one_or_none():
        raise HTTPException(status_code=409, detail=f"OTA agency '{name}' already exists")


@router.get("", response_model=list[OtaAgencyResponse])
async def list_ota_agencies(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(OtaAgency).order_by(OtaAgency.name))
    return [OtaAgencyResponse.model_validate(a) for a in result.scalars().all()]


@router.post("", status_code=201, response_model=OtaAgencyResponse)
async def create_ota_agency(req: OtaAgencyCreate, db: AsyncSession = Depends(get_db)):
    await _ensure_unique(db, req.name)
    agency = OtaAgency(name=req.name)
    db.add(agency)
    await db.commit()
    return OtaAgencyResponse.model_validate(agency)


@router.put("/{agency_id}", response_model=OtaAgencyResponse)
async def update_ota_agency(agency_id: int, req: OtaAgencyCreate, db: AsyncSession = Depends(get_db)):
    agency = await db.get(OtaAgency, agency_id)
    if not agency:
        raise HTTPException(status_code=404, detail="OTA agency not found")
    await _ensure_unique(db, req.name, exclude_id=agency_id)

    agency.name = req.name
    await db.commit()
    return OtaAgencyResponse.model_validate(agency)


@router.delete("/{agency_id}")
async def delete_ota_agency(agency_id: int, db: AsyncSession = Depends(get_db)):
    agency = await db.get(OtaAgency, agency_id)
    if not agency:
        raise HTTPException(status_code=404, detail="OTA agency not found")

    in_use = await db.scalar(select(func.count()).select_from(Booking).where(Booking.ota_agency_id == agency_id))
    if in_use:
        raise HTTPException(status_code=409, detail="Cannot delete OTA agency used by existing bookings")

    await db.delete(agency)
    await db.commit()
    return {"deleted": True}
