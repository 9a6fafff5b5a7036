from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staycost.data.catalog import BENEFIT_TYPES, CERT_TYPES
from staycost.database import get_db
from staycost.schemas.valuation import BenefitValuationResponse, BenefitValuationSave
from staycost.services.promotion_matching import promotion_matcher
from staycost.services.valuations import get_all_valuations, save_valuations

router = APIRouter()


@router.get("")
async def list_benefit_valuations(db: AsyncSession = Depends(get_db)):
    """All valuation rows, including cleared ones, plus the catalog they are keyed by."""
    rows = await get_all_valuations(db)
    return {
        "valuations": [BenefitValuationResponse.model_validate(v).model_dump() for v in rows],
        "cert_types": CERT_TYPES,
        "benefit_types": BENEFIT_TYPES,
    }


@router.put("")
async def save_benefit_valuations(req: BenefitValuationSave, db: AsyncSession = Depends(get_db)):
    """Bulk upsert. The save and the full re-match commit together."""
    touched = await save_valuations(db, [item.model_dump() for item in req.valuations])
    reevaluation = await promotion_matcher.reevaluate_all(db)
    await db.commit()

    rows = await get_all_valuations(db)
    return {
        "updated": touched,
        "valuations": [BenefitValuationResponse.model_validate(v).model_dump() for v in rows],
        "reevaluation": reevaluation.to_dict(),
    }
