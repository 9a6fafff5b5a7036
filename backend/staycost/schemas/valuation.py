from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class BenefitValuationItem(BaseModel):
    hotel_chain_id: int | None = None
    is_eqn: bool = False
    cert_type: str | None = None
    benefit_type: str | None = None
    # null clears the value at this scope; resolution falls through to the next one
    value: Decimal | None = None
    value_type: Literal["dollar", "points"] = "dollar"


class BenefitValuationSave(BaseModel):
    valuations: list[BenefitValuationItem]


class BenefitValuationResponse(BaseModel):
    id: int
    hotel_chain_id: int | None
    is_eqn: bool
    cert_type: str | None
    benefit_type: str | None
    value: float | None
    value_type: str

    model_config = {"from_attributes": True}
