from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

PromotionType = Literal["credit_card", "portal", "loyalty"]
PromotionValueType = Literal["fixed", "percentage", "points_multiplier", "fixed_points", "certificate", "eqn"]


class PromotionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    type: PromotionType
    value_type: PromotionValueType
    # Dollars, percent, multiplier, points, or a count of certificates / EQNs depending on value_type
    value: Decimal = Field(ge=0)
    cert_type: str | None = None
    hotel_chain_id: int | None = None
    hotel_chain_sub_brand_id: int | None = None
    credit_card_id: int | None = None
    shopping_portal_id: int | None = None
    excluded_sub_brand_ids: list[int] = []
    min_spend: Decimal | None = Field(default=None, ge=0)
    min_nights: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PromotionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    type: PromotionType | None = None
    value_type: PromotionValueType | None = None
    value: Decimal | None = Field(default=None, ge=0)
    cert_type: str | None = None
    hotel_chain_id: int | None = None
    hotel_chain_sub_brand_id: int | None = None
    credit_card_id: int | None = None
    shopping_portal_id: int | None = None
    excluded_sub_brand_ids: list[int] | None = None
    min_spend: Decimal | None = Field(default=None, ge=0)
    min_nights: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None


class MatchRequest(BaseModel):
    booking_id: int


class ReevaluateRequest(BaseModel):
    # Omit to reevaluate every booking
    booking_ids: list[int] | None = None
