from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

BookingSource = Literal["direct_web", "direct_app", "ota", "other"]


class CertificateInput(BaseModel):
    cert_type: str


class BenefitInput(BaseModel):
    benefit_type: str
    label: str | None = None
    dollar_value: Decimal | None = Field(default=None, ge=0)


class BookingCreate(BaseModel):
    hotel_chain_id: int
    hotel_chain_sub_brand_id: int | None = None
    property_name: str = Field(min_length=1, max_length=255)
    check_in: date
    check_out: date
    num_nights: int = Field(gt=0)
    pretax_cost: Decimal = Field(ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    total_cost: Decimal = Field(ge=0)
    currency: str = Field(default="USD", max_length=3)
    credit_card_id: int | None = None
    shopping_portal_id: int | None = None
    portal_cashback_rate: Decimal | None = Field(default=None, ge=0)
    portal_cashback_on_total: bool = False
    # Omit to auto-compute from the chain's earn rate and the user's elite tier
    loyalty_points_earned: int | None = Field(default=None, ge=0)
    points_redeemed: int | None = Field(default=None, ge=0)
    notes: str | None = None
    booking_source: BookingSource | None = None
    ota_agency_id: int | None = None
    certificates: list[CertificateInput] = []
    benefits: list[BenefitInput] = []


class BookingUpdate(BaseModel):
    """Partial update. Only fields present in the request body are changed."""

    hotel_chain_id: int | None = None
    hotel_chain_sub_brand_id: int | None = None
    property_name: str | None = Field(default=None, min_length=1, max_length=255)
    check_in: date | None = None
    check_out: date | None = None
    num_nights: int | None = Field(default=None, gt=0)
    pretax_cost: Decimal | None = Field(default=None, ge=0)
    tax_amount: Decimal | None = Field(default=None, ge=0)
    total_cost: Decimal | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, max_length=3)
    credit_card_id: int | None = None
    shopping_portal_id: int | None = None
    portal_cashback_rate: Decimal | None = Field(default=None, ge=0)
    portal_cashback_on_total: bool | None = None
    # Explicit null switches the booking back to auto-computed points
    loyalty_points_earned: int | None = Field(default=None, ge=0)
    points_redeemed: int | None = Field(default=None, ge=0)
    notes: str | None = None
    booking_source: BookingSource | None = None
    ota_agency_id: int | None = None
    certificates: list[CertificateInput] | None = None
    benefits: list[BenefitInput] | None = None


class BookingPromotionPatch(BaseModel):
    verified: bool | None = None
    applied_value: Decimal | None = Field(default=None, ge=0)
