from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

PointCategory = Literal["hotel", "airline", "transferable"]
RewardType = Literal["cashback", "points"]


class PointTypeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category: PointCategory
    cents_per_point: Decimal = Field(ge=0)


class PointTypeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    category: PointCategory | None = None
    cents_per_point: Decimal | None = Field(default=None, ge=0)


class PointTypeResponse(BaseModel):
    id: int
    name: str
    category: str
    cents_per_point: float

    model_config = {"from_attributes": True}


class SubBrandCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    base_point_rate: Decimal | None = Field(default=None, ge=0)


class SubBrandUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    base_point_rate: Decimal | None = Field(default=None, ge=0)


class SubBrandResponse(BaseModel):
    id: int
    hotel_chain_id: int
    name: str
    base_point_rate: float | None

    model_config = {"from_attributes": True}


class EliteStatusCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    bonus_percentage: Decimal | None = Field(default=None, ge=0)
    fixed_rate: Decimal | None = Field(default=None, ge=0)
    is_fixed: bool = False
    tier_level: int = 0


class EliteStatusUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    bonus_percentage: Decimal | None = Field(default=None, ge=0)
    fixed_rate: Decimal | None = Field(default=None, ge=0)
    is_fixed: bool | None = None
    tier_level: int | None = None


class EliteStatusResponse(BaseModel):
    id: int
    hotel_chain_id: int
    name: str
    bonus_percentage: float | None
    fixed_rate: float | None
    is_fixed: bool
    tier_level: int

    model_config = {"from_attributes": True}


class HotelChainCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    loyalty_program: str | None = None
    base_point_rate: Decimal | None = Field(default=None, ge=0)
    point_type_id: int | None = None


class HotelChainUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    loyalty_program: str | None = None
    base_point_rate: Decimal | None = Field(default=None, ge=0)
    point_type_id: int | None = None


class UserStatusUpsert(BaseModel):
    hotel_chain_id: int
    elite_status_id: int | None = None


class CreditCardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    reward_type: RewardType = "points"
    reward_rate: Decimal = Field(ge=0)
    point_type_id: int | None = None


class CreditCardUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    reward_type: RewardType | None = None
    reward_rate: Decimal | None = Field(default=None, ge=0)
    point_type_id: int | None = None


class CreditCardResponse(BaseModel):
    id: int
    name: str
    reward_type: str
    reward_rate: float
    point_type_id: int | None
    point_type: PointTypeResponse | None = None

    model_config = {"from_attributes": True}


class PortalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    reward_type: RewardType = "cashback"
    point_type_id: int | None = None


class PortalUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    reward_type: RewardType | None = None
    point_type_id: int | None = None


class PortalResponse(BaseModel):
    id: int
    name: str
    reward_type: str
    point_type_id: int | None
    point_type: PointTypeResponse | None = None

    model_config = {"from_attributes": True}


class OtaAgencyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)


class OtaAgencyResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}
