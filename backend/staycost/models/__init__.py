from staycost.models.rewards import (
    BenefitValuation,
    CreditCard,
    EliteStatus,
    HotelChain,
    HotelChainSubBrand,
    OtaAgency,
    PointType,
    ShoppingPortal,
    UserStatus,
)
from staycost.models.promotion import Promotion
from staycost.models.booking import (
    Booking,
    BookingBenefit,
    BookingCertificate,
    BookingPromotion,
    BookingPromotionStatus,
)

__all__ = [
    "BenefitValuation",
    "Booking",
    "BookingBenefit",
    "BookingCertificate",
    "BookingPromotion",
    "BookingPromotionStatus",
    "CreditCard",
    "EliteStatus",
    "HotelChain",
    "HotelChainSubBrand",
    "OtaAgency",
    "PointType",
    "Promotion",
    "ShoppingPortal",
    "UserStatus",
]
