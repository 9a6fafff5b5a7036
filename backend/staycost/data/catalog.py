"""Static reward-program catalog — certificate types, benefit types, enum values."""

# Free-night certificates → nominal points value they can be redeemed for
CERT_TYPES: dict[str, dict] = {
    "marriott_35k": {"label": "Marriott 35k", "points_value": 35000},
    "marriott_40k": {"label": "Marriott 40k", "points_value": 40000},
    "marriott_50k": {"label": "Marriott 50k", "points_value": 50000},
    "marriott_85k": {"label": "Marriott 85k", "points_value": 85000},
    "hyatt_cat1_4": {"label": "Hyatt Cat 1–4", "points_value": 15000},
    "hyatt_cat1_7": {"label": "Hyatt Cat 1–7", "points_value": 30000},
    "ihg_40k": {"label": "IHG 40k", "points_value": 40000},
}

BENEFIT_TYPES: dict[str, str] = {
    "free_breakfast": "Free Breakfast",
    "dining_credit": "Dining Credit",
    "spa_credit": "Spa Credit",
    "room_upgrade": "Room Upgrade",
    "late_checkout": "Late Checkout",
    "early_checkin": "Early Check-in",
    "other": "Other",
}

BOOKING_SOURCES: dict[str, str] = {
    "direct_web": "Direct — Hotel Chain Website",
    "direct_app": "Direct — Hotel Chain App",
    "ota": "Online Travel Agency (OTA)",
    "other": "Other",
}

POINT_CATEGORIES = ("hotel", "airline", "transferable")
REWARD_TYPES = ("cashback", "points")
PROMOTION_TYPES = ("credit_card", "portal", "loyalty")
PROMOTION_VALUE_TYPES = ("fixed", "percentage", "points_multiplier")
VALUATION_VALUE_TYPES = ("dollar", "points")

DEFAULT_EQN_VALUE = 10.0


def cert_type_label(cert_type: str) -> str:
    entry = CERT_TYPES.get(cert_type)
    return entry["label"] if entry else cert_type


def cert_points_value(cert_type: str) -> int:
    entry = CERT_TYPES.get(cert_type)
    return entry["points_value"] if entry else 0
