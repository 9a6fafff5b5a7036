"""Seed script for the StayCost reference data."""

import asyncio
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staycost.data.catalog import BENEFIT_TYPES, CERT_TYPES, DEFAULT_EQN_VALUE
from staycost.database import async_session_factory
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

logger = logging.getLogger(__name__)

# ── Point types ────────────────────────────────────────────────────────────────

POINT_TYPES = [
    ("Hilton Honors Points", "hotel", "0.0045"),
    ("Marriott Bonvoy Points", "hotel", "0.007"),
    ("World of Hyatt Points", "hotel", "0.02"),
    ("IHG One Rewards", "hotel", "0.006"),
    ("Discovery Dollars", "hotel", "0.01"),
    ("ALL - Accor Live Limitless", "hotel", "0.022"),
    ("Membership Rewards", "transferable", "0.02"),
    ("Ultimate Rewards", "transferable", "0.02"),
    ("Capital One Miles", "transferable", "0.0175"),
    ("Avios", "airline", "0.012"),
    ("Bilt", "transferable", "0.02"),
    ("Wells Fargo Rewards", "transferable", "0.015"),
]

# ── Hotel chains ───────────────────────────────────────────────────────────────
# name, loyalty program, base rate, point type, elite tiers, sub-brands, current tier
# Elite tier: (name, bonus_percentage, fixed_rate); fixed_rate set means a fixed-rate tier.
# Sub-brand: (name, base_point_rate override or None)

CHAINS = [
    {
        "name": "Hilton",
        "loyalty_program": "Hilton Honors",
        "base_point_rate": "10",
        "point_type": "Hilton Honors Points",
        "tiers": [("Silver", "0.2", None), ("Gold", "0.8", None), ("Diamond", "1.0", None),
                  ("Diamond Reserve", "1.2", None)],
        "sub_brands": [("Conrad", None), ("DoubleTree", None), ("Embassy Suites", None), ("Hampton", None),
                       ("Hilton Garden Inn", None), ("Home2 Suites", "5"), ("Homewood Suites", "5"),
                       ("LivSmart Studios", "5"), ("Spark", "5"), ("Tru", "5"), ("Waldorf Astoria", None)],
        "current_tier": "Diamond",
    },
    {
        "name": "Marriott",
        "loyalty_program": "Marriott Bonvoy",
        "base_point_rate": "10",
        "point_type": "Marriott Bonvoy Points",
        "tiers": [("Silver", "0.1", None), ("Gold", "0.25", None), ("Platinum", "0.5", None),
                  ("Titanium", "0.75", None), ("Ambassador", "0.75", None)],
        "sub_brands": [("Courtyard", None), ("Element", "5"), ("JW Marriott", None), ("Moxy", None),
                       ("Residence Inn", "5"), ("Sheraton", None), ("St. Regis", None),
                       ("The Ritz-Carlton", None), ("TownePlace Suites", "5"), ("W Hotels", None),
                       ("Westin", None)],
        "current_tier": "Titanium",
    },
    {
        "name": "Hyatt",
        "loyalty_program": "World of Hyatt",
        "base_point_rate": "5",
        "point_type": "World of Hyatt Points",
        "tiers": [("Discoverist", "0.1", None), ("Explorist", "0.2", None), ("Globalist", "0.3", None)],
        "sub_brands": [("Alila", None), ("Andaz", None), ("Grand Hyatt", None), ("Hyatt Place", None),
                       ("Hyatt Regency", None), ("Park Hyatt", None), ("Hyatt Studios", "2.5")],
        "current_tier": "Globalist",
    },
    {
        "name": "IHG",
        "loyalty_program": "IHG One Rewards",
        "base_point_rate": "10",
        "point_type": "IHG One Rewards",
        "tiers": [("Silver", "0.2", None), ("Gold", "0.4", None), ("Platinum", "0.6", None),
                  ("Diamond", "1.0", None)],
        "sub_brands": [("Candlewood Suites", "5"), ("Staybridge Suites", "5")],
        "current_tier": "Diamond",
    },
    {
        "name": "GHA Discovery",
        "loyalty_program": "GHA Discovery",
        "base_point_rate": "4",
        "point_type": "Discovery Dollars",
        "tiers": [("Silver", None, "4"), ("Gold", None, "5"), ("Platinum", None, "6"), ("Titanium", None, "7")],
        "sub_brands": [],
        "current_tier": "Titanium",
    },
    {
        "name": "Accor",
        "loyalty_program": "ALL - Accor Live Limitless",
        "base_point_rate": "2.0833",  # 25 points per 12 EUR
        "point_type": "ALL - Accor Live Limitless",
        "tiers": [("Silver", "0.24", None), ("Gold", "0.48", None), ("Platinum", "0.76", None),
                  ("Diamond", "0.76", None)],
        "sub_brands": [("Adagio", "0.8333"), ("Adagio Access", "0.4167"), ("hotelF1", "0.4167"),
                       ("ibis", "1.0417"), ("ibis budget", "0.4167"), ("ibis Styles", "1.0417")],
        "current_tier": "Platinum",
    },
]

CREDIT_CARDS = [
    ("Amex Platinum", "1", "Membership Rewards"),
    ("Chase Sapphire Reserve", "4", "Ultimate Rewards"),
    ("Capital One Venture X", "2", "Capital One Miles"),
    ("Wells Fargo Autograph Journey", "5", "Wells Fargo Rewards"),
]

PORTALS = [
    ("Rakuten", "points", "Bilt"),
    ("TopCashback", "cashback", None),
    ("British Airways", "points", "Avios"),
]

OTA_AGENCIES = ["AMEX FHR", "AMEX THC", "Chase The Edit"]


def _dec(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _global_valuations() -> list[BenefitValuation]:
    rows = [BenefitValuation(is_eqn=True, value=Decimal(str(DEFAULT_EQN_VALUE)), value_type="dollar")]
    for cert_type, entry in CERT_TYPES.items():
        rows.append(BenefitValuation(cert_type=cert_type, value=Decimal(entry["points_value"]), value_type="points"))
    for benefit_type in BENEFIT_TYPES:
        rows.append(BenefitValuation(benefit_type=benefit_type, value=Decimal("0"), value_type="dollar"))
    return rows


async def seed_reference_data(db: AsyncSession) -> bool:
    """Insert the reference data into an empty database. Returns False when data already exists."""
    result = await db.execute(select(PointType).limit(1))
    if result.scalar_one_or_none():
        logger.info("Database already seeded. Skipping.")
        return False

    # ── Point types ──
    point_types = {
        name: PointType(name=name, category=category, cents_per_point=Decimal(cpp))
        for name, category, cpp in POINT_TYPES
    }
    db.add_all(point_types.values())

    # ── Chains, tiers, sub-brands, current status ──
    for chain_data in CHAINS:
        chain = HotelChain(
            name=chain_data["name"],
            loyalty_program=chain_data["loyalty_program"],
            base_point_rate=_dec(chain_data["base_point_rate"]),
            point_type=point_types[chain_data["point_type"]],
            sub_brands=[HotelChainSubBrand(name=n, base_point_rate=_dec(r)) for n, r in chain_data["sub_brands"]],
            elite_statuses=[
                EliteStatus(
                    name=name,
                    bonus_percentage=_dec(bonus),
                    fixed_rate=_dec(fixed),
                    is_fixed=fixed is not None,
                    tier_level=level,
                )
                for level, (name, bonus, fixed) in enumerate(chain_data["tiers"], start=1)
            ],
        )
        current = next(es for es in chain.elite_statuses if es.name == chain_data["current_tier"])
        chain.user_status = UserStatus(elite_status=current)
        db.add(chain)

    # ── Cards, portals, OTAs ──
    for name, rate, point_type in CREDIT_CARDS:
        db.add(CreditCard(name=name, reward_type="points", reward_rate=Decimal(rate),
                          point_type=point_types[point_type]))
    for name, reward_type, point_type in PORTALS:
        db.add(ShoppingPortal(name=name, reward_type=reward_type,
                              point_type=point_types[point_type] if point_type else None))
    db.add_all([OtaAgency(name=name) for name in OTA_AGENCIES])

    # ── Global benefit valuations ──
    db.add_all(_global_valuations())

    await db.commit()
    logger.info(
        f"Seeded {len(POINT_TYPES)} point types, {len(CHAINS)} hotel chains, {len(CREDIT_CARDS)} cards, "
        f"{len(PORTALS)} portals, {len(OTA_AGENCIES)} OTA agencies"
    )
    return True


async def seed(session_factory: async_sessionmaker = async_session_factory) -> bool:
    async with session_factory() as db:
        return await seed_reference_data(db)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
