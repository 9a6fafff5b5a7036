from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from staycost.exceptions import NotFoundError
from staycost.models import Booking, EliteStatus, HotelChain, HotelChainSubBrand, UserStatus
from staycost.services.loyalty import calculate_points, effective_base_rate, loyalty_service


def test_base_rate_only():
    assert calculate_points(Decimal("750"), Decimal("5")) == 3750


def test_percentage_tier_adds_bonus():
    globalist = EliteStatus(name="Globalist", bonus_percentage=Decimal("0.3"), is_fixed=False)
    assert calculate_points(Decimal("750"), Decimal("5"), globalist) == 4875


def test_fixed_tier_replaces_base_rate():
    titanium = EliteStatus(name="Titanium", fixed_rate=Decimal("7"), is_fixed=True)
    assert calculate_points(Decimal("750"), Decimal("4"), titanium) == 5250
    assert calculate_points(Decimal("750"), None, titanium) == 5250


def test_no_rate_earns_nothing():
    assert calculate_points(Decimal("750"), None) == 0
    assert calculate_points(Decimal("750"), None, EliteStatus(name="Gold", bonus_percentage=Decimal("0.4"))) == 0


def test_rounds_half_up():
    assert calculate_points(Decimal("100.10"), Decimal("5")) == 501
    assert calculate_points(Decimal("100.09"), Decimal("5")) == 500


def test_sub_brand_rate_overrides_chain():
    chain = HotelChain(name="Marriott", base_point_rate=Decimal("10"))
    assert effective_base_rate(chain, HotelChainSubBrand(name="Element", base_point_rate=Decimal("5"))) == 5
    assert effective_base_rate(chain, HotelChainSubBrand(name="Westin")) == 10
    assert effective_base_rate(chain, None) == 10


async def _chain_with_bookings(db):
    globalist = EliteStatus(name="Globalist", bonus_percentage=Decimal("0.3"), tier_level=3)
    studios = HotelChainSubBrand(name="Hyatt Studios", base_point_rate=Decimal("2.5"))
    chain = HotelChain(name="Hyatt", base_point_rate=Decimal("5"), elite_statuses=[globalist], sub_brands=[studios])
    chain.user_status = UserStatus(elite_status=globalist)
    db.add(chain)
    await db.flush()

    def booking(**fields):
        return Booking(
            hotel_chain_id=chain.id,
            property_name="Hyatt",
            check_in=date(2026, 3, 1),
            check_out=date(2026, 3, 2),
            num_nights=1,
            pretax_cost=Decimal("100"),
            total_cost=Decimal("120"),
            **fields,
        )

    auto = booking(loyalty_points_earned=0, loyalty_points_manual=False)
    studio = booking(hotel_chain_sub_brand_id=studios.id, loyalty_points_earned=0, loyalty_points_manual=False)
    manual = booking(loyalty_points_earned=12345, loyalty_points_manual=True)
    db.add_all([auto, studio, manual])
    await db.flush()
    return chain, auto, studio, manual


async def test_recalculation_skips_manual_bookings(db):
    chain, auto, studio, manual = await _chain_with_bookings(db)

    outcome = await loyalty_service.recalculate_loyalty_for_hotel_chain(db, chain.id)

    assert sorted(outcome.updated) == sorted([auto.id, studio.id])
    assert outcome.skipped_manual == [manual.id]
    assert outcome.reevaluation.failed == []

    points = dict((await db.execute(select(Booking.id, Booking.loyalty_points_earned))).all())
    assert points[auto.id] == 650  # 100 * 5 * 1.3
    assert points[studio.id] == 325  # 100 * 2.5 * 1.3
    assert points[manual.id] == 12345


async def test_recalculation_unknown_chain(db):
    with pytest.raises(NotFoundError):
        await loyalty_service.recalculate_loyalty_for_hotel_chain(db, 4242)
