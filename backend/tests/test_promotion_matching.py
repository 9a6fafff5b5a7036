from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from staycost.exceptions import NotFoundError
from staycost.models import (
    BenefitValuation,
    Booking,
    BookingPromotion,
    BookingPromotionStatus,
    CreditCard,
    HotelChain,
    HotelChainSubBrand,
    PointType,
    Promotion,
)
from staycost.services import promotion_matching
from staycost.services.promotion_matching import (
    calculate_matched_promotions,
    is_eligible,
    promotion_matcher,
)


def _booking(**overrides):
    fields = dict(
        id=1,
        hotel_chain_id=1,
        credit_card_id=None,
        shopping_portal_id=None,
        hotel_chain_sub_brand_id=None,
        check_in=date(2026, 6, 10),
        check_out=date(2026, 6, 12),
        num_nights=2,
        pretax_cost=Decimal("400"),
        total_cost=Decimal("480"),
        loyalty_points_earned=2000,
    )
    fields.update(overrides)
    return Booking(**fields)


def _promo(**overrides):
    fields = dict(id=1, name="Promo", type="loyalty", value_type="fixed", value=Decimal("20"), is_active=True)
    fields.update(overrides)
    return Promotion(**fields)


def test_chain_scope_never_crosses_chains():
    promo = _promo(hotel_chain_id=1)
    assert is_eligible(promo, _booking(hotel_chain_id=1))
    assert not is_eligible(promo, _booking(hotel_chain_id=2))


def test_unscoped_card_promotion_needs_a_card():
    promo = _promo(type="credit_card")
    assert is_eligible(promo, _booking(credit_card_id=7))
    assert not is_eligible(promo, _booking(credit_card_id=None))


def test_portal_promotion_scoped_to_portal():
    promo = _promo(type="portal", shopping_portal_id=3)
    assert is_eligible(promo, _booking(shopping_portal_id=3))
    assert not is_eligible(promo, _booking(shopping_portal_id=4))
    assert not is_eligible(promo, _booking())


def test_sub_brand_scope():
    promo = _promo(hotel_chain_sub_brand_id=9)
    assert is_eligible(promo, _booking(hotel_chain_sub_brand_id=9))
    assert not is_eligible(promo, _booking())


def test_date_window_is_inclusive_and_open_ended():
    window = _promo(start_date=date(2026, 6, 1), end_date=date(2026, 6, 10))
    assert is_eligible(window, _booking(check_in=date(2026, 6, 10)))
    assert is_eligible(window, _booking(check_in=date(2026, 6, 1)))
    assert not is_eligible(window, _booking(check_in=date(2026, 6, 11)))
    assert not is_eligible(window, _booking(check_in=date(2026, 5, 31)))
    assert is_eligible(_promo(start_date=date(2026, 1, 1)), _booking())
    assert is_eligible(_promo(end_date=date(2026, 12, 31)), _booking())


def test_min_spend_uses_total_cost():
    assert is_eligible(_promo(min_spend=Decimal("480")), _booking())
    assert not is_eligible(_promo(min_spend=Decimal("480.01")), _booking())


def test_inactive_never_matches():
    assert not is_eligible(_promo(is_active=False), _booking())


def test_min_nights():
    assert is_eligible(_promo(min_nights=2), _booking(num_nights=2))
    assert not is_eligible(_promo(min_nights=3), _booking(num_nights=2))


def test_excluded_sub_brands():
    promo = _promo(
        hotel_chain_id=1,
        excluded_sub_brands=[HotelChainSubBrand(id=4, hotel_chain_id=1, name="Element")],
    )
    assert not is_eligible(promo, _booking(hotel_chain_sub_brand_id=4))
    assert is_eligible(promo, _booking(hotel_chain_sub_brand_id=5))
    assert is_eligible(promo, _booking())


def test_certificate_reward_matches_with_valuation():
    booking = _booking(hotel_chain=HotelChain(id=1, name="Marriott"))
    promo = _promo(value_type="certificate", value=Decimal("2"), cert_type="marriott_35k")
    valuations = [BenefitValuation(hotel_chain_id=1, cert_type="marriott_35k", value=Decimal("150"), value_type="dollar")]

    matched = calculate_matched_promotions(booking, [promo], valuations)
    assert [(m.promotion_id, m.applied_value) for m in matched] == [(1, Decimal("300.00"))]


def test_calculate_matched_promotions_values_and_order():
    booking = _booking(credit_card_id=7)
    promos = [
        _promo(id=3, type="credit_card", value_type="percentage", value=Decimal("5")),
        _promo(id=2, type="portal"),
        _promo(id=1, value_type="fixed", value=Decimal("15")),
    ]

    matched = calculate_matched_promotions(booking, promos)
    assert [(m.promotion_id, m.applied_value) for m in matched] == [(1, Decimal("15.00")), (3, Decimal("24.00"))]


# ── Persistence ──


async def _setup(db, bookings=1):
    points = PointType(name="Bonvoy", category="hotel", cents_per_point=Decimal("0.007"))
    chain = HotelChain(name="Marriott", base_point_rate=Decimal("10"), point_type=points)
    card = CreditCard(name="Amex Platinum", reward_type="points", reward_rate=Decimal("1"))
    db.add_all([chain, card])
    await db.flush()

    created = []
    for i in range(bookings):
        booking = Booking(
            hotel_chain_id=chain.id,
            credit_card_id=card.id,
            property_name=f"Westin {i}",
            check_in=date(2026, 7, 1 + i),
            check_out=date(2026, 7, 3 + i),
            num_nights=2,
            pretax_cost=Decimal("400"),
            total_cost=Decimal("480"),
            loyalty_points_earned=4000,
        )
        db.add(booking)
        created.append(booking)

    fixed = Promotion(name="Amex $30 off", type="credit_card", value_type="fixed", value=Decimal("30"),
                      credit_card_id=card.id)
    double = Promotion(name="Bonvoy double points", type="loyalty", value_type="points_multiplier",
                       value=Decimal("2"), hotel_chain_id=chain.id)
    db.add_all([fixed, double])
    await db.flush()
    return created, fixed, double


async def _rows(db, booking_id):
    result = await db.execute(
        select(BookingPromotion).where(BookingPromotion.booking_id == booking_id).order_by(BookingPromotion.promotion_id)
    )
    return [(bp.promotion_id, bp.applied_value, bp.status) for bp in result.scalars().all()]


async def test_matching_is_idempotent(db):
    (booking,), fixed, double = await _setup(db)

    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    first = await _rows(db, booking.id)
    await promotion_matcher.match_promotions_for_booking(db, booking.id)

    assert first == await _rows(db, booking.id)
    assert first == [
        (fixed.id, Decimal("30.00"), BookingPromotionStatus.AUTO_APPLIED),
        (double.id, Decimal("28.00"), BookingPromotionStatus.AUTO_APPLIED),
    ]


async def test_verified_row_kept_while_matching_then_removed(db):
    (booking,), fixed, _ = await _setup(db)
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    bp = await db.scalar(select(BookingPromotion).where(BookingPromotion.promotion_id == fixed.id))
    bp.status = BookingPromotionStatus.VERIFIED
    await db.flush()

    fixed.value = Decimal("35")
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    assert (fixed.id, Decimal("35.00"), BookingPromotionStatus.VERIFIED) in await _rows(db, booking.id)

    fixed.min_spend = Decimal("1000")
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    assert fixed.id not in [row[0] for row in await _rows(db, booking.id)]


async def test_manual_row_kept_only_while_promotion_matches(db):
    (booking,), fixed, _ = await _setup(db)
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    bp = await db.scalar(select(BookingPromotion).where(BookingPromotion.promotion_id == fixed.id))
    bp.status = BookingPromotionStatus.MANUAL
    bp.applied_value = Decimal("12.34")
    await db.flush()

    # Revalued but still eligible: the user's value stands
    fixed.value = Decimal("99")
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    assert (fixed.id, Decimal("12.34"), BookingPromotionStatus.MANUAL) in await _rows(db, booking.id)

    booking.credit_card_id = None
    await db.flush()
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    assert fixed.id not in [row[0] for row in await _rows(db, booking.id)]


async def test_manual_row_dropped_when_promotion_deactivated(db):
    (booking,), fixed, _ = await _setup(db)
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    bp = await db.scalar(select(BookingPromotion).where(BookingPromotion.promotion_id == fixed.id))
    bp.status = BookingPromotionStatus.MANUAL
    await db.flush()

    fixed.is_active = False
    await promotion_matcher.match_promotions_for_booking(db, booking.id)
    assert fixed.id not in [row[0] for row in await _rows(db, booking.id)]


async def test_match_missing_booking(db):
    with pytest.raises(NotFoundError):
        await promotion_matcher.match_promotions_for_booking(db, 404)


async def test_reevaluation_isolates_failures(db, monkeypatch):
    bookings, fixed, double = await _setup(db, bookings=3)
    broken_id = bookings[1].id
    real = promotion_matching.calculate_matched_promotions

    def flaky(booking, promotions, valuations=()):
        if booking.id == broken_id:
            raise RuntimeError("boom")
        return real(booking, promotions, valuations)

    monkeypatch.setattr(promotion_matching, "calculate_matched_promotions", flaky)
    outcome = await promotion_matcher.reevaluate_bookings(db, [b.id for b in bookings])

    assert outcome.failed == [broken_id]
    assert sorted(outcome.evaluated) == sorted([bookings[0].id, bookings[2].id])
    assert len(await _rows(db, bookings[0].id)) == 2
    assert await _rows(db, broken_id) == []
    assert len(await _rows(db, bookings[2].id)) == 2


async def test_reevaluate_empty_list_is_noop(db):
    outcome = await promotion_matcher.reevaluate_bookings(db, [])
    assert outcome.evaluated == [] and outcome.failed == []
    assert outcome.to_dict() == {"evaluated": 0, "failed": []}
