from datetime import date
from decimal import Decimal

from staycost.models import (
    BenefitValuation,
    Booking,
    BookingCertificate,
    BookingPromotion,
    CreditCard,
    EliteStatus,
    HotelChain,
    PointType,
    Promotion,
    ShoppingPortal,
    UserStatus,
)
from staycost.services.net_cost import calculate_net_cost, net_cost, promotion_value


def _chain(cents_per_point="0.015", base_rate="5"):
    return HotelChain(
        id=1,
        name="Hyatt",
        base_point_rate=Decimal(base_rate),
        point_type=PointType(name="World of Hyatt", category="hotel", cents_per_point=Decimal(cents_per_point)),
    )


def _booking(**overrides):
    fields = dict(
        id=10,
        hotel_chain_id=1,
        hotel_chain=_chain(),
        property_name="Park Hyatt",
        check_in=date(2026, 5, 1),
        check_out=date(2026, 5, 4),
        num_nights=3,
        pretax_cost=Decimal("750"),
        tax_amount=Decimal("150"),
        total_cost=Decimal("900"),
        loyalty_points_earned=7500,
    )
    fields.update(overrides)
    return Booking(**fields)


def _full_booking():
    return _booking(
        shopping_portal=ShoppingPortal(name="TopCashback", reward_type="cashback"),
        portal_cashback_rate=Decimal("0.05"),
        portal_cashback_on_total=True,
        credit_card=CreditCard(
            name="Chase Sapphire Reserve",
            reward_type="points",
            reward_rate=Decimal("3"),
            point_type=PointType(name="Ultimate Rewards", category="transferable", cents_per_point=Decimal("0.02")),
        ),
    )


def test_full_breakdown():
    breakdown = calculate_net_cost(_full_booking())

    assert breakdown.portal_cashback == Decimal("45.00")
    assert breakdown.card_reward == Decimal("54.00")
    assert breakdown.loyalty_points_value == Decimal("112.50")
    assert breakdown.promo_savings == Decimal("0")
    assert breakdown.net_cost == Decimal("688.50")
    assert breakdown.net_cost_per_night == Decimal("229.50")
    assert net_cost(_full_booking()) == Decimal("688.50")


def test_breakdown_is_deterministic():
    booking = _full_booking()
    assert calculate_net_cost(booking) == calculate_net_cost(booking)
    assert booking.loyalty_points_earned == 7500


def test_portal_on_pretax_and_points_portal():
    cash = calculate_net_cost(_booking(
        shopping_portal=ShoppingPortal(name="TopCashback", reward_type="cashback"),
        portal_cashback_rate=Decimal("0.10"),
        portal_cashback_on_total=False,
    ))
    assert cash.portal_cashback == Decimal("75.00")

    points = calculate_net_cost(_booking(
        shopping_portal=ShoppingPortal(
            name="Rakuten",
            reward_type="points",
            point_type=PointType(name="Bilt", category="transferable", cents_per_point=Decimal("0.02")),
        ),
        portal_cashback_rate=Decimal("5"),
        portal_cashback_on_total=True,
    ))
    # 900 * 5 pts/$ * 2¢
    assert points.portal_cashback == Decimal("90.00")


def test_missing_inputs_count_as_zero():
    booking = _booking(hotel_chain=HotelChain(id=1, name="Indie"), loyalty_points_earned=None)
    breakdown = calculate_net_cost(booking)

    assert breakdown.portal_cashback == 0
    assert breakdown.card_reward == 0
    assert breakdown.loyalty_points_value == 0
    assert breakdown.net_cost == Decimal("900")
    assert breakdown.card_reward_calc.description == "No credit card linked to this booking."


def test_promotions_reduce_net_cost():
    promo = Promotion(id=5, name="Spring bonus", type="loyalty", value_type="fixed", value=Decimal("50"))
    booking = _full_booking()
    booking.booking_promotions.append(
        BookingPromotion(id=1, promotion_id=5, promotion=promo, applied_value=Decimal("50"), status="auto_applied")
    )

    breakdown = calculate_net_cost(booking)
    assert breakdown.promo_savings == Decimal("50.00")
    assert breakdown.net_cost == Decimal("638.50")
    assert breakdown.promotions[0].name == "Spring bonus"
    assert breakdown.promotions[0].detail.formula == "$50.00 = $50.00"


def test_certificates_and_redeemed_points_do_not_change_net_cost():
    valuations = [
        BenefitValuation(hotel_chain_id=None, cert_type="hyatt_cat1_4", value=Decimal("15000"), value_type="points"),
        BenefitValuation(hotel_chain_id=1, cert_type="hyatt_cat1_7", value=Decimal("400"), value_type="dollar"),
    ]
    booking = _booking(
        points_redeemed=20000,
        certificates=[BookingCertificate(cert_type="hyatt_cat1_4"), BookingCertificate(cert_type="hyatt_cat1_7")],
    )

    breakdown = calculate_net_cost(booking, valuations)
    # 15000 pts * 1.5¢ + $400
    assert breakdown.certs_value == Decimal("625.00")
    assert breakdown.points_redeemed_value == Decimal("300.00")
    assert breakdown.net_cost == Decimal("900") - Decimal("112.50")


def test_promotion_value_types():
    booking = _booking()
    fixed = Promotion(value_type="fixed", value=Decimal("25"))
    percentage = Promotion(value_type="percentage", value=Decimal("10"))
    multiplier = Promotion(value_type="points_multiplier", value=Decimal("2"))

    assert promotion_value(fixed, booking) == Decimal("25.00")
    assert promotion_value(percentage, booking) == Decimal("90.00")
    # 7500 extra points at 1.5¢
    assert promotion_value(multiplier, booking) == Decimal("112.50")


def test_multiplier_without_point_type_is_zero():
    booking = _booking(hotel_chain=HotelChain(id=1, name="Indie"))
    multiplier = Promotion(value_type="points_multiplier", value=Decimal("3"))
    assert promotion_value(multiplier, booking) == Decimal("0.00")


def test_fixed_points_priced_at_chain_point_value():
    bonus = Promotion(value_type="fixed_points", value=Decimal("2000"))
    # 2000 pts at 1.5¢
    assert promotion_value(bonus, _booking()) == Decimal("30.00")


def test_certificate_and_eqn_rewards_use_valuations():
    booking = _booking()
    cert = Promotion(value_type="certificate", value=Decimal("1"), cert_type="hyatt_cat1_4")
    eqns = Promotion(value_type="eqn", value=Decimal("2"))

    # Nothing configured: certificate falls back to 0, EQN to the $10 default
    assert promotion_value(cert, booking) == Decimal("0.00")
    assert promotion_value(eqns, booking) == Decimal("20.00")

    valuations = [
        BenefitValuation(hotel_chain_id=None, cert_type="hyatt_cat1_4", value=Decimal("15000"), value_type="points"),
        BenefitValuation(hotel_chain_id=1, is_eqn=True, value=Decimal("25"), value_type="dollar"),
    ]
    # 15000 pts at 1.5¢
    assert promotion_value(cert, booking, valuations) == Decimal("225.00")
    assert promotion_value(eqns, booking, valuations) == Decimal("50.00")


def test_loyalty_description_mentions_elite_bonus():
    chain = _chain()
    chain.user_status = UserStatus(
        elite_status=EliteStatus(name="Globalist", bonus_percentage=Decimal("0.3"), is_fixed=False)
    )
    breakdown = calculate_net_cost(_booking(hotel_chain=chain, loyalty_points_earned=4875))

    description = breakdown.loyalty_points_calc.description
    assert "3,750 base points" in description
    assert "30% bonus of 1,125 points" in description
    assert "Globalist" in description


def test_to_dict_is_json_ready():
    data = calculate_net_cost(_full_booking()).to_dict()
    assert data["net_cost"] == 688.5
    assert data["portal_cashback_calc"]["label"] == "Portal Cashback"
    assert data["certs_calc"] is None
