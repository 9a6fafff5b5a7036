"""Net cost calculator — one pure implementation shared by matching and display.

The promotion matcher stores applied values computed by ``promotion_value``;
the booking endpoints build the breakdown with ``calculate_net_cost``. Both go
through this module so stored sums and displayed totals agree.

All arithmetic is Decimal. A missing number (no point type, no rate) counts
as zero so a breakdown can always be produced.
"""

from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from staycost.data.catalog import cert_type_label
from staycost.services.valuations import ValuationRow, resolve_valuation

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_dollars(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def format_number(value: Decimal) -> str:
    return format(value.normalize(), "f")


def format_cents(dollars_per_point: Decimal) -> str:
    return f"{format_number(dollars_per_point * 100)}¢"


def format_points(points: Any) -> str:
    return f"{int(points or 0):,}"


@dataclass(frozen=True)
class CalculationDetail:
    label: str
    formula: str
    description: str


@dataclass(frozen=True)
class PromotionLine:
    promotion_id: int | None
    booking_promotion_id: int | None
    name: str
    status: str | None
    applied_value: Decimal
    detail: CalculationDetail


@dataclass(frozen=True)
class NetCostBreakdown:
    total_cost: Decimal
    pretax_cost: Decimal
    portal_cashback: Decimal
    portal_cashback_calc: CalculationDetail
    card_reward: Decimal
    card_reward_calc: CalculationDetail
    loyalty_points_value: Decimal
    loyalty_points_calc: CalculationDetail
    promo_savings: Decimal
    promotions: list[PromotionLine] = field(default_factory=list)
    points_redeemed_value: Decimal = ZERO
    points_redeemed_calc: CalculationDetail | None = None
    certs_value: Decimal = ZERO
    certs_calc: CalculationDetail | None = None
    net_cost: Decimal = ZERO
    net_cost_per_night: Decimal | None = None

    def to_dict(self) -> dict:
        return _jsonable(asdict(self))


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_jsonable(v) for v in obj]
    return obj


# ── Shared pieces ──


def _point_value(point_type) -> Decimal:
    return to_decimal(point_type.cents_per_point) if point_type is not None else ZERO


def chain_point_value(booking) -> Decimal:
    chain = booking.hotel_chain
    return _point_value(chain.point_type) if chain is not None else ZERO


def _resolved_dollars(resolved, booking) -> Decimal:
    if resolved.value_type == "points":
        return resolved.value * chain_point_value(booking)
    return resolved.value


def reward_unit_value(promotion, booking, valuations: Iterable[ValuationRow] = ()) -> Decimal:
    """Dollar worth of one certificate or EQN awarded by a promotion."""
    if promotion.value_type == "certificate":
        resolved = resolve_valuation(valuations, hotel_chain_id=booking.hotel_chain_id, cert_type=promotion.cert_type)
    elif promotion.value_type == "eqn":
        resolved = resolve_valuation(valuations, hotel_chain_id=booking.hotel_chain_id, is_eqn=True)
    else:
        return ZERO
    return _resolved_dollars(resolved, booking)


def promotion_value(promotion, booking, valuations: Iterable[ValuationRow] = ()) -> Decimal:
    """Dollar contribution of a promotion to a booking, rounded to cents."""
    value = to_decimal(promotion.value)
    total_cost = to_decimal(booking.total_cost)

    if promotion.value_type == "fixed":
        amount = value
    elif promotion.value_type == "percentage":
        amount = value / 100 * total_cost
    elif promotion.value_type == "points_multiplier":
        extra_points = to_decimal(booking.loyalty_points_earned) * (value - 1)
        amount = max(extra_points, ZERO) * chain_point_value(booking)
    elif promotion.value_type == "fixed_points":
        amount = value * chain_point_value(booking)
    elif promotion.value_type in ("certificate", "eqn"):
        # value is the number of certificates or EQNs awarded
        amount = value * reward_unit_value(promotion, booking, valuations)
    else:
        amount = ZERO
    return money(amount)


def describe_promotion(
    promotion, booking, applied_value: Decimal, valuations: Iterable[ValuationRow] = ()
) -> CalculationDetail:
    value = to_decimal(promotion.value)
    total_cost = to_decimal(booking.total_cost)

    if promotion.value_type == "percentage":
        formula = f"{format_dollars(total_cost)} (total cost) × {format_number(value)}% = {format_dollars(applied_value)}"
        description = f"This promotion offers a {format_number(value)}% discount on the total cost of the booking."
    elif promotion.value_type == "fixed":
        formula = f"{format_dollars(value)} = {format_dollars(applied_value)}"
        description = f"This is a fixed-value promotion of {format_dollars(value)}."
    elif promotion.value_type == "points_multiplier":
        cpp = chain_point_value(booking)
        formula = (
            f"{format_points(booking.loyalty_points_earned)} pts × ({format_number(value)} - 1) × "
            f"{format_cents(cpp)} = {format_dollars(applied_value)}"
        )
        description = (
            f"This promotion is a {format_number(value)}x multiplier on earned loyalty points. "
            f"We value these points at {format_cents(cpp)} each."
        )
    elif promotion.value_type == "fixed_points":
        cpp = chain_point_value(booking)
        formula = f"{format_points(value)} pts × {format_cents(cpp)} = {format_dollars(applied_value)}"
        description = (
            f"This promotion awards {format_points(value)} bonus points. "
            f"We value these points at {format_cents(cpp)} each."
        )
    elif promotion.value_type in ("certificate", "eqn"):
        unit = money(reward_unit_value(promotion, booking, valuations))
        if promotion.value_type == "certificate":
            reward = f"{cert_type_label(promotion.cert_type)} certificate(s)"
        else:
            reward = "elite qualifying night(s)"
        formula = f"{format_number(value)} × {format_dollars(unit)} = {format_dollars(applied_value)}"
        description = (
            f"This promotion awards {format_number(value)} {reward}, each valued at {format_dollars(unit)} "
            f"from your benefit valuations."
        )
    else:
        formula = format_dollars(applied_value)
        description = "Manually applied promotion value."
    return CalculationDetail(label="Promotion", formula=formula, description=description)


# ── Components ──


def _portal_cashback(booking, total_cost: Decimal, pretax_cost: Decimal) -> tuple[Decimal, CalculationDetail]:
    portal = booking.shopping_portal
    if portal is None:
        return ZERO, CalculationDetail(
            label="Portal Cashback", formula=format_dollars(ZERO), description="Not booked through a shopping portal."
        )

    on_total = bool(booking.portal_cashback_on_total)
    basis = total_cost if on_total else pretax_cost
    basis_label = "total cost" if on_total else "pre-tax cost"
    rate = to_decimal(booking.portal_cashback_rate)

    if portal.reward_type == "points":
        cpp = _point_value(portal.point_type)
        amount = money(rate * basis * cpp)
        point_name = portal.point_type.name if portal.point_type is not None else "points"
        formula = (
            f"{format_dollars(basis)} ({basis_label}) × {format_number(rate)} pts/$ × "
            f"{format_cents(cpp)} = {format_dollars(amount)}"
        )
        description = (
            f"{portal.name} offers {format_number(rate)} {point_name} per dollar based on the {basis_label}. "
            f"We value these points at {format_cents(cpp)} each."
        )
    else:
        amount = money(rate * basis)
        pct = format_number((rate * 100).quantize(Decimal("0.01")))
        formula = f"{format_dollars(basis)} ({basis_label}) × {pct}% = {format_dollars(amount)}"
        description = f"{portal.name} offers a {pct}% cashback bonus based on the {basis_label}."

    return amount, CalculationDetail(label="Portal Cashback", formula=formula, description=description)


def _card_reward(booking, total_cost: Decimal) -> tuple[Decimal, CalculationDetail]:
    card = booking.credit_card
    if card is None:
        return ZERO, CalculationDetail(
            label="Card Reward", formula=format_dollars(ZERO), description="No credit card linked to this booking."
        )

    rate = to_decimal(card.reward_rate)
    cpp = _point_value(card.point_type)
    amount = money(total_cost * rate * cpp)
    point_name = card.point_type.name if card.point_type is not None else "points"
    return amount, CalculationDetail(
        label="Card Reward",
        formula=f"{format_dollars(total_cost)} (total cost) × {format_number(rate)}x × {format_cents(cpp)} = {format_dollars(amount)}",
        description=(
            f"The {card.name} earns {format_number(rate)}x {point_name} per dollar spent on the total cost "
            f"of the booking. We value {point_name} at {format_cents(cpp)} each."
        ),
    )


def _loyalty_points(booking, pretax_cost: Decimal) -> tuple[Decimal, CalculationDetail]:
    chain = booking.hotel_chain
    points = to_decimal(booking.loyalty_points_earned)
    cpp = chain_point_value(booking)
    amount = money(points * cpp)
    point_name = chain.point_type.name if chain is not None and chain.point_type is not None else "points"

    description = (
        f"You earned {format_points(booking.loyalty_points_earned)} {point_name} for this stay. "
        f"Loyalty points are typically earned on the pre-tax cost only. "
        f"We value these points at {format_cents(cpp)} each."
    )
    user_status = chain.user_status if chain is not None else None
    elite = user_status.elite_status if user_status is not None else None
    if elite is not None and not booking.loyalty_points_manual:
        if elite.is_fixed and elite.fixed_rate is not None:
            description += (
                f" This was calculated as a fixed rate of {format_number(to_decimal(elite.fixed_rate))} points "
                f"per dollar of the pre-tax cost for your {elite.name} status."
            )
        elif elite.bonus_percentage is not None and chain.base_point_rate is not None:
            base_rate = to_decimal(chain.base_point_rate)
            bonus = to_decimal(elite.bonus_percentage)
            base_points = (pretax_cost * base_rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            bonus_points = (base_points * bonus).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            description += (
                f" This includes {format_points(base_points)} base points ({format_number(base_rate)}x on "
                f"pre-tax cost) and a {format_number(bonus * 100)}% bonus of {format_points(bonus_points)} "
                f"points for your {elite.name} status."
            )

    return amount, CalculationDetail(
        label="Loyalty Points Value",
        formula=f"{format_points(booking.loyalty_points_earned)} pts × {format_cents(cpp)} = {format_dollars(amount)}",
        description=description,
    )


def _points_redeemed(booking) -> tuple[Decimal, CalculationDetail | None]:
    cpp = chain_point_value(booking)
    amount = money(to_decimal(booking.points_redeemed) * cpp)
    if not booking.points_redeemed:
        return amount, None
    return amount, CalculationDetail(
        label="Award Points (value)",
        formula=f"{format_points(booking.points_redeemed)} pts × {format_cents(cpp)} = {format_dollars(amount)}",
        description=(
            f"You redeemed {format_points(booking.points_redeemed)} points for this stay. Their equivalent "
            f"cash value based on our valuation is {format_dollars(amount)}."
        ),
    )


def _certificates(booking, valuations: list[ValuationRow]) -> tuple[Decimal, CalculationDetail | None]:
    certificates = list(booking.certificates or [])
    if not certificates:
        return ZERO, None

    cpp = chain_point_value(booking)
    total = ZERO
    parts = []
    for cert in certificates:
        resolved = resolve_valuation(valuations, hotel_chain_id=booking.hotel_chain_id, cert_type=cert.cert_type)
        if resolved.value_type == "points":
            total += resolved.value * cpp
            parts.append(f"{format_points(resolved.value)} pts × {format_cents(cpp)}")
        else:
            total += resolved.value
            parts.append(format_dollars(resolved.value))
    total = money(total)

    labels = ", ".join(cert_type_label(c.cert_type) for c in certificates)
    return total, CalculationDetail(
        label="Certificates (value)",
        formula=f"{' + '.join(parts)} = {format_dollars(total)}",
        description=(
            f"You used {len(certificates)} certificate(s): {labels}. Each is valued from your benefit "
            f"valuations for this chain, falling back to the global default."
        ),
    )


def _promotions(booking, valuations: list[ValuationRow]) -> list[PromotionLine]:
    lines = []
    for bp in booking.booking_promotions or []:
        applied = money(to_decimal(bp.applied_value))
        promotion = bp.promotion
        detail = describe_promotion(promotion, booking, applied, valuations) if promotion is not None else CalculationDetail(
            label="Promotion", formula=format_dollars(applied), description="Promotion no longer exists."
        )
        lines.append(
            PromotionLine(
                promotion_id=bp.promotion_id,
                booking_promotion_id=bp.id,
                name=promotion.name if promotion is not None else "Promotion",
                status=bp.status,
                applied_value=applied,
                detail=detail,
            )
        )
    return lines


def calculate_net_cost(booking, valuations: Iterable[ValuationRow] = ()) -> NetCostBreakdown:
    """Net cost and itemized breakdown for a booking with its reward data joined.

    Redeemed points and certificates are reported for display only; they are
    non-cash payment and do not change the net cost.
    """
    valuation_rows = list(valuations)
    total_cost = to_decimal(booking.total_cost)
    pretax_cost = to_decimal(booking.pretax_cost)

    portal_cashback, portal_calc = _portal_cashback(booking, total_cost, pretax_cost)
    card_reward, card_calc = _card_reward(booking, total_cost)
    loyalty_value, loyalty_calc = _loyalty_points(booking, pretax_cost)
    promotions = _promotions(booking, valuation_rows)
    promo_savings = sum((p.applied_value for p in promotions), ZERO)
    points_redeemed_value, points_redeemed_calc = _points_redeemed(booking)
    certs_value, certs_calc = _certificates(booking, valuation_rows)

    net = total_cost - portal_cashback - card_reward - loyalty_value - promo_savings
    per_night = None
    if booking.num_nights:
        per_night = money(net / Decimal(booking.num_nights))

    return NetCostBreakdown(
        total_cost=total_cost,
        pretax_cost=pretax_cost,
        portal_cashback=portal_cashback,
        portal_cashback_calc=portal_calc,
        card_reward=card_reward,
        card_reward_calc=card_calc,
        loyalty_points_value=loyalty_value,
        loyalty_points_calc=loyalty_calc,
        promo_savings=promo_savings,
        promotions=promotions,
        points_redeemed_value=points_redeemed_value,
        points_redeemed_calc=points_redeemed_calc,
        certs_value=certs_value,
        certs_calc=certs_calc,
        net_cost=net,
        net_cost_per_night=per_night,
    )


def net_cost(booking, valuations: Iterable[ValuationRow] = ()) -> Decimal:
    return calculate_net_cost(booking, valuations).net_cost
