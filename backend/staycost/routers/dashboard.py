"""Dashboard — totals across all bookings, priced with the net cost calculator."""

from collections import defaultdict
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staycost.database import get_db
from staycost.services.loaders import load_bookings
from staycost.services.net_cost import ZERO, calculate_net_cost, money
from staycost.services.valuations import get_all_valuations

router = APIRouter()


def _per_night(amount, nights: int) -> float | None:
    return float(money(amount / nights)) if nights else None


@router.get("/summary")
async def dashboard_summary(db: AsyncSession = Depends(get_db)):
    bookings = await load_bookings(db)
    valuations = await get_all_valuations(db)
    today = date.today()

    totals = defaultdict(lambda: ZERO)
    nights = 0
    points_earned = 0
    points_redeemed = 0
    certificates = 0
    by_chain: dict[int, dict] = {}
    upcoming = []

    for booking in bookings:
        breakdown = calculate_net_cost(booking, valuations)
        savings = (
            breakdown.portal_cashback + breakdown.card_reward
            + breakdown.loyalty_points_value + breakdown.promo_savings
        )
        totals["cash"] += breakdown.total_cost
        totals["portal_cashback"] += breakdown.portal_cashback
        totals["card_rewards"] += breakdown.card_reward
        totals["loyalty_points_value"] += breakdown.loyalty_points_value
        totals["promo_savings"] += breakdown.promo_savings
        totals["points_redeemed_value"] += breakdown.points_redeemed_value
        totals["certs_value"] += breakdown.certs_value
        totals["net_cost"] += breakdown.net_cost
        nights += booking.num_nights
        points_earned += booking.loyalty_points_earned or 0
        points_redeemed += booking.points_redeemed or 0
        certificates += len(booking.certificates)

        chain = by_chain.setdefault(booking.hotel_chain_id, {
            "hotel_chain_id": booking.hotel_chain_id,
            "hotel_chain": booking.hotel_chain.name if booking.hotel_chain else None,
            "bookings": 0,
            "nights": 0,
            "cash": ZERO,
            "savings": ZERO,
            "net_cost": ZERO,
        })
        chain["bookings"] += 1
        chain["nights"] += booking.num_nights
        chain["cash"] += breakdown.total_cost
        chain["savings"] += savings
        chain["net_cost"] += breakdown.net_cost

        if booking.check_in >= today:
            upcoming.append({
                "id": booking.id,
                "property_name": booking.property_name,
                "check_in": booking.check_in.isoformat(),
                "num_nights": booking.num_nights,
                "net_cost": float(breakdown.net_cost),
            })

    total_savings = (
        totals["portal_cashback"] + totals["card_rewards"]
        + totals["loyalty_points_value"] + totals["promo_savings"]
    )
    return {
        "booking_count": len(bookings),
        "total_nights": nights,
        "total_cash": float(totals["cash"]),
        "total_savings": float(total_savings),
        "total_net_cost": float(totals["net_cost"]),
        "avg_net_cost_per_night": _per_night(totals["net_cost"], nights),
        "savings": {
            "portal_cashback": float(totals["portal_cashback"]),
            "card_rewards": float(totals["card_rewards"]),
            "loyalty_points_value": float(totals["loyalty_points_value"]),
            "promo_savings": float(totals["promo_savings"]),
        },
        "points_earned": points_earned,
        "points_redeemed": points_redeemed,
        "points_redeemed_value": float(totals["points_redeemed_value"]),
        "certificates_used": certificates,
        "certs_value": float(totals["certs_value"]),
        "by_chain": [
            {
                **c,
                "cash": float(c["cash"]),
                "savings": float(c["savings"]),
                "net_cost": float(c["net_cost"]),
                "net_cost_per_night": _per_night(c["net_cost"], c["nights"]),
            }
            for c in sorted(by_chain.values(), key=lambda c: c["net_cost"], reverse=True)
        ],
        "upcoming": upcoming[:5],
    }
