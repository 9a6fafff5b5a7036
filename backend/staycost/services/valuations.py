"""Benefit valuations — chain override → global default → hardcoded fallback."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staycost.data.catalog import BENEFIT_TYPES, CERT_TYPES, DEFAULT_EQN_VALUE, VALUATION_VALUE_TYPES
from staycost.exceptions import ValidationError
from staycost.models.rewards import BenefitValuation, HotelChain

logger = logging.getLogger(__name__)


class ValuationRow(Protocol):
    hotel_chain_id: int | None
    is_eqn: bool
    cert_type: str | None
    benefit_type: str | None
    value: Decimal | None
    value_type: str


@dataclass(frozen=True)
class BenefitKey:
    """Discriminator of a valuation row. Exactly one field identifies the benefit."""

    is_eqn: bool = False
    cert_type: str | None = None
    benefit_type: str | None = None

    def matches(self, row: ValuationRow) -> bool:
        return (
            bool(row.is_eqn) == self.is_eqn
            and row.cert_type == self.cert_type
            and row.benefit_type == self.benefit_type
        )

    def validate(self) -> None:
        set_count = sum([self.is_eqn, self.cert_type is not None, self.benefit_type is not None])
        if set_count != 1:
            raise ValidationError(
                "Exactly one of is_eqn, cert_type or benefit_type must identify a valuation"
            )
        if self.cert_type is not None and self.cert_type not in CERT_TYPES:
            raise ValidationError(f"Unknown certificate type: {self.cert_type}")
        if self.benefit_type is not None and self.benefit_type not in BENEFIT_TYPES:
            raise ValidationError(f"Unknown benefit type: {self.benefit_type}")


# ── Lookup outcomes at a single scope ──


@dataclass(frozen=True)
class Unset:
    """No row exists at this scope."""


@dataclass(frozen=True)
class Deleted:
    """A row exists but its value was cleared; resolution falls through."""


@dataclass(frozen=True)
class Explicit:
    value: Decimal
    value_type: str


LookupOutcome = Union[Unset, Deleted, Explicit]


@dataclass(frozen=True)
class ResolvedValuation:
    value: Decimal
    value_type: str
    source: str  # chain | global | fallback


def lookup_valuation(
    valuations: Iterable[ValuationRow], hotel_chain_id: int | None, key: BenefitKey
) -> LookupOutcome:
    """Classify the row for (hotel_chain_id, key); hotel_chain_id None means the global scope."""
    found_deleted = False
    for row in valuations:
        if row.hotel_chain_id != hotel_chain_id or not key.matches(row):
            continue
        if row.value is None:
            found_deleted = True
            continue
        return Explicit(value=Decimal(str(row.value)), value_type=row.value_type)
    return Deleted() if found_deleted else Unset()


def resolve_valuation(
    valuations: Iterable[ValuationRow],
    hotel_chain_id: int | None = None,
    is_eqn: bool = False,
    cert_type: str | None = None,
    benefit_type: str | None = None,
) -> ResolvedValuation:
    """Resolve a benefit's worth. Never returns a null value."""
    rows = list(valuations)
    key = BenefitKey(is_eqn=is_eqn, cert_type=cert_type, benefit_type=benefit_type)

    if hotel_chain_id is not None:
        outcome = lookup_valuation(rows, hotel_chain_id, key)
        if isinstance(outcome, Explicit):
            return ResolvedValuation(outcome.value, outcome.value_type, "chain")

    outcome = lookup_valuation(rows, None, key)
    if isinstance(outcome, Explicit):
        return ResolvedValuation(outcome.value, outcome.value_type, "global")

    if is_eqn:
        return ResolvedValuation(Decimal(str(DEFAULT_EQN_VALUE)), "dollar", "fallback")
    return ResolvedValuation(Decimal("0"), "dollar", "fallback")


async def get_all_valuations(db: AsyncSession) -> list[BenefitValuation]:
    """Fetch the full valuation snapshot once; callers reuse it across resolutions."""
    result = await db.execute(select(BenefitValuation).order_by(BenefitValuation.id))
    return list(result.scalars().all())


async def save_valuations(db: AsyncSession, items: list[dict]) -> int:
    """Bulk upsert valuation rows. A null value clears an existing row instead of deleting it.

    Returns the number of rows touched. Does not commit.
    """
    existing = await get_all_valuations(db)
    chain_ids = set((await db.execute(select(HotelChain.id))).scalars().all())
    touched = 0

    for item in items:
        hotel_chain_id = item.get("hotel_chain_id")
        key = BenefitKey(
            is_eqn=bool(item.get("is_eqn", False)),
            cert_type=item.get("cert_type") or None,
            benefit_type=item.get("benefit_type") or None,
        )
        key.validate()
        if hotel_chain_id is not None and hotel_chain_id not in chain_ids:
            raise ValidationError(f"Hotel chain {hotel_chain_id} not found")

        value = item.get("value")
        value_type = item.get("value_type") or "dollar"
        if value_type not in VALUATION_VALUE_TYPES:
            raise ValidationError(f"Invalid value_type: {value_type}")

        row = next(
            (v for v in existing if v.hotel_chain_id == hotel_chain_id and key.matches(v)),
            None,
        )

        if value is None:
            if row is not None and row.value is not None:
                row.value = None
                touched += 1
            continue

        if row is not None:
            row.value = Decimal(str(value))
            row.value_type = value_type
        else:
            row = BenefitValuation(
                hotel_chain_id=hotel_chain_id,
                is_eqn=key.is_eqn,
                cert_type=key.cert_type,
                benefit_type=key.benefit_type,
                value=Decimal(str(value)),
                value_type=value_type,
            )
            db.add(row)
            existing.append(row)
        touched += 1

    await db.flush()
    logger.info(f"Saved benefit valuations: {touched} rows changed")
    return touched
