import os
import tempfile
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

# Settings are read at import time; point them at throwaway resources before staycost loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTO_SEED", "false")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "staycost-test-logs"))

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from staycost.database import Base, get_db  # noqa: E402
from staycost.main import app  # noqa: E402
from staycost.models import (  # noqa: E402
    CreditCard,
    EliteStatus,
    HotelChain,
    HotelChainSubBrand,
    OtaAgency,
    PointType,
    ShoppingPortal,
    UserStatus,
)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN itself
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def ref(session_factory):
    """Two chains, two cards, two portals and an OTA, committed and closed before the test runs."""
    async with session_factory() as session:
        hyatt_points = PointType(name="World of Hyatt", category="hotel", cents_per_point=Decimal("0.02"))
        marriott_points = PointType(name="Marriott Bonvoy", category="hotel", cents_per_point=Decimal("0.007"))
        ur = PointType(name="Ultimate Rewards", category="transferable", cents_per_point=Decimal("0.02"))
        bilt = PointType(name="Bilt", category="transferable", cents_per_point=Decimal("0.02"))

        hyatt = HotelChain(
            name="Hyatt",
            loyalty_program="World of Hyatt",
            base_point_rate=Decimal("5"),
            point_type=hyatt_points,
            sub_brands=[HotelChainSubBrand(name="Hyatt Studios", base_point_rate=Decimal("2.5"))],
            elite_statuses=[
                EliteStatus(name="Explorist", bonus_percentage=Decimal("0.2"), tier_level=2),
                EliteStatus(name="Globalist", bonus_percentage=Decimal("0.3"), tier_level=3),
            ],
        )
        marriott = HotelChain(
            name="Marriott",
            loyalty_program="Marriott Bonvoy",
            base_point_rate=Decimal("10"),
            point_type=marriott_points,
            sub_brands=[HotelChainSubBrand(name="Element", base_point_rate=Decimal("5"))],
            elite_statuses=[EliteStatus(name="Titanium", bonus_percentage=Decimal("0.75"), tier_level=4)],
        )
        hyatt.user_status = UserStatus(elite_status=hyatt.elite_statuses[1])

        csr = CreditCard(name="Chase Sapphire Reserve", reward_type="points", reward_rate=Decimal("3"), point_type=ur)
        amex = CreditCard(name="Amex Platinum", reward_type="points", reward_rate=Decimal("1"), point_type=ur)
        topcashback = ShoppingPortal(name="TopCashback", reward_type="cashback")
        rakuten = ShoppingPortal(name="Rakuten", reward_type="points", point_type=bilt)
        fhr = OtaAgency(name="AMEX FHR")

        session.add_all([hyatt, marriott, csr, amex, topcashback, rakuten, fhr])
        await session.commit()

        return SimpleNamespace(
            hyatt_points_id=hyatt_points.id,
            ur_id=ur.id,
            hyatt_id=hyatt.id,
            hyatt_studios_id=hyatt.sub_brands[0].id,
            explorist_id=hyatt.elite_statuses[0].id,
            globalist_id=hyatt.elite_statuses[1].id,
            marriott_id=marriott.id,
            element_id=marriott.sub_brands[0].id,
            titanium_id=marriott.elite_statuses[0].id,
            csr_id=csr.id,
            amex_id=amex.id,
            topcashback_id=topcashback.id,
            rakuten_id=rakuten.id,
            fhr_id=fhr.id,
        )


def booking_payload(chain_id: int, **overrides) -> dict:
    payload = {
        "hotel_chain_id": chain_id,
        "property_name": "Park Hyatt Chicago",
        "check_in": date(2026, 5, 1).isoformat(),
        "check_out": date(2026, 5, 4).isoformat(),
        "num_nights": 3,
        "pretax_cost": "750.00",
        "tax_amount": "150.00",
        "total_cost": "900.00",
    }
    payload.update(overrides)
    return payload
