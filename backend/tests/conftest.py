"""
Heights Ledger - Test Configuration
Shared fixtures and test configuration.
"""
import os
from datetime import timedelta
from decimal import Decimal
import pytest

# Set test environment before the application modules read settings
os.environ["APP_ENV"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_TO_FILE"] = "false"


TEST_USER_ID = "user-123"


# =========================
# Database Fixtures
# =========================

@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine with the ledger schema, one per test."""
    from tradeledger.db.database import build_engine, init_db

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    from tradeledger.db.database import build_session_maker
    return build_session_maker(db_engine)


@pytest.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


# =========================
# Service Fixtures
# =========================

@pytest.fixture
def fee_calculator():
    from tradeledger.core.trading.fees import FeeCalculator, FeeConfig
    return FeeCalculator(FeeConfig(rate=Decimal("0.001"), min_fee=Decimal("10"), max_fee=Decimal("1000")))


@pytest.fixture
def settlement_service(session_maker, fee_calculator):
    from tradeledger.core.trading.settlement import SettlementService
    return SettlementService(session_maker, fee_calculator=fee_calculator, currency="INR")


@pytest.fixture
def price_cache():
    from tradeledger.market.price_cache import PriceCache
    return PriceCache()


@pytest.fixture
def make_request():
    """Factory for settlement requests with sensible defaults."""
    from tradeledger.core.trading.settlement import SettlementRequest

    def _make(side="buy", quantity="1", price="100", symbol="BTC", asset_type="crypto", **kwargs):
        kwargs.setdefault("user_id", TEST_USER_ID)
        return SettlementRequest(
            symbol=symbol,
            asset_type=asset_type,
            side=side,
            quantity=Decimal(quantity),
            price=Decimal(price),
            **kwargs,
        )

    return _make


@pytest.fixture
async def funded_service(settlement_service):
    """Settlement service whose test user holds 100,000 in cash."""
    await settlement_service.deposit(TEST_USER_ID, Decimal("100000"))
    return settlement_service


# =========================
# Authentication Fixtures
# =========================

@pytest.fixture
def valid_access_token() -> str:
    from tradeledger.core.security import create_access_token
    return create_access_token(subject=TEST_USER_ID)


@pytest.fixture
def expired_access_token() -> str:
    from tradeledger.core.security import create_access_token
    return create_access_token(
        subject=TEST_USER_ID,
        expires_delta=timedelta(seconds=-1)  # Already expired
    )


# =========================
# API Fixtures
# =========================

@pytest.fixture
def app(session_maker, settlement_service, price_cache):
    """Application wired to the per-test database; lifespan is not run."""
    from tradeledger.main import create_application

    application = create_application()
    application.state.session_maker = session_maker
    application.state.price_cache = price_cache
    application.state.settlement_service = settlement_service
    return application


@pytest.fixture
async def client(app, valid_access_token):
    import httpx

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {valid_access_token}"},
    ) as client:
        yield client
