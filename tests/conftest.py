"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import os
import sys
from contextlib import asynccontextmanager
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables before importing app modules
os.environ.setdefault('RUNTIME_ENVIRONMENT', 'TEST')
os.environ.setdefault('CURRENCY', 'INR')
os.environ.setdefault('DEFAULT_DELIVERY_CHARGE', '50')
os.environ.setdefault('FREE_DELIVERY_THRESHOLD', '1500')
os.environ.setdefault('PROMO_DEBOUNCE_MS', '500')
os.environ.setdefault('PROMO_MIN_LENGTH', '3')
os.environ.setdefault('PROMO_ERROR_MIN_LENGTH', '6')
os.environ.setdefault('CART_MESSAGE_MAX_LENGTH', '25')
os.environ.setdefault('DEAL_QUANTITY_LIMIT', '1')
os.environ.setdefault('DUPLICATE_ADD_POLICY', 'reject')
os.environ.setdefault('DB_URL', 'sqlite+aiosqlite:///:memory:')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from db import create_db_and_tables
from enums.discount_type import DiscountType
from exceptions.promo import InvalidPromoException
from models.cartItem import CartItemDTO
from models.combo import ComboSelectionDTO
from models.delivery_slot import DeliverySlotDTO
from models.product import ProductDTO, VariantDTO, FlavorDTO
from models.promo import PromoValidationResultDTO
from services.cart import CartService
from utils.cart_persistence_adapters import InMemoryCartPersistenceAdapter
from utils.promo_validation_adapters import PromoValidationAdapter


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool
    )

    await create_db_and_tables(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Create test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_factory(test_engine):
    """Session factory for adapters, bound to the test engine."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    @asynccontextmanager
    async def factory():
        async with async_session_maker() as session:
            yield session

    return factory


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture
def cake():
    """Chocolate truffle cake, base price 800."""
    return ProductDTO(id=42, name="Chocolate Truffle Cake", base_price=800.0, base_weight="500g", slug="chocolate-truffle")


@pytest.fixture
def variant_1kg():
    return VariantDTO(id=7, weight="1kg", price=800.0, discounted_price=750.0)


@pytest.fixture
def candle_combo():
    """Candle add-on: list price 100, 20% off -> 80."""
    return ComboSelectionDTO(
        add_on_id=501, name="Candle Set", category="Candles",
        price=100.0, discounted_price=80.0, discount_percentage=20, quantity=3
    )


@pytest.fixture
def make_item(cake):
    """Factory for cart lines, defaults to one plain cake."""
    def _make_item(**overrides) -> CartItemDTO:
        data = {"product": cake, "quantity": 1}
        data.update(overrides)
        return CartItemDTO(**data)
    return _make_item


@pytest.fixture
def make_slot():
    def _make_slot(day: date, start_time: str, end_time: str | None = None) -> DeliverySlotDTO:
        return DeliverySlotDTO(delivery_date=day, start_time=start_time, end_time=end_time)
    return _make_slot


@pytest.fixture
def make_deal(make_item):
    def _make_deal(deal_id: int = 1, deal_price: float = 1.0, deal_threshold: float | None = None, **overrides):
        deal_product = ProductDTO(id=900 + deal_id, name=f"Deal Pastry {deal_id}", base_price=150.0)
        return make_item(
            product=deal_product,
            is_deal_item=True,
            deal_id=deal_id,
            deal_price=deal_price,
            deal_threshold=deal_threshold,
            **overrides
        )
    return _make_deal


@pytest.fixture
def vanilla():
    return FlavorDTO(id=3, name="Vanilla")


# ============================================================================
# Collaborator Fixtures
# ============================================================================

class StubPromoValidator(PromoValidationAdapter):
    """Promo validator answering from a fixed table of codes."""

    def __init__(self, codes: dict[str, PromoValidationResultDTO] | None = None):
        self.codes = codes or {}
        self.calls: list[tuple[str, float]] = []

    async def validate(self, code: str, subtotal: float) -> PromoValidationResultDTO:
        self.calls.append((code, subtotal))
        if code not in self.codes:
            raise InvalidPromoException("Invalid promo code", code=code)
        return self.codes[code]


@pytest.fixture
def promo_validator():
    return StubPromoValidator({
        "SAVE10": PromoValidationResultDTO(
            promo_code="SAVE10", description="10% off", discount_amount=120.0,
            discount_type=DiscountType.PERCENTAGE, discount_value=10
        ),
        "FLAT200": PromoValidationResultDTO(
            promo_code="FLAT200", description="200 off", discount_amount=200.0,
            discount_type=DiscountType.FLAT, discount_value=200
        ),
    })


@pytest.fixture
def persistence():
    return InMemoryCartPersistenceAdapter()


@pytest.fixture
def cart_service(persistence, promo_validator):
    return CartService("cart-test", persistence, promo_validator)
