"""Test configuration and fixtures"""

from decimal import Decimal
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from uuid import uuid4

from app.main import app
from app.config import get_settings
from app.database import Base, get_db
from app.models.user import User, UserRole
from app.models.menu import Restaurant, MenuItem
from app.models.address import Address
from app.schemas.order import OrderCreate, OrderItemCreate
from app.services.gateway import MockPaymentGateway, get_payment_gateway
from app.services.orders import OrderService
from app.services.payments import PaymentService
from app.api.auth import create_access_token


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def settings():
    return get_settings()


async def _make_user(db, email, full_name, role, phone=None):
    user = User(
        id=uuid4(),
        email=email,
        full_name=full_name,
        phone=phone,
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def customer(test_db):
    return await _make_user(test_db, "asha@example.com", "Asha Rao", UserRole.CUSTOMER, "+919800000001")


@pytest.fixture
async def other_customer(test_db):
    return await _make_user(test_db, "vikram@example.com", "Vikram Shah", UserRole.CUSTOMER)


@pytest.fixture
async def restaurant_owner(test_db):
    return await _make_user(test_db, "spice@example.com", "Spice Route", UserRole.RESTAURANT)


@pytest.fixture
async def other_owner(test_db):
    return await _make_user(test_db, "dosa@example.com", "Dosa Corner", UserRole.RESTAURANT)


@pytest.fixture
async def delivery_partner(test_db):
    return await _make_user(test_db, "ravi@example.com", "Ravi Kumar", UserRole.DELIVERY_PARTNER)


@pytest.fixture
async def admin(test_db):
    return await _make_user(test_db, "admin@example.com", "Admin User", UserRole.ADMIN)


@pytest.fixture
async def restaurant(test_db, restaurant_owner):
    """Open restaurant with a ₹200 minimum order and ₹30 delivery fee"""
    restaurant = Restaurant(
        id=uuid4(),
        owner_id=restaurant_owner.id,
        name="Spice Route",
        cuisine="North Indian",
        city="Bengaluru",
        is_open=True,
        is_active=True,
        min_order=Decimal("200.00"),
        delivery_fee=Decimal("30.00"),
    )
    test_db.add(restaurant)
    await test_db.commit()
    return restaurant


@pytest.fixture
async def other_restaurant(test_db, other_owner):
    restaurant = Restaurant(
        id=uuid4(),
        owner_id=other_owner.id,
        name="Dosa Corner",
        cuisine="South Indian",
        city="Bengaluru",
        is_open=True,
        is_active=True,
        min_order=Decimal("100.00"),
        delivery_fee=Decimal("20.00"),
    )
    test_db.add(restaurant)
    await test_db.commit()
    return restaurant


@pytest.fixture
async def menu_items(test_db, restaurant, other_restaurant):
    """Biryani (available), Paneer Tikka (unavailable), and a Dosa from another restaurant"""
    items = {
        "biryani": MenuItem(
            id=uuid4(),
            restaurant_id=restaurant.id,
            name="Chicken Biryani",
            description="Hyderabadi dum biryani",
            price=Decimal("299.00"),
            category="Mains",
            is_available=True,
            is_veg=False,
        ),
        "paneer": MenuItem(
            id=uuid4(),
            restaurant_id=restaurant.id,
            name="Paneer Tikka",
            description="Chargrilled cottage cheese",
            price=Decimal("249.00"),
            category="Starters",
            is_available=False,
            is_veg=True,
        ),
        "lassi": MenuItem(
            id=uuid4(),
            restaurant_id=restaurant.id,
            name="Sweet Lassi",
            price=Decimal("79.50"),
            category="Drinks",
            is_available=True,
            is_veg=True,
        ),
        "dosa": MenuItem(
            id=uuid4(),
            restaurant_id=other_restaurant.id,
            name="Masala Dosa",
            price=Decimal("120.00"),
            category="Mains",
            is_available=True,
            is_veg=True,
        ),
    }
    for item in items.values():
        test_db.add(item)

    await test_db.commit()
    return items


@pytest.fixture
async def address(test_db, customer):
    address = Address(
        id=uuid4(),
        user_id=customer.id,
        street="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        pincode="560001",
        is_default=True,
    )
    test_db.add(address)
    await test_db.commit()
    return address


@pytest.fixture
def order_service(test_db):
    return OrderService(test_db)


@pytest.fixture
def gateway():
    return MockPaymentGateway(key_id="rzp_test_key", record=True)


@pytest.fixture
def payment_service(test_db, gateway):
    return PaymentService(test_db, gateway)


@pytest.fixture
def order_request(restaurant, menu_items, address):
    """Two biryanis: ₹598 subtotal, ₹29.90 tax, ₹30 delivery, ₹657.90 total"""
    def build(quantity=2, **overrides):
        data = {
            "restaurant_id": restaurant.id,
            "delivery_address_id": address.id,
            "items": [OrderItemCreate(menu_item_id=menu_items["biryani"].id, quantity=quantity)],
            "delivery_instructions": "Ring the bell",
        }
        data.update(overrides)
        return OrderCreate(**data)
    return build


@pytest.fixture
async def placed_order(order_service, customer, order_request):
    return await order_service.create_order(customer, order_request())


@pytest.fixture
async def payment_intent(payment_service, customer, placed_order):
    return await payment_service.create_payment_intent(customer, placed_order.id)


@pytest.fixture
async def client(test_db, gateway):
    """Create test client with overridden database and payment gateway"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer headers for a given user"""
    def build(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}
    return build
