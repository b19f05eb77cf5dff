import os

# Must be set before storefront builds its module-level engine.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ACCESS_GATE_MODE", "header")
os.environ.setdefault("STATUS_TRANSITION_MODE", "permissive")

from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.config import get_settings
from storefront.database import build_engine, get_db, init_db
from storefront.models import MenuCategory, MenuItem, Role, User
from storefront.services.access import reset_access_gate

ADMIN_ID = 1
CUSTOMER_ID = 7
OTHER_CUSTOMER_ID = 8


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    reset_access_gate()
    yield
    get_settings.cache_clear()
    reset_access_gate()


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded(session_maker):
    """Two customers, an admin and a small menu."""
    async with session_maker() as session:
        session.add_all([
            User(id=ADMIN_ID, name="Admin", email="admin@example.com", role=Role.ADMIN),
            User(id=CUSTOMER_ID, name="Linh", email="linh@example.com", role=Role.USER),
            User(id=OTHER_CUSTOMER_ID, name="Minh", email="minh@example.com", role=Role.USER),
            MenuItem(id=1, name="Banh Mi", price=Decimal("4.5"), category=MenuCategory.FOOD),
            MenuItem(id=2, name="Iced Tea", price=Decimal("2.0"), category=MenuCategory.DRINK),
            MenuItem(id=3, name="Flan", price=Decimal("1.25"), category=MenuCategory.DESSERT),
            MenuItem(
                id=4,
                name="Peanuts",
                price=Decimal("0.75"),
                category=MenuCategory.SNACK,
                is_available=False,
            ),
        ])
        await session.commit()


@pytest.fixture
async def db(session_maker, seeded):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker, seeded):
    from storefront.main import app

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def as_user(user_id: int) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}
