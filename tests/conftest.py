"""Shared test fixtures for all tests."""
import asyncio
import os
import tempfile
import uuid
from decimal import Decimal
from pathlib import Path

# Settings are read at import time, so the environment goes first
_TMP_DIR = Path(tempfile.mkdtemp(prefix="stockledger-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'test.db'}"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["BACKUP_API_KEY"] = "test-backup-key"
os.environ["LOG_FILE"] = str(_TMP_DIR / "logs" / "app.log")
os.environ["EVENT_STREAM_KEEPALIVE_SECONDS"] = "0.05"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select, func

from stockledger.core.database import Base, get_engine, get_session_factory, close_db
from stockledger.core.security import create_access_token, get_password_hash
from stockledger.main import app
from stockledger.models import User, Product, StockMovement
from stockledger.schemas.product import ProductCreate
from stockledger.services.audit import AuditRecorder
from stockledger.services.events import EventBus
from stockledger.services.products import ProductCatalogue

API = "/api/v1"


def run_async(coro):
    """Run a coroutine to completion and release the engine it used."""
    async def runner():
        try:
            return await coro
        finally:
            await close_db()

    return asyncio.run(runner())


async def _reset_schema():
    from stockledger import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def create_user(username: str, password: str = "secret123", is_active: bool = True) -> User:
    async with get_session_factory()() as db:
        user = User(
            username=username,
            password_hash=get_password_hash(password),
            name=username.title(),
            role="user",
            is_active=is_active
        )
        db.add(user)
        await db.commit()
        return user


async def create_product(user_id, bus: EventBus | None = None, **overrides) -> Product:
    """Create a product through the catalogue, opening movement included."""
    fields = {
        "name": "Test Product",
        "category": "General",
        "purchase_price": Decimal("10.00"),
        "selling_price": Decimal("15.00"),
        "current_stock": Decimal("0"),
        "minimum_stock": Decimal("0"),
        "unit": "adet",
    }
    fields.update(overrides)
    factory = get_session_factory()
    async with factory() as db:
        catalogue = ProductCatalogue(db, bus or EventBus(), AuditRecorder(factory))
        return await catalogue.create(user_id, ProductCreate(**fields))


async def stock_and_ledger_sum(product_id) -> tuple[Decimal, Decimal]:
    """Current stock and the net sum of the product's movements."""
    product_id = uuid.UUID(str(product_id))
    async with get_session_factory()() as db:
        stock = (await db.execute(
            select(Product.current_stock).where(Product.id == product_id)
        )).scalar_one()
        movements = (await db.execute(
            select(StockMovement.movement_type, StockMovement.quantity)
            .where(StockMovement.product_id == product_id)
        )).all()
    total = sum(
        (quantity if movement_type == "IN" else -quantity for movement_type, quantity in movements),
        Decimal("0")
    )
    return stock, total


async def count_rows(model, *criteria) -> int:
    async with get_session_factory()() as db:
        return (await db.execute(select(func.count()).select_from(model).where(*criteria))).scalar()


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    run_async(_reset_schema())
    yield
    run_async(close_db())


@pytest.fixture
def client():
    """Test client running the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user():
    return run_async(create_user("alice"))


@pytest.fixture
def other_user():
    return run_async(create_user("bob"))


@pytest.fixture
def auth_headers(user):
    return auth_headers_for(user)


@pytest.fixture
def other_auth_headers(other_user):
    return auth_headers_for(other_user)


@pytest.fixture
def make_product(client, auth_headers):
    """Create a product through the API and return its JSON."""
    def _make(**overrides):
        payload = {
            "name": "Test Product",
            "category": "General",
            "purchase_price": 10,
            "selling_price": 15,
            "current_stock": 0,
            "minimum_stock": 0,
            "unit": "adet",
        }
        payload.update(overrides)
        response = client.post(f"{API}/products", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
