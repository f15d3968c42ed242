import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports app.core.config
_DB_DIR = tempfile.mkdtemp(prefix="ads-tests-")
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport

from app.core.db import Base, engine, AsyncSessionLocal
from app.schemas.billing_schemas.client_schema import ClientCreate
from app.schemas.inventory_schemas import ProductCreate
from app.services.auth_services.auth_service import create_user
from app.services.billing_services import client_service
from app.services.inventory_services import product_service


@pytest.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        yield session
    await engine.dispose()


@pytest.fixture
async def sales_user(db):
    return await create_user(db, "asha", "secret123", "sales")


@pytest.fixture
async def admin_user(db):
    return await create_user(db, "admin", "admin123", "admin")


@pytest.fixture
async def client_record(db, sales_user):
    response = await client_service.create_client(
        db,
        ClientCreate(name="Rahul Sharma", email="rahul@acme.co.in", company="Acme", pan="ABCDE1234F"),
        sales_user,
    )
    return response.data


@pytest.fixture
def make_product(db, sales_user):
    async def _make(**overrides):
        fields = {"brand": "Dell", "model": "Latitude 5420", "cost_price": Decimal("1000.00")}
        fields.update(overrides)
        response = await product_service.create_product(db, ProductCreate(**fields), sales_user)
        return response.data
    return _make


@pytest.fixture
async def api(db):
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
