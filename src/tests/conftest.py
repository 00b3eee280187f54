import asyncio
import os

# Must be set before the app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from src.core.database import get_db
from src.core.security import hash_password
from src.models.database import Base, Product, User
from main import app


@pytest.fixture
def test_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path}/test.db", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def test_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_products(test_db):
    """P1 is the reference scenario: 10 units at 2.50 in branch 1"""
    products = [
        Product(
            branch_id=1, product_id="P1", name="Espresso", category="Coffee",
            description="Double shot", unit_price=Decimal("2.50"), quantity_available=10
        ),
        Product(
            branch_id=1, product_id="P2", name="Croissant", category="Bakery",
            unit_price=Decimal("1.80"), quantity_available=0
        ),
        Product(
            branch_id=1, product_id="P3", name="Old Muffin", category="Bakery",
            unit_price=Decimal("1.20"), quantity_available=4, is_active=False
        ),
        Product(
            branch_id=2, product_id="P1", name="Espresso", category="Coffee",
            description="Double shot", unit_price=Decimal("2.50"), quantity_available=6
        ),
    ]
    test_db.add_all(products)
    test_db.commit()
    return products


@pytest.fixture
def make_user(test_db):
    def _make_user(username, password="secret123", role="registered", branch_id=None):
        user = User(
            username=username,
            full_name=username.title(),
            password_hash=hash_password(password),
            role=role,
            branch_id=branch_id
        )
        test_db.add(user)
        test_db.commit()
        return user
    return _make_user


@pytest.fixture
def admin_headers(client, make_user):
    make_user("root", password="rootpass", role="admin")
    response = client.post("/api/v1/auth/login", json={"username": "root", "password": "rootpass"})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class InMemoryProductStore:
    """
    Product store fake whose calls yield to the event loop, the way a
    network round-trip to the database would.
    """

    def __init__(self, stock=None):
        self.stock = dict(stock or {})
        self.writes = 0

    async def get_quantity(self, branch_id, product_id):
        await asyncio.sleep(0)
        return self.stock.get((branch_id, product_id))

    async def set_quantity(self, branch_id, product_id, new_quantity):
        await asyncio.sleep(0)
        self.stock[(branch_id, product_id)] = new_quantity
        self.writes += 1
        return True

    async def compare_and_set_quantity(self, branch_id, product_id, expected, new_quantity):
        await asyncio.sleep(0)
        if self.stock.get((branch_id, product_id)) != expected:
            return False
        self.stock[(branch_id, product_id)] = new_quantity
        self.writes += 1
        return True


class InMemoryOrderStore:

    def __init__(self):
        self.lines = []

    async def append(self, line):
        await asyncio.sleep(0)
        self.lines.append(line)
        return line


@pytest.fixture
def fake_products():
    return InMemoryProductStore({(1, "P1"): 10})


@pytest.fixture
def fake_orders():
    return InMemoryOrderStore()


@pytest.fixture
def product_store_class():
    return InMemoryProductStore
