import os

# Settings are read once, so point the app at throwaway backends before import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from datetime import date, timedelta
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pharmapos.main import app
from pharmapos.database import Base, get_db
from pharmapos.auth import create_access_token, hash_password
from pharmapos.models import Product, User, UserRole, UserStatus
from pharmapos.utils.cache import cache_service


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "Secret@123"


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def cache_client():
    """Replace Redis with a mock that always misses."""
    client = MagicMock()
    client.get.return_value = None
    with patch.object(cache_service, "client", client):
        yield client


@pytest.fixture(autouse=True)
def alert_task():
    """Keep the post-sale Celery task from reaching a broker."""
    with patch("pharmapos.api.sales.check_stock_alerts.delay") as delay:
        yield delay


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create test client sharing the fresh database of ``db_session``."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db_session):
    """Factory inserting a user directly in the database."""
    counter = {"n": 0}

    def _make(role=UserRole.ATTENDANT, email=None, name=None, active=True, password=DEFAULT_PASSWORD):
        counter["n"] += 1
        user = User(
            name=name or f"{role.value.title()} {counter['n']}",
            email=email or f"{role.value.lower()}{counter['n']}@farmacia.com",
            password=hash_password(password),
            role=role,
            status=UserStatus.ACTIVE if active else UserStatus.INACTIVE,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, email="admin@farmacia.com", name="Admin")


@pytest.fixture
def stockist(make_user):
    return make_user(UserRole.STOCKIST, email="stock@farmacia.com", name="Stockist")


@pytest.fixture
def attendant(make_user):
    return make_user(UserRole.ATTENDANT, email="counter@farmacia.com", name="Attendant")


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def stockist_headers(stockist):
    return headers_for(stockist)


@pytest.fixture
def attendant_headers(attendant):
    return headers_for(attendant)


@pytest.fixture
def product_payload():
    """Factory for a valid product creation body (wire format)."""
    def _payload(**overrides):
        body = {
            "name": "Paracetamol 500mg",
            "category": "Analgesics",
            "dosage": "500mg",
            "manufacturer": "Generic Labs",
            "purchasePrice": 2.50,
            "sellingPrice": 4.00,
            "stockQuantity": 100,
            "minStockQuantity": 10,
            "expiryDate": (date.today() + timedelta(days=365)).isoformat(),
            "barcode": None,
        }
        body.update(overrides)
        return body

    return _payload


@pytest.fixture
def make_product(db_session):
    """Factory inserting a product directly in the database."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "name": f"Product {counter['n']}",
            "category": "General",
            "purchase_price": 50.0,
            "selling_price": 100.0,
            "stock_quantity": 5,
            "min_stock_quantity": 1,
            "expiry_date": date.today() + timedelta(days=365),
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers for any user."""
    return headers_for
