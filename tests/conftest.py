import os

# Must be set before app.core.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import jwt as pyjwt
import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.business import Business
from app.models.category import Category, SubCategory
from app.models.user import ROLE_ADMIN, ROLE_USER, User
from app.seed.seed_data import seed_db


# File-backed SQLite database, recreated for every test
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enforce foreign keys so ondelete rules behave as on PostgreSQL."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def seeded_db(db_session):
    """Create a database session with seeded data."""
    seed_db(db_session)
    return db_session


@pytest.fixture(scope="function")
def seeded_client(seeded_db):
    """Create a test client with seeded database."""
    def override_get_db():
        try:
            yield seeded_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# Test JWT key pair (generated once)
_test_private_key = rsa.generate_private_key(
    public_exponent=65537,
    key_size=2048,
    backend=default_backend()
)
_test_public_key = _test_private_key.public_key()


def _create_test_jwks(public_key, kid="test-key-id"):
    """Create a test JWKS structure from a public key."""
    public_numbers = public_key.public_numbers()

    def int_to_base64url(n):
        byte_length = (n.bit_length() + 7) // 8
        n_bytes = n.to_bytes(byte_length, 'big')
        b64 = base64.urlsafe_b64encode(n_bytes).decode('utf-8')
        return b64.rstrip('=')

    return {
        "keys": [
            {
                "kty": "RSA",
                "kid": kid,
                "use": "sig",
                "alg": "RS256",
                "n": int_to_base64url(public_numbers.n),
                "e": int_to_base64url(public_numbers.e),
            }
        ]
    }


def _create_test_token(
    private_key,
    sub="test-user-123",
    email="test@example.com",
    name=None,
    exp=None,
    aud=None,
    iss=None,
    kid="test-key-id"
):
    """Create a test JWT token with the given claims."""
    if exp is None:
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
    if aud is None:
        aud = settings.auth_jwt_audience
    if iss is None:
        iss = settings.auth_issuer

    claims = {
        "sub": sub,
        "email": email,
        "aud": aud,
        "iss": iss,
        "exp": exp,
        "iat": int(datetime.now(timezone.utc).timestamp()),
        "app_metadata": {"provider": "email"},
    }
    if name:
        claims["user_metadata"] = {"name": name}

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('utf-8')

    headers = {"kid": kid, "alg": "RS256", "typ": "JWT"}
    return pyjwt.encode(claims, private_pem, algorithm="RS256", headers=headers)


TEST_AUTH_UID_1 = "550e8400-e29b-41d4-a716-446655440000"
TEST_AUTH_UID_2 = "550e8400-e29b-41d4-a716-446655440001"
TEST_AUTH_UID_ADMIN = "550e8400-e29b-41d4-a716-446655440009"


@pytest.fixture
def mock_jwks():
    """Fixture that mocks JWKS so JWT verification uses the test key."""
    test_jwks = _create_test_jwks(_test_public_key)
    with patch("app.core.auth.fetch_jwks", return_value=test_jwks):
        yield test_jwks


@pytest.fixture
def create_test_token():
    """Fixture that provides a function to create test JWT tokens."""
    def _create(sub=TEST_AUTH_UID_1, email="test@example.com", **kwargs):
        return _create_test_token(_test_private_key, sub=sub, email=email, **kwargs)
    return _create


@pytest.fixture
def make_user(db_session):
    """Insert a user row; its token subject is external_auth_uid."""
    counter = {"n": 0}

    def _make(role=ROLE_USER, uid=None, email=None, name=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            external_auth_uid=uid or f"user-{n}",
            external_auth_provider="email",
            email=email or f"user{n}@example.com",
            name=name or f"User {n}",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers(mock_jwks, create_test_token):
    """Bearer headers for an existing user row."""
    def _headers(user):
        return {"Authorization": f"Bearer {create_test_token(sub=user.external_auth_uid, email=user.email)}"}
    return _headers


@pytest.fixture
def admin_user(make_user):
    return make_user(role=ROLE_ADMIN, uid=TEST_AUTH_UID_ADMIN, email="admin@example.com", name="Admin")


@pytest.fixture
def category(db_session):
    category = Category(name="Restaurants & Dining", slug="restaurants-dining", icon="utensils")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def subcategory(db_session, category):
    subcategory = SubCategory(name="Pizza", slug="pizza", category_id=category.id)
    db_session.add(subcategory)
    db_session.commit()
    db_session.refresh(subcategory)
    return subcategory


@pytest.fixture
def make_business(db_session, category):
    """Insert a business row directly; defaults to an approved public listing."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        values = {
            "name": f"Business {n}",
            "slug": f"business-{n}",
            "description": "A local business",
            "category_id": category.id,
            "address": f"{n} Main Street",
            "city": "New York",
            "state": "NY",
            "zip_code": "10001",
            "phone": "(555) 000-0000",
            "is_active": True,
            "is_public": True,
        }
        values.update(overrides)
        business = Business(**values)
        db_session.add(business)
        db_session.commit()
        db_session.refresh(business)
        return business
    return _make


@pytest.fixture
def business_payload(category):
    return {
        "name": "Downtown Pizza Co.",
        "description": "Authentic Italian pizza.",
        "categoryId": category.id,
        "address": "123 Main Street",
        "city": "New York",
        "state": "NY",
        "zipCode": "10001",
        "phone": "(555) 123-4567",
    }
