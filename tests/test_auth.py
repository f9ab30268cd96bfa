"""
Tests for bearer JWT verification against the identity provider's JWKS.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import httpx
import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from app.core import auth
from app.core.auth import (
    Identity,
    get_current_identity,
    get_current_user_optional,
    get_or_create_user,
    identity_from_claims,
    verify_token,
)
from app.core.config import settings
from app.models.user import ROLE_ADMIN, ROLE_USER, User


@pytest.fixture(autouse=True)
def reset_jwks_cache():
    """Each test starts without a cached JWKS."""
    auth._jwks_cache = None
    auth._jwks_cache_time = 0
    yield
    auth._jwks_cache = None
    auth._jwks_cache_time = 0


def test_verify_valid_token(mock_jwks, create_test_token):
    """Test that a correctly signed token returns its claims."""
    token = create_test_token(sub="test-user-123", email="test@example.com")
    claims = verify_token(token)
    assert claims["sub"] == "test-user-123"
    assert claims["email"] == "test@example.com"


def test_verify_token_unknown_kid(mock_jwks, create_test_token):
    """Test that a token signed with an unknown key id is rejected."""
    token = create_test_token(kid="some-other-key")
    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_token_wrong_issuer(mock_jwks, create_test_token):
    token = create_test_token(iss="https://evil.example.com/auth/v1")
    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_token_wrong_audience(mock_jwks, create_test_token):
    token = create_test_token(aud="some-other-audience")
    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_token_expired(mock_jwks, create_test_token):
    expired = int((datetime.now(timezone.utc) - timedelta(hours=1)).timestamp())
    token = create_test_token(exp=expired)
    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_malformed_token(mock_jwks):
    with pytest.raises(HTTPException) as exc_info:
        verify_token("not-a-jwt")
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_get_current_identity_extracts_claims(mock_jwks, create_test_token):
    """Test that identity carries sub, email, provider and name."""
    token = create_test_token(sub="user-456", email="user@test.com", name="Jane")
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    identity = get_current_identity(credentials)
    assert identity.uid == "user-456"
    assert identity.email == "user@test.com"
    assert identity.provider == "email"
    assert identity.name == "Jane"


def test_identity_requires_subject():
    with pytest.raises(HTTPException) as exc_info:
        identity_from_claims({"email": "x@example.com"})
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_fetch_jwks_uses_cache():
    """Test that the JWKS endpoint is hit once within the cache TTL."""
    jwks = {"keys": [{"kid": "k1"}]}
    response = Mock()
    response.json.return_value = jwks
    response.raise_for_status.return_value = None
    with patch("app.core.auth.httpx.get", return_value=response) as mock_get:
        assert auth.fetch_jwks() == jwks
        assert auth.fetch_jwks() == jwks
    assert mock_get.call_count == 1


def test_fetch_jwks_falls_back_to_expired_cache():
    jwks = {"keys": [{"kid": "k1"}]}
    auth._jwks_cache = jwks
    auth._jwks_cache_time = 0  # long expired
    with patch("app.core.auth.httpx.get", side_effect=httpx.ConnectError("down")):
        assert auth.fetch_jwks() == jwks


def test_fetch_jwks_unavailable_without_cache():
    with patch("app.core.auth.httpx.get", side_effect=httpx.ConnectError("down")):
        with pytest.raises(HTTPException) as exc_info:
            auth.fetch_jwks()
    assert exc_info.value.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_get_or_create_user_idempotent(db_session):
    """Test that the same subject always maps to one user row."""
    identity = Identity(provider="email", uid="uid-1", email="one@example.com")
    first = get_or_create_user(db_session, identity)
    second = get_or_create_user(db_session, identity)
    assert first.id == second.id
    assert first.role == ROLE_USER
    assert db_session.query(User).filter(User.external_auth_uid == "uid-1").count() == 1


def test_get_or_create_user_grants_admin_from_settings(db_session):
    identity = Identity(provider="email", uid="uid-admin", email="Boss@Example.com")
    with patch.object(settings, "admin_emails", ["boss@example.com"]):
        user = get_or_create_user(db_session, identity)
    assert user.role == ROLE_ADMIN


def test_optional_user_ignores_invalid_token(db_session, mock_jwks):
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage")
    assert get_current_user_optional(credentials, db_session) is None
    assert get_current_user_optional(None, db_session) is None


def test_protected_route_rejects_bad_token(client, mock_jwks):
    response = client.get("/api/v1/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_deactivated_user_is_rejected(client, make_user, auth_headers, db_session):
    user = make_user()
    user.is_active = False
    db_session.commit()
    response = client.get("/api/v1/me", headers=auth_headers(user))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
