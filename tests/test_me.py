from fastapi import status

from app.models.user import ROLE_BUSINESS_OWNER, ROLE_USER, User

TEST_AUTH_UID_1 = "550e8400-e29b-41d4-a716-446655440000"


def test_get_me_creates_user_on_first_request(client, mock_jwks, create_test_token, db_session):
    """Test that the first authenticated request creates the user row."""
    token = create_test_token(sub=TEST_AUTH_UID_1, email="new@example.com")
    response = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["externalAuthUid"] == TEST_AUTH_UID_1
    assert data["email"] == "new@example.com"
    assert data["role"] == ROLE_USER
    assert db_session.query(User).count() == 1


def test_get_me_returns_existing_user(client, make_user, auth_headers):
    user = make_user(name="Existing")
    response = client.get("/api/v1/me", headers=auth_headers(user))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == user.id
    assert response.json()["name"] == "Existing"


def test_get_me_requires_auth(client):
    response = client.get("/api/v1/me")
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_my_businesses_include_pending_and_private(client, make_user, auth_headers, make_business):
    """Test that the owner dashboard lists every owned listing, whatever its state."""
    owner = make_user(role=ROLE_BUSINESS_OWNER)
    other = make_user()
    make_business(name="Live", owner_id=owner.id)
    make_business(name="Pending", owner_id=owner.id, is_active=False)
    make_business(name="Hidden", owner_id=owner.id, is_public=False)
    make_business(name="Rejected", owner_id=owner.id, is_active=False, rejection_reason="Missing phone number")
    make_business(name="Not mine", owner_id=other.id)

    response = client.get("/api/v1/me/businesses", headers=auth_headers(owner))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 4
    assert {b["name"] for b in data["businesses"]} == {"Live", "Pending", "Hidden", "Rejected"}
    statuses = {b["name"]: b["status"] for b in data["businesses"]}
    assert statuses["Pending"] == "pending"
    assert statuses["Rejected"] == "rejected"
    assert statuses["Live"] == "active"
