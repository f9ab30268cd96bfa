from fastapi import status

from app.models.business import Business
from app.models.review import Review
from app.models.user import ROLE_BUSINESS_OWNER


def test_admin_routes_require_admin(client, make_user, auth_headers):
    user = make_user()
    response = client.get("/api/v1/admin/businesses", headers=auth_headers(user))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert client.get("/api/v1/admin/activities").status_code in (
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    )


def test_list_businesses_by_status(client, make_business, auth_headers, admin_user):
    make_business(name="Live")
    make_business(name="Waiting", is_active=False)
    make_business(name="Bounced", is_active=False, rejection_reason="Missing opening hours")
    headers = auth_headers(admin_user)

    def names(query):
        data = client.get(f"/api/v1/admin/businesses{query}", headers=headers).json()
        return {b["name"] for b in data["businesses"]}

    assert names("?status=pending") == {"Waiting"}
    assert names("?status=active") == {"Live"}
    assert names("?status=rejected") == {"Bounced"}
    assert names("") == {"Live", "Waiting", "Bounced"}

    bad = client.get("/api/v1/admin/businesses?status=archived", headers=headers)
    assert bad.status_code == status.HTTP_400_BAD_REQUEST


def test_admin_approve_and_reject_aliases(client, make_business, auth_headers, admin_user):
    business = make_business(is_active=False)
    headers = auth_headers(admin_user)

    response = client.put(f"/api/v1/admin/businesses/{business.id}/approve", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["business"]["status"] == "active"

    response = client.put(
        f"/api/v1/admin/businesses/{business.id}/reject",
        json={"rejectionReason": "Photos do not match the business."},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["business"]["status"] == "rejected"

    # Rejected -> approved is allowed as an override
    response = client.put(f"/api/v1/admin/businesses/{business.id}/approve", headers=headers)
    assert response.json()["business"]["status"] == "active"
    assert response.json()["business"]["rejectionReason"] is None


def test_link_owner_keeps_status_and_promotes(client, make_business, make_user, auth_headers, admin_user, db_session):
    business = make_business(is_active=False)
    user = make_user()
    response = client.put(
        f"/api/v1/admin/businesses/{business.id}/owner",
        json={"ownerId": user.id},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["business"]
    assert data["ownerId"] == user.id
    assert data["status"] == "pending"
    db_session.refresh(user)
    assert user.role == ROLE_BUSINESS_OWNER

    missing = client.put(
        f"/api/v1/admin/businesses/{business.id}/owner",
        json={"ownerId": 999},
        headers=auth_headers(admin_user),
    )
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_unapprove_review_drops_it_from_rating(client, make_business, make_user, auth_headers, admin_user, db_session):
    business = make_business()
    reviews = [
        Review(business_id=business.id, user_id=make_user().id, rating=5, title="t", comment="c"),
        Review(business_id=business.id, user_id=make_user().id, rating=1, title="t", comment="c"),
    ]
    db_session.add_all(reviews)
    db_session.commit()
    headers = auth_headers(admin_user)

    response = client.put(f"/api/v1/admin/reviews/{reviews[1].id}/unapprove", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["review"]["isApproved"] is False
    stored = db_session.get(Business, business.id)
    db_session.refresh(stored)
    assert (stored.rating_average, stored.rating_count) == (5.0, 1)

    listing = client.get(f"/api/v1/reviews?business={business.id}").json()
    assert listing["total"] == 1

    client.put(f"/api/v1/admin/reviews/{reviews[1].id}/approve", headers=headers)
    db_session.refresh(stored)
    assert (stored.rating_average, stored.rating_count) == (3.0, 2)


def test_activities_feed(client, business_payload, auth_headers, admin_user):
    created = client.post("/api/v1/businesses", json=business_payload).json()["business"]
    client.put(f"/api/v1/businesses/{created['id']}/approve", headers=auth_headers(admin_user))

    data = client.get("/api/v1/admin/activities", headers=auth_headers(admin_user)).json()
    assert data["total"] == 2
    types = {a["type"] for a in data["activities"]}
    assert types == {"business_submitted", "business_approved"}
    approved = next(a for a in data["activities"] if a["type"] == "business_approved")
    assert approved["userId"] == admin_user.id
    assert approved["details"]["businessId"] == created["id"]


def test_review_queue_lists_unapproved_reviews(client, make_business, make_user, auth_headers, admin_user, db_session):
    business = make_business()
    db_session.add_all([
        Review(business_id=business.id, user_id=make_user().id, rating=5, title="Shown", comment="c"),
        Review(business_id=business.id, user_id=make_user().id, rating=1, title="Held", comment="c", is_approved=False),
    ])
    db_session.commit()
    headers = auth_headers(admin_user)

    pending = client.get("/api/v1/admin/reviews?status=pending", headers=headers).json()
    assert pending["total"] == 1
    assert [r["title"] for r in pending["reviews"]] == ["Held"]
    assert pending["reviews"][0]["business"]["id"] == business.id

    everything = client.get("/api/v1/admin/reviews", headers=headers).json()
    assert {r["title"] for r in everything["reviews"]} == {"Shown", "Held"}
    approved = client.get("/api/v1/admin/reviews?status=approved", headers=headers).json()
    assert [r["title"] for r in approved["reviews"]] == ["Shown"]

    bad = client.get("/api/v1/admin/reviews?status=flagged", headers=headers)
    assert bad.status_code == status.HTTP_400_BAD_REQUEST
    assert client.get("/api/v1/admin/reviews", headers=auth_headers(make_user())).status_code == (
        status.HTTP_403_FORBIDDEN
    )


def test_dashboard_stats(client, make_business, make_user, auth_headers, admin_user, db_session):
    live = make_business(name="Live")
    make_business(name="Waiting", is_active=False)
    make_business(name="Bounced", is_active=False, rejection_reason="Missing opening hours")
    db_session.add_all([
        Review(business_id=live.id, user_id=make_user().id, rating=5, title="t", comment="c"),
        Review(business_id=live.id, user_id=make_user().id, rating=2, title="t", comment="c", is_approved=False),
    ])
    db_session.commit()

    response = client.get("/api/v1/admin/stats", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_200_OK
    stats = response.json()["stats"]
    assert stats["users"] == 3
    assert (stats["businesses"], stats["activeBusinesses"]) == (3, 1)
    assert (stats["pendingBusinesses"], stats["rejectedBusinesses"]) == (1, 1)
    assert (stats["reviews"], stats["pendingReviews"]) == (2, 1)
    assert stats["categories"] == 1
    assert {b["name"] for b in stats["recentBusinesses"]} == {"Live", "Waiting", "Bounced"}
    assert len(stats["recentUsers"]) == 3
    assert len(stats["recentReviews"]) == 2
