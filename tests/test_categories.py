from fastapi import status

from app.models.category import Category


def test_list_categories_counts_visible_businesses(client, category, make_business, db_session):
    empty = Category(name="Education", slug="education", sort_order=5)
    inactive = Category(name="Retired", slug="retired", is_active=False)
    db_session.add_all([empty, inactive])
    db_session.commit()
    make_business()
    make_business()
    make_business(is_active=False)
    make_business(is_public=False)

    data = client.get("/api/v1/categories").json()
    assert data["count"] == 2
    counts = {c["name"]: c["businessCount"] for c in data["categories"]}
    assert counts == {"Restaurants & Dining": 2, "Education": 0}

    with_inactive = client.get("/api/v1/categories?includeInactive=true").json()
    assert with_inactive["count"] == 3


def test_get_category_detail(client, category, subcategory, make_business):
    make_business(name="Top", rating_average=4.9, subcategory_id=subcategory.id)
    make_business(name="Second", rating_average=3.0)
    make_business(name="Pending", is_active=False)

    response = client.get(f"/api/v1/categories/{category.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["category"]["businessCount"] == 2
    assert [b["name"] for b in data["businesses"]] == ["Top", "Second"]
    assert data["subcategories"][0]["name"] == "Pizza"
    assert data["subcategories"][0]["businessCount"] == 1


def test_get_category_not_found(client):
    assert client.get("/api/v1/categories/999").status_code == status.HTTP_404_NOT_FOUND


def test_create_category_admin_only(client, make_user, auth_headers, admin_user):
    body = {"name": "Pet Services", "icon": "paw"}
    response = client.post("/api/v1/categories", json=body, headers=auth_headers(make_user()))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post("/api/v1/categories", json=body, headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["slug"] == "pet-services"

    duplicate = client.post("/api/v1/categories", json=body, headers=auth_headers(admin_user))
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST


def test_subcategories(client, category, subcategory, auth_headers, admin_user):
    response = client.post(
        "/api/v1/subcategories",
        json={"name": "Burgers", "categoryId": category.id},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == status.HTTP_201_CREATED

    data = client.get(f"/api/v1/subcategories?categoryId={category.id}").json()
    assert {s["name"] for s in data["subcategories"]} == {"Pizza", "Burgers"}

    unknown = client.post(
        "/api/v1/subcategories",
        json={"name": "Tacos", "categoryId": 999},
        headers=auth_headers(admin_user),
    )
    assert unknown.status_code == status.HTTP_400_BAD_REQUEST
