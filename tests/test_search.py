from app.models.category import Category


def test_suggestions_require_two_characters(client, make_business):
    make_business(name="Pizza Place")
    data = client.get("/api/v1/search/suggestions?q=p").json()
    assert data["suggestions"] == {"categories": [], "businesses": []}


def test_suggestions_match_categories_and_visible_businesses(client, category, make_business, db_session):
    db_session.add(Category(name="Pizza Supplies", slug="pizza-supplies"))
    db_session.commit()
    make_business(name="Pizza Place")
    make_business(name="Pizza Hidden", is_public=False)

    data = client.get("/api/v1/search/suggestions?q=pizz").json()["suggestions"]
    assert [c["name"] for c in data["categories"]] == ["Pizza Supplies"]
    assert [b["name"] for b in data["businesses"]] == ["Pizza Place"]


def test_location_suggestions_prefix_first(client, make_business):
    make_business(city="Newark", state="NJ")
    make_business(city="New York", state="NY")
    make_business(city="New York", state="NY")
    make_business(city="Albany", state="NY")
    make_business(city="Newport", state="RI", is_active=False)

    data = client.get("/api/v1/search/location-suggestions?q=ne").json()
    assert data["suggestions"] == ["New York, NY", "Newark, NJ"]

    data = client.get("/api/v1/search/location-suggestions?q=ny").json()
    assert data["suggestions"] == ["Albany, NY", "New York, NY"]


def test_location_suggestions_rank_city_prefix_before_substring(client, make_business):
    make_business(city="Albany", state="NY")
    make_business(city="Anaheim", state="CA")
    data = client.get("/api/v1/search/location-suggestions?q=an").json()
    assert data["suggestions"] == ["Anaheim, CA", "Albany, NY"]


def test_search_maps_q_and_city_onto_business_search(client, make_business):
    make_business(name="Pizza Uptown", city="New York", state="NY")
    make_business(name="Pizza Coast", city="San Diego", state="CA", rating_average=4.8)
    make_business(name="Sushi Bar", city="New York", state="NY")
    make_business(name="Pizza Hidden", city="New York", state="NY", is_public=False)

    data = client.get("/api/v1/search?q=pizza&city=New York, NY").json()
    assert data["success"] is True
    assert [b["name"] for b in data["businesses"]] == ["Pizza Uptown"]

    data = client.get("/api/v1/search?q=pizza&state=CA").json()
    assert [b["name"] for b in data["businesses"]] == ["Pizza Coast"]

    data = client.get("/api/v1/search?q=pizza&minRating=4").json()
    assert [b["name"] for b in data["businesses"]] == ["Pizza Coast"]


def test_search_ignores_state_when_city_given_and_garbage_category(client, make_business):
    make_business(name="Harbor Cafe", city="San Diego", state="CA")
    data = client.get("/api/v1/search?city=diego&state=NY&category=abc").json()
    assert [b["name"] for b in data["businesses"]] == ["Harbor Cafe"]
    assert data["total"] == 1
