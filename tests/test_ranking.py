from app.services.ranking import DEFAULT_SORT, OrderKey, normalize_sort, order_chain


def test_unknown_sort_falls_back_to_rating():
    assert normalize_sort(None) == DEFAULT_SORT
    assert normalize_sort("popularity") == "rating"
    assert normalize_sort(" Name ") == "name"


def test_rating_chain_ranks_featured_first():
    chain = order_chain("rating")
    assert [key.field for key in chain] == ["is_featured", "rating_average", "rating_count", "created_at", "id"]
    assert all(key.descending for key in chain)


def test_every_chain_ends_with_id_tie_break():
    for sort in ("rating", "name", "views", "newest", "oldest", "bogus"):
        assert order_chain(sort)[-1].field == "id"


def test_tie_break_follows_direction_of_last_key():
    assert order_chain("name")[-1] == OrderKey("id", descending=False)
    assert order_chain("oldest")[-1] == OrderKey("id", descending=False)
    assert order_chain("newest")[-1] == OrderKey("id", descending=True)
