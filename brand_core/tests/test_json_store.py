import pytest

from brand_core.domain.exceptions import StoreError


def test_json_store_add_get_update_delete(store):
    bid = store.add("brands", {"name": "Acme"})
    assert bid == 1
    assert store.get("brands", bid)["name"] == "Acme"
    store.update("brands", bid, {"tagline": "We make things"})
    assert store.get("brands", bid)["tagline"] == "We make things"
    store.delete("brands", bid)
    assert store.get("brands", bid) is None
    with pytest.raises(StoreError):
        store.delete("brands", bid)


def test_json_store_where_reverse_limit(store):
    for i in range(5):
        store.add("messages", {"conversation_id": 7, "role": "user", "content": f"m{i + 1}"})
    store.add("messages", {"conversation_id": 8, "role": "user", "content": "other"})
    rows = store.where("messages", "conversation_id", 7, reverse=True, limit=2)
    assert [r["content"] for r in rows] == ["m5", "m4"]
    assert len(store.where("messages", "conversation_id", 7)) == 5


def test_json_store_current_brand_and_activity(store):
    assert store.get_current_brand() is None
    bid = store.add("brands", {"name": "Acme", "colors": ["#000"]})
    store.set_current_brand(bid)
    brand = store.get_current_brand()
    assert brand.name == "Acme"
    assert brand.colors == ["#000"]
    aid = store.log_activity(bid, "brand", "Brand created")
    assert store.get("activities", aid)["description"] == "Brand created"


def test_json_store_unknown_table(store):
    with pytest.raises(StoreError) as exc_info:
        store.add("unicorns", {})
    assert exc_info.value.code == "UNKNOWN_TABLE"


def test_json_store_only_context_tables(store):
    for table in ("posts", "documents", "videos"):
        with pytest.raises(StoreError):
            store.where(table, "brand_id", 1)
    assert not hasattr(store, "all")
