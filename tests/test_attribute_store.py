"""Tests for AttributeStore dirty tracking."""
import pytest

from docstate import AttributeStore, CastRegistry


@pytest.fixture
def store():
    return AttributeStore()


@pytest.fixture
def synced_store():
    store = AttributeStore()
    store.set_raw({"_id": "abc", "name": "a", "tags": ["x"]}, sync=True)
    return store


class TestDirtyTracking:
    """set/resync/diff invariants."""

    def test_resync_clears_changes(self, store):
        store.set("name", "a").set("age", 3)
        assert store.has_changed()

        store.resync()

        assert not store.has_changed()
        assert store.diff() == {}

    def test_set_marks_dirty_even_when_value_unchanged(self, synced_store):
        assert synced_store.get("name") == "a"

        synced_store.set("name", "a")

        assert synced_store.has_changed("name")
        assert synced_store.diff() == {"name": "a"}

    def test_round_trip_after_sync(self):
        store = AttributeStore()
        store.set_raw({"name": "a", "age": 1}, sync=True)
        assert store.diff() == {}

        store.set("age", 2)

        assert store.diff() == {"age": 2}

    def test_diff_keeps_insertion_order(self, store):
        store.set("b", 1).set("a", 2).set("c", 3)
        assert list(store.diff()) == ["b", "a", "c"]

    def test_removed_key_reports_none(self, synced_store):
        synced_store.remove("name")

        assert synced_store.diff() == {"name": None}
        assert not synced_store.has("name")

    def test_has_changed_with_keys(self, synced_store):
        synced_store.set("name", "b")

        assert synced_store.has_changed("name")
        assert synced_store.has_changed(["other", "name"])
        assert not synced_store.has_changed("tags")
        assert not synced_store.has_changed([])

    def test_original_is_a_deep_copy(self, synced_store):
        synced_store.raw("tags").append("y")

        assert synced_store.original("tags") == ["x"]
        assert synced_store.get("tags") == ["x", "y"]

    def test_discard_restores_baseline(self, synced_store):
        synced_store.set("name", "changed").set("extra", 1)

        synced_store.discard()

        assert synced_store.attributes() == {"_id": "abc", "name": "a", "tags": ["x"]}
        assert not synced_store.has_changed()


class TestRawOperations:
    """set_raw / merge_raw."""

    def test_set_raw_replaces_without_marking_dirty(self, store):
        store.set_raw({"name": "a"})

        assert store.get("name") == "a"
        assert not store.has_changed()

    def test_set_raw_bypasses_casts(self):
        casts = CastRegistry()
        casts.register("age", "int")
        store = AttributeStore(casts=casts)

        store.set_raw({"age": "7"})

        assert store.raw("age") == "7"

    def test_merge_raw_without_force_keeps_existing(self, synced_store):
        synced_store.merge_raw({"name": "other", "city": "Lisbon"})

        assert synced_store.get("name") == "a"
        assert synced_store.get("city") == "Lisbon"
        assert synced_store.diff() == {"city": "Lisbon"}

    def test_merge_raw_with_force_overwrites_everything(self, synced_store):
        synced_store.merge_raw({"name": "other", "city": "Lisbon"}, force=True)

        assert synced_store.get("name") == "other"
        assert synced_store.diff() == {"name": "other", "city": "Lisbon"}

    def test_merge_raw_sync(self, store):
        store.merge_raw({"name": "a"}, sync=True)

        assert store.get("name") == "a"
        assert not store.has_changed()


class TestIdentityAlias:
    """id resolves to _id in both directions."""

    def test_get_alias(self, synced_store):
        assert synced_store.get("id") == synced_store.get("_id") == "abc"

    def test_set_alias(self, store):
        store.set("id", "xyz")

        assert store.get("_id") == "xyz"
        assert store.diff() == {"_id": "xyz"}
        assert store.has_changed("id")

    def test_missing_key_is_none(self, store):
        assert store.get("nope") is None
        assert store.get("id") is None


class TestCastsAndMutators:
    """Casts and mutators applied through the store."""

    def test_write_and_read_cast(self):
        casts = CastRegistry()
        casts.register("age", "int")
        store = AttributeStore(casts=casts)

        store.set("age", "41")

        assert store.raw("age") == 41
        assert store.get("age") == 41

    def test_get_mutator_wins_over_cast(self):
        casts = CastRegistry()
        casts.register("name", "str")
        casts.register_get_mutator("name", lambda owner, value: f"<{value}>")
        store = AttributeStore(casts=casts)

        store.set("name", "bob")

        assert store.get("name") == "<bob>"
        assert store.raw("name") == "bob"

    def test_get_mutator_applies_to_absent_key(self):
        casts = CastRegistry()
        casts.register_get_mutator("full", lambda owner, value: "computed")
        store = AttributeStore(casts=casts)

        assert store.get("full") == "computed"

    def test_set_mutator_controls_storage_and_marks_dirty(self):
        casts = CastRegistry()
        store = AttributeStore(casts=casts)
        casts.register_set_mutator(
            "full_name",
            lambda owner, value: store.put("first", value.split()[0]).put("last", value.split()[1]),
        )

        store.set("full_name", "Ada Lovelace")

        assert store.raw("first") == "Ada"
        assert store.raw("last") == "Lovelace"
        assert not store.has("full_name")
        assert store.has_changed("full_name")
        assert set(store.diff()) == {"full_name", "first", "last"}

    def test_relation_resolver_short_circuits(self):
        store = AttributeStore(relation_resolver=lambda key: "related" if key == "author" else None)
        store.set("author", "raw")
        store.set("title", "t")

        assert store.get("author") == "related"
        assert store.get("title") == "t"
