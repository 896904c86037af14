"""
Tests for the record store and the advisory local cache.
"""

import pytest

from reconnect.core import DuplicateRecordError, LocalCache, RecordStore
from reconnect.core.cache import RECORDS_KEY, image_key


class TestRecordStore:

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def store(self, calls):
        def persister(records):
            calls.append([r.id for r in records])
            return "persisted"

        return RecordStore(persister=persister)

    def test_initialize_replaces_records(self, store, make_record):
        store.initialize([make_record(), make_record()])
        store.initialize([make_record(id="only")])
        assert [r.id for r in store.all()] == ["only"]

    def test_initialize_rejects_duplicate_ids(self, store, make_record):
        with pytest.raises(DuplicateRecordError):
            store.initialize([make_record(id="a"), make_record(id="a")])

    def test_append_preserves_order_and_persists_full_set(self, store, calls, make_record):
        store.initialize([make_record(id="a")])
        result = store.append(make_record(id="b"))

        assert result.record.id == "b"
        assert result.persisted == "persisted"
        assert [r.id for r in store.all()] == ["a", "b"]
        assert calls == [["a", "b"]]

    def test_duplicate_append_is_rejected_without_persisting(self, store, calls, make_record):
        store.append(make_record(id="a"))
        with pytest.raises(DuplicateRecordError) as exc_info:
            store.append(make_record(id="a"))

        assert exc_info.value.record_id == "a"
        assert len(store) == 1
        assert len(calls) == 1

    def test_append_without_persister(self, make_record):
        store = RecordStore()
        result = store.append(make_record())
        assert result.persisted is None
        assert len(store) == 1

    def test_failed_persistence_keeps_the_record(self, make_record):
        store = RecordStore(persister=lambda records: "failed")
        store.append(make_record(id="kept"))
        assert store.get("kept") is not None

    def test_views_are_copies(self, store, make_record):
        store.append(make_record(id="a"))
        snapshot = store.snapshot()
        snapshot.clear()
        assert isinstance(store.all(), tuple)
        assert len(store) == 1

    def test_get_matches_string_form_of_id(self, make_record):
        store = RecordStore()
        store.append(make_record(id=7))
        assert store.get("7").id == 7
        assert store.get("missing") is None

    def test_int_and_string_ids_collide(self, make_record):
        store = RecordStore()
        store.append(make_record(id=1))
        with pytest.raises(DuplicateRecordError):
            store.append(make_record(id="1"))
        with pytest.raises(DuplicateRecordError):
            store.initialize([make_record(id=2), make_record(id="2")])
        assert len(store) == 1

    def test_append_writes_through_to_cache(self, tmp_path, make_record):
        cache = LocalCache(tmp_path)
        store = RecordStore(cache=cache)
        store.append(make_record(id="a", name="Omar"))

        cached = cache.get(RECORDS_KEY)
        assert cached[0]["id"] == "a"
        assert cached[0]["dateReported"] == "2024-03-01"

    def test_unwritable_cache_does_not_block_append(self, tmp_path, calls, make_record):
        blocker = tmp_path / "cache"
        blocker.write_text("a file where the cache directory should be")
        store = RecordStore(
            persister=lambda records: calls.append(len(records)),
            cache=LocalCache(blocker),
        )

        result = store.append(make_record(name="Omar"))

        assert result.record.name == "Omar"
        assert len(store) == 1
        assert calls == [1]


class TestLocalCache:

    def test_values_survive_reload(self, tmp_path):
        LocalCache(tmp_path).set(image_key("image_1_2.png"), "data:image/png;base64,AAAA")
        reloaded = LocalCache(tmp_path)
        assert reloaded.get("image_image_1_2.png") == "data:image/png;base64,AAAA"
        assert "image_image_1_2.png" in reloaded

    def test_missing_key_default(self, tmp_path):
        assert LocalCache(tmp_path).get("nope", default=[]) == []

    def test_remove(self, tmp_path):
        cache = LocalCache(tmp_path)
        cache.set("k", 1)
        cache.remove("k")
        assert "k" not in LocalCache(tmp_path)

    def test_corrupt_file_is_ignored(self, tmp_path):
        (tmp_path / LocalCache.FILENAME).write_text("{not json", encoding="utf-8")
        cache = LocalCache(tmp_path)
        assert cache.get("anything") is None
        cache.set("k", "v")
        assert LocalCache(tmp_path).get("k") == "v"

    def test_failed_write_keeps_value_in_memory(self, tmp_path):
        blocker = tmp_path / "cache"
        blocker.write_text("not a directory")
        cache = LocalCache(blocker)

        cache.set("k", "v")

        assert cache.get("k") == "v"
        assert blocker.read_text() == "not a directory"
