"""Tests for NoteStore – persistence, id allocation, filtering, search and ordering."""

import json
import logging

import pytest

from domains.core import storage
from domains.core.exceptions import StorageError, StoreNotInitializedError
from domains.note_hub import NoteDraft, NotePatch, NoteStore


async def _reopen(data_dir) -> NoteStore:
    store = NoteStore(data_dir=data_dir)
    await store.initialize()
    return store


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

class TestInitialize:

    async def test_creates_box_file(self, store):
        assert store.is_initialized
        assert store.path.exists()
        assert store.count() == 0

    async def test_initialize_twice_is_noop(self, store, make_draft):
        await store.insert(make_draft())
        await store.initialize()
        assert store.count() == 1
        assert store.counter == 1

    async def test_operations_before_initialize_fail_fast(self, data_dir, make_draft):
        store = NoteStore(data_dir=data_dir)
        with pytest.raises(StoreNotInitializedError):
            await store.get_all()
        with pytest.raises(StoreNotInitializedError):
            await store.insert(make_draft())
        with pytest.raises(StoreNotInitializedError):
            await store.search("x")

    async def test_corrupted_file_is_recreated_empty(self, data_dir, make_draft, caplog):
        data_dir.mkdir(parents=True)
        (data_dir / "notes.json").write_text("{definitely not json", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            store = await _reopen(data_dir)

        assert await store.get_all() == []
        assert "box_corrupted_recreating" in caplog.text

        note_id = await store.insert(make_draft())
        assert note_id == "note_1"
        assert [n.id for n in await store.get_all()] == ["note_1"]

    async def test_missing_fields_read_with_defaults(self, data_dir):
        data_dir.mkdir(parents=True)
        payload = {"meta": {}, "records": {"note_1": {"title": "Old", "content": "legacy"}}}
        (data_dir / "notes.json").write_text(json.dumps(payload), encoding="utf-8")

        store = await _reopen(data_dir)
        note = await store.get("note_1")

        assert note.title == "Old"
        assert note.is_liked is False
        assert note.tags == ""
        assert note.recording_path == ""

    def test_data_dir_is_required(self):
        with pytest.raises(TypeError):
            NoteStore()

    async def test_custom_box_name(self, data_dir):
        store = NoteStore(data_dir=data_dir, box_name="archive")
        await store.initialize()
        assert store.path == data_dir / "archive.json"


# ---------------------------------------------------------------------------
# Insert / id allocation
# ---------------------------------------------------------------------------

class TestInsert:

    async def test_ids_are_distinct_and_sequential(self, store, make_draft):
        ids = [await store.insert(make_draft(title=f"n{i}")) for i in range(3)]
        assert ids == ["note_1", "note_2", "note_3"]

    async def test_insert_fills_defaults(self, store):
        note_id = await store.insert(NoteDraft(title="Meeting", content="Discussed timeline",
                                               created_at="2024-01-01 10:00:00"))
        notes = await store.get_all()

        assert len(notes) == 1
        note = notes[0]
        assert note.id == note_id
        assert note.title == "Meeting"
        assert note.content == "Discussed timeline"
        assert note.is_liked is False
        assert note.tags == ""
        assert note.recording_path == ""

    async def test_ids_not_reused_after_delete_and_restart(self, data_dir, make_draft):
        store = await _reopen(data_dir)
        for _ in range(3):
            await store.insert(make_draft())
        await store.delete("note_3")
        store.close()

        store = await _reopen(data_dir)
        assert await store.insert(make_draft()) == "note_4"

    async def test_counter_recovered_from_existing_ids(self, data_dir, make_draft):
        data_dir.mkdir(parents=True)
        payload = {"meta": {}, "records": {"note_9": {"content": "x"}}}
        (data_dir / "notes.json").write_text(json.dumps(payload), encoding="utf-8")

        store = await _reopen(data_dir)
        assert await store.insert(make_draft()) == "note_10"

    async def test_write_failure_does_not_advance_counter(self, store, make_draft, monkeypatch):
        await store.insert(make_draft())

        def _fail(*args, **kwargs):
            raise OSError("read-only file system")

        monkeypatch.setattr(storage.os, "replace", _fail)
        with pytest.raises(StorageError):
            await store.insert(make_draft())
        monkeypatch.undo()

        assert store.count() == 1
        assert await store.insert(make_draft()) == "note_2"

    async def test_persisted_across_reopen(self, data_dir, make_draft):
        store = await _reopen(data_dir)
        await store.insert(make_draft(tags="work", is_liked=True))
        store.close()

        store = await _reopen(data_dir)
        note = await store.get("note_1")
        assert note.tags == "work"
        assert note.is_liked is True


# ---------------------------------------------------------------------------
# Update / like / recording / delete
# ---------------------------------------------------------------------------

class TestMutations:

    async def test_update_changes_only_given_fields(self, store, make_draft):
        note_id = await store.insert(make_draft(title="Meeting", content="Discussed timeline"))
        before = await store.get(note_id)

        assert await store.update(note_id, NotePatch(tags="work,q3")) is True

        after = await store.get(note_id)
        assert after.tags == "work,q3"
        assert after.title == before.title
        assert after.content == before.content
        assert after.created_at == before.created_at
        assert after.is_liked == before.is_liked

    async def test_update_can_clear_tags(self, store, make_draft):
        note_id = await store.insert(make_draft(tags="a"))
        await store.update(note_id, NotePatch(tags=""))
        assert (await store.get(note_id)).tags == ""

    async def test_empty_patch_is_noop(self, store, make_draft):
        note_id = await store.insert(make_draft())
        assert await store.update(note_id, NotePatch()) is False

    async def test_set_liked_and_filter(self, store, make_draft):
        first = await store.insert(make_draft(created_at="2024-01-01 00:00:00"))
        second = await store.insert(make_draft(created_at="2024-01-02 00:00:00"))

        await store.set_liked(first, True)
        assert [n.id for n in await store.get_all(liked_only=True)] == [first]

        await store.set_liked(first, False)
        assert await store.get_all(liked_only=True) == []
        assert len(await store.get_all()) == 2
        assert (await store.get(second)).is_liked is False

    async def test_set_recording_path(self, store, make_draft):
        note_id = await store.insert(make_draft(recording_path="/rec/1.m4a"))
        await store.set_recording_path(note_id, "")
        note = await store.get(note_id)
        assert note.recording_path == ""
        assert not note.has_recording

    async def test_delete_keeps_order_of_rest(self, store, make_draft):
        a = await store.insert(make_draft(created_at="2024-01-03 00:00:00"))
        b = await store.insert(make_draft(created_at="2024-01-02 00:00:00"))
        c = await store.insert(make_draft(created_at="2024-01-01 00:00:00"))

        assert await store.delete(b) is True

        assert [n.id for n in await store.get_all()] == [a, c]
        assert await store.get(b) is None

    @pytest.mark.parametrize("operation", [
        lambda s: s.update("note_404", NotePatch(title="x")),
        lambda s: s.set_liked("note_404", True),
        lambda s: s.set_recording_path("note_404", ""),
        lambda s: s.delete("note_404"),
    ])
    async def test_unknown_id_is_silent_noop(self, store, make_draft, operation):
        await store.insert(make_draft())
        assert await operation(store) is False
        assert store.count() == 1
        assert await store.get("note_404") is None


# ---------------------------------------------------------------------------
# Ordering / search / tags
# ---------------------------------------------------------------------------

class TestQueries:

    async def test_sorted_by_created_at_desc(self, store, make_draft):
        await store.insert(make_draft(title="a", created_at="2024-01-01"))
        await store.insert(make_draft(title="b", created_at="2024-06-01"))
        await store.insert(make_draft(title="c", created_at="2023-12-31"))

        assert [n.title for n in await store.get_all()] == ["b", "a", "c"]

    async def test_unparsable_timestamp_sorts_last(self, store, make_draft):
        await store.insert(make_draft(title="broken", created_at="sometime"))
        await store.insert(make_draft(title="ok", created_at="2020-01-01 00:00:00"))

        assert [n.title for n in await store.get_all()] == ["ok", "broken"]

    async def test_out_of_range_timestamp_does_not_break_listing(self, store, make_draft):
        await store.insert(make_draft(title="edge", created_at="0001-01-01T00:00:00+05:00"))
        await store.insert(make_draft(title="ok", created_at="2024-01-01 10:00:00"))

        assert [n.title for n in await store.get_all()] == ["ok", "edge"]
        assert [n.title for n in await store.search("")] == ["ok", "edge"]

    async def test_equal_timestamps_keep_insertion_order(self, store, make_draft):
        for title in ["first", "second", "third"]:
            await store.insert(make_draft(title=title, created_at="2024-01-01 00:00:00"))

        assert [n.title for n in await store.get_all()] == ["first", "second", "third"]

    async def test_search_is_case_insensitive_across_fields(self, store, make_draft):
        await store.insert(make_draft(title="Meeting", content="Discussed timeline"))
        await store.insert(make_draft(title="Groceries", content="milk", tags="home"))
        await store.insert(make_draft(title="Call", content="ask about MEETING room"))
        await store.insert(make_draft(title="Todo", content="x", tags="meetings"))

        titles = {n.title for n in await store.search("meeting")}
        assert titles == {"Meeting", "Call", "Todo"}

    async def test_search_results_sorted(self, store, make_draft):
        await store.insert(make_draft(title="old idea", created_at="2023-01-01"))
        await store.insert(make_draft(title="new idea", created_at="2024-01-01"))

        assert [n.title for n in await store.search("idea")] == ["new idea", "old idea"]

    async def test_empty_search_matches_all(self, store, make_draft):
        await store.insert(make_draft())
        await store.insert(make_draft())
        assert len(await store.search("")) == 2

    async def test_search_without_match(self, store, make_draft):
        await store.insert(make_draft())
        assert await store.search("nothing-like-this") == []

    async def test_get_tags(self, store, make_draft):
        await store.insert(make_draft(tags="work, ideas"))
        await store.insert(make_draft(tags="ideas,home"))
        await store.insert(make_draft())

        assert await store.get_tags() == ["home", "ideas", "work"]
