"""Unit tests for NoteStore."""

import asyncio
import json
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from src.core.exceptions import NoteNotFoundError, NoteStoreCorruptError, ValidationError
from src.core.models import Note
from src.services.storage.note_store import NoteStore
from src.services.storage.slots import FileSlotBackend, SQLiteSlotBackend


@pytest.fixture
def slots(make_slots):
    return make_slots()


@pytest.fixture
async def store(slots):
    store = NoteStore(slots, key="audioNotes")
    await store.load()
    return store


def _note(store: NoteStore, title: str, sample_analysis) -> Note:
    return store.new_note(
        title=title, transcription=f"{title} transcript", analysis=sample_analysis
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoad:
    async def test_absent_slot_is_empty(self, slots):
        store = NoteStore(slots, key="audioNotes")
        assert await store.load() == []
        assert store.loaded
        assert len(store) == 0

    @pytest.mark.parametrize(
        "raw",
        ["not json", '{"notes": []}', '[{"id": 1}]', "[1, 2, 3]"],
    )
    async def test_corrupt_slot_fails_and_is_left_untouched(self, make_slots, raw):
        slots = make_slots({"audioNotes": raw})
        store = NoteStore(slots, key="audioNotes")

        with pytest.raises(NoteStoreCorruptError) as exc_info:
            await store.load()

        assert exc_info.value.code == "STORAGE_CORRUPT"
        assert slots.values["audioNotes"] == raw
        assert slots.writes == 0

    async def test_reads_camel_case_records(self, make_slots):
        record = {
            "id": "1700000000000",
            "title": "Garden plan",
            "transcription": "Raised beds",
            "analysis": {
                "keyPoints": [{"title": "Beds", "description": "Build two"}],
                "projectAnalysis": None,
            },
            "createdAt": "2024-11-14T22:13:20Z",
        }
        store = NoteStore(make_slots({"audioNotes": json.dumps([record])}), key="audioNotes")

        notes = await store.load()

        assert notes[0].title == "Garden plan"
        assert notes[0].analysis.key_points[0].description == "Build two"
        assert notes[0].created_at == datetime(2024, 11, 14, 22, 13, 20, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------------


class TestNoteIds:
    async def test_ids_strictly_increase_within_one_millisecond(self, store, sample_analysis):
        with patch("src.services.storage.note_store.time.time", return_value=1_700_000_000.0):
            ids = [int(_note(store, f"n{i}", sample_analysis).id) for i in range(3)]

        assert ids == [1_700_000_000_000, 1_700_000_000_001, 1_700_000_000_002]

    async def test_ids_continue_after_loaded_notes(self, make_slots, sample_analysis):
        future = "9999999999999"
        seed = NoteStore(make_slots(), key="audioNotes")
        await seed.load()
        note = _note(seed, "seed", sample_analysis).model_copy(update={"id": future})
        await seed.append(note)

        store = NoteStore(seed._backend, key="audioNotes")
        await store.load()

        assert int(_note(store, "next", sample_analysis).id) == int(future) + 1


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TestAppend:
    async def test_append_inserts_first_and_persists(self, store, slots, sample_analysis):
        first = _note(store, "First", sample_analysis)
        second = _note(store, "Second", sample_analysis)

        await store.append(first)
        await store.append(second)

        assert [n.title for n in store.notes] == ["Second", "First"]
        persisted = json.loads(slots.values["audioNotes"])
        assert [n["title"] for n in persisted] == ["Second", "First"]
        assert "createdAt" in persisted[0]
        assert "keyPoints" in persisted[0]["analysis"]

    async def test_failed_write_leaves_memory_unchanged(self, store, slots, sample_analysis):
        await store.append(_note(store, "Kept", sample_analysis))
        slots.fail_writes = True

        with pytest.raises(OSError):
            await store.append(_note(store, "Lost", sample_analysis))

        assert [n.title for n in store.notes] == ["Kept"]

    async def test_duplicate_id_rejected(self, store, sample_analysis):
        note = _note(store, "Once", sample_analysis)
        await store.append(note)
        with pytest.raises(ValidationError):
            await store.append(note)
        assert len(store) == 1

    async def test_concurrent_appends_lose_nothing(self, store, slots, sample_analysis):
        notes = [_note(store, f"n{i}", sample_analysis) for i in range(10)]

        await asyncio.gather(*(store.append(n) for n in notes))

        assert len(store) == 10
        assert len(json.loads(slots.values["audioNotes"])) == 10

    async def test_append_before_load_keeps_existing_notes(self, make_slots, sample_analysis):
        slots = make_slots()
        seeded = NoteStore(slots, key="audioNotes")
        await seeded.append(_note(seeded, "Existing", sample_analysis))

        fresh = NoteStore(slots, key="audioNotes")
        await fresh.append(_note(fresh, "New", sample_analysis))

        assert [n.title for n in fresh.notes] == ["New", "Existing"]


class TestRename:
    async def test_rename_twice_is_idempotent(self, store, slots, sample_analysis):
        note = _note(store, "Old", sample_analysis)
        await store.append(note)

        await store.rename(note.id, "X")
        renamed = await store.rename(note.id, "X")

        assert renamed.title == "X"
        assert [n.title for n in store.notes] == ["X"]
        assert json.loads(slots.values["audioNotes"])[0]["title"] == "X"

    async def test_rename_trims_title(self, store, sample_analysis):
        note = _note(store, "Old", sample_analysis)
        await store.append(note)
        assert (await store.rename(note.id, "  New title  ")).title == "New title"

    async def test_rename_keeps_other_fields(self, store, sample_analysis):
        note = _note(store, "Old", sample_analysis)
        await store.append(note)

        renamed = await store.rename(note.id, "New")

        assert renamed.id == note.id
        assert renamed.transcription == note.transcription
        assert renamed.created_at == note.created_at

    async def test_rename_missing_raises(self, store):
        with pytest.raises(NoteNotFoundError):
            await store.rename("nope", "X")

    async def test_rename_blank_rejected(self, store, sample_analysis):
        note = _note(store, "Old", sample_analysis)
        await store.append(note)
        with pytest.raises(ValidationError):
            await store.rename(note.id, "   ")
        assert store.get(note.id).title == "Old"


class TestDelete:
    async def test_delete_removes_and_persists(self, store, slots, sample_analysis):
        a = _note(store, "A", sample_analysis)
        b = _note(store, "B", sample_analysis)
        await store.append(a)
        await store.append(b)

        await store.delete(a.id)

        assert [n.id for n in store.notes] == [b.id]
        assert [n["id"] for n in json.loads(slots.values["audioNotes"])] == [b.id]

    async def test_delete_missing_leaves_store_unchanged(self, store, slots, sample_analysis):
        await store.append(_note(store, "A", sample_analysis))
        writes = slots.writes

        with pytest.raises(NoteNotFoundError):
            await store.delete("does-not-exist")

        assert len(store) == 1
        assert slots.writes == writes

    async def test_get_missing_raises(self, store):
        with pytest.raises(NoteNotFoundError):
            store.get("missing")


# ---------------------------------------------------------------------------
# Round trip through real backends
# ---------------------------------------------------------------------------


async def test_reload_from_file_slot_matches(tmp_path, sample_analysis):
    store = NoteStore(FileSlotBackend(tmp_path), key="audioNotes")
    await store.load()
    for title in ("One", "Two", "Three"):
        await store.append(_note(store, title, sample_analysis))

    reloaded = NoteStore(FileSlotBackend(tmp_path), key="audioNotes")
    await reloaded.load()

    assert reloaded.notes == store.notes


async def test_undecodable_file_slot_is_corrupt(tmp_path):
    slot_file = tmp_path / "audioNotes.json"
    slot_file.write_bytes(b"\xff\xfe\x00garbage")
    store = NoteStore(FileSlotBackend(tmp_path), key="audioNotes")

    with pytest.raises(NoteStoreCorruptError):
        await store.load()

    assert not store.loaded
    assert slot_file.read_bytes() == b"\xff\xfe\x00garbage"


async def test_reload_from_sqlite_slot_matches(use_db_engine, sample_analysis):
    store = NoteStore(SQLiteSlotBackend(), key="audioNotes")
    await store.load()
    for title in ("One", "Two"):
        await store.append(_note(store, title, sample_analysis))
    await store.rename(store.notes[1].id, "Renamed")

    reloaded = NoteStore(SQLiteSlotBackend(), key="audioNotes")
    await reloaded.load()

    assert reloaded.notes == store.notes
    assert [n.title for n in reloaded.notes] == ["Two", "Renamed"]
