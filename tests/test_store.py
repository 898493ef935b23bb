"""Tests for the JSON and SQLite complaint stores."""
import json
from datetime import datetime, timezone
import re

import pytest

from complaint_modules.errors import StorageError
from complaint_modules.models import ComplaintRecord
from complaint_modules.store import (
    JsonComplaintStore,
    SqliteComplaintStore,
    new_complaint_id,
    open_store,
)


def _record(complaint_id, text="no water for 3 days", **overrides):
    data = {
        "id": complaint_id,
        "complaint_text": f"LETTER: {text}",
        "transcribed_text": text,
        "language": "en",
        "category": "Water Supply",
        "status": "submitted",
    }
    data.update(overrides)
    return ComplaintRecord(**data)


@pytest.fixture(params=["json", "sqlite"])
def store(request, tmp_path, clock):
    if request.param == "json":
        return JsonComplaintStore(str(tmp_path / "data" / "complaints.json"), clock=clock)
    return SqliteComplaintStore(str(tmp_path / "data" / "complaints.db"), clock=clock)


def test_save_then_get_round_trip(store):
    original = _record("AB12CD34", audio_path="uploads/clip.webm")
    saved = store.save(original)

    assert saved.created_at == "2026-03-14T09:30:00.000000Z"
    assert saved.updated_at == saved.created_at
    fetched = store.get_by_id("AB12CD34")
    assert fetched == saved
    expected = original.to_dict()
    expected.update(created_at=saved.created_at, updated_at=saved.updated_at)
    assert fetched.to_dict() == expected


def test_save_does_not_mutate_input(store):
    original = _record("AB12CD34")
    store.save(original)
    assert original.created_at is None


def test_get_unknown_id_returns_none(store):
    assert store.get_by_id("NOPE0000") is None


def test_get_all_is_newest_first(store):
    for cid in ("AAAAAAAA", "BBBBBBBB", "CCCCCCCC"):
        store.save(_record(cid))
    assert [r.id for r in store.get_all()] == ["CCCCCCCC", "BBBBBBBB", "AAAAAAAA"]


def test_get_all_ties_prefer_latest_insert(tmp_path):
    frozen = lambda: datetime(2026, 1, 1, tzinfo=timezone.utc)
    for s in (JsonComplaintStore(str(tmp_path / "a.json"), clock=frozen),
              SqliteComplaintStore(str(tmp_path / "a.db"), clock=frozen)):
        s.save(_record("FIRST000"))
        s.save(_record("SECOND00"))
        assert [r.id for r in s.get_all()] == ["SECOND00", "FIRST000"]


def test_empty_store_lists_nothing(store):
    assert store.get_all() == []


def test_update_status_refreshes_updated_at(store):
    saved = store.save(_record("AB12CD34"))
    store.update_status("AB12CD34", "reviewed")

    updated = store.get_by_id("AB12CD34")
    assert updated.status == "reviewed"
    assert updated.created_at == saved.created_at
    assert updated.updated_at > saved.updated_at


def test_update_status_unknown_id_is_ignored(store):
    store.save(_record("AB12CD34"))
    before = [r.to_dict() for r in store.get_all()]

    store.update_status("MISSING0", "resolved")

    assert [r.to_dict() for r in store.get_all()] == before


def test_update_status_rejects_unknown_status(store):
    store.save(_record("AB12CD34"))
    with pytest.raises(ValueError):
        store.update_status("AB12CD34", "deleted")


def test_duplicate_id_is_a_storage_error(store):
    store.save(_record("AB12CD34"))
    with pytest.raises(StorageError):
        store.save(_record("AB12CD34", text="another"))
    assert len(store.get_all()) == 1


def test_unicode_text_survives(store):
    text = "எங்கள் தெருவில் தண்ணீர் வரவில்லை"
    store.save(_record("TA000001", text=text, language="ta", category="தண்ணீர்"))
    fetched = store.get_by_id("TA000001")
    assert fetched.transcribed_text == text
    assert fetched.category == "தண்ணீர்"


def test_json_store_file_layout(tmp_path, clock):
    path = tmp_path / "complaints.json"
    JsonComplaintStore(str(path), clock=clock).save(_record("AB12CD34"))
    data = json.loads(path.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert set(data[0]) == {"id", "complaint_text", "transcribed_text", "audio_path", "language",
                            "category", "status", "created_at", "updated_at"}


def test_json_store_unwritable_location(tmp_path, clock):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = JsonComplaintStore(str(blocker / "complaints.json"), clock=clock)
    with pytest.raises(StorageError):
        store.save(_record("AB12CD34"))


def test_sqlite_store_unwritable_location(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(StorageError):
        SqliteComplaintStore(str(blocker / "complaints.db"))


def test_json_store_corrupt_file(tmp_path, clock):
    path = tmp_path / "complaints.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonComplaintStore(str(path), clock=clock)
    with pytest.raises(StorageError):
        store.get_all()
    assert store.check() is False


def test_new_complaint_id_format():
    ids = {new_complaint_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(re.fullmatch(r"[0-9A-F]{8}", i) for i in ids)


def test_open_store_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.delenv("COMPLAINT_STORE_PATH", raising=False)

    monkeypatch.setenv("COMPLAINT_STORE_BACKEND", "sqlite")
    sqlite_store = open_store()
    assert isinstance(sqlite_store, SqliteComplaintStore)
    assert sqlite_store.path == str(tmp_path / "complaints.db")

    monkeypatch.setenv("COMPLAINT_STORE_BACKEND", "json")
    assert isinstance(open_store(), JsonComplaintStore)

    explicit = open_store("json", str(tmp_path / "other.json"))
    assert explicit.path == str(tmp_path / "other.json")
