"""Tests for the local durable store."""
import json
import logging
import os

from pitchboard.services import PersistenceService


def test_records_survive_a_new_instance(tmp_path):
    store = PersistenceService(str(tmp_path))
    assert store.save("pitch-board-state", {"teamId": "t1"}) is True

    again = PersistenceService(str(tmp_path))
    assert again.load("pitch-board-state") == {"teamId": "t1"}
    assert not list(tmp_path.glob("*.tmp"))


def test_session_id_keeps_records_apart(tmp_path):
    first = PersistenceService(str(tmp_path), session_id="tab/1")
    second = PersistenceService(str(tmp_path), session_id="tab-2")
    first.save("pitch-board-timer-state", {"n": 1})

    assert first.storage_key("pitch-board-timer-state") == "pitch-board-timer-state:tab/1"
    assert second.load("pitch-board-timer-state") is None
    assert os.path.exists(tmp_path / "pitch-board-timer-state_tab_1.json")


def test_delete_removes_file(tmp_path):
    store = PersistenceService(str(tmp_path))
    store.save("k", {"a": 1})
    store.delete("k")
    assert store.load("k") is None
    assert PersistenceService(str(tmp_path)).load("k") is None


def test_unwritable_store_degrades_to_memory(tmp_path, caplog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    store = PersistenceService(str(blocker))

    with caplog.at_level(logging.WARNING, logger="pitchboard.services.persistence_service"):
        assert store.save("k", {"a": 1}) is False
        assert store.save("k", {"a": 2}) is False

    assert store.memory_only
    assert store.load("k") == {"a": 2}
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


def test_corrupt_record_is_ignored(tmp_path):
    (tmp_path / "k.json").write_text("{not json")
    store = PersistenceService(str(tmp_path))
    assert store.load("k") is None
    assert store.memory_only


def test_memory_only_store(tmp_path):
    store = PersistenceService()
    assert store.save("k", {"a": 1}) is False
    assert store.load("k") == {"a": 1}
    loaded = store.load("k")
    loaded["a"] = 99
    assert store.load("k") == {"a": 1}
    assert json.dumps(store.load("k"))


def test_delete_clears_disk_after_degrading(tmp_path, monkeypatch):
    store = PersistenceService(str(tmp_path))
    store.save("pitch-board-timer-state", {"isRunning": True})

    def refuse(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("pitchboard.services.persistence_service.os.replace", refuse)
    assert store.save("pitch-board-timer-state", {"isRunning": True, "elapsedSeconds": 5}) is False
    monkeypatch.undo()
    assert store.memory_only

    store.delete("pitch-board-timer-state")
    assert store.load("pitch-board-timer-state") is None
    assert PersistenceService(str(tmp_path)).load("pitch-board-timer-state") is None
