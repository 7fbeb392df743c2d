"""Tests for the persistence gateway and the file slot."""

import itertools
import json
import logging
import sys
from datetime import date
from unittest.mock import MagicMock

import pytest

from lifesync.adapters.file_slot import FileStateSlot
from lifesync.core.models import Recurrence, TransactionType
from lifesync.core.store import EntityStore
from lifesync.persistence import STORAGE_KEY, PersistenceGateway


@pytest.fixture
def slot(tmp_path):
    return FileStateSlot(tmp_path)


@pytest.fixture
def new_id():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def gateway(slot, new_id):
    return PersistenceGateway(slot, new_id=new_id)


def store_raw(slot, text):
    slot.write(STORAGE_KEY, text)


class TestFileStateSlot:
    def test_read_missing(self, slot):
        assert slot.read("nothing") is None

    def test_write_then_read(self, slot, tmp_path):
        slot.write("k", '{"a": 1}')
        assert slot.read("k") == '{"a": 1}'
        assert (tmp_path / "k.json").exists()

    def test_write_leaves_no_temp_files(self, slot, tmp_path):
        slot.write("k", "one")
        slot.write("k", "two")
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    def test_creates_directory(self, tmp_path):
        slot = FileStateSlot(tmp_path / "nested" / "data")
        slot.write("k", "v")
        assert slot.read("k") == "v"

    def test_remove(self, slot):
        slot.write("k", "v")
        slot.remove("k")
        slot.remove("k")
        assert slot.exists("k") is False

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden"])
    def test_rejects_unsafe_keys(self, slot, key):
        with pytest.raises(ValueError):
            slot.read(key)


class TestLoad:
    def test_absent_slot_is_empty_state(self, gateway):
        state = gateway.load()
        assert (state.tasks, state.transactions, state.notes) == ([], [], [])

    def test_malformed_json_is_empty_state(self, gateway, slot, caplog):
        store_raw(slot, "{not json")
        with caplog.at_level(logging.WARNING):
            state = gateway.load()
        assert state.tasks == []
        assert "Failed to load data" in caplog.text

    @pytest.mark.parametrize("tasks", ["null", '"oops"', "7", "{}"])
    def test_non_array_tasks_become_empty(self, gateway, slot, tasks):
        store_raw(slot, f'{{"tasks": {tasks}, "transactions": [], "notes": []}}')
        assert gateway.load().tasks == []

    def test_missing_tasks_key(self, gateway, slot):
        store_raw(slot, '{"transactions": [], "notes": []}')
        assert gateway.load().tasks == []

    def test_legacy_document_without_notes(self, gateway, slot):
        store_raw(slot, json.dumps({"tasks": [], "transactions": [], "theme": "dark"}))
        state = gateway.load()
        assert state.notes == []
        assert state.to_dict()["theme"] == "dark"

    def test_weekly_completed_corrected(self, gateway, slot, caplog):
        document = {
            "tasks": [
                {
                    "id": "w",
                    "title": "Gym",
                    "date": "2024-01-01",
                    "recurrence": {"type": "weekly", "days": [1]},
                    "priority": "medium",
                    "completed": True,
                    "lastCompletedDate": "",
                    "createdAt": 1,
                }
            ],
            "transactions": [],
            "notes": [],
        }
        store_raw(slot, json.dumps(document))
        with caplog.at_level(logging.WARNING):
            task = gateway.load().tasks[0]
        assert task.completed is False
        assert "weekly task stored as completed" in caplog.text

    def test_repair_runs_on_every_load(self, gateway, slot):
        store_raw(slot, '{"tasks": null}')
        assert gateway.load().tasks == []
        store_raw(slot, '{"tasks": 5}')
        assert gateway.load().tasks == []

    def test_invalid_utf8_is_empty_state(self, gateway, tmp_path, caplog):
        (tmp_path / f"{STORAGE_KEY}.json").write_bytes(b'{"tasks": [\xff\xfe]}')
        with caplog.at_level(logging.WARNING):
            state = gateway.load()
        assert state.tasks == []
        assert "not valid UTF-8" in caplog.text

    def test_deeply_nested_json_is_empty_state(self, gateway, slot, caplog):
        store_raw(slot, "[" * 100000 + "]" * 100000)
        with caplog.at_level(logging.WARNING):
            state = gateway.load()
        assert state.tasks == []
        assert "Failed to load data" in caplog.text

    @pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no integer digit limit")
    def test_overlong_integer_is_empty_state(self, gateway, slot):
        store_raw(slot, '{"tasks": [], "x": ' + "9" * 5000 + "}")
        assert gateway.load().tasks == []

    def test_huge_transaction_value_is_repaired(self, gateway, slot, caplog):
        document = {"tasks": [], "notes": [], "transactions": [
            {"id": "t", "type": "expense", "value": 10**400, "category": "Rent", "date": "2024-01-02", "createdAt": 1}
        ]}
        store_raw(slot, json.dumps(document))
        with caplog.at_level(logging.WARNING):
            tx = gateway.load().transactions[0]
        assert tx.value == 0.0
        assert tx.category == "Rent"
        assert "value is missing or not a number" in caplog.text

    def test_read_error_is_empty_state(self, new_id):
        slot = MagicMock()
        slot.read.side_effect = PermissionError("denied")
        gateway = PersistenceGateway(slot, new_id=new_id)
        assert gateway.load().tasks == []


class TestSave:
    def test_save_then_load(self, gateway, new_id):
        store = EntityStore(new_id=new_id, on_change=gateway.save)
        task = store.add_task("Gym", date(2024, 1, 1), recurrence=Recurrence.weekly([1]))
        store.toggle_task_completion(task.id, date(2024, 1, 8))
        store.add_transaction(TransactionType.INCOME, 10, date(2024, 1, 8))
        store.add_note("Idea", "text")

        assert gateway.load() == store.snapshot()

    def test_extra_fields_survive_save(self, gateway, slot, new_id):
        store_raw(slot, json.dumps({"tasks": [], "transactions": [], "notes": [
            {"id": "n", "title": "x", "content": "", "isPinned": False, "updatedAt": 1, "color": "red"}
        ]}))
        store = EntityStore(gateway.load(), new_id=new_id, on_change=gateway.save)
        store.update_note("n", title="y")
        saved = json.loads(slot.read(STORAGE_KEY))
        assert saved["notes"][0]["color"] == "red"
        assert saved["notes"][0]["title"] == "y"

    def test_write_failure_is_not_fatal(self, new_id, caplog):
        slot = MagicMock()
        slot.read.return_value = None
        slot.write.side_effect = OSError("No space left on device")
        gateway = PersistenceGateway(slot, new_id=new_id)
        store = EntityStore(gateway.load(), new_id=new_id, on_change=gateway.save)

        with caplog.at_level(logging.WARNING):
            task = store.add_task("Still here", date(2024, 1, 1))

        assert store.get_task(task.id) == task
        assert gateway.last_error is not None
        assert "No space left" in caplog.text

    def test_successful_save_clears_error(self, gateway, new_id):
        gateway.last_error = object()
        assert gateway.save(EntityStore(new_id=new_id).snapshot()) is True
        assert gateway.last_error is None

    def test_clear(self, gateway, slot):
        store_raw(slot, "{}")
        gateway.clear()
        assert slot.read(STORAGE_KEY) is None
