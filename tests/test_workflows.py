"""Tests for the shared workflow layer."""

import json
from datetime import date
from unittest.mock import patch

import pytest

from lifesync.adapters.ids import UUIDGenerator
from lifesync.config import Config
from lifesync.core.models import Recurrence
from lifesync.workflows import (
    backup_filename,
    export_to_file,
    get_gateway,
    import_from_file,
    open_session,
)


@pytest.fixture
def config(tmp_path):
    return Config(data_dir=str(tmp_path / "data"))


class TestGetGateway:
    def test_uses_configured_dir_and_key(self, tmp_path):
        config = Config(data_dir=str(tmp_path), storage_key="profile_2")
        gateway = get_gateway(config, UUIDGenerator())
        assert gateway.slot.data_dir == tmp_path
        assert gateway.key == "profile_2"


class TestOpenSession:
    def test_starts_empty(self, config):
        session = open_session(config)
        assert session.store.tasks == ()
        assert session.save_failed is False

    def test_changes_persist_across_sessions(self, config):
        first = open_session(config)
        task = first.store.add_task("Gym", date(2024, 1, 1), recurrence=Recurrence.weekly([1]))
        first.store.toggle_task_completion(task.id, date(2024, 1, 8))

        second = open_session(config)
        assert second.store.tasks == first.store.tasks

    def test_default_category_from_config(self, tmp_path):
        config = Config(data_dir=str(tmp_path), default_category="Misc")
        session = open_session(config)
        assert session.store.default_category == "Misc"

    def test_write_failure_flagged(self, config):
        session = open_session(config)
        with patch.object(session.gateway.slot, "write", side_effect=OSError("disk full")):
            session.store.add_note("Idea")
        assert session.save_failed is True
        assert len(session.store.notes) == 1


class TestBackupFiles:
    def test_backup_filename(self):
        assert backup_filename(date(2024, 1, 8)) == "lifesync_backup_2024-01-08.json"

    def test_export_then_import(self, config, tmp_path):
        session = open_session(config)
        session.store.add_note("Keep me", "body")
        backup = export_to_file(session.store, tmp_path / "backup.json")
        document = json.loads(backup.read_text(encoding="utf-8"))
        assert document["notes"][0]["title"] == "Keep me"

        session.store.reset_all()
        assert import_from_file(session.store, backup) is True
        assert [n.title for n in session.store.notes] == ["Keep me"]

    def test_import_rejects_bad_file(self, config, tmp_path):
        session = open_session(config)
        session.store.add_note("Existing")
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        assert import_from_file(session.store, bad) is False
        assert [n.title for n in session.store.notes] == ["Existing"]
