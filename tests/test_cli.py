"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from lifesync.cli import main, parse_weekdays
from lifesync.config import Config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def config(tmp_path):
    config = Config(data_dir=str(tmp_path / "data"))
    with patch("lifesync.cli.load_config", return_value=config):
        yield config


def invoke(runner, *args, input=None):
    result = runner.invoke(main, list(args), input=input)
    return result


def only_task_id(runner):
    result = invoke(runner, "task", "list", "--all", "--json")
    return json.loads(result.output)[0]["id"]


class TestParseWeekdays:
    def test_names(self):
        assert parse_weekdays("mon,Wednesday,fri") == [1, 3, 5]

    def test_numbers(self):
        assert parse_weekdays("0, 6") == [0, 6]

    def test_invalid(self):
        import click

        with pytest.raises(click.BadParameter):
            parse_weekdays("funday")


class TestTaskCommands:
    def test_add_and_list(self, runner):
        result = invoke(runner, "task", "add", "Pay rent", "--date", "2024-01-08", "-p", "high")
        assert result.exit_code == 0
        assert "Added task" in result.output

        listed = invoke(runner, "task", "list", "--date", "2024-01-08")
        assert "Pay rent" in listed.output
        assert "[ ]" in listed.output

    def test_add_rejects_empty_title(self, runner):
        result = invoke(runner, "task", "add", "  ")
        assert result.exit_code == 1

    def test_add_rejects_bad_date(self, runner):
        result = invoke(runner, "task", "add", "X", "--date", "08/01/2024")
        assert result.exit_code == 2

    def test_weekly_done_toggles_for_day(self, runner):
        invoke(runner, "task", "add", "Gym", "--date", "2024-01-01", "--weekly", "mon")
        task_id = only_task_id(runner)

        done = invoke(runner, "task", "done", task_id[:6], "--date", "2024-01-08")
        assert "Gym: done" in done.output

        listed = invoke(runner, "task", "list", "--date", "2024-01-15")
        assert "[ ]" in listed.output

        undone = invoke(runner, "task", "done", task_id, "--date", "2024-01-08")
        assert "Gym: not done" in undone.output

    def test_edit(self, runner):
        invoke(runner, "task", "add", "Old", "--date", "2024-01-08")
        task_id = only_task_id(runner)
        result = invoke(runner, "task", "edit", task_id, "--title", "New", "--weekly", "mon,tue")
        assert result.exit_code == 0
        task = json.loads(invoke(runner, "task", "list", "--all", "--json").output)[0]
        assert task["title"] == "New"
        assert task["recurrence"] == {"type": "weekly", "days": [1, 2]}

    def test_unknown_id(self, runner):
        result = invoke(runner, "task", "rm", "nope")
        assert result.exit_code == 1
        assert "No task with id" in result.output

    def test_rm(self, runner):
        invoke(runner, "task", "add", "Temp")
        task_id = only_task_id(runner)
        assert invoke(runner, "task", "rm", task_id).exit_code == 0
        assert "No tasks." in invoke(runner, "task", "list", "--all").output


class TestMoneyCommands:
    def test_add_and_summary(self, runner):
        invoke(runner, "money", "add", "income", "1000", "-c", "Salary")
        invoke(runner, "money", "add", "expense", "250.5")
        summary = invoke(runner, "money", "summary", "--by-category")
        assert "Balance:     749.50" in summary.output
        assert "General" in summary.output

    def test_rejects_negative(self, runner):
        result = invoke(runner, "money", "add", "expense", "--", "-5")
        assert result.exit_code == 2

    def test_list_json(self, runner):
        invoke(runner, "money", "add", "expense", "12", "--note", "lunch")
        entries = json.loads(invoke(runner, "money", "list", "--json").output)
        assert entries[0]["note"] == "lunch"
        assert entries[0]["category"] == "General"


class TestNoteCommands:
    def test_pinned_first(self, runner):
        invoke(runner, "note", "add", "Wifi", "--pin")
        invoke(runner, "note", "add", "Shopping")
        lines = invoke(runner, "note", "list").output.splitlines()
        assert lines[0].startswith("*") and "Wifi" in lines[0]

    def test_search(self, runner):
        invoke(runner, "note", "add", "Shopping", "-c", "milk")
        invoke(runner, "note", "add", "Ideas", "-c", "bike")
        output = invoke(runner, "note", "list", "-s", "MILK").output
        assert "Shopping" in output and "Ideas" not in output


class TestBackupCommands:
    def test_export_import(self, runner, tmp_path):
        invoke(runner, "note", "add", "Keep")
        backup = tmp_path / "backup.json"
        assert invoke(runner, "export", str(backup)).exit_code == 0

        invoke(runner, "reset", "--yes")
        assert "No notes." in invoke(runner, "note", "list").output

        assert invoke(runner, "import", str(backup), "--yes").exit_code == 0
        assert "Keep" in invoke(runner, "note", "list").output

    def test_import_invalid(self, runner, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        result = invoke(runner, "import", str(bad), "--yes")
        assert result.exit_code == 1
        assert "invalid format" in result.output

    def test_reset_needs_confirmation(self, runner):
        invoke(runner, "note", "add", "Keep")
        invoke(runner, "reset", input="n\n")
        assert "Keep" in invoke(runner, "note", "list").output


class TestToday:
    def test_overview_json(self, runner):
        invoke(runner, "task", "add", "A", "--date", "2024-01-08")
        invoke(runner, "money", "add", "income", "10")
        data = json.loads(invoke(runner, "today", "--date", "2024-01-08", "--json").output)
        assert [t["title"] for t in data["pending"]] == ["A"]
        assert data["progress"] == 0
        assert data["balance"] == 10.0
