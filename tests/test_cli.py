"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from putoff.cli import app

runner = CliRunner()


def _invoke(*args: str):
    result = runner.invoke(app, list(args))
    return result


def _jsonl(*args: str) -> list[dict]:
    result = _invoke(*args, "-f", "jsonl")
    assert result.exit_code == 0, f"Failed: {result.output}"
    return [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]


@pytest.fixture
def cli_env(tmp_path: Path) -> Path:
    """Isolated config dir and cwd (set up by the autouse fixture)."""
    return tmp_path / "config"


class TestCliHelp:
    def test_help_command_works(self, cli_env):
        result = _invoke("--help")

        assert result.exit_code == 0, f"--help failed: {result.output}"
        assert "Personal task tracker" in result.stdout


class TestCliAdd:
    def test_add_dream(self, cli_env):
        result = _invoke("add", "buy milk")

        assert result.exit_code == 0, f"Failed: {result.output}"
        assert "New dream: buy milk" in result.stdout
        assert (Path.cwd() / "storage.json").exists()
        assert (cli_env / "settings.config").exists()

    def test_add_deadline(self, cli_env):
        result = _invoke("add", "tax return", "--due", "2024-04-30 23:59")

        assert result.exit_code == 0, f"Failed: {result.output}"
        assert "New deadline: tax return due 2024-04-30 23:59" in result.stdout

    def test_add_event(self, cli_env):
        result = _invoke("add", "trip", "--start", "2024-05-01", "--end", "2024-05-03")

        assert result.exit_code == 0, f"Failed: {result.output}"
        assert "New event: trip" in result.stdout

    def test_add_event_inverted_range(self, cli_env):
        result = _invoke(
            "add", "meeting", "--start", "2024-01-10 09:00", "--end", "2024-01-10 08:00"
        )

        assert result.exit_code == 1
        assert "Error" in result.stdout
        assert _jsonl("ls", "--all") == []

    def test_add_event_needs_both_dates(self, cli_env):
        result = _invoke("add", "meeting", "--start", "2024-01-10")

        assert result.exit_code == 1
        assert "both --start and --end" in result.stdout

    def test_add_empty_description(self, cli_env):
        result = _invoke("add", "  ")

        assert result.exit_code == 1
        assert "must not be empty" in result.stdout


class TestCliList:
    def test_empty(self, cli_env):
        result = _invoke("ls")

        assert result.exit_code == 0
        assert "No tasks" in result.stdout

    def test_table(self, cli_env):
        _invoke("add", "buy milk")

        result = _invoke("ls")

        assert result.exit_code == 0
        assert "buy milk" in result.stdout

    def test_line_numbers_span_both_lists(self, cli_env):
        _invoke("add", "a")
        _invoke("add", "b")
        _invoke("add", "c")
        _invoke("done", "1")

        outstanding = _jsonl("ls")
        completed = _jsonl("ls", "--done")
        everything = _jsonl("ls", "--all")

        assert [(r["line"], r["description"]) for r in outstanding] == [(1, "b"), (2, "c")]
        assert [(r["line"], r["description"]) for r in completed] == [(3, "a")]
        assert [r["line"] for r in everything] == [1, 2, 3]

    def test_unknown_format(self, cli_env):
        result = _invoke("ls", "-f", "xml")

        assert result.exit_code == 1
        assert "Unknown format" in result.stdout


class TestCliMutations:
    def test_done_and_undone(self, cli_env):
        _invoke("add", "a")

        result = _invoke("done", "1")
        assert result.exit_code == 0
        assert "Done dream: a" in result.stdout
        assert _jsonl("ls", "--done")[0]["is_done"] is True

        result = _invoke("done", "1")
        assert "Undone dream: a" in result.stdout
        assert _jsonl("ls")[0]["is_done"] is False

    def test_rm(self, cli_env):
        _invoke("add", "a")
        _invoke("add", "b")

        result = _invoke("rm", "1")

        assert result.exit_code == 0
        assert "Deleted dream: a" in result.stdout
        assert [r["description"] for r in _jsonl("ls")] == ["b"]

    def test_rm_invalid_line(self, cli_env):
        result = _invoke("rm", "5")

        assert result.exit_code == 1
        assert "Invalid line number: 5" in result.stdout

    def test_edit_text_keeps_position(self, cli_env):
        _invoke("add", "a")
        _invoke("add", "b", "--due", "2024-02-01")
        _invoke("add", "c")

        result = _invoke("edit", "2", "--text", "b2")

        assert result.exit_code == 0, f"Failed: {result.output}"
        rows = _jsonl("ls")
        assert [r["description"] for r in rows] == ["a", "b2", "c"]
        assert rows[1]["type"] == "deadline"
        assert rows[1]["due_date"] == "2024-02-01T00:00:00"

    def test_edit_to_event_and_back_to_dream(self, cli_env):
        _invoke("add", "a")

        _invoke("edit", "1", "--start", "2024-02-01", "--end", "2024-02-02")
        assert _jsonl("ls")[0]["type"] == "event"

        _invoke("edit", "1", "--dream")
        row = _jsonl("ls")[0]
        assert row["type"] == "dream"
        assert row["description"] == "a"

    def test_edit_needs_something(self, cli_env):
        _invoke("add", "a")

        result = _invoke("edit", "1")

        assert result.exit_code == 1
        assert "Please specify" in result.stdout


class TestCliUndo:
    def test_nothing_to_undo(self, cli_env):
        result = _invoke("undo")

        assert result.exit_code == 0
        assert "Nothing to undo" in result.stdout

    def test_undo_across_invocations(self, cli_env):
        _invoke("add", "a")
        _invoke("add", "b")

        result = _invoke("undo")
        assert result.exit_code == 0
        assert "Undid last operation" in result.stdout
        assert [r["description"] for r in _jsonl("ls")] == ["a"]

        _invoke("undo")
        assert [r["description"] for r in _jsonl("ls")] == ["a", "b"]

    def test_undo_delete(self, cli_env):
        _invoke("add", "a")
        _invoke("rm", "1")

        _invoke("undo")

        assert [r["description"] for r in _jsonl("ls")] == ["a"]


class TestCliSearch:
    def test_term(self, cli_env):
        _invoke("add", "buy milk")
        _invoke("add", "bake bread")

        rows = _jsonl("search", "milk")

        assert [r["description"] for r in rows] == ["buy milk"]

    def test_on_day(self, cli_env):
        _invoke("add", "dream")
        _invoke("add", "report", "--due", "2024-03-01 17:00")
        _invoke("add", "later", "--due", "2024-03-02 09:00")

        rows = _jsonl("search", "--on", "2024-03-01")

        assert [(r["line"], r["description"]) for r in rows] == [(2, "report")]

    def test_outstanding_only(self, cli_env):
        _invoke("add", "milk a")
        _invoke("add", "milk b")
        _invoke("done", "1")

        rows = _jsonl("search", "milk", "--outstanding")

        assert [r["description"] for r in rows] == ["milk b"]

    def test_inverted_range(self, cli_env):
        result = _invoke("search", "--from", "2024-03-02", "--to", "2024-03-01")

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_conflicting_dates(self, cli_env):
        result = _invoke("search", "--on", "2024-03-02", "--due-by", "2024-03-01")

        assert result.exit_code == 1


class TestCliLocation:
    def test_set_location(self, cli_env, tmp_path: Path):
        _invoke("add", "a")
        old_file = Path.cwd() / "storage.json"
        assert old_file.exists()

        result = _invoke("set-location", str(tmp_path / "elsewhere"), "tasks.json")

        assert result.exit_code == 0, f"Failed: {result.output}"
        new_file = tmp_path / "elsewhere" / "tasks.json"
        assert new_file.exists()
        assert not old_file.exists()
        assert [r["description"] for r in _jsonl("ls")] == ["a"]

        result = _invoke("where")
        assert "tasks.json" in result.stdout

    def test_set_location_failure(self, cli_env, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        result = _invoke("set-location", str(blocker / "sub"))

        assert result.exit_code == 1
        assert "Could not set save location" in result.stdout


class TestCliSearchDone:
    def test_on_day_skips_completed(self, cli_env):
        _invoke("add", "report", "--due", "2024-03-01 17:00")
        _invoke("add", "filed", "--due", "2024-03-01 09:00")
        _invoke("done", "2")

        rows = _jsonl("search", "--on", "2024-03-01")

        assert [(r["line"], r["description"]) for r in rows] == [(1, "report")]

    def test_on_day_with_done(self, cli_env):
        _invoke("add", "report", "--due", "2024-03-01 17:00")
        _invoke("add", "filed", "--due", "2024-03-01 09:00")
        _invoke("done", "2")

        rows = _jsonl("search", "--on", "2024-03-01", "--done")

        assert [r["description"] for r in rows] == ["report", "filed"]

    def test_due_by_skips_completed(self, cli_env):
        _invoke("add", "filed", "--due", "2024-03-01 09:00")
        _invoke("done", "1")

        assert _jsonl("search", "--due-by", "2024-03-02") == []

    def test_term_search_includes_completed(self, cli_env):
        _invoke("add", "milk")
        _invoke("done", "1")

        assert [r["description"] for r in _jsonl("search", "milk")] == ["milk"]


class TestCliConfig:
    def test_lists_settings(self, cli_env):
        result = _invoke("config")

        assert result.exit_code == 0, f"Failed: {result.output}"
        assert "datetime_format" in result.stdout
        assert "default_format" in result.stdout

    def test_set_default_format(self, cli_env):
        _invoke("add", "buy milk")

        result = _invoke("config", "default_format", "jsonl")
        assert result.exit_code == 0, f"Failed: {result.output}"
        assert json.loads((cli_env / "config.json").read_text()) == {"default_format": "jsonl"}

        result = _invoke("ls")
        assert json.loads(result.stdout.splitlines()[0])["description"] == "buy milk"

    def test_unknown_setting(self, cli_env):
        result = _invoke("config", "colour", "blue")

        assert result.exit_code == 1
        assert "Unknown setting" in result.stdout

    def test_rejects_bad_values(self, cli_env):
        assert _invoke("config", "default_format", "xml").exit_code == 1
        assert _invoke("config", "log_level", "LOUD").exit_code == 1
        assert not (cli_env / "config.json").exists()

    def test_needs_value(self, cli_env):
        result = _invoke("config", "log_level")

        assert result.exit_code == 1
        assert "Please give a value" in result.stdout
