"""
Tests for the command line interface.
"""

import json
from contextlib import contextmanager

import pytest
from rich.console import Console
from typer.testing import CliRunner

from family_activities import cli
from family_activities.cli import app

runner = CliRunner()

PAYLOAD = {
    "events": [
        {"title": "Kids Art Workshop", "location": "Seattle Community Center", "date": "12/15/2024"},
        {"description": "no title here"},
    ]
}


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep table cells on one line regardless of the terminal."""
    monkeypatch.setattr(cli, "console", Console(width=200))


@pytest.fixture
def payload_file(tmp_path):
    path = tmp_path / "extraction.json"
    path.write_text(json.dumps(PAYLOAD), encoding="utf-8")
    return path


@pytest.fixture
def cli_db(monkeypatch, session_factory):
    """Point the CLI at the in-memory test database."""

    @contextmanager
    def test_scope():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    monkeypatch.setattr(cli, "session_scope", test_scope)
    return session_factory


class TestConvertCommand:
    """Test converting files from the command line."""

    def test_convert_table(self, payload_file):
        result = runner.invoke(app, ["convert", str(payload_file)])

        assert result.exit_code == 0
        assert "Kids Art Workshop" in result.output
        assert "Summary" in result.output

    def test_convert_json(self, payload_file):
        result = runner.invoke(app, ["convert", str(payload_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["summary"]["activities"] == 1
        assert data["summary"]["failures"] == 1

    def test_convert_with_source_url(self, tmp_path):
        path = tmp_path / "one.json"
        path.write_text(json.dumps({"events": [{"title": "Story Time", "location": "Library"}]}))

        result = runner.invoke(app, ["convert", str(path), "--json", "--url", "https://lib.example.org"])

        data = json.loads(result.stdout)
        assert data["activities"][0]["registrationURL"] == "https://lib.example.org"

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["convert", str(tmp_path / "nope.json")])

        assert result.exit_code == 1

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["convert", str(path)])

        assert result.exit_code == 1

    def test_invalid_schema_type(self, payload_file):
        result = runner.invoke(app, ["convert", str(payload_file), "--schema-type", "recipes"])

        assert result.exit_code == 1
        assert "Invalid schema type" in result.output


class TestEventsCommands:
    """Test the review workflow from the command line."""

    def test_submit_and_list(self, cli_db, payload_file):
        result = runner.invoke(app, ["events", "submit", str(payload_file), "--url", "https://example.com"])
        assert result.exit_code == 0
        assert "Stored event 1" in result.output

        result = runner.invoke(app, ["events", "list"])
        assert result.exit_code == 0
        assert "https://example.com" in result.output

    def test_list_empty(self, cli_db):
        result = runner.invoke(app, ["events", "list"])

        assert result.exit_code == 0
        assert "No events found" in result.output

    def test_list_invalid_status(self, cli_db):
        result = runner.invoke(app, ["events", "list", "--status", "archived"])

        assert result.exit_code == 1

    def test_show(self, cli_db, payload_file):
        runner.invoke(app, ["events", "submit", str(payload_file)])

        result = runner.invoke(app, ["events", "show", "1"])

        assert result.exit_code == 0
        assert "Kids Art Workshop" in result.output
        assert "title" in result.output

    def test_show_missing(self, cli_db):
        result = runner.invoke(app, ["events", "show", "42"])

        assert result.exit_code == 1

    def test_approve_then_reject_fails(self, cli_db, payload_file):
        runner.invoke(app, ["events", "submit", str(payload_file)])

        approved = runner.invoke(app, ["events", "approve", "1", "--by", "sam"])
        rejected = runner.invoke(app, ["events", "reject", "1", "--reason", "spam"])

        assert approved.exit_code == 0
        assert "approved" in approved.output
        assert rejected.exit_code == 1

    def test_reject_requires_reason(self, cli_db, payload_file):
        runner.invoke(app, ["events", "submit", str(payload_file)])

        result = runner.invoke(app, ["events", "reject", "1"])

        assert result.exit_code != 0

    def test_stats(self, cli_db, payload_file):
        runner.invoke(app, ["events", "submit", str(payload_file)])

        result = runner.invoke(app, ["events", "stats"])

        assert result.exit_code == 0
        assert "Pending" in result.output
        assert "Total" in result.output


class TestDatabaseCommands:
    """Test init and status."""

    def test_status(self, cli_db, payload_file):
        runner.invoke(app, ["events", "submit", str(payload_file)])

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "pending: 1" in result.output
        assert "rejected: 0" in result.output

    def test_init_reset_confirms(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli, "reset_db", lambda: calls.append("reset"))

        declined = runner.invoke(app, ["init", "--reset"], input="n\n")
        accepted = runner.invoke(app, ["init", "--reset"], input="y\n")

        assert declined.exit_code == 1
        assert accepted.exit_code == 0
        assert calls == ["reset"]
