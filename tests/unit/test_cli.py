"""Unit tests for the command-line interface."""

import pytest

from remind.cli import main
from remind.config import get_settings
from remind.sync import OfflineStore


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("REMIND_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.sqlite3'}")
    monkeypatch.setenv("REMIND_SYNC_DB_PATH", str(tmp_path / "offline.sqlite3"))
    monkeypatch.setenv("REMIND_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestCli:
    """Test suite for the remind command."""

    def test_parse_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that parse prints the extracted title."""
        assert main(["parse", "Call mom tomorrow at 3pm"]) == 0

        out = capsys.readouterr().out
        assert "Title: Call mom" in out
        assert "Confidence: 0.90" in out

    def test_parse_without_date(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the note printed when no date is recognised."""
        assert main(["parse", "Buy groceries"]) == 0

        assert "defaulted to now" in capsys.readouterr().out

    def test_voice_with_trigger(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that a triggered transcript prints the parsed command."""
        assert main(["voice", "remind me buy milk and get bread"]) == 0

        out = capsys.readouterr().out
        assert '"buy milk"' in out
        assert '"type": "task"' in out

    def test_voice_without_trigger(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the exit code when no trigger phrase is present."""
        assert main(["voice", "buy milk"]) == 1

        assert "No trigger phrase" in capsys.readouterr().out

    def test_init_db(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that init-db creates the database."""
        assert main(["init-db"]) == 0

        assert "Database ready" in capsys.readouterr().out

    def test_dispatch_with_nothing_due(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a dispatch run on an empty database."""
        assert main(["dispatch-reminders"]) == 0

        assert "Due: 0" in capsys.readouterr().out

    def test_offline_sync_records_change(self, tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that --offline only records the change locally."""
        db_path = tmp_path / "offline.sqlite3"

        assert main(["sync", "--offline", "--add", "Dentist tomorrow at 3pm", "--db", str(db_path)]) == 0

        out = capsys.readouterr().out
        assert "Recorded create" in out
        assert "Pending changes: 1" in out
        store = OfflineStore(db_path)
        store.initialize()
        assert [e["title"] for e in store.list_events()] == ["Dentist"]

    def test_unknown_command_exits(self) -> None:
        """Test that argparse rejects unknown subcommands."""
        with pytest.raises(SystemExit):
            main(["frobnicate"])
