"""
Tests for the command-line interface.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from slotbooker.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "schedule:\n"
        "  start_hour: 9\n"
        "  end_hour: 15\n"
        "  timezone: Europe/Paris\n"
        "store:\n"
        "  backend: json\n"
        "  path: bookings.json\n"
        "global_message: Bring your own racket\n",
        encoding="utf-8",
    )
    return path


def _invoke(*args: str, input: str | None = None):
    return runner.invoke(app, list(args), input=input)


def _book(config_path: Path, *labels: str):
    return _invoke(
        "book", "2024-11-25", *labels,
        "--actor-id", "u-alice", "--actor-name", "Alice",
        "--config", str(config_path),
    )


def test_slots_shows_whole_window(config_path):
    """The grid lists every hour of the window."""
    result = _invoke("slots", "2024-11-25", "--config", str(config_path))

    assert result.exit_code == 0, result.output
    for label in ("09:00", "10:00", "11:00", "12:00", "13:00", "14:00"):
        assert label in result.output
    assert "15:00" not in result.output
    assert "Bring your own racket" in result.output


def test_slots_preview_selection(config_path):
    """Selected slots are listed; disabled ones are reported as not selectable."""
    _book(config_path, "10:00")

    result = _invoke(
        "slots", "2024-11-25", "--select", "12:00", "--select", "10:00",
        "--config", str(config_path),
    )

    assert result.exit_code == 0, result.output
    assert "Selected: 12:00" in result.output
    assert "Not selectable: 10:00" in result.output


def test_book_then_list(config_path):
    """A booking is confirmed and shows up in the admin list."""
    result = _book(config_path, "10:00")

    assert result.exit_code == 0, result.output
    assert "Booking confirmed for 1 slot(s)" in result.output
    assert "break" in result.output.lower()

    listing = _invoke("bookings", "2024-11-25", "--config", str(config_path))
    assert listing.exit_code == 0, listing.output
    assert "Alice" in listing.output
    assert "10:00" in listing.output


def test_book_same_slot_twice(config_path):
    """The second attempt books nothing and reports the skipped slot."""
    _book(config_path, "10:00")

    result = _book(config_path, "10:00")

    assert result.exit_code == 0, result.output
    assert "No slot was booked" in result.output
    assert "Skipped" in result.output


def test_remove_with_and_without_booking(config_path):
    """Removal succeeds, and a second removal is a no-op."""
    _book(config_path, "10:00")

    removed = _invoke("remove", "2024-11-25", "10:00", "--yes", "--config", str(config_path))
    again = _invoke("remove", "2024-11-25", "10:00", "--yes", "--config", str(config_path))

    assert removed.exit_code == 0, removed.output
    assert "removed" in removed.output
    assert again.exit_code == 0, again.output
    assert "No booking" in again.output


def test_remove_asks_for_confirmation(config_path):
    """Declining the prompt keeps the booking."""
    _book(config_path, "10:00")

    result = _invoke("remove", "2024-11-25", "10:00", "--config", str(config_path), input="n\n")
    listing = _invoke("bookings", "2024-11-25", "--config", str(config_path))

    assert result.exit_code == 0, result.output
    assert "Aborted" in result.output
    assert "Alice" in listing.output


def test_week_overview(config_path):
    """The week table shows free slots per day."""
    _book(config_path, "10:00")

    result = _invoke("week", "--date", "2024-11-27", "--config", str(config_path))

    assert result.exit_code == 0, result.output
    assert "2024-11-25" in result.output
    assert "2024-12-01" in result.output
    assert "4/6" in result.output


def test_invalid_date_exits_with_error(config_path):
    """Unparseable dates are rejected."""
    result = _invoke("slots", "25/11/2024", "--config", str(config_path))

    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_missing_config_exits_with_error(tmp_path):
    """A missing config file is reported."""
    result = _invoke("slots", "2024-11-25", "--config", str(tmp_path / "missing.yaml"))

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_invalid_config_exits_with_error(tmp_path):
    """An inverted window stops the command before any slot is generated."""
    path = tmp_path / "config.yaml"
    path.write_text("schedule:\n  start_hour: 15\n  end_hour: 9\n", encoding="utf-8")

    result = _invoke("slots", "2024-11-25", "--config", str(path))

    assert result.exit_code == 1
    assert "Error" in result.output


def test_version():
    """The version command prints the package version."""
    result = _invoke("version")

    assert result.exit_code == 0
    assert "slotbooker" in result.output
