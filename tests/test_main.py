"""Tests for the command-line interface, using the offline provider."""

import sys

import pytest

from delivery_location.logging_config import configure_logging
from delivery_location.main import main


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["delivery-location", *argv])
    with pytest.raises(SystemExit) as excinfo:
        main()
    return excinfo.value.code


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DELIVERY_ZONES_FILE", "GEOCODING_PROVIDER", "LOCATION_STORE_PATH"):
        monkeypatch.delenv(name, raising=False)
    yield
    # main() installs its own handler on the captured stream.
    configure_logging(level="debug", testing=True)


def test_check_deliverable_point(monkeypatch, capsys):
    assert run_cli(monkeypatch, "check", "1.2834", "103.8607") == 0
    out = capsys.readouterr().out
    assert "Deliverable in zone: Marina Bay" in out
    assert "$5.99" in out


def test_check_undeliverable_point(monkeypatch, capsys):
    assert run_cli(monkeypatch, "check", "1.45", "103.60") == 1
    assert "don't deliver to this location" in capsys.readouterr().err


def test_search_pick_and_show_current(monkeypatch, capsys, tmp_path):
    store = str(tmp_path / "store.json")

    code = run_cli(
        monkeypatch, "--provider", "offline", "--store", store, "search", "marina", "--pick", "1"
    )

    assert code == 0
    assert "Delivery location set to: Marina Bay Sands" in capsys.readouterr().out

    assert run_cli(monkeypatch, "--store", store, "current") == 0
    assert capsys.readouterr().out.strip() == "Marina Bay Sands"

    assert run_cli(monkeypatch, "--store", store, "recent") == 0
    assert capsys.readouterr().out.splitlines()[0] == "  1. Marina Bay Sands"


def test_pick_out_of_range(monkeypatch, capsys, tmp_path):
    code = run_cli(
        monkeypatch,
        "--provider",
        "offline",
        "--store",
        str(tmp_path / "store.json"),
        "search",
        "marina",
        "--pick",
        "9",
    )
    assert code == 1
    assert "--pick must be between" in capsys.readouterr().err


def test_invalid_postal_code(monkeypatch, capsys, tmp_path):
    code = run_cli(
        monkeypatch, "--provider", "offline", "--store", str(tmp_path / "s.json"), "postal", "12345"
    )
    assert code == 1
    assert "not a valid 6-digit postal code" in capsys.readouterr().err
