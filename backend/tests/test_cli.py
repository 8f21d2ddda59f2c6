"""
Tests for the command line interface against a SQLite file.
"""

import re

import pytest
from typer.testing import CliRunner

from aerobook.main import app

runner = CliRunner()

PNR = re.compile(r"PNR: (AA[A-Z0-9]{6})")


@pytest.fixture
def cli(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("LOCK_BACKEND", "local")

    def invoke(*args):
        return runner.invoke(app, [str(a) for a in args])

    return invoke


@pytest.fixture
def seeded(cli):
    result = cli("seed-demo", "--capacity", 1)
    assert result.exit_code == 0, result.output
    return cli


def test_init_db(cli, tmp_path):
    result = cli("init-db")
    assert result.exit_code == 0
    assert (tmp_path / "cli.db").exists()


def test_init_db_reset(seeded):
    assert seeded("init-db", "--reset").exit_code == 0
    result = seeded("availability", 1)
    assert result.exit_code == 1
    assert "NotFoundError" in result.output


def test_seed_twice_fails(seeded):
    result = seeded("seed-demo")
    assert result.exit_code == 1


def test_book_until_full(seeded):
    result = seeded("availability", 1)
    assert "1 of 1 seats available" in result.output

    first = seeded("book", 1, 1)
    assert first.exit_code == 0, first.output
    assert PNR.search(first.output)

    second = seeded("book", 1, 1)
    assert second.exit_code == 1
    assert "SeatsExhaustedError" in second.output


def test_booking_lifecycle(seeded):
    booked = seeded("book", 1, 1)
    pnr = PNR.search(booked.output).group(1)

    found = seeded("lookup", pnr.lower())
    assert found.exit_code == 0
    assert pnr in found.output

    paid = seeded("pay", 1, "COMPLETED")
    assert paid.exit_code == 0
    assert "COMPLETED" in paid.output

    assert seeded("pay", 1, "FAILED").exit_code == 1

    cancelled = seeded("cancel", 1)
    assert cancelled.exit_code == 0
    assert "CANCELLED" in cancelled.output

    history = seeded("history", 1)
    assert pnr in history.output

    stats = seeded("stats", 1)
    assert stats.exit_code == 0
    assert "AA100" in stats.output


def test_admin_override(seeded):
    seeded("book", 1, 1)
    result = seeded("set-status", 1, "PENDING", "--admin-id", 99)
    assert result.exit_code == 0
    assert "PENDING" in result.output
    assert "1 of 1 seats available" in seeded("availability", 1).output


def test_unknown_booking(seeded):
    result = seeded("cancel", 42)
    assert result.exit_code == 1
    assert "NotFoundError" in result.output


def test_simulate(cli):
    cli("seed-demo", "--capacity", 2)
    result = cli("simulate", 1, "--users", 6)
    assert result.exit_code == 0, result.output
    assert "Oversold" in result.output


def test_password_commands(cli):
    hashed = cli("hash-password", "--password", "secret42")
    assert hashed.exit_code == 0
    stored = hashed.output.strip().splitlines()[-1]
    assert ":" in stored

    assert cli("verify-password", stored, "--password", "secret42").exit_code == 0
    assert cli("verify-password", stored, "--password", "secret43").exit_code == 1


def test_weak_password_is_refused(cli):
    result = cli("hash-password", "--password", "abc")
    assert result.exit_code == 1


def test_generate_password(cli):
    result = cli("generate-password", "--length", 12)
    assert result.exit_code == 0
    assert len(result.output.strip()) == 12


def test_search(seeded):
    result = seeded("search", 1, 2)
    assert result.exit_code == 0, result.output
    assert "AA100" in result.output

    seeded("book", 1, 1)
    assert "full" in seeded("search", 1, 2).output
    assert "No flights found" in seeded("search", 2, 1).output
    assert "No flights found" in seeded("search", 1, 2, "--date", "2000-01-01").output
    assert seeded("search", 1, 1).exit_code == 1


def test_login(seeded):
    user = seeded("login", "USER", "demo@example.com", "--password", "demo123")
    assert user.exit_code == 0, user.output
    assert "Logged in as USER 1" in user.output

    assert seeded("login", "OWNER", "aa", "--password", "owner123").exit_code == 0
    assert seeded("login", "ADMIN", "admin", "--password", "admin123").exit_code == 0

    refused = seeded("login", "USER", "demo@example.com", "--password", "demo124")
    assert refused.exit_code == 1
    assert "AuthenticationError" in refused.output
