"""Tests for the practice CLI."""
from datetime import date

import pytest
from click.testing import CliRunner

from app import cli as cli_module
from app.core.security import decode_session_token
from app.services import availability_service


@pytest.fixture
def runner(db, monkeypatch) -> CliRunner:
    monkeypatch.setattr(cli_module, "SessionLocal", lambda: db)
    return CliRunner()


def test_issue_token_for_admin(runner):
    result = runner.invoke(cli_module.cli, ["issue-token", "--email", "Doctor@Example.com", "--hours", "2"])

    assert result.exit_code == 0
    payload = decode_session_token(result.output.strip())
    assert payload["sub"] == "doctor@example.com"
    assert payload["exp"] - payload["iat"] == 2 * 3600


def test_issue_token_refuses_unknown_email(runner):
    result = runner.invoke(cli_module.cli, ["issue-token", "--email", "intruder@example.com"])

    assert result.exit_code == 1
    assert "not listed in ADMIN_EMAILS" in result.output


def test_close_dates(runner, db):
    result = runner.invoke(
        cli_module.cli, ["close-dates", "2030-08-01", "2030-08-03", "--reason", "Vacation"]
    )

    assert result.exit_code == 0
    assert "Closed 3 dates" in result.output
    assert availability_service.resolve_day(db, date(2030, 8, 2)).source == "closed"


def test_close_dates_inverted_range(runner):
    result = runner.invoke(cli_module.cli, ["close-dates", "2030-08-03", "2030-08-01"])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_process_emails_empty(runner):
    result = runner.invoke(cli_module.cli, ["process-emails"])

    assert result.exit_code == 0
    assert "Processed 0 emails" in result.output
