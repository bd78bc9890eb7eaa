"""Tests for CLI date filter helper."""

import click
import pytest

from shopledger.cli.date_filters import resolve_cli_date_range
from shopledger.utils.date_parser import get_date_range, parse_date


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_resolve_cli_date_range_rejects_period_with_start_end(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date="2024-01-01",
            end_date=None,
            period="this-month",
        )

    assert excinfo.value.exit_code == 1
    err = capsys.readouterr().err
    assert "cannot be combined" in err


def test_resolve_cli_date_range_returns_period_range():
    expected_start, expected_end = get_date_range("last-year")
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date=None,
        end_date=None,
        period="last-year",
    )

    assert start == expected_start
    assert end == expected_end


def test_resolve_cli_date_range_parses_explicit_dates():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date="2024-01-02",
        end_date="2024-01-05",
        period=None,
    )

    assert start == parse_date("2024-01-02")
    assert end == parse_date("2024-01-05")


def test_resolve_cli_date_range_open_ended():
    start, end = resolve_cli_date_range(_ctx(), start_date=None, end_date=None, period=None)
    assert start is None
    assert end is None


def test_resolve_cli_date_range_rejects_bad_date(capsys):
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_date_range(_ctx(), start_date=None, end_date="not a date", period=None)

    assert "Invalid end date" in capsys.readouterr().err
