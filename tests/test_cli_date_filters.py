"""Tests for CLI date filter helpers."""

from datetime import date

import click
import pytest
from click.testing import CliRunner

from financeos.cli.date_filters import (
    PERIODS,
    collect_period_flags,
    parse_date_option,
    period_options,
    resolve_cli_date_range,
)
from financeos.utils.date_parser import get_date_range


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_period_options_adds_flags():
    @click.command()
    @period_options
    def report(**kwargs):
        flags = collect_period_flags(kwargs)
        click.echo(",".join(p for p, on in flags.items() if on) or "none")
        click.echo(f"left={sorted(kwargs)}")

    result = CliRunner().invoke(report, ["--last-quarter"])

    assert result.exit_code == 0
    assert "last-quarter" in result.output
    assert "left=[]" in result.output


def test_collect_period_flags_defaults_to_false():
    flags = collect_period_flags({"this_year": True, "other": 1})

    assert set(flags) == set(PERIODS)
    assert flags["this-year"] is True
    assert flags["this-month"] is False


def test_rejects_multiple_periods(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date=None,
            end_date=None,
            period_flags={"this-month": True, "last-month": True},
        )

    assert excinfo.value.exit_code == 1
    assert "Only one period option" in capsys.readouterr().err


def test_rejects_period_with_start_date(capsys):
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_date_range(
            _ctx(),
            start_date="2024-01-01",
            end_date=None,
            period_flags={"this-year": True},
        )

    assert "cannot be combined" in capsys.readouterr().err


def test_period_range():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date=None,
        end_date=None,
        period_flags={"last-year": True},
    )

    assert (start, end) == get_date_range("last-year")


def test_explicit_dates_beat_default_range():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date="2024-01-02",
        end_date="2024-01-05",
        period_flags={},
        default_range=(date(2020, 1, 1), date(2020, 1, 31)),
    )

    assert (start, end) == (date(2024, 1, 2), date(2024, 1, 5))


def test_default_range_when_nothing_given():
    default_range = (date(2020, 1, 1), date(2020, 1, 31))

    assert resolve_cli_date_range(
        _ctx(), start_date=None, end_date=None, period_flags={}, default_range=default_range
    ) == default_range
    assert resolve_cli_date_range(_ctx(), start_date=None, end_date=None, period_flags={}) == (None, None)


def test_invalid_end_date(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(_ctx(), start_date=None, end_date="not-a-date", period_flags={})

    assert excinfo.value.exit_code == 1
    assert "Invalid end date" in capsys.readouterr().err


def test_parse_date_option(capsys):
    assert parse_date_option(_ctx(), None) is None
    assert parse_date_option(_ctx(), "2024-02-29") == date(2024, 2, 29)

    with pytest.raises(click.exceptions.Exit):
        parse_date_option(_ctx(), "someday", "as-of date")

    assert "Invalid as-of date" in capsys.readouterr().err
