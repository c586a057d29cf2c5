# tests/test_periods.py
import pytest

from app.services.periods import (
    format_period,
    normalize_assembly,
    normalize_month_name,
    normalize_period,
    parse_period,
    period_sort_key,
    previous_periods,
    sunday_for_week,
)


def test_normalize_assembly_collapses_whitespace_and_upper_cases():
    assert normalize_assembly("  gospel   centre ") == "GOSPEL CENTRE"
    assert normalize_assembly(None) == ""


@pytest.mark.parametrize(
    "value,expected",
    [("nov", "November"), ("NOVEMBER", "November"), (11, "November"), ("3", "March"), ("13", None), ("xyz", None), ("", None)],
)
def test_normalize_month_name(value, expected):
    assert normalize_month_name(value) == expected


def test_period_format_and_parse():
    assert format_period("nov", 2025) == "November-2025"
    assert parse_period("November-2025") == (2025, 11)
    assert parse_period("november 2025") == (2025, 11)
    assert parse_period("garbage") is None
    assert normalize_period("november-2025") == "November-2025"
    assert normalize_period("  Week of Nov ") == "Week of Nov"


def test_period_sort_key_orders_chronologically_and_puts_unparsable_last():
    periods = ["December-2025", "unknown", "January-2025", "March-2025", "December-2024"]
    assert sorted(periods, key=period_sort_key) == [
        "December-2024",
        "January-2025",
        "March-2025",
        "December-2025",
        "unknown",
    ]


def test_previous_periods_roll_over_year_boundary():
    assert previous_periods("February", 2026, 2) == [("January", "2026"), ("December", "2025")]
    assert previous_periods("January", "2026", 1) == [("December", "2025")]


def test_previous_periods_rejects_unknown_month():
    with pytest.raises(ValueError):
        previous_periods("Smarch", 2025)


def test_sunday_for_week():
    # 1 November 2025 is a Saturday
    assert sunday_for_week("Week 1", "November-2025") == "2025-11-02"
    assert sunday_for_week("Week 3", "November-2025") == "2025-11-16"
    assert sunday_for_week("", "November-2025") == "2025-11-02"
    assert sunday_for_week("Week 1", "not a period") is None
