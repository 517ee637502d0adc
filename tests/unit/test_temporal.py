from __future__ import annotations

from datetime import date, datetime, time, timezone

import pandas as pd
import pytest

from schedule_import.models.config_models import ImportSettings
from schedule_import.services.temporal import (
    DEFAULT_TIME,
    combine_day_time,
    day_text,
    hour_text,
    parse_day,
    parse_time,
)


@pytest.mark.parametrize(
    "raw",
    ["07:30", "7:30:00 a. m. (hora peruana)", "07:30 AM", "7:30 am", time(7, 30)],
)
def test_parse_time_equivalent_forms(raw):
    assert parse_time(raw) == time(7, 30)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("7:30:00 p. m. (hora peruana)", time(19, 30)),
        ("12:00 PM", time(12, 0)),
        ("12:15 AM", time(0, 15)),
        ("18", time(18, 0)),
        ("2025-03-04T08:45:00", time(8, 45)),
        (0.75, time(18, 0)),
    ],
)
def test_parse_time_variants(raw, expected):
    assert parse_time(raw) == expected


def test_parse_time_epoch_sentinel_means_noon():
    assert parse_time(datetime(1900, 1, 1, 0, 0)) == DEFAULT_TIME
    assert parse_time(datetime(1899, 12, 30)) == DEFAULT_TIME
    assert parse_time(pd.Timestamp("1899-12-30 00:00:00")) == DEFAULT_TIME
    assert parse_time("1900-01-01T00:00:00") == DEFAULT_TIME
    assert parse_time(0) == DEFAULT_TIME


@pytest.mark.parametrize(
    "number,text,expected",
    [
        (0, "0", DEFAULT_TIME),
        (0.0, "0.0", DEFAULT_TIME),
        (7, "7", time(7, 0)),
        (7.0, "7.0", time(7, 0)),
        (0.3125, "0.3125", time(7, 30)),
        (23, "23", time(23, 0)),
    ],
)
def test_parse_time_numeric_cell_and_text_agree(number, text, expected):
    assert parse_time(number) == expected
    assert parse_time(text) == expected


@pytest.mark.parametrize("raw", [24, "24", 7.5, "7.5", -1, 1e400, "1e400", float("nan")])
def test_parse_time_rejects_out_of_range_numbers(raw):
    assert parse_time(raw) is None


@pytest.mark.parametrize(
    "raw",
    [0, 7, 7.0, 0.3125, 0.75, time(7, 5), datetime(1900, 1, 1), pd.Timestamp("1899-12-30"), "7:30 p. m. (hora peruana)"],
)
def test_hour_text_reparses_to_same_time(raw):
    assert parse_time(hour_text(raw)) == parse_time(raw)


def test_parse_time_non_sentinel_datetime_keeps_clock():
    assert parse_time(datetime(1900, 1, 1, 6, 15)) == time(6, 15)


@pytest.mark.parametrize("raw", ["25:00", "13:00 PM", "abc", "", None, "7:75"])
def test_parse_time_rejects_garbage(raw):
    assert parse_time(raw) is None


def test_parse_time_custom_suffix():
    assert parse_time("8:00 (hora local)", suffixes=("(hora local)",)) == time(8, 0)
    assert parse_time("8:00 (hora local)") is None


def test_parse_day_slash_order():
    assert parse_day("3/4/2025") == date(2025, 3, 4)
    assert parse_day("3/4/2025", date_order="DMY") == date(2025, 4, 3)
    # 4 桁の先頭は常に年
    assert parse_day("2025/03/04", date_order="DMY") == date(2025, 3, 4)


def test_parse_day_two_digit_years():
    assert parse_day("3/4/25") == date(2025, 3, 4)
    assert parse_day("3/4/75") == date(1975, 3, 4)


def test_parse_day_serials_and_native():
    assert parse_day(45720) == date(2025, 3, 4)
    assert parse_day("45720") == date(2025, 3, 4)
    assert parse_day(date(2025, 3, 4)) == date(2025, 3, 4)
    assert parse_day(pd.Timestamp("2025-03-04 00:00:00")) == date(2025, 3, 4)


def test_parse_day_aware_datetime_converted_to_zone():
    from zoneinfo import ZoneInfo

    lima = ZoneInfo("America/Lima")
    utc_value = datetime(2025, 3, 5, 2, 0, tzinfo=timezone.utc)  # 21:00 on the 4th in Lima
    assert parse_day(utc_value, tz=lima) == date(2025, 3, 4)
    assert parse_day("2025-03-05T02:00:00Z", tz=lima) == date(2025, 3, 4)


@pytest.mark.parametrize("raw", ["13/13/2025", "tomorrow", "", None, 0, True])
def test_parse_day_invalid(raw):
    assert parse_day(raw) is None


def test_combine_day_time_is_zone_aware():
    settings = ImportSettings(timezone="America/Lima")
    ts = combine_day_time("3/4/2025", "7:30:00 a. m. (hora peruana)", settings)
    assert ts is not None
    assert ts.isoformat() == "2025-03-04T07:30:00-05:00"


def test_combine_day_time_blank_hour_defaults_to_noon():
    settings = ImportSettings()
    ts = combine_day_time("3/4/2025", "", settings)
    assert ts is not None and ts.time() == time(12, 0)
    assert combine_day_time("3/4/2025", None, settings).time() == time(12, 0)


def test_combine_day_time_failures():
    settings = ImportSettings()
    assert combine_day_time("someday", "07:30", settings) is None
    assert combine_day_time("3/4/2025", "late", settings) is None


def test_combine_roundtrip_of_iso_day():
    # staging で得た ISO の day を commit で再計算しても同じ時刻になる
    settings = ImportSettings(timezone="America/Lima")
    staged = combine_day_time("3/4/2025", "07:30", settings)
    again = combine_day_time(staged.isoformat(), "07:30", settings)
    assert again == staged


def test_text_helpers():
    assert day_text(45720.0) == "45720"
    assert day_text(date(2025, 3, 4)) == "2025-03-04"
    assert day_text(None) == ""
    assert hour_text(time(7, 5)) == "07:05"
    assert hour_text(" 7:30 ") == "7:30"
    assert hour_text(datetime(1900, 1, 1)) == "1900-01-01T00:00:00"
