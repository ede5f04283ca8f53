from __future__ import annotations

import locale
import math
import time
from datetime import datetime

import pytest

from udptracker.ingestion.locations import normalize_location, normalize_locations
from udptracker.ingestion.normalize import format_timestamp, parse_float, parse_int


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("40.7128", 40.7128),
        ("-74.0060", -74.006),
        (12, 12.0),
        (1.5, 1.5),
        ("  3.25xyz", 3.25),
        (".5", 0.5),
        ("1e3", 1000.0),
    ],
)
def test_parse_float_reads_numeric_prefix(value, expected) -> None:
    assert parse_float(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", [None, "", "abc", True, [], {}, "--"])
def test_parse_float_yields_nan_for_non_numeric(value) -> None:
    assert math.isnan(parse_float(value))


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1700000000000", 1_700_000_000_000),
        (1_700_000_000_000, 1_700_000_000_000),
        (17.9, 17),
        (-2.5, -2),
        ("42abc", 42),
        (" -7", -7),
        ("1.7e12", 1),
    ],
)
def test_parse_int_reads_integer_prefix(value, expected) -> None:
    assert parse_int(value) == expected


@pytest.mark.parametrize("value", [None, "", "abc", False, float("nan"), float("inf"), {}])
def test_parse_int_returns_none_when_unparseable(value) -> None:
    assert parse_int(value) is None


@pytest.fixture
def utc_c_time_locale(monkeypatch):
    saved = locale.setlocale(locale.LC_TIME)
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    locale.setlocale(locale.LC_TIME, "C")
    yield
    locale.setlocale(locale.LC_TIME, saved)
    monkeypatch.undo()
    time.tzset()


def test_format_timestamp_follows_lc_time(utc_c_time_locale) -> None:
    assert format_timestamp(1_700_000_000_000) == "Tue Nov 14 22:13:20 2023"


def test_format_timestamp_invalid_inputs() -> None:
    assert format_timestamp(None) == "Invalid Date"
    assert format_timestamp(10**20) == "Invalid Date"


def test_normalize_reference_record(make_raw) -> None:
    record = normalize_location(make_raw())

    assert record.id == "a1"
    assert record.latitude == pytest.approx(40.7128)
    assert record.longitude == pytest.approx(-74.006)
    assert record.timestamp == 1_700_000_000_000
    assert record.created_at == "2023-11-14T00:00:00Z"
    assert record.formatted_date == datetime.fromtimestamp(1_700_000_000).strftime("%c")


def test_normalize_malformed_input_does_not_raise() -> None:
    record = normalize_location({"latitude": "abc"})

    assert math.isnan(record.latitude)
    assert math.isnan(record.longitude)
    assert record.id is None
    assert record.timestamp is None
    assert record.formatted_date == "Invalid Date"
    assert record.has_valid_coordinates is False


@pytest.mark.parametrize("raw", [None, "not-a-record", 42, ["a"]])
def test_normalize_non_mapping_input(raw) -> None:
    record = normalize_location(raw)

    assert record.id is None
    assert math.isnan(record.latitude)


def test_normalize_is_deterministic(make_raw) -> None:
    raw = make_raw()

    assert normalize_location(raw) == normalize_location(raw)


def test_normalize_numeric_wire_values(make_raw) -> None:
    record = normalize_location(make_raw(latitude=51.5, longitude=-0.12, timestamp_value=1_700_000_000_123))

    assert record.latitude == 51.5
    assert record.longitude == -0.12
    assert record.timestamp == 1_700_000_000_123


def test_normalize_passes_opaque_fields_through(make_raw) -> None:
    record = normalize_location(make_raw(id=99, created_at="yesterday-ish"))

    assert record.id == 99
    assert record.created_at == "yesterday-ish"


def test_normalize_locations_keeps_server_order_and_drops_repeated_ids(make_raw) -> None:
    records = normalize_locations(
        [
            make_raw(id="c", latitude="3"),
            make_raw(id="b", latitude="2"),
            make_raw(id="c", latitude="99"),
            make_raw(id=None),
            make_raw(id=None),
        ]
    )

    assert [r.id for r in records] == ["c", "b", None, None]
    assert records[0].latitude == 3.0
