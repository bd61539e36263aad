import pytest

from chapterclips.errors import MalformedTimestamp
from chapterclips.utils import format_timestamp, parse_timestamp, strip_separators


@pytest.mark.parametrize(
    ("timestamp", "expected"),
    [
        ("00:00.000", 0.0),
        ("00:10.500", 10.5),
        ("01:05.250", 65.25),
        ("12:30", 750.0),
        ("59:59.999", 3599.999),
    ],
)
def test_parse_timestamp(timestamp, expected):
    assert parse_timestamp(timestamp) == pytest.approx(expected)


@pytest.mark.parametrize("timestamp", ["", "10.500", "00:00:10.500", "aa:10.000", "00:bb.000"])
def test_parse_timestamp_rejects_malformed_minutes_seconds(timestamp):
    with pytest.raises(MalformedTimestamp):
        parse_timestamp(timestamp)


def test_malformed_timestamp_is_a_value_error():
    with pytest.raises(ValueError):
        parse_timestamp("not a time")


def test_strip_separators_removes_colons_and_periods():
    assert strip_separators("01:05.250") == "0105250"
    assert strip_separators("plain") == "plain"


@pytest.mark.parametrize("seconds", [0.0, 0.001, 9.5, 59.999, 61.25, 754.1, 3599.999])
def test_formatted_timestamps_strip_to_digits(seconds):
    timestamp = format_timestamp(seconds)

    assert parse_timestamp(timestamp) == pytest.approx(seconds)
    stripped = strip_separators(timestamp)
    assert stripped.isdigit()
    assert len(stripped) == 7
