from datetime import datetime, timedelta, timezone

import pytest

from shoppingcart.utils.date_utils import DateUtils
from shoppingcart.utils.formatting_utils import FormattingUtils


@pytest.mark.parametrize("value, args, expected", [
    (1050.0, (), "1050.00"),
    (6000, (2, ",", "."), "6.000,00"),
    (1234567.891, (2, ".", ","), "1,234,567.89"),
    (2.675, (2,), "2.68"),
    (0.5, (0,), "1"),
    (-1234.5, (1, ".", " "), "-1 234.5"),
    (-0.001, (2,), "0.00"),
])
def test_number_format(value, args, expected):
    assert FormattingUtils.number_format(value, *args) == expected


def test_number_format_rejects_negative_decimals():
    with pytest.raises(ValueError):
        FormattingUtils.number_format(1, -1)


def test_format_percentage():
    assert FormattingUtils.format_percentage(21) == "21.0%"
    assert FormattingUtils.format_percentage(19.5, 2) == "19.50%"


def test_format_json_compact():
    assert FormattingUtils.format_json_compact({"a": [1, 2], "b": "ü"}) == '{"a":[1,2],"b":"ü"}'


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2026, 1, 3, 10, 30)

    assert DateUtils.to_utc(naive) == datetime(2026, 1, 3, 10, 30, tzinfo=timezone.utc)


def test_coerce_parses_strings():
    parsed = DateUtils.coerce("2026-01-03T12:30:00+02:00")

    assert parsed == datetime(2026, 1, 3, 10, 30, tzinfo=timezone.utc)
    assert parsed.utcoffset() == timedelta(0)


def test_invalid_date_string():
    with pytest.raises(ValueError):
        DateUtils.parse_iso_string("yesterday")
