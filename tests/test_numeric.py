import math
from datetime import datetime

import pytest

from umrah_invoice.engine import format_currency, generate_invoice_number
from umrah_invoice.engine.numeric import parse_float, parse_int, round2


@pytest.mark.parametrize("value, expected", [
    (12, 12.0),
    (12.5, 12.5),
    ("12.5", 12.5),
    ("  7", 7.0),
    ("3.5kg", 3.5),
    (".5", 0.5),
    ("-2", -2.0),
    ("1e3", 1000.0),
    ("", 0.0),
    ("abc", 0.0),
    (None, 0.0),
    (True, 0.0),
    (float("nan"), 0.0),
    (float("inf"), 0.0),
    ("1e400", 0.0),
    (10 ** 400, 0.0),
])
def test_parse_float(value, expected):
    assert parse_float(value) == expected


def test_parse_float_default():
    assert parse_float("x", default=1.0) == 1.0


@pytest.mark.parametrize("value, expected", [
    (3, 3),
    ("3", 3),
    ("2.7", 2),
    (2.9, 2),
    ("-4", -4),
    (" 5 nights", 5),
    ("1e3", 1),
    ("", 0),
    ("abc", 0),
    (None, 0),
    (float("nan"), 0),
    ("9" * 400, 0),
    (10 ** 400, 0),
])
def test_parse_int(value, expected):
    assert parse_int(value) == expected


@pytest.mark.parametrize("value, expected", [
    (269.5, 269.5),
    (0.1 * 3, 0.3),
    (20.000000000000004, 20),
    (19.999999999999996, 20),
    (33.333333, 33.33),
    (2.5, 2.5),
    (0.125, 0.13),
    (0, 0),
])
def test_round2(value, expected):
    assert round2(value) == expected


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_round2_non_finite_is_zero(value):
    assert round2(value) == 0


def test_round2_snaps_to_exact_integer():
    result = round2(20.000000000000004)
    assert result == 20
    assert result.is_integer()


def test_round2_huge_values_pass_through():
    assert round2(1e307) == 1e307
    assert math.isfinite(round2(1e307))


@pytest.mark.parametrize("args, expected", [
    ((123,), "123.00 SAR"),
    ((123.4, "PKR"), "123.40 PKR"),
    ((None,), "0.00 SAR"),
    (("",), "0.00 SAR"),
    (("abc",), "0.00 SAR"),
    ((float("inf"),), "0.00 SAR"),
    ((1234567.891,), "1,234,567.89 SAR"),
    (("70212.5", "PKR"), "70,212.50 PKR"),
])
def test_format_currency(args, expected):
    assert format_currency(*args) == expected


def test_generate_invoice_number():
    now = datetime(2026, 10, 19, 14, 30, 15, 123000)
    number = generate_invoice_number(now)
    suffix = str(int(now.timestamp() * 1000))[-6:]
    assert number == f"INV-20261019-{suffix}"


def test_generate_invoice_number_defaults_to_now():
    number = generate_invoice_number()
    prefix, day, suffix = number.split("-")
    assert prefix == "INV"
    assert len(day) == 8 and day.isdigit()
    assert len(suffix) == 6 and suffix.isdigit()
