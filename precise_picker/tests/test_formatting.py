"""Tests for the default value/text policies and display units."""
import pytest

from precise_picker.errors import InputRejected
from precise_picker.formatting import format_track_label, format_value, parse_value
from precise_picker.units import PickerUnit


@pytest.mark.parametrize("value,expected", [
    (25.0, "25"),
    (25, "25"),
    (33.25, "33.25"),
    (0.5, "0.5"),
    (-0.0, "0"),
    (1.0 / 3.0, "0.3333333333333333"),
    (0.1234567, "0.1234567"),
    (-2.75, "-2.75"),
])
def test_format_value(value, expected):
    assert format_value(value) == expected


@pytest.mark.parametrize("value", [0.1234567, 1.0 / 3.0, 33.25, 1e-7, 123456.789012345, -0.30000000000000004, 1e20])
def test_formatted_value_parses_back_unchanged(value):
    assert parse_value(format_value(value)) == value


def test_format_track_label():
    assert format_track_label(20) == "20.0"
    assert format_track_label(33.25) == "33.2"


@pytest.mark.parametrize("text,expected", [
    ("33.25", 33.25),
    ("  7 ", 7.0),
    ("12,5", 12.5),
    ("-4", -4.0),
    ("1e2", 100.0),
])
def test_parse_value(text, expected):
    assert parse_value(text) == expected


@pytest.mark.parametrize("text", [None, "", "   ", "abc", "1.2.3", "nan", "-inf", "1,2,3"])
def test_parse_value_rejects(text):
    with pytest.raises(InputRejected):
        parse_value(text)


def test_input_rejected_is_a_value_error():
    with pytest.raises(ValueError):
        parse_value("twelve")


class TestPickerUnit:
    def test_symbol_and_display_name(self):
        assert PickerUnit.POUNDS.symbol == "lbs"
        assert PickerUnit.POUNDS.display_name == "Pounds"

    @pytest.mark.parametrize("text,unit", [
        ("kg", PickerUnit.KILOGRAMS),
        ("N", PickerUnit.NEWTONS),
        ("liters", PickerUnit.LITERS),
        ("INCHES", PickerUnit.INCHES),
    ])
    def test_from_symbol(self, text, unit):
        assert PickerUnit.from_symbol(text) is unit

    def test_unknown_symbol(self):
        with pytest.raises(ValueError):
            PickerUnit.from_symbol("furlongs")

    def test_every_unit_has_a_display_name(self):
        for unit in PickerUnit:
            assert unit.display_name
