"""Display units offered by the picker.

Units are labels only: switching unit never converts the current value.
"""
from enum import Enum


class PickerUnit(Enum):
    KILOGRAMS = "kg"
    POUNDS = "lbs"
    NEWTONS = "N"
    INCHES = "in"
    MILLIMETERS = "mm"
    LITERS = "L"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> "PickerUnit":
        """Look up a unit by its symbol (``"kg"``) or member name (``"KILOGRAMS"``)."""
        for unit in cls:
            if symbol == unit.value or symbol.upper() == unit.name:
                return unit
        raise ValueError(f"Unknown unit: {symbol!r}")


_DISPLAY_NAMES = {
    PickerUnit.KILOGRAMS: "Kilograms",
    PickerUnit.POUNDS: "Pounds",
    PickerUnit.NEWTONS: "Newtons",
    PickerUnit.INCHES: "Inches",
    PickerUnit.MILLIMETERS: "Millimeters",
    PickerUnit.LITERS: "Liters",
}
