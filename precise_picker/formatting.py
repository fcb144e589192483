"""Default value <-> text policies for the picker.

The controller accepts any formatter/parser pair; these are the defaults used
for the value label, the keyboard buffer and the scroll-track labels.
"""
from __future__ import annotations

import math

from precise_picker.errors import InputRejected


def format_value(value: float) -> str:
    """Format a value for the main label and the keyboard buffer.

    Whole numbers drop the decimals (``25.0 -> "25"``); everything else uses
    the shortest text that parses back to the same float
    (``33.25 -> "33.25"``, ``0.1234567 -> "0.1234567"``).
    """
    value = float(value) + 0.0  # normalise -0.0
    if value.is_integer():
        return "%.0f" % value
    return repr(value)


def format_track_label(value: float) -> str:
    """One-decimal label drawn under each scroll-track graduation."""
    return "%.1f" % value


def parse_value(text: str) -> float:
    """Parse keyboard text into a finite float.

    Surrounding whitespace is ignored and a single comma is accepted as the
    decimal separator. Raises :class:`InputRejected` for anything else.
    """
    if text is None:
        raise InputRejected("no text to parse")
    cleaned = text.strip().replace(",", ".")
    if not cleaned:
        raise InputRejected("empty input")
    try:
        value = float(cleaned)
    except ValueError as e:
        raise InputRejected(f"not a number: {text!r}") from e
    if not math.isfinite(value):
        raise InputRejected(f"value must be finite: {text!r}")
    return value
