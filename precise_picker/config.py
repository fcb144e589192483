"""Default configuration loader for the precise picker.

This module exposes the default settings as plain dicts, a :class:`PickerConfig`
dataclass the controller can be built from, and a small `load_config` helper that
reads a JSON file (the bundled sample by default) and validates it.

The JSON layout groups settings in three sections, all optional::

    {
        "picker": {"lower_bound": 0, "upper_bound": 200, "step": 0.5,
                   "initial_value": 20, "pills": [1, 2, 5], "units": ["kg", "lbs"]},
        "timing": {"long_press_seconds": 0.5, "dismiss_grace_seconds": 0.3},
        "track": {"reference_width": 390, "item_pitch": 68, "magnification_radius": 48}
    }
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from precise_picker.errors import ConfigurationError
from precise_picker.units import PickerUnit

DEFAULT_SAMPLE = Path(__file__).with_name("sample_config.json")

DEFAULT_PICKER = {
    "lower_bound": 0.0,
    "upper_bound": 200.0,
    "step": 0.5,
    "initial_value": 20.0,
    "pills": [1, 2, 5, 7, 10, 15, 20],
    "units": ["kg", "lbs"],
}

DEFAULT_TIMING = {
    "long_press_seconds": 0.5,
    "dismiss_grace_seconds": 0.3,  # lets the final snap animation finish
}

DEFAULT_TRACK = {
    "reference_width": 390.0,  # drag across this many points spans the full range
    "item_pitch": 68.0,  # item width 60 + spacing 8
    "magnification_radius": 48.0,  # emphasis reaches zero 48 points from the centre
}

_SECTIONS = {
    "picker": DEFAULT_PICKER,
    "timing": DEFAULT_TIMING,
    "track": DEFAULT_TRACK,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_bounds(lower_bound: float, upper_bound: float, step: float) -> None:
    """Raise :class:`ConfigurationError` unless the bounds and step are usable."""
    for name, value in (("lower_bound", lower_bound), ("upper_bound", upper_bound), ("step", step)):
        if not _is_number(value):
            raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
    if step <= 0:
        raise ConfigurationError(f"step must be greater than zero, got {step}")
    if lower_bound > upper_bound:
        raise ConfigurationError(
            f"lower_bound ({lower_bound}) must not exceed upper_bound ({upper_bound})"
        )


@dataclass
class PickerConfig:
    lower_bound: float = DEFAULT_PICKER["lower_bound"]
    upper_bound: float = DEFAULT_PICKER["upper_bound"]
    step: float = DEFAULT_PICKER["step"]
    initial_value: float = DEFAULT_PICKER["initial_value"]
    pills: List[float] = field(default_factory=lambda: list(DEFAULT_PICKER["pills"]))
    units: Tuple[PickerUnit, ...] = field(
        default_factory=lambda: tuple(PickerUnit.from_symbol(s) for s in DEFAULT_PICKER["units"])
    )
    long_press_seconds: float = DEFAULT_TIMING["long_press_seconds"]
    dismiss_grace_seconds: float = DEFAULT_TIMING["dismiss_grace_seconds"]
    reference_width: float = DEFAULT_TRACK["reference_width"]
    item_pitch: float = DEFAULT_TRACK["item_pitch"]
    magnification_radius: float = DEFAULT_TRACK["magnification_radius"]

    def validate(self) -> "PickerConfig":
        validate_bounds(self.lower_bound, self.upper_bound, self.step)
        if not _is_number(self.initial_value):
            raise ConfigurationError(f"initial_value must be a finite number, got {self.initial_value!r}")
        for amount in self.pills:
            if not _is_number(amount) or amount <= 0:
                raise ConfigurationError(f"pill amounts must be positive numbers, got {amount!r}")
        if not self.units:
            raise ConfigurationError("at least one unit is required")
        if not _is_number(self.long_press_seconds) or self.long_press_seconds <= 0:
            raise ConfigurationError("long_press_seconds must be greater than zero")
        if not _is_number(self.dismiss_grace_seconds) or self.dismiss_grace_seconds < 0:
            raise ConfigurationError("dismiss_grace_seconds must not be negative")
        for name in ("reference_width", "item_pitch", "magnification_radius"):
            value = getattr(self, name)
            if not _is_number(value) or value <= 0:
                raise ConfigurationError(f"{name} must be greater than zero, got {value!r}")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PickerConfig":
        """Build a validated config from the sectioned dict layout."""
        if not isinstance(data, dict):
            raise ConfigurationError("configuration root must be a JSON object")

        kwargs: Dict[str, Any] = {}
        for section, value in data.items():
            if section not in _SECTIONS:
                raise ConfigurationError(f"Unknown configuration section: {section}")
            if not isinstance(value, dict):
                raise ConfigurationError(f"Section {section!r} must be an object")
            for key, item in value.items():
                if key not in _SECTIONS[section]:
                    raise ConfigurationError(f"Unknown key {key!r} in section {section!r}")
                kwargs[key] = item

        if "pills" in kwargs:
            if not isinstance(kwargs["pills"], list):
                raise ConfigurationError("'pills' must be an array of numbers")
            kwargs["pills"] = list(kwargs["pills"])
        if "units" in kwargs:
            if not isinstance(kwargs["units"], list):
                raise ConfigurationError("'units' must be an array of unit symbols")
            try:
                kwargs["units"] = tuple(PickerUnit.from_symbol(str(s)) for s in kwargs["units"])
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

        return cls(**kwargs).validate()


def load_config(path: str = None) -> PickerConfig:
    """Load and validate a picker JSON config. If `path` is None, use the bundled sample file."""
    p = Path(path) if path else DEFAULT_SAMPLE
    if not p.exists():
        raise FileNotFoundError(f"Picker config not found: {p}")

    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {p}: {e}") from e

    return PickerConfig.from_dict(data)


if __name__ == "__main__":
    # Quick smoke test when run directly
    import sys
    path = sys.argv[1] if len(sys.argv) > 1 else None
    cfg = load_config(path)
    print("Loaded picker config:", cfg)
