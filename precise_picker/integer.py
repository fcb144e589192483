"""Integer convenience adapter built on the real-valued picker.

:class:`IntegerPickerController` fixes the step at 1 and coerces every value it
stores to ``int``, keyboard entries included (``"33.6"`` commits ``34``).
Everything else, the state machine and timers included, is inherited.
"""
from __future__ import annotations

import math
from typing import Callable, List, Optional

from precise_picker.controller import ValuePickerController
from precise_picker.errors import ConfigurationError
from precise_picker.scroll_track import QuantizedScrollTrack, build_items


def _require_integral(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) \
            or not math.isfinite(value) or float(value) != int(value):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return int(value)


class IntegerScrollTrack(QuantizedScrollTrack):
    """Scroll track whose items are ``int``."""

    def _build_items(self, lower_bound: float, upper_bound: float, step: float) -> List[int]:
        return [int(round(v)) for v in build_items(lower_bound, upper_bound, step)]


class IntegerPickerController(ValuePickerController):
    """Picker for whole numbers: ``step == 1`` and ``value`` is always an ``int``."""

    def __init__(
        self,
        lower_bound: int = 0,
        upper_bound: int = 100,
        initial_value: Optional[int] = None,
        track_formatter: Callable[[float], str] = str,
        **kwargs,
    ) -> None:
        if "step" in kwargs:
            raise TypeError("IntegerPickerController always uses step=1")
        super().__init__(
            lower_bound=_require_integral("lower_bound", lower_bound),
            upper_bound=_require_integral("upper_bound", upper_bound),
            step=1,
            initial_value=initial_value,
            track_formatter=track_formatter,
            **kwargs,
        )

    @property
    def value(self) -> int:
        return self._value.current

    def reconfigure(self, lower_bound: int, upper_bound: int, step: int = 1) -> bool:
        if step != 1:
            raise ConfigurationError("IntegerPickerController always uses step=1")
        return super().reconfigure(
            _require_integral("lower_bound", lower_bound),
            _require_integral("upper_bound", upper_bound),
            1,
        )

    def _coerce(self, value: float) -> int:
        return int(math.floor(value + 0.5))

    def _make_track(self, track_formatter: Callable[[float], str]) -> QuantizedScrollTrack:
        return IntegerScrollTrack(
            self.config.lower_bound,
            self.config.upper_bound,
            self.config.step,
            item_pitch=self.config.item_pitch,
            magnification_radius=self.config.magnification_radius,
            on_settle=self._on_track_settled,
            formatter=track_formatter,
        )
