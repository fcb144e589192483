"""Interaction state machine for the precise numeric value picker.

One value, three ways to change it:

* **Pills**: fixed-amount ``+``/``-`` buttons (:meth:`ValuePickerController.apply_pill_delta`).
* **Long-press scrub**: press and hold the value label; after
  ``long_press_seconds`` the quantized scroll track appears and horizontal
  drag distance maps onto the whole range.
* **Keyboard**: double-tap the label and type a number.

Modes
-----
::

    IDLE --pointer down--> PENDING_LONG_PRESS --timer--> SCROLL_ACTIVE
    PENDING_LONG_PRESS --pointer up before timer--> IDLE            (a tap)
    SCROLL_ACTIVE --pointer up + dismiss grace--> IDLE
    IDLE --double tap--> KEYBOARD_ACTIVE --commit | cancel--> IDLE

Every path back to another active mode goes through ``IDLE``. Pointer input is
ignored while the keyboard is up.

Timing
------
The long-press and dismiss timers live on a :class:`DeferredScheduler`. Every
handler accepts an optional ``timestamp``; the scheduler is advanced to it
before the event is handled, so a timer whose deadline precedes the event
always fires first. Timer callbacks re-check the mode before acting, so a
timer that outlived its mode is discarded.

Outputs
-------
The controller is the only writer of the value. Hosts read
:meth:`ValuePickerController.snapshot` and may pass these optional callbacks:

``on_display(state)``
    The rendered state changed (value, visible mode, unit or keyboard text).
``on_value_added(amount)`` / ``on_value_subtracted(amount)``
    A pill was applied.
``on_value_set(value)``
    A keyboard entry was committed.
``on_value_changed(value)``
    User scrolling settled the track on a new value.
``on_haptic()``
    The track settled on a new item; the host may play a tactile pulse.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence, Tuple, Union

from precise_picker.config import DEFAULT_TIMING, DEFAULT_TRACK, PickerConfig
from precise_picker.errors import InputRejected
from precise_picker.formatting import format_track_label, format_value, parse_value
from precise_picker.scroll_track import QuantizedScrollTrack, clamp, quantize
from precise_picker.timers import DeferredScheduler, TimerHandle
from precise_picker.units import PickerUnit

logger = logging.getLogger(__name__)

Position = Tuple[float, float]


class InteractionMode(Enum):
    IDLE = auto()
    PENDING_LONG_PRESS = auto()
    SCROLL_ACTIVE = auto()
    KEYBOARD_ACTIVE = auto()


_ALLOWED_TRANSITIONS = {
    InteractionMode.IDLE: {InteractionMode.PENDING_LONG_PRESS, InteractionMode.KEYBOARD_ACTIVE},
    InteractionMode.PENDING_LONG_PRESS: {InteractionMode.IDLE, InteractionMode.SCROLL_ACTIVE},
    InteractionMode.SCROLL_ACTIVE: {InteractionMode.IDLE},
    InteractionMode.KEYBOARD_ACTIVE: {InteractionMode.IDLE},
}


@dataclass
class PickerValue:
    current: float
    lower_bound: float
    upper_bound: float
    step: float

    def clamp(self, value: float) -> float:
        return clamp(value, self.lower_bound, self.upper_bound)

    def is_on_step(self, tolerance: float = 1e-6) -> bool:
        """True when ``current`` is a whole number of steps from ``lower_bound``."""
        steps = (self.current - self.lower_bound) / self.step
        return abs(steps - round(steps)) <= tolerance


@dataclass
class KeyboardBuffer:
    text: str = ""

    def clear(self) -> None:
        self.text = ""


@dataclass(frozen=True)
class PickerState:
    """Everything a presentation layer needs to draw the picker."""

    value: float
    mode: InteractionMode
    unit: PickerUnit
    keyboard_text: Optional[str]
    settled_index: Optional[int]
    lower_bound: float
    upper_bound: float
    step: float


def _position_x(position: Union[Position, float]) -> float:
    try:
        x = float(position if isinstance(position, (int, float)) else position[0])
    except (TypeError, ValueError, IndexError) as e:
        raise InputRejected(f"unreadable pointer position {position!r}") from e
    if not math.isfinite(x):
        raise InputRejected(f"pointer position must be finite, got {position!r}")
    return float(x)


class ValuePickerController:
    """Owns the picker value and mediates pills, long-press scrubbing and keyboard entry.

    Parameters
    ----------
    lower_bound, upper_bound, step:
        Range and quantization step. ``step`` must be positive and
        ``lower_bound <= upper_bound``; otherwise :class:`ConfigurationError`.
    initial_value:
        Starting value, clamped into range. Defaults to ``lower_bound``.
    pills:
        Pill amounts offered by the host, each rendered as ``+`` and ``-``.
    long_press_seconds:
        Hold time before the scroll track appears.
    dismiss_grace_seconds:
        Delay between lifting the pointer and hiding the track, leaving
        room for the final snap animation.
    reference_width:
        Horizontal drag distance that spans the whole range.
    item_pitch, magnification_radius:
        Geometry of the :class:`QuantizedScrollTrack`.
    units:
        Display units; the first one is selected.
    formatter, parser:
        Value -> text for the label and keyboard buffer, text -> value for
        keyboard commits. The parser raises ``ValueError`` (or
        :class:`InputRejected`) for text it cannot read.
    track_formatter:
        Value -> text for scroll-track labels.
    scheduler:
        Timer queue; a private :class:`DeferredScheduler` by default.
    """

    def __init__(
        self,
        lower_bound: float = 0.0,
        upper_bound: float = 200.0,
        step: float = 0.5,
        initial_value: Optional[float] = None,
        pills: Optional[Sequence[float]] = None,
        long_press_seconds: float = DEFAULT_TIMING["long_press_seconds"],
        dismiss_grace_seconds: float = DEFAULT_TIMING["dismiss_grace_seconds"],
        reference_width: float = DEFAULT_TRACK["reference_width"],
        item_pitch: float = DEFAULT_TRACK["item_pitch"],
        magnification_radius: float = DEFAULT_TRACK["magnification_radius"],
        units: Optional[Sequence[PickerUnit]] = None,
        formatter: Callable[[float], str] = format_value,
        parser: Callable[[str], float] = parse_value,
        track_formatter: Callable[[float], str] = format_track_label,
        scheduler: Optional[DeferredScheduler] = None,
        on_display: Optional[Callable[[PickerState], None]] = None,
        on_value_added: Optional[Callable[[float], None]] = None,
        on_value_subtracted: Optional[Callable[[float], None]] = None,
        on_value_set: Optional[Callable[[float], None]] = None,
        on_value_changed: Optional[Callable[[float], None]] = None,
        on_haptic: Optional[Callable[[], None]] = None,
    ) -> None:
        self.config = PickerConfig(
            lower_bound=lower_bound,
            upper_bound=upper_bound,
            step=step,
            initial_value=lower_bound if initial_value is None else initial_value,
            pills=list(pills or []),
            units=tuple(units or (PickerUnit.KILOGRAMS,)),
            long_press_seconds=long_press_seconds,
            dismiss_grace_seconds=dismiss_grace_seconds,
            reference_width=reference_width,
            item_pitch=item_pitch,
            magnification_radius=magnification_radius,
        ).validate()

        self._formatter = formatter
        self._parser = parser
        self._on_display = on_display
        self._on_value_added = on_value_added
        self._on_value_subtracted = on_value_subtracted
        self._on_value_set = on_value_set
        self._on_value_changed = on_value_changed
        self._on_haptic = on_haptic

        self._scheduler = scheduler or DeferredScheduler()
        self._long_press_timer: Optional[TimerHandle] = None
        self._dismiss_timer: Optional[TimerHandle] = None

        self.track = self._make_track(track_formatter)
        self._value = PickerValue(
            current=self._coerce(clamp(self.config.initial_value, lower_bound, upper_bound)),
            lower_bound=lower_bound,
            upper_bound=upper_bound,
            step=step,
        )
        self._mode = InteractionMode.IDLE
        self.keyboard = KeyboardBuffer()
        self._unit = self.config.units[0]

        # drag-origin snapshot, valid from pointer down until the track closes
        self._drag_origin_value: Optional[float] = None
        self._drag_origin_x: Optional[float] = None
        self._last_x: Optional[float] = None
        self._pointer_held = False

        logger.info(
            "ValuePickerController initialized: value=%s range=[%s, %s] step=%s",
            self._value.current, lower_bound, upper_bound, step,
        )
        self._refresh_display()

    @classmethod
    def from_config(cls, config: PickerConfig, **kwargs) -> "ValuePickerController":
        """Build a controller from a :class:`PickerConfig`; *kwargs* add callbacks and policies."""
        return cls(
            lower_bound=config.lower_bound,
            upper_bound=config.upper_bound,
            step=config.step,
            initial_value=config.initial_value,
            pills=config.pills,
            long_press_seconds=config.long_press_seconds,
            dismiss_grace_seconds=config.dismiss_grace_seconds,
            reference_width=config.reference_width,
            item_pitch=config.item_pitch,
            magnification_radius=config.magnification_radius,
            units=config.units,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def value(self) -> float:
        return self._value.current

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def picker_value(self) -> PickerValue:
        """Copy of the current value and its bounds."""
        return replace(self._value)

    @property
    def unit(self) -> PickerUnit:
        return self._unit

    @property
    def available_units(self) -> Tuple[PickerUnit, ...]:
        return self.config.units

    @property
    def pills(self) -> List[float]:
        return list(self.config.pills)

    @property
    def scheduler(self) -> DeferredScheduler:
        return self._scheduler

    @property
    def state(self) -> PickerState:
        return self.snapshot()

    def snapshot(self) -> PickerState:
        return PickerState(
            value=self._value.current,
            mode=self._mode,
            unit=self._unit,
            keyboard_text=self.keyboard.text if self._mode is InteractionMode.KEYBOARD_ACTIVE else None,
            settled_index=self.track.settled_index if self._mode is InteractionMode.SCROLL_ACTIVE else None,
            lower_bound=self._value.lower_bound,
            upper_bound=self._value.upper_bound,
            step=self._value.step,
        )

    def pill_actions(self) -> List[Tuple[float, int]]:
        """``(amount, sign)`` pairs: the ``+`` row followed by the ``-`` row."""
        return [(a, 1) for a in self.config.pills] + [(a, -1) for a in self.config.pills]

    def format_value(self, value: Optional[float] = None) -> str:
        return self._formatter(self._value.current if value is None else value)

    # ------------------------------------------------------------------
    # Pointer / long-press scrubbing
    # ------------------------------------------------------------------

    def handle_pointer_down(self, position: Position, timestamp: Optional[float] = None) -> bool:
        """Start a potential long press. Only accepted from ``IDLE``."""
        self._advance(timestamp)
        if self._mode is not InteractionMode.IDLE:
            logger.debug("Pointer down ignored in %s", self._mode.name)
            return False
        try:
            x = _position_x(position)
        except InputRejected as e:
            logger.debug("Pointer down rejected: %s", e)
            return False

        self._drag_origin_value = self._value.current
        self._drag_origin_x = x
        self._last_x = x
        self._pointer_held = True
        self._arm_long_press(self._event_time(timestamp))
        self._set_mode(InteractionMode.PENDING_LONG_PRESS)
        return True

    def handle_pointer_move(self, position: Position, timestamp: Optional[float] = None) -> bool:
        """Scrub the value while the track is active; a no-op while the long press is pending."""
        self._advance(timestamp)
        if self._mode not in (InteractionMode.PENDING_LONG_PRESS, InteractionMode.SCROLL_ACTIVE) \
                or not self._pointer_held:
            logger.debug("Pointer move ignored in %s", self._mode.name)
            return False
        try:
            x = _position_x(position)
        except InputRejected as e:
            logger.debug("Pointer move rejected: %s", e)
            return False
        self._last_x = x
        if self._mode is InteractionMode.PENDING_LONG_PRESS:
            # the value only follows the pointer once the track is up
            return True

        span = self._value.upper_bound - self._value.lower_bound
        delta = (x - self._drag_origin_x) / self.config.reference_width * span
        new_value = self._quantize(self._drag_origin_value + delta)
        changed = self._set_value(new_value)
        self.track.align_to_value(new_value)
        if changed:
            self._refresh_display()
        return True

    def handle_pointer_up(self, timestamp: Optional[float] = None) -> bool:
        """End a tap (cancels the long press) or a scrub (arms the dismiss timer)."""
        self._advance(timestamp)
        if self._mode is InteractionMode.PENDING_LONG_PRESS:
            self._cancel_long_press()
            self._end_drag()
            self._set_mode(InteractionMode.IDLE)
            logger.debug("Tap: pointer lifted before long press")
            return True
        if self._mode is InteractionMode.SCROLL_ACTIVE and self._pointer_held:
            self._pointer_held = False
            self._arm_dismiss(self._event_time(timestamp))
            return True
        logger.debug("Pointer up ignored in %s", self._mode.name)
        return False

    def on_long_press_timer_fired(self) -> bool:
        """Open the scroll track. Discarded unless a long press is still pending."""
        self._cancel_long_press()
        if self._mode is not InteractionMode.PENDING_LONG_PRESS:
            logger.debug("Stale long-press timer discarded in %s", self._mode.name)
            return False

        self._set_mode(InteractionMode.SCROLL_ACTIVE)
        snapped = self._quantize(self._value.current)
        self._set_value(snapped)
        self.track.align_to_value(snapped)
        self._refresh_display()
        return True

    def handle_track_scroll(self, offset: float, timestamp: Optional[float] = None) -> bool:
        """User scrolled the visible track to *offset*.

        A settle on a new item comes back through :meth:`_on_track_settled`.
        A pending dismissal is pushed back so the track stays up while it moves.
        """
        self._advance(timestamp)
        if self._mode is not InteractionMode.SCROLL_ACTIVE:
            logger.debug("Track scroll ignored in %s", self._mode.name)
            return False
        try:
            self.track.update_offset(offset)
        except InputRejected as e:
            logger.debug("Track scroll rejected: %s", e)
            return False
        if self._dismiss_timer is not None and self._dismiss_timer.active:
            self._arm_dismiss(self._event_time(timestamp))
        return True

    # ------------------------------------------------------------------
    # Keyboard entry
    # ------------------------------------------------------------------

    def handle_double_tap(self, timestamp: Optional[float] = None) -> bool:
        self._advance(timestamp)
        if self._mode is not InteractionMode.IDLE:
            logger.debug("Double tap ignored in %s", self._mode.name)
            return False
        self.keyboard.text = self._formatter(self._value.current)
        self._set_mode(InteractionMode.KEYBOARD_ACTIVE)
        self._refresh_display()
        return True

    def handle_keyboard_edit(self, text: str, timestamp: Optional[float] = None) -> bool:
        self._advance(timestamp)
        if self._mode is not InteractionMode.KEYBOARD_ACTIVE:
            return False
        self.keyboard.text = text
        self._refresh_display()
        return True

    def handle_keyboard_commit(self, text: Optional[str] = None, timestamp: Optional[float] = None) -> bool:
        """Commit typed text (the buffer when *text* is None).

        Unreadable text leaves the keyboard open with the text kept and the
        value untouched. Readable text is clamped but not quantized.
        """
        self._advance(timestamp)
        if self._mode is not InteractionMode.KEYBOARD_ACTIVE:
            logger.debug("Keyboard commit ignored in %s", self._mode.name)
            return False
        if text is None:
            text = self.keyboard.text
        else:
            self.keyboard.text = text

        try:
            parsed = self._parser(text)
            if parsed is None or not math.isfinite(parsed):
                raise InputRejected(f"not a finite number: {text!r}")
        except (InputRejected, ValueError, TypeError) as e:
            logger.debug("Keyboard input rejected: %s", e)
            self._refresh_display()
            return False

        new_value = self._coerce(self._value.clamp(parsed))
        self._set_value(new_value)
        self.keyboard.clear()
        self._set_mode(InteractionMode.IDLE)
        logger.info("Value set from keyboard: %s", new_value)
        self._notify(self._on_value_set, "on_value_set", new_value)
        self._refresh_display()
        return True

    def handle_keyboard_cancel(self, timestamp: Optional[float] = None) -> bool:
        self._advance(timestamp)
        if self._mode is not InteractionMode.KEYBOARD_ACTIVE:
            return False
        self.keyboard.clear()
        self._set_mode(InteractionMode.IDLE)
        self._refresh_display()
        return True

    # ------------------------------------------------------------------
    # Pills, external assignment and housekeeping
    # ------------------------------------------------------------------

    def apply_pill_delta(self, amount: float, sign: int, timestamp: Optional[float] = None) -> bool:
        """Add (``sign=+1``) or subtract (``sign=-1``) a pill amount. ``IDLE`` only."""
        self._advance(timestamp)
        if self._mode is not InteractionMode.IDLE:
            logger.debug("Pill ignored in %s", self._mode.name)
            return False
        if sign not in (1, -1):
            logger.debug("Pill rejected: sign must be +1 or -1, got %r", sign)
            return False
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) \
                or not math.isfinite(amount) or amount <= 0:
            logger.debug("Pill rejected: amount must be a positive number, got %r", amount)
            return False

        new_value = self._coerce(self._value.clamp(self._value.current + sign * amount))
        changed = self._set_value(new_value)
        logger.info("Pill %s%s -> %s", "+" if sign > 0 else "-", amount, new_value)
        if sign > 0:
            self._notify(self._on_value_added, "on_value_added", amount)
        else:
            self._notify(self._on_value_subtracted, "on_value_subtracted", amount)
        if changed:
            self._refresh_display()
        return True

    def set_external_value(self, value: float, timestamp: Optional[float] = None) -> bool:
        """Programmatic assignment. Refused while the keyboard is up.

        The value is clamped, and also quantized while the track is visible so
        the track can settle on it. During a press the drag origin moves to
        the new value so later pointer moves are relative to it.
        """
        self._advance(timestamp)
        if self._mode is InteractionMode.KEYBOARD_ACTIVE:
            logger.debug("External value ignored while keyboard is active")
            return False
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            logger.debug("External value rejected: %r", value)
            return False

        if self._mode is InteractionMode.SCROLL_ACTIVE:
            new_value = self._quantize(value)
        else:
            new_value = self._coerce(self._value.clamp(value))
        changed = self._set_value(new_value)
        if self._mode in (InteractionMode.PENDING_LONG_PRESS, InteractionMode.SCROLL_ACTIVE):
            self._rebase_drag(new_value)
        if self._mode is InteractionMode.SCROLL_ACTIVE:
            self.track.align_to_value(new_value)
        if changed:
            self._refresh_display()
        return True

    def dismiss(self, timestamp: Optional[float] = None) -> bool:
        """Close whatever is open (track, keyboard or pending press) without changing the value."""
        self._advance(timestamp)
        if self._mode is InteractionMode.IDLE:
            return False
        self._cancel_long_press()
        self._cancel_dismiss()
        self.keyboard.clear()
        self._end_drag()
        self._set_mode(InteractionMode.IDLE)
        self._refresh_display()
        return True

    def select_unit(self, unit: Union[PickerUnit, str], timestamp: Optional[float] = None) -> bool:
        """Switch the display unit. The numeric value is not converted."""
        self._advance(timestamp)
        try:
            if not isinstance(unit, PickerUnit):
                unit = PickerUnit.from_symbol(unit)
        except ValueError as e:
            logger.debug("Unit rejected: %s", e)
            return False
        if unit not in self.config.units:
            logger.debug("Unit %s is not offered by this picker", unit.symbol)
            return False
        if unit is not self._unit:
            self._unit = unit
            self._refresh_display()
        return True

    def reconfigure(self, lower_bound: float, upper_bound: float, step: float) -> bool:
        """Replace bounds and step. ``IDLE`` only; bad values raise :class:`ConfigurationError`."""
        if self._mode is not InteractionMode.IDLE:
            logger.debug("Reconfigure ignored in %s", self._mode.name)
            return False
        self.track.configure(lower_bound, upper_bound, step)
        self.config.lower_bound = lower_bound
        self.config.upper_bound = upper_bound
        self.config.step = step
        self._value.lower_bound = lower_bound
        self._value.upper_bound = upper_bound
        self._value.step = step
        self._set_value(self._coerce(self._value.clamp(self._value.current)))
        self._refresh_display()
        return True

    def tick(self, now: Optional[float] = None) -> int:
        """Fire due timers. Hosts that poll call this from their loop."""
        return self._scheduler.advance(now)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _make_track(self, track_formatter: Callable[[float], str]) -> QuantizedScrollTrack:
        return QuantizedScrollTrack(
            self.config.lower_bound,
            self.config.upper_bound,
            self.config.step,
            item_pitch=self.config.item_pitch,
            magnification_radius=self.config.magnification_radius,
            on_settle=self._on_track_settled,
            formatter=track_formatter,
        )

    def _coerce(self, value: float) -> float:
        return float(value)

    def _quantize(self, value: float) -> float:
        v = self._value
        return self._coerce(quantize(value, v.lower_bound, v.upper_bound, v.step))

    def _set_value(self, value: float) -> bool:
        if value == self._value.current:
            return False
        self._value.current = value
        return True

    def _set_mode(self, mode: InteractionMode) -> None:
        if mode not in _ALLOWED_TRANSITIONS[self._mode]:
            raise RuntimeError(f"Illegal mode transition {self._mode.name} -> {mode.name}")
        logger.info("Mode %s -> %s (value=%s)", self._mode.name, mode.name, self._value.current)
        self._mode = mode

    def _advance(self, timestamp: Optional[float]) -> None:
        if timestamp is not None:
            self._scheduler.advance(timestamp)

    def _event_time(self, timestamp: Optional[float]) -> float:
        # after _advance the scheduler is at max(previous instant, timestamp)
        return self._scheduler.now

    def _arm_long_press(self, now: float) -> None:
        self._cancel_long_press()
        self._long_press_timer = self._scheduler.call_at(
            now + self.config.long_press_seconds, self.on_long_press_timer_fired, name="long-press"
        )

    def _cancel_long_press(self) -> None:
        if self._long_press_timer is not None:
            self._long_press_timer.cancel()
            self._long_press_timer = None

    def _arm_dismiss(self, now: float) -> None:
        self._cancel_dismiss()
        self._dismiss_timer = self._scheduler.call_at(
            now + self.config.dismiss_grace_seconds, self._on_dismiss_timer_fired, name="dismiss"
        )

    def _cancel_dismiss(self) -> None:
        if self._dismiss_timer is not None:
            self._dismiss_timer.cancel()
            self._dismiss_timer = None

    def _on_dismiss_timer_fired(self) -> None:
        self._dismiss_timer = None
        if self._mode is not InteractionMode.SCROLL_ACTIVE or self._pointer_held:
            logger.debug("Stale dismiss timer discarded in %s", self._mode.name)
            return
        self._end_drag()
        self._set_mode(InteractionMode.IDLE)
        self._refresh_display()

    def _on_track_settled(self, index: int, value: float) -> None:
        # track -> controller channel; only user scrolling reaches here
        if self._mode is not InteractionMode.SCROLL_ACTIVE:
            logger.debug("Track settle ignored in %s", self._mode.name)
            return
        value = self._coerce(value)
        self._notify(self._on_haptic, "on_haptic")
        if not self._set_value(value):
            return
        self._rebase_drag(value)
        logger.debug("Track settled on index %d -> value %s", index, value)
        self._notify(self._on_value_changed, "on_value_changed", value)
        self._refresh_display()

    def _rebase_drag(self, value: float) -> None:
        self._drag_origin_value = value
        self._drag_origin_x = self._last_x

    def _end_drag(self) -> None:
        self._drag_origin_value = None
        self._drag_origin_x = None
        self._last_x = None
        self._pointer_held = False

    def _notify(self, callback: Optional[Callable], name: str, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("%s callback raised an exception", name)

    def _refresh_display(self) -> None:
        state = self.snapshot()
        logger.debug(
            "→ Display refresh: mode=%s value=%s unit=%s settled=%s",
            state.mode.name, state.value, state.unit.symbol, state.settled_index,
        )
        self._notify(self._on_display, "on_display", state)
