"""Serial input queue feeding a :class:`ValuePickerController`.

Hosts (or tests, or the CLI simulator) post events from whatever produces
them; :meth:`PickerEventQueue.drain` then delivers them to the controller one
at a time in arrival order, so a later event always sees the mode produced by
the earlier ones.

Events are ``(kind, payload, timestamp)`` tuples:

* ``('pointer_down', (x, y), t)``
* ``('pointer_move', (x, y), t)``
* ``('pointer_up', None, t)``
* ``('double_tap', None, t)``
* ``('keyboard_edit', text, t)``
* ``('keyboard_commit', text_or_None, t)``
* ``('keyboard_cancel', None, t)``
* ``('pill', (amount, sign), t)``
* ``('external_value', value, t)``
* ``('track_scroll', offset, t)``
* ``('dismiss', None, t)``
* ``('unit', symbol, t)``
* ``('tick', None, t)``

Example::

    events = PickerEventQueue()
    events.post_pointer_down((100, 0), 0.0)
    events.post_pointer_move((295, 0), 0.8)
    events.post_pointer_up(1.0)
    events.drain(controller)
"""
from __future__ import annotations

import logging
import queue
from typing import Any, Optional, Tuple

logger = logging.getLogger(__name__)

Event = Tuple[str, Any, Optional[float]]


class PickerEventQueue:
    def __init__(self) -> None:
        self._events: queue.Queue[Event] = queue.Queue()

    def post(self, kind: str, payload: Any = None, timestamp: Optional[float] = None) -> None:
        if kind not in _HANDLERS:
            raise ValueError(f"Unknown event kind: {kind!r}")
        self._events.put((kind, payload, timestamp))

    def post_pointer_down(self, position, timestamp: Optional[float] = None) -> None:
        self.post("pointer_down", position, timestamp)

    def post_pointer_move(self, position, timestamp: Optional[float] = None) -> None:
        self.post("pointer_move", position, timestamp)

    def post_pointer_up(self, timestamp: Optional[float] = None) -> None:
        self.post("pointer_up", None, timestamp)

    def post_double_tap(self, timestamp: Optional[float] = None) -> None:
        self.post("double_tap", None, timestamp)

    def post_keyboard_edit(self, text: str, timestamp: Optional[float] = None) -> None:
        self.post("keyboard_edit", text, timestamp)

    def post_keyboard_commit(self, text: Optional[str] = None, timestamp: Optional[float] = None) -> None:
        self.post("keyboard_commit", text, timestamp)

    def post_keyboard_cancel(self, timestamp: Optional[float] = None) -> None:
        self.post("keyboard_cancel", None, timestamp)

    def post_pill(self, amount: float, sign: int, timestamp: Optional[float] = None) -> None:
        self.post("pill", (amount, sign), timestamp)

    def post_external_value(self, value: float, timestamp: Optional[float] = None) -> None:
        self.post("external_value", value, timestamp)

    def post_track_scroll(self, offset: float, timestamp: Optional[float] = None) -> None:
        self.post("track_scroll", offset, timestamp)

    def post_dismiss(self, timestamp: Optional[float] = None) -> None:
        self.post("dismiss", None, timestamp)

    def post_unit(self, symbol: str, timestamp: Optional[float] = None) -> None:
        self.post("unit", symbol, timestamp)

    def post_tick(self, timestamp: Optional[float] = None) -> None:
        self.post("tick", None, timestamp)

    def get_event(self) -> Optional[Event]:
        """Return the next queued event, or ``None`` if the queue is empty."""
        try:
            return self._events.get_nowait()
        except queue.Empty:
            return None

    def __len__(self) -> int:
        return self._events.qsize()

    def drain(self, controller, on_event=None) -> int:
        """Deliver every pending event to *controller*; return how many were delivered.

        *on_event*, if given, is called as ``on_event(event, accepted)`` after
        each delivery.
        """
        delivered = 0
        while True:
            event = self.get_event()
            if event is None:
                return delivered
            accepted = dispatch(controller, event)
            delivered += 1
            if on_event is not None:
                on_event(event, accepted)


def dispatch(controller, event: Event) -> bool:
    """Route one event to the matching controller handler; return its result."""
    kind, payload, timestamp = event
    handler = _HANDLERS.get(kind)
    if handler is None:
        raise ValueError(f"Unknown event kind: {kind!r}")
    logger.debug("Dispatch %s %r at %s", kind, payload, timestamp)
    return bool(handler(controller, payload, timestamp))


_HANDLERS = {
    "pointer_down": lambda c, p, t: c.handle_pointer_down(p, t),
    "pointer_move": lambda c, p, t: c.handle_pointer_move(p, t),
    "pointer_up": lambda c, p, t: c.handle_pointer_up(t),
    "double_tap": lambda c, p, t: c.handle_double_tap(t),
    "keyboard_edit": lambda c, p, t: c.handle_keyboard_edit(p, t),
    "keyboard_commit": lambda c, p, t: c.handle_keyboard_commit(p, t),
    "keyboard_cancel": lambda c, p, t: c.handle_keyboard_cancel(t),
    "pill": lambda c, p, t: c.apply_pill_delta(p[0], p[1], t),
    "external_value": lambda c, p, t: c.set_external_value(p, t),
    "track_scroll": lambda c, p, t: c.handle_track_scroll(p, t),
    "dismiss": lambda c, p, t: c.dismiss(t),
    "unit": lambda c, p, t: c.select_unit(p, t),
    "tick": lambda c, p, t: c.tick(t) >= 0,
}
