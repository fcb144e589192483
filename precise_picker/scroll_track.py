"""Quantized scroll track: the magnified strip of candidate values.

The track owns an ascending list of evenly stepped values and a *settled index*
into it. Scroll offsets are measured in the same unit as the item pitch, with
item ``i`` centred at ``i * item_pitch``; the focal centre of the strip sits at
``focal_offset``.

Two one-directional channels connect the track to its owner:

``on_settle(index, value)``
    Called by :meth:`QuantizedScrollTrack.update_offset` when user scrolling
    moves the nearest item to a new index.

:meth:`QuantizedScrollTrack.align_to_value`
    Used by the owner to re-settle the track after the value changed
    elsewhere. It never calls ``on_settle``, so an alignment cannot echo back
    into the owner as a user change.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional

from precise_picker.config import DEFAULT_TRACK, validate_bounds
from precise_picker.errors import ConfigurationError, InputRejected
from precise_picker.formatting import format_track_label

logger = logging.getLogger(__name__)

# Item values are rounded so that 0.1 * 3 compares equal to 0.3
_ROUND_DIGITS = 10
# An upper bound this close (in step units) to a step boundary counts as on it
_BOUNDARY_TOLERANCE = 1e-9
_MAX_ITEMS = 1_000_000


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clamp(value: float, lower_bound: float, upper_bound: float) -> float:
    return max(lower_bound, min(upper_bound, value))


def _last_step(lower_bound: float, upper_bound: float, step: float) -> int:
    return int(math.floor((upper_bound - lower_bound) / step + _BOUNDARY_TOLERANCE))


def _item_at(index: int, lower_bound: float, upper_bound: float, step: float) -> float:
    # an upper bound within the tolerance of a step boundary is itself the last item
    return min(max(round(lower_bound + index * step, _ROUND_DIGITS), lower_bound), float(upper_bound))


def quantize(value: float, lower_bound: float, upper_bound: float, step: float) -> float:
    """Clamp *value* and round it to the nearest step counted from *lower_bound*.

    The result is always a member of ``build_items(lower_bound, upper_bound, step)``.
    """
    value = clamp(value, lower_bound, upper_bound)
    steps = min(_round_half_up((value - lower_bound) / step), _last_step(lower_bound, upper_bound, step))
    return _item_at(steps, lower_bound, upper_bound, step)


def build_items(lower_bound: float, upper_bound: float, step: float) -> List[float]:
    """Return ``lower_bound, lower_bound + step, ...`` up to *upper_bound*.

    *upper_bound* itself is included only when it lies on a step boundary.
    At least one item is always returned.
    """
    validate_bounds(lower_bound, upper_bound, step)
    count = _last_step(lower_bound, upper_bound, step) + 1
    if count > _MAX_ITEMS:
        raise ConfigurationError(f"step {step} produces {count} items (max {_MAX_ITEMS})")

    items = [_item_at(i, lower_bound, upper_bound, step) for i in range(count)]
    if not items:
        raise ConfigurationError("scroll track has no items")
    if any(b <= a for a, b in zip(items, items[1:])):
        raise ConfigurationError(f"step {step} is too small to produce distinct items")
    return items


class QuantizedScrollTrack:
    """Discrete, evenly stepped value strip with snap-to-nearest settling.

    Parameters
    ----------
    lower_bound, upper_bound, step:
        Range and spacing of the candidate values.
    item_pitch:
        Distance between neighbouring item centres, in scroll-offset units.
    magnification_radius:
        Distance from the focal centre at which the magnification weight
        reaches zero.
    on_settle:
        Callback ``(index: int, value: float) -> None`` invoked when user
        scrolling settles on a different item.
    formatter:
        ``(value) -> str`` used for the per-item labels.
    """

    def __init__(
        self,
        lower_bound: float,
        upper_bound: float,
        step: float,
        item_pitch: float = DEFAULT_TRACK["item_pitch"],
        magnification_radius: float = DEFAULT_TRACK["magnification_radius"],
        on_settle: Optional[Callable[[int, float], None]] = None,
        formatter: Callable[[float], str] = format_track_label,
    ) -> None:
        if not item_pitch > 0:
            raise ConfigurationError(f"item_pitch must be greater than zero, got {item_pitch}")
        if not magnification_radius > 0:
            raise ConfigurationError(
                f"magnification_radius must be greater than zero, got {magnification_radius}"
            )
        self.item_pitch = float(item_pitch)
        self.magnification_radius = float(magnification_radius)
        self._on_settle = on_settle
        self._formatter = formatter

        self.items: List[float] = []
        self.settled_index: Optional[int] = None
        self.focal_offset: float = 0.0
        self.configure(lower_bound, upper_bound, step)

    def configure(self, lower_bound: float, upper_bound: float, step: float) -> None:
        """Rebuild the items for new bounds/step. Forgets the settled index."""
        self.items = self._build_items(lower_bound, upper_bound, step)
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.step = step
        self.settled_index = None
        self.focal_offset = 0.0
        logger.info(
            "Scroll track configured: %d items from %s to %s (step %s)",
            len(self.items), self.items[0], self.items[-1], step,
        )

    def _build_items(self, lower_bound: float, upper_bound: float, step: float) -> List[float]:
        return build_items(lower_bound, upper_bound, step)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def settled_value(self) -> Optional[float]:
        if self.settled_index is None:
            return None
        return self.items[self.settled_index]

    def item_center_offset(self, index: int) -> float:
        return index * self.item_pitch

    def _clamp_index(self, index: int) -> int:
        return max(0, min(len(self.items) - 1, index))

    def nearest_index(self, offset: float) -> int:
        return self._clamp_index(_round_half_up(offset / self.item_pitch))

    def index_for_value(self, value: float) -> int:
        """Index of the item equal (or nearest) to *value*."""
        return self._clamp_index(_round_half_up((value - self.lower_bound) / self.step))

    def update_offset(self, offset: float) -> bool:
        """Record a user scroll offset; return True when the settled item changed."""
        if isinstance(offset, bool) or not isinstance(offset, (int, float)) or not math.isfinite(offset):
            raise InputRejected(f"scroll offset must be a finite number, got {offset!r}")
        self.focal_offset = float(offset)
        index = self.nearest_index(self.focal_offset)
        if index == self.settled_index:
            return False

        previous = self.settled_index
        self.settled_index = index
        logger.debug("Track settled %s -> %d (%s)", previous, index, self.items[index])
        if self._on_settle is not None:
            try:
                self._on_settle(index, self.items[index])
            except Exception:
                logger.exception("on_settle callback raised an exception")
        return True

    def align_to_value(self, value: float) -> bool:
        """Settle on the item matching *value* without reporting a user change.

        Returns True when the settled index moved. Calling it again with the
        same value is a no-op.
        """
        index = self.index_for_value(value)
        changed = index != self.settled_index
        self.settled_index = index
        self.focal_offset = self.item_center_offset(index)
        if changed:
            logger.debug("Track aligned to %s (index %d)", value, index)
        return changed

    def magnification_weight(self, index: int) -> float:
        """Emphasis of item *index*: 1.0 at the focal centre, 0.0 from the radius on."""
        if not 0 <= index < len(self.items):
            raise IndexError(f"item index {index} out of range (0..{len(self.items) - 1})")
        distance = abs(self.item_center_offset(index) - self.focal_offset)
        return max(0.0, 1.0 - distance / self.magnification_radius)

    def visible_weights(self) -> Dict[int, float]:
        """Weights of every item close enough to the focal centre to be magnified."""
        first = self._clamp_index(int(math.floor((self.focal_offset - self.magnification_radius) / self.item_pitch)))
        last = self._clamp_index(int(math.ceil((self.focal_offset + self.magnification_radius) / self.item_pitch)))
        weights = {}
        for index in range(first, last + 1):
            weight = self.magnification_weight(index)
            if weight > 0.0:
                weights[index] = weight
        return weights

    def label(self, index: int) -> str:
        return self._formatter(self.items[index])
