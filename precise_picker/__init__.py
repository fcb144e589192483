"""Precise picker package init.

A bounded, quantized numeric value picker core: pills, long-press scrubbing over
a magnified scroll track, and keyboard entry, all converging on one value. The
package renders nothing; hosts draw whatever `ValuePickerController.snapshot()`
describes.
"""

__all__ = [
    "config",
    "controller",
    "scroll_track",
    "timers",
    "integer",
    "input_queue",
    "run_picker",
]
