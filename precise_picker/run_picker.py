"""CLI simulator for the precise picker.

Replays a line-oriented input script through a :class:`PickerEventQueue` and
prints the picker state after every event. Each script line is
``<seconds> <command> [args]``; blank lines and ``#`` comments are skipped::

    0.00 down 100
    0.60 move 295          # long press fired at 0.50, now scrubbing
    0.70 up
    1.50 pill +5
    2.00 doubletap
    2.10 commit 33.25

Commands: ``down X [Y]``, ``move X [Y]``, ``up``, ``doubletap``, ``edit TEXT``,
``commit [TEXT]``, ``cancel``, ``pill +N|-N``, ``set VALUE``, ``scroll OFFSET``,
``dismiss``, ``unit SYMBOL``, ``tick``.
"""
import argparse
import logging
import sys
from typing import Iterable, List, Optional

from precise_picker.config import load_config
from precise_picker.controller import ValuePickerController
from precise_picker.errors import ConfigurationError
from precise_picker.input_queue import PickerEventQueue, dispatch
from precise_picker.timers import DeferredScheduler, ManualClock

logger = logging.getLogger(__name__)


class ScriptError(ValueError):
    def __init__(self, line_no: int, line: str, reason: str) -> None:
        super().__init__(f"line {line_no}: {reason}: {line.strip()!r}")
        self.line_no = line_no


def _position(args: List[str]):
    x = float(args[0])
    y = float(args[1]) if len(args) > 1 else 0.0
    return (x, y)


def _pill(arg: str):
    if arg[:1] not in ("+", "-"):
        raise ValueError("pill amount needs a + or - sign")
    return abs(float(arg)), (1 if arg[0] == "+" else -1)


def parse_script(lines: Iterable[str]) -> PickerEventQueue:
    """Parse script lines into a filled :class:`PickerEventQueue`."""
    events = PickerEventQueue()
    for line_no, raw in enumerate(lines, start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) < 2:
            raise ScriptError(line_no, raw, "expected '<seconds> <command>'")
        try:
            t = float(parts[0])
        except ValueError:
            raise ScriptError(line_no, raw, "timestamp is not a number")
        cmd, args = parts[1].lower(), parts[2:]
        try:
            if cmd == "down":
                events.post_pointer_down(_position(args), t)
            elif cmd == "move":
                events.post_pointer_move(_position(args), t)
            elif cmd == "up":
                events.post_pointer_up(t)
            elif cmd == "doubletap":
                events.post_double_tap(t)
            elif cmd == "edit":
                events.post_keyboard_edit(" ".join(args), t)
            elif cmd == "commit":
                events.post_keyboard_commit(" ".join(args) if args else None, t)
            elif cmd == "cancel":
                events.post_keyboard_cancel(t)
            elif cmd == "pill":
                amount, sign = _pill(args[0])
                events.post_pill(amount, sign, t)
            elif cmd == "set":
                events.post_external_value(float(args[0]), t)
            elif cmd == "scroll":
                events.post_track_scroll(float(args[0]), t)
            elif cmd == "dismiss":
                events.post_dismiss(t)
            elif cmd == "unit":
                events.post_unit(args[0], t)
            elif cmd == "tick":
                events.post_tick(t)
            else:
                raise ScriptError(line_no, raw, f"unknown command {cmd!r}")
        except ScriptError:
            raise
        except (IndexError, ValueError) as e:
            raise ScriptError(line_no, raw, f"bad arguments for {cmd!r} ({e})")
    return events


def run_script(controller: ValuePickerController, events: PickerEventQueue, clock: ManualClock,
               out=None) -> None:
    """Deliver *events* and print one state line per event, then flush pending timers."""
    out = out or sys.stdout

    def report(label: str, accepted: Optional[bool] = None) -> None:
        state = controller.snapshot()
        mark = " (ignored)" if accepted is False else ""
        print(f"{label}{mark} value={controller.format_value()} {state.unit.symbol} mode={state.mode.name}",
              file=out)

    while True:
        event = events.get_event()
        if event is None:
            break
        kind, payload, timestamp = event
        if timestamp is not None:
            clock.set(max(clock(), timestamp))
        accepted = dispatch(controller, event)
        report(f"t={timestamp:.3f} {kind}", accepted)

    # let the dismiss grace (or a pending long press) run out
    while True:
        deadline = controller.scheduler.next_deadline()
        if deadline is None:
            break
        clock.set(deadline)
        controller.tick(deadline)
    report("final")


def main(argv=None):
    p = argparse.ArgumentParser(description="Replay an input script against the precise picker")
    p.add_argument("--config", help="Path to picker JSON config (defaults to the bundled sample_config.json)")
    p.add_argument("--script", help="Path to the input script (defaults to stdin)")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    if args.verbose:
        logger.info("Debug logging enabled")

    try:
        config = load_config(args.config) if args.config else load_config()
    except (FileNotFoundError, ConfigurationError) as e:
        logger.error(f"Failed to load picker config: {e}")
        return 1

    try:
        if args.script:
            with open(args.script, "r", encoding="utf-8") as f:
                events = parse_script(f.readlines())
        else:
            events = parse_script(sys.stdin.readlines())
    except OSError as e:
        logger.error(f"Failed to read script: {e}")
        return 1
    except ScriptError as e:
        logger.error(f"Malformed script {e}")
        return 2

    clock = ManualClock()
    controller = ValuePickerController.from_config(config, scheduler=DeferredScheduler(clock=clock))
    logger.info(f"Replaying {len(events)} events")
    run_script(controller, events, clock)
    return 0


if __name__ == "__main__":
    sys.exit(main())
