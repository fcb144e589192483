"""Tests for the script-driven simulator CLI."""
import io

import pytest

from precise_picker import run_picker
from precise_picker.config import PickerConfig
from precise_picker.controller import ValuePickerController
from precise_picker.run_picker import ScriptError, parse_script, run_script
from precise_picker.timers import DeferredScheduler, ManualClock

SCRIPT = """\
# press, hold and scrub to the middle of the range
0.00 down 100
0.60 move 295
0.70 up

1.50 pill +5
2.00 doubletap
2.10 commit 33.25
"""


def _write(tmp_path, text):
    path = tmp_path / "script.txt"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_parse_script_skips_comments_and_blanks():
    events = parse_script(SCRIPT.splitlines())
    assert len(events) == 6
    assert events.get_event() == ("pointer_down", (100.0, 0.0), 0.0)


@pytest.mark.parametrize("line", [
    "0.5",
    "soon down 10",
    "0.5 wiggle",
    "0.5 pill 5",
    "0.5 pill",
    "0.5 move",
    "0.5 set lots",
])
def test_parse_script_rejects_malformed_lines(line):
    with pytest.raises(ScriptError) as exc:
        parse_script(["0.0 down 1", line])
    assert exc.value.line_no == 2


def test_run_script_reports_each_event():
    clock = ManualClock()
    ctrl = ValuePickerController.from_config(PickerConfig(), scheduler=DeferredScheduler(clock=clock))
    out = io.StringIO()
    run_script(ctrl, parse_script(SCRIPT.splitlines()), clock, out=out)

    lines = out.getvalue().splitlines()
    assert lines[0] == "t=0.000 pointer_down value=20 kg mode=PENDING_LONG_PRESS"
    assert lines[1] == "t=0.600 pointer_move value=120 kg mode=SCROLL_ACTIVE"
    assert lines[2] == "t=0.700 pointer_up value=120 kg mode=SCROLL_ACTIVE"
    assert lines[3] == "t=1.500 pill value=125 kg mode=IDLE"
    assert lines[4] == "t=2.000 double_tap value=125 kg mode=KEYBOARD_ACTIVE"
    assert lines[5] == "t=2.100 keyboard_commit value=33.25 kg mode=IDLE"
    assert lines[-1] == "final value=33.25 kg mode=IDLE"


def test_run_script_marks_ignored_events_and_flushes_timers():
    clock = ManualClock()
    ctrl = ValuePickerController.from_config(PickerConfig(), scheduler=DeferredScheduler(clock=clock))
    out = io.StringIO()
    script = ["0.0 pill +5", "0.1 down 10", "0.2 pill +5", "0.8 up"]
    run_script(ctrl, parse_script(script), clock, out=out)

    lines = out.getvalue().splitlines()
    assert lines[2] == "t=0.200 pill (ignored) value=25 kg mode=PENDING_LONG_PRESS"
    assert lines[3] == "t=0.800 pointer_up value=25 kg mode=SCROLL_ACTIVE"
    # the dismiss grace runs out after the last event
    assert lines[-1] == "final value=25 kg mode=IDLE"


def test_main_runs_script(tmp_path, capsys):
    assert run_picker.main(["--script", _write(tmp_path, SCRIPT)]) == 0
    out = capsys.readouterr().out
    assert "t=1.500 pill value=125 kg mode=IDLE" in out
    assert out.splitlines()[-1] == "final value=33.25 kg mode=IDLE"


def test_main_malformed_script(tmp_path):
    assert run_picker.main(["--script", _write(tmp_path, "0.0 pill 5\n")]) == 2


def test_main_missing_config(tmp_path):
    path = _write(tmp_path, SCRIPT)
    assert run_picker.main(["--config", str(tmp_path / "missing.json"), "--script", path]) == 1


def test_main_missing_script(tmp_path):
    assert run_picker.main(["--script", str(tmp_path / "missing.txt")]) == 1
