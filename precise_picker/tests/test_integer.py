"""Tests for the whole-number picker adapter."""
import pytest

from precise_picker.controller import InteractionMode
from precise_picker.errors import ConfigurationError
from precise_picker.integer import IntegerPickerController, IntegerScrollTrack
from precise_picker.timers import DeferredScheduler, ManualClock

PITCH = 68.0


def _make_controller(**kwargs):
    changes = []
    params = dict(
        lower_bound=0,
        upper_bound=100,
        initial_value=20,
        reference_width=400.0,
        scheduler=DeferredScheduler(clock=ManualClock()),
        on_value_changed=changes.append,
    )
    params.update(kwargs)
    return IntegerPickerController(**params), changes


def test_value_is_int():
    ctrl, _ = _make_controller()
    assert ctrl.value == 20
    assert isinstance(ctrl.value, int)
    assert ctrl.snapshot().step == 1


def test_step_cannot_be_overridden():
    with pytest.raises(TypeError):
        IntegerPickerController(0, 10, step=0.5)


@pytest.mark.parametrize("lower,upper", [(0.5, 10), (0, 10.2), (float("nan"), 10), (10, 0)])
def test_bounds_must_be_integral_and_ordered(lower, upper):
    with pytest.raises(ConfigurationError):
        IntegerPickerController(lower, upper)


def test_keyboard_commit_rounds_half_up():
    ctrl, _ = _make_controller()
    ctrl.handle_double_tap()
    assert ctrl.snapshot().keyboard_text == "20"
    ctrl.handle_keyboard_commit("33.6")
    assert ctrl.value == 34
    assert isinstance(ctrl.value, int)
    ctrl.handle_double_tap()
    ctrl.handle_keyboard_commit("12.5")
    assert ctrl.value == 13


def test_pill_result_is_int():
    ctrl, _ = _make_controller()
    ctrl.apply_pill_delta(2.5, 1)
    assert ctrl.value == 23
    assert isinstance(ctrl.value, int)


def test_track_items_are_ints():
    ctrl, _ = _make_controller()
    assert isinstance(ctrl.track, IntegerScrollTrack)
    assert ctrl.track.items[:3] == [0, 1, 2]
    assert all(isinstance(v, int) for v in ctrl.track.items)
    assert ctrl.track.label(20) == "20"


def test_scrub_and_scroll_stay_integral():
    ctrl, changes = _make_controller()
    ctrl.handle_pointer_down((100, 0), 0.0)
    ctrl.handle_pointer_move((300, 0), 0.6)
    assert ctrl.mode is InteractionMode.SCROLL_ACTIVE
    assert ctrl.value == 70
    assert isinstance(ctrl.value, int)

    ctrl.handle_track_scroll(42 * PITCH, 0.7)
    assert ctrl.value == 42
    assert isinstance(ctrl.value, int)
    assert changes == [42]


def test_reconfigure_keeps_step_one():
    ctrl, _ = _make_controller(initial_value=50)
    assert ctrl.reconfigure(0, 10) is True
    assert ctrl.value == 10
    assert isinstance(ctrl.value, int)
    with pytest.raises(ConfigurationError):
        ctrl.reconfigure(0, 10, 2)
    with pytest.raises(ConfigurationError):
        ctrl.reconfigure(0, 10.5)
