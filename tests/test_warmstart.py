"""
Tests for initial-guess generation and the timing helpers.
"""

import logging

import numpy as np
import pytest

from common_utils.time_tracking import Stopwatch, timeit
from planner.planning_utils.layout import DecisionLayout
from planner.planning_utils.warmstart import Warmstart

STATE = np.array([0.0, -1.0, 0.1, 10.0, 1.0, 0.1])


def test_cold_guess_places_state_at_first_step():
    layout = DecisionLayout(5)
    w0 = Warmstart(layout).generate(STATE)

    assert w0.shape == (layout.n_vars,)
    for name, value in zip(("x", "y", "psi", "v", "cte", "epsi"), STATE):
        assert w0[layout.start(name)] == value
    assert np.count_nonzero(w0) == np.count_nonzero(STATE)


def test_const_vx_guess_drives_straight():
    layout = DecisionLayout(4)
    w0 = Warmstart(layout, mode="const_vx").generate(STATE, dt=0.1, coeffs=[0.0, 0.0])
    plan = layout.unpack(w0)

    np.testing.assert_allclose(plan["v"], 10.0)
    np.testing.assert_allclose(plan["psi"], 0.1)
    np.testing.assert_allclose(np.diff(plan["x"]), 10.0 * np.cos(0.1) * 0.1)
    np.testing.assert_array_equal(plan["delta"], 0.0)
    np.testing.assert_array_equal(plan["a"], 0.0)


def test_unknown_mode():
    with pytest.raises(ValueError):
        Warmstart(DecisionLayout(4), mode="previous")


def test_const_vx_needs_model_inputs():
    with pytest.raises(ValueError):
        Warmstart(DecisionLayout(4), mode="const_vx").generate(STATE)


def test_wrong_state_length():
    with pytest.raises(ValueError):
        Warmstart(DecisionLayout(4)).generate(STATE[:5])


def test_stopwatch_measures_block():
    with Stopwatch() as watch:
        sum(range(1000))

    assert watch.elapsed > 0.0


def test_timeit_logs_duration(caplog):
    @timeit
    def double(value):
        return 2 * value

    with caplog.at_level(logging.DEBUG, logger="common_utils.time_tracking"):
        assert double(21) == 42

    assert "[TIMEIT]" in caplog.text
    assert "double" in caplog.text
