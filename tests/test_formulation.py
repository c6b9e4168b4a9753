"""
Tests for the objective, constraints and bounds of the polynomial tracking MPC.

These evaluate the `fg_eval` graph the solver differentiates on hand-built
decision vectors, so no solve is involved.
"""

import math

import numpy as np
import pytest

from planner.planning_model.PolyMPC import PolyMPC
from planner.planning_utils.layout import STATE_NAMES


def make_planner(**controller):
    return PolyMPC.from_config({"time": {"N": 6}, "controller": controller})


@pytest.fixture(scope="module")
def planner():
    return make_planner()


def evaluate(planner, w, coeffs):
    f, g = planner.fg_eval(w, planner.build_mpc_param_values(coeffs))
    return float(f), g.full().reshape(-1)


def random_decision_vector(planner, seed=7):
    rng = np.random.default_rng(seed)
    return rng.uniform(-1.0, 1.0, planner.layout.n_vars)


def test_dynamics_residuals_match_model(planner):
    """Every residual equals state[t] - model(state[t-1], actuation[t-1])."""
    L = planner.layout
    w = random_decision_vector(planner)
    coeffs = np.array([0.5, 0.1, 0.02, 0.001])
    dt, Lf = planner.dt, planner.Lf

    _, g = evaluate(planner, w, coeffs)

    for t in range(1, planner.N):
        x0, y0, psi0, v0 = w[L.x_start + t - 1], w[L.y_start + t - 1], w[L.psi_start + t - 1], w[L.v_start + t - 1]
        epsi0 = w[L.epsi_start + t - 1]
        delta0, a0 = w[L.delta_start + t - 1], w[L.a_start + t - 1]
        f0 = coeffs[0] + coeffs[1] * x0 + coeffs[2] * x0 ** 2 + coeffs[3] * x0 ** 3
        psides0 = math.atan(coeffs[1])

        expected = {
            "x": w[L.x_start + t] - (x0 + v0 * math.cos(psi0) * dt),
            "y": w[L.y_start + t] - (y0 + v0 * math.sin(psi0) * dt),
            "psi": w[L.psi_start + t] - (psi0 + v0 * delta0 / Lf * dt),
            "v": w[L.v_start + t] - (v0 + a0 * dt),
            "cte": w[L.cte_start + t] - ((f0 - y0) + v0 * math.sin(epsi0) * dt),
            "epsi": w[L.epsi_start + t] - ((psi0 - psides0) + v0 * delta0 / Lf * dt),
        }
        for name in STATE_NAMES:
            assert g[L.start(name) + t] == pytest.approx(expected[name], abs=1e-12), (name, t)


def test_initial_entries_hold_first_state(planner):
    L = planner.layout
    w = random_decision_vector(planner, seed=3)

    _, g = evaluate(planner, w, [0.0, 0.0, 0.0, 0.0])

    for start in L.state_starts():
        assert g[start] == w[start]


def test_cost_matches_weighted_terms():
    planner = make_planner(ref_v=3.0, w_cte=2.0, w_epsi=3.0, w_v=0.5, w_delta=4.0, w_a=5.0, w_ddelta=6.0, w_da=7.0)
    parts_w = random_decision_vector(planner, seed=11)
    parts = planner.layout.unpack(parts_w)

    cost, _ = evaluate(planner, parts_w, [0.0, 0.0])

    expected = (
        2.0 * np.sum(parts["cte"] ** 2)
        + 3.0 * np.sum(parts["epsi"] ** 2)
        + 0.5 * np.sum((parts["v"] - 3.0) ** 2)
        + 4.0 * np.sum(parts["delta"] ** 2)
        + 5.0 * np.sum(parts["a"] ** 2)
        + 6.0 * np.sum(np.diff(parts["delta"]) ** 2)
        + 7.0 * np.sum(np.diff(parts["a"]) ** 2)
    )
    assert cost == pytest.approx(expected, rel=1e-10)


@pytest.mark.parametrize("channel", ["cte", "epsi"])
def test_cost_increases_with_tracking_error(planner, channel):
    L = planner.layout
    w = random_decision_vector(planner, seed=5)
    idx = L.start(channel) + 2
    w[idx] = 0.0

    previous, _ = evaluate(planner, w, [0.0, 0.0])
    for magnitude in (0.1, 0.5, 1.0, 2.0):
        for sign in (1.0, -1.0):
            w[idx] = sign * magnitude
            cost, _ = evaluate(planner, w, [0.0, 0.0])
            assert cost > previous
        previous = cost


def test_zero_state_is_fixed_point():
    """With a flat reference and zero target speed the all-zero plan costs nothing."""
    planner = make_planner(ref_v=0.0)
    L = planner.layout
    w = np.zeros(L.n_vars)

    cost, g = evaluate(planner, w, [0.0, 0.0])

    assert cost == 0.0
    np.testing.assert_array_equal(g, np.zeros(L.n_constraints))

    for name, t in (("cte", 1), ("epsi", 3), ("delta", 0), ("a", 2)):
        perturbed = w.copy()
        perturbed[L.start(name) + t] = 1e-3
        perturbed_cost, _ = evaluate(planner, perturbed, [0.0, 0.0])
        assert perturbed_cost > 0.0


def test_variable_bounds(planner):
    L = planner.layout
    np.testing.assert_array_equal(planner.lbx[:L.delta_start], -1.0e19)
    np.testing.assert_array_equal(planner.ubx[:L.delta_start], 1.0e19)
    np.testing.assert_array_equal(planner.lbx[L.slice("delta")], -planner.max_steering_angle_rad)
    np.testing.assert_array_equal(planner.ubx[L.slice("delta")], planner.max_steering_angle_rad)
    np.testing.assert_array_equal(planner.lbx[L.slice("a")], -planner.max_acc)
    np.testing.assert_array_equal(planner.ubx[L.slice("a")], planner.max_acc)


def test_constraint_bounds_pin_initial_state(planner):
    L = planner.layout
    state = np.array([1.0, -2.0, 0.3, 20.0, 2.0, -0.1])

    lbg, ubg = planner.update_constraint_bounds(state)

    assert lbg.shape == (L.n_constraints,)
    np.testing.assert_array_equal(lbg[list(L.state_starts())], state)
    np.testing.assert_array_equal(ubg[list(L.state_starts())], state)
    mask = np.ones(L.n_constraints, dtype=bool)
    mask[list(L.state_starts())] = False
    np.testing.assert_array_equal(lbg[mask], 0.0)
    np.testing.assert_array_equal(ubg[mask], 0.0)


def test_constraint_bounds_do_not_leak_between_cycles(planner):
    planner.update_constraint_bounds(np.full(6, 5.0))
    lbg, _ = planner.update_constraint_bounds(np.zeros(6))
    np.testing.assert_array_equal(lbg, 0.0)


def test_cold_initial_guess(planner):
    L = planner.layout
    state = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    w0 = planner.build_mpc_initial_values(state, np.zeros(4))

    expected = np.zeros(L.n_vars)
    expected[list(L.state_starts())] = state
    np.testing.assert_array_equal(w0, expected)


def test_const_vx_initial_guess_satisfies_dynamics():
    planner = make_planner(warmstart="const_vx")
    L = planner.layout
    state = np.array([0.0, -1.0, 0.05, 15.0, 1.0, 0.02])
    coeffs = np.array([0.2, 0.05, 0.001, 0.0])

    w0 = planner.build_mpc_initial_values(state, coeffs)
    _, g = evaluate(planner, w0, coeffs)

    np.testing.assert_array_equal(w0[L.delta_start:], 0.0)
    np.testing.assert_allclose(g[list(L.state_starts())], state)
    mask = np.ones(L.n_constraints, dtype=bool)
    mask[list(L.state_starts())] = False
    np.testing.assert_allclose(g[mask], 0.0, atol=1e-12)
