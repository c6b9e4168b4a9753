"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
#!/usr/bin/env python
import logging
import casadi as ca
import numpy as np

from planner.planning_model.BaseMPC import BaseMPC
from planner.planning_utils.layout import STATE_NAMES
from planner.planning_utils.reference import pad_coeffs

logger = logging.getLogger(__name__)

class PolyMPC(BaseMPC):
    """
    Receding-horizon tracker of a polynomial reference path.

    Each cycle takes the current state `[x, y, psi, v, cte, epsi]` and the
    coefficients of the reference polynomial in the vehicle frame, optimizes
    N states and N-1 actuations `[delta, a]` and applies the first actuation.
    """

    def init_decision_variables(self):
        """
        Create the flat decision vector and its named views.

        The vector follows `DecisionLayout`: six state channels of length N,
        then steering and acceleration of length N-1.
        """
        self.opt_variables = ca.MX.sym('w', self.layout.n_vars)
        self.decision_variables = self.layout.split(self.opt_variables)

    def init_parameter_variables(self):
        """
        Create the symbolic parameters updated at every solve.

        Only the reference polynomial changes between cycles; the current state
        enters through the constraint bounds, not through the parameters.
        """
        parameters = {}
        parameters["coeffs"] = ca.MX.sym("coeffs", self.n_coeffs)
        self.parameters = parameters
        concat_order = ["coeffs"]
        self.P = ca.vertcat(*[parameters[key] for key in concat_order])

    def init_costs(self):
        """
        Assemble the objective function of the MPC problem.

        The cost sums tracking terms on cross-track error, heading error and
        speed, a penalty on actuation magnitude and a penalty on the change of
        actuation between consecutive steps.

        Returns
        -------
        None
            The method assigns the composed symbolic objective to `self.cost`.
        """
        cost = 0
        cost = self.add_tracking_costs(cost)
        cost = self.add_actuation_costs(cost)
        cost = self.add_smoothness_costs(cost)
        self.cost = cost

    def add_tracking_costs(self, cost):
        """
        Add tracking costs at every node t in [0, N).

        Parameters
        ----------
        cost : casadi.MX
            Current accumulated cost.

        Returns
        -------
        casadi.MX
            `cost + w_cte*cte^2 + w_epsi*epsi^2 + w_v*(v - ref_v)^2` summed over the horizon.
        """
        X = self.decision_variables
        cost += self.w_cte * ca.sumsqr(X["cte"]) # cross-track error
        cost += self.w_epsi * ca.sumsqr(X["epsi"]) # orientation
        cost += self.w_v * ca.sumsqr(X["v"] - self.ref_v) # velocity penalty
        return cost

    def add_actuation_costs(self, cost):
        """Add steering and acceleration magnitude penalties for t in [0, N-1)."""
        X = self.decision_variables
        cost += self.w_delta * ca.sumsqr(X["delta"])
        cost += self.w_a * ca.sumsqr(X["a"])
        return cost

    def add_smoothness_costs(self, cost):
        """Add penalties on the gap between sequential actuations, t in [0, N-2)."""
        X = self.decision_variables
        n = self.N - 1
        cost += self.w_ddelta * ca.sumsqr(X["delta"][1:n] - X["delta"][0:n - 1])
        cost += self.w_da * ca.sumsqr(X["a"][1:n] - X["a"][0:n - 1])
        return cost

    def init_nonlinear_constraints(self):
        """
        Initialize the equality constraints of the MPC problem.

        Each state channel contributes one block of N entries: the channel's
        value at t=0 (pinned to the measured state through its bounds) followed
        by the N-1 dynamics residuals. Blocks are concatenated in the layout's
        channel order, so constraint offsets coincide with the state offsets of
        the decision vector.

        Returns
        -------
        None
            Populates `self.nonlinear_constraints` and the concatenated
            constraint vector `self.g`.
        """
        g_dict, lbg_dict, ubg_dict = {}, {}, {}
        self.add_equality_constraints(g_dict, lbg_dict, ubg_dict)
        self.nonlinear_constraints = g_dict

        # define concatenation order (important for solver alignment)
        concat_order = list(STATE_NAMES)

        self.g = ca.vertcat(*[g_dict[key] for key in concat_order])
        # numeric defaults, the initial-state entries are replaced on every solve
        self.lbg = np.concatenate([lbg_dict[key] for key in concat_order])
        self.ubg = np.concatenate([ubg_dict[key] for key in concat_order])

    def add_equality_constraints(self, g, lbg, ubg):
        """
        Add initial-condition and system-dynamics equality constraints.

        For every state channel the first entry is the decision variable at
        t=0. The remaining entries enforce the forward Euler model step

            state[t] - model(state[t-1], actuation[t-1]) = 0,   t = 1..N-1,

        evaluated for all steps at once on the shifted slices.

        Parameters
        ----------
        g : dict
            Constraint expressions keyed by state channel.
        lbg : dict
            Lower bounds keyed by state channel.
        ubg : dict
            Upper bounds keyed by state channel.

        Returns
        -------
        tuple
            Updated `(g, lbg, ubg)` dictionaries.
        """
        X = self.decision_variables
        N = self.N
        now = {name: X[name][0:N - 1] for name in STATE_NAMES}
        predicted = self.dynamics.predict(
            now["x"], now["y"], now["psi"], now["v"], now["epsi"],
            X["delta"], X["a"], self.parameters["coeffs"],
        )

        for name, prediction in zip(STATE_NAMES, predicted):
            g[name] = ca.vertcat(X[name][0], X[name][1:N] - prediction)
            lbg[name] = np.zeros(N)
            ubg[name] = np.zeros(N)

        return g, lbg, ubg

    def init_box_constraints(self):
        """
        Initialize the simple bounds on the decision vector.

        State trajectories are left free (`±unbounded`), steering is limited to
        `±max_steering_angle_rad` and acceleration to `±max_acc`. The bounds do
        not depend on the cycle and are computed once.

        Returns
        -------
        None
            Stores the per-block bounds in `self.box_constraints_lbx` /
            `self.box_constraints_ubx` and the flat vectors in `self.lbx` / `self.ubx`.
        """
        lbx_dict, ubx_dict = {}, {}
        lbx_dict, ubx_dict = self.add_state_box_constraints(lbx_dict, ubx_dict)
        lbx_dict, ubx_dict = self.add_control_box_constraints(lbx_dict, ubx_dict)
        self.box_constraints_lbx = lbx_dict
        self.box_constraints_ubx = ubx_dict
        # concatenate to flat solver vectors
        concat_order = ["states", "delta", "a"]
        self.lbx = np.concatenate([lbx_dict[key] for key in concat_order])
        self.ubx = np.concatenate([ubx_dict[key] for key in concat_order])
        assert self.lbx.shape[0] == self.layout.n_vars

    def add_state_box_constraints(self, lbx, ubx):
        n = self.layout.delta_start
        lbx["states"] = np.full(n, -self.unbounded)
        ubx["states"] = np.full(n, self.unbounded)
        return lbx, ubx

    def add_control_box_constraints(self, lbx, ubx):
        # delta in radians
        lbx["delta"] = np.full(self.N - 1, -self.max_steering_angle_rad)
        ubx["delta"] = np.full(self.N - 1, self.max_steering_angle_rad)
        # normalized throttle (positive) and brake (negative)
        lbx["a"] = np.full(self.N - 1, -self.max_acc)
        ubx["a"] = np.full(self.N - 1, self.max_acc)
        return lbx, ubx

    def build_mpc_initial_values(self, x0, coeffs, **kwargs):
        """
        Initial guess for the decision vector.

        `cold` places the measured state at t=0 of every channel and zeros
        elsewhere; `const_vx` rolls the model forward with zero actuation.
        Nothing is carried over from earlier cycles.
        """
        return self.warmstarter.generate(x0, dt=self.dt, coeffs=coeffs, heading_reference=self.heading_reference)

    def build_mpc_param_values(self, coeffs, **kwargs):
        params = {}
        params["coeffs"] = ca.DM(pad_coeffs(coeffs, self.n_coeffs))
        concat_order = ["coeffs"]
        return ca.vertcat(*[params[key] for key in concat_order])
