"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
#!/usr/bin/env python
import logging
import casadi as ca
import numpy as np
from abc import ABC
from typing import List

from common_utils.time_tracking import Stopwatch, timeit
from planner.planning_utils.config import build_config
from planner.planning_utils.dynamic_model import KinematicBicycle
from planner.planning_utils.layout import DecisionLayout
from planner.planning_utils.reference import HEADING_REFERENCES, pad_coeffs
from planner.planning_utils.result import (
    ConfigurationError,
    InvalidInputError,
    MPCResult,
    SolverNumericalError,
    SolveStatus,
)
from planner.planning_utils.warmstart import WARMSTART_MODES, Warmstart

logger = logging.getLogger(__name__)

class BaseMPC(ABC):
    def __init__(self, time, constraints, controller, reference, solver, verbose=False):
        self.config = {
            "time": time,
            "constraints": constraints,
            "controller": controller,
            "reference": reference,
            "solver": solver,
            "verbose": verbose,
        }
        self.verbose = verbose
        if self.verbose: logger.info(f"Initialize {self.__class__.__name__}...")
        self._set_time(time)
        self._set_constraints(constraints)
        self._set_controller(controller)
        self._set_reference_signal(reference)
        self._set_optimization_solver(solver)
        if self.verbose: logger.info(f"Initialize {self.__class__.__name__} configuration...  DONE!")
        self.setup_MPC()
        if self.verbose: logger.info(f"Initialize {self.__class__.__name__}... DONE!")

    @classmethod
    def from_config(cls, cfg=None):
        """Build a planner from a (partial) configuration mapping merged onto the defaults."""
        return cls(**build_config(cfg))

    def setup_MPC(self):
        """
        Assemble the nonlinear program of the receding-horizon tracking controller.

        The setup procedure builds the decision-vector layout and the discrete
        vehicle model, the decision and parameter variables, the objective, the
        simple box constraints on the decision vector and the nonlinear equality
        constraints (initial state and model dynamics). The resulting NLP is
        handed to the configured casadi `nlpsol` plugin (IPOPT by default).

        This is the one-time symbolic assembly; afterwards every control cycle
        only calls the solver with a fresh initial guess, parameters and
        constraint bounds.

        Returns
        -------
        None
            All symbolic problem elements and the solver instance are stored
            as attributes of the MPC object.
        """
        self.init_system_model()
        self.init_decision_variables()
        self.init_parameter_variables()
        self.init_costs()
        self.init_box_constraints()
        self.init_nonlinear_constraints()
        self.init_fg_eval()
        self.init_nlp_solver()

    def __str__(self):
        return f"{self.__class__!s} with initialization configuration {self.config}"

    def _set_time(self, cfg):
        self.N = int(cfg["N"])
        self.dt = float(cfg["dt"])
        if self.N < 3:
            raise ConfigurationError(f"horizon N must be at least 3, got {self.N}.")
        if not self.dt > 0:
            raise ConfigurationError(f"time step dt must be positive, got {self.dt}.")

    def _set_constraints(self, cfg):
        # vehicle geometry
        self.Lf = float(cfg["Lf"])
        # actuator limits
        self.max_steering_angle_rad = float(cfg["max_steering_angle_rad"])
        self.max_acc = float(cfg["max_acc"])
        # stand-in for "no limit" on state variables
        self.unbounded = float(cfg.get("unbounded", 1.0e19))
        if not self.Lf > 0:
            raise ConfigurationError(f"Lf must be positive, got {self.Lf}.")
        if not (self.max_steering_angle_rad > 0 and self.max_acc > 0):
            raise ConfigurationError("actuator limits must be positive.")

        self.lbg, self.ubg = None, None
        self.lbx, self.ubx = None, None

    def _set_controller(self, cfg):
        self.ref_v = float(cfg["ref_v"]) # target cruising speed
        self.w_cte = float(cfg.get("w_cte", 1.0)) # cost on cross-track error
        self.w_epsi = float(cfg.get("w_epsi", 1.0)) # cost on heading error
        self.w_v = float(cfg.get("w_v", 1.0)) # cost on deviation from ref_v
        self.w_delta = float(cfg.get("w_delta", 1.0)) # cost on steering magnitude
        self.w_a = float(cfg.get("w_a", 1.0)) # cost on acceleration magnitude
        self.w_ddelta = float(cfg.get("w_ddelta", 1.0)) # cost on steering change
        self.w_da = float(cfg.get("w_da", 1.0)) # cost on acceleration change
        self.heading_reference = cfg.get("heading_reference", "linear")
        self.warmstart_mode = cfg.get("warmstart", "cold")
        if self.heading_reference not in HEADING_REFERENCES:
            raise ConfigurationError(f"Unknown heading reference '{self.heading_reference}'.")
        if self.warmstart_mode not in WARMSTART_MODES:
            raise ConfigurationError(f"Unknown warmstart mode '{self.warmstart_mode}'.")

        self.cost = 0
        self.P = None
        self.g = None

    def _set_reference_signal(self, cfg):
        self.n_coeffs = int(cfg.get("n_coeffs", 4))
        if self.n_coeffs < 2:
            raise ConfigurationError("the reference polynomial needs at least 2 coefficients.")

    def _set_optimization_solver(self, cfg):
        opts = dict(cfg)
        self.solver_plugin = opts.pop("plugin", "ipopt")
        self.optimization_solver_opts = opts
        self.solver = None

    def init_system_model(self):
        # offsets are fixed for the lifetime of the planner
        self.layout = DecisionLayout(self.N)
        self.dynamics = KinematicBicycle(
            Lf=self.Lf, dt=self.dt, n_coeffs=self.n_coeffs, heading_reference=self.heading_reference
        )
        self.f = self.dynamics.get_f()
        self.n_states = self.layout.n_states
        self.n_controls = self.layout.n_controls
        self.warmstarter = Warmstart(self.layout, mode=self.warmstart_mode)

    def init_fg_eval(self):
        """
        Wrap objective and constraints into the casadi function `fg_eval(w, p) -> (f, g)`.

        This is the same graph the solver differentiates; it is exposed for
        numeric evaluation of hand-built decision vectors.
        """
        assert self.g.numel() == self.layout.n_constraints
        assert self.opt_variables.numel() == self.layout.n_vars
        self.fg_eval = ca.Function(
            "fg_eval",
            [self.opt_variables, self.P],
            [self.cost, self.g],
            ["w", "p"],
            ["f", "g"],
        )

    def init_nlp_solver(self):
        """
        Initialize the nonlinear programming solver for the assembled problem.

        The solver is constructed from the symbolic nonlinear program consisting of
        the objective function, decision variables, parameters and the equality
        constraints. Solver options supplied during class configuration are passed
        directly to casadi, allowing control over verbosity, sparse SX expansion
        (`expand`), just-in-time compilation and the IPOPT time budget
        (`ipopt.max_cpu_time`).

        Returns
        -------
        None
            The method stores the resulting solver object internally.
        """
        opts_setting = self.optimization_solver_opts
        nlp_prob = {'f': self.cost, 'x': self.opt_variables, 'p': self.P, 'g': self.g}
        self.solver = ca.nlpsol('solver', self.solver_plugin, nlp_prob, opts_setting)
        if self.verbose: logger.info(f"Initialize {self.__class__.__name__} optimization solver ... DONE!")

    def validate_inputs(self, x0, coeffs):
        """
        Check and normalize the inputs of a solve.

        Parameters
        ----------
        x0 : array_like
            Current vehicle state `[x, y, psi, v, cte, epsi]`.
        coeffs : array_like
            Reference polynomial coefficients, lowest order first.

        Returns
        -------
        tuple
            `(x0, coeffs)` as float arrays, coefficients zero-padded to `n_coeffs`.

        Raises
        ------
        InvalidInputError
            On wrong lengths or non-finite values.
        """
        try:
            x0 = np.asarray(x0, dtype=float).reshape(-1)
            coeffs = np.asarray(coeffs, dtype=float).reshape(-1)
        except (TypeError, ValueError) as err:
            raise InvalidInputError(f"state and coefficients must be numeric: {err}") from err
        if x0.shape[0] != self.n_states:
            raise InvalidInputError(f"state must have {self.n_states} entries, got {x0.shape[0]}.")
        if not np.all(np.isfinite(x0)):
            raise InvalidInputError(f"state contains non-finite values: {x0.tolist()}.")
        if not 2 <= coeffs.shape[0] <= self.n_coeffs:
            raise InvalidInputError(f"expected between 2 and {self.n_coeffs} coefficients, got {coeffs.shape[0]}.")
        if not np.all(np.isfinite(coeffs)):
            raise InvalidInputError(f"coefficients contain non-finite values: {coeffs.tolist()}.")
        return x0, pad_coeffs(coeffs, self.n_coeffs)

    def update_constraint_bounds(self, x0):
        """
        Build numeric constraint bounds (lbg, ubg) for the current solve.

        All dynamics residuals are equality constraints with bounds `[0, 0]`.
        The t=0 entry of every state channel holds the decision variable itself,
        so pinning its lower and upper bound to the measured state fixes the
        initial condition of the optimised trajectory.

        Parameters
        ----------
        x0 : array_like
            Current vehicle state.

        Returns
        -------
        tuple of (lbg, ubg) as numpy arrays
        """
        lbg = np.array(self.lbg, dtype=float)
        ubg = np.array(self.ubg, dtype=float)
        starts = list(self.layout.state_starts())
        lbg[starts] = x0
        ubg[starts] = x0
        return lbg, ubg

    @timeit
    def solve(self, x0, coeffs, **kwargs) -> MPCResult:
        """
        Solve the MPC optimization problem for the current snapshot.

        The solver builds an initial guess for the decision vector, the parameter
        vector from the reference polynomial and the constraint bounds pinning
        the initial state, then calls the nonlinear solver.

        A solver that does not converge (including exhausting its time budget)
        is an expected outcome in a real-time loop: the returned plan is still
        reported, flagged with `converged=False`, and the caller decides whether
        to apply it. Malformed inputs and non-finite solutions yield a result
        without actuation instead of raising.

        Parameters
        ----------
        x0 : array_like
            Current vehicle state `[x, y, psi, v, cte, epsi]`.
        coeffs : array_like
            Reference polynomial coefficients in the vehicle frame.

        Returns
        -------
        MPCResult
            First actuation pair, convergence flag, objective value, status and
            the optimised trajectory.
        """
        try:
            x0, coeffs = self.validate_inputs(x0, coeffs)
        except InvalidInputError as err:
            logger.error(f"Rejecting MPC inputs: {err}")
            return MPCResult(
                actuation=None, converged=False, cost=float("nan"),
                status=SolveStatus.INVALID_INPUT, status_detail=str(err),
            )

        ### initial decision variable values
        opt0_ = self.build_mpc_initial_values(x0, coeffs, **kwargs)

        ### constraint bounds pinning the initial state
        lbg, ubg = self.update_constraint_bounds(x0)

        ### optimization parameters
        c_p = self.build_mpc_param_values(coeffs, **kwargs)

        ### call solver
        with Stopwatch() as watch:
            res = self.solver(x0=opt0_, p=c_p, lbx=self.lbx, ubx=self.ubx, lbg=lbg, ubg=ubg)
        stats = self.solver.stats()
        return_status = str(stats.get("return_status", ""))

        estimated_opt = np.asarray(res['x'].full(), dtype=float).reshape(-1)
        f_val = float(res['f'])
        logger.debug(f"Cost {f_val} ({return_status}, {watch.elapsed:.4f}s)")

        if not (np.isfinite(f_val) and np.all(np.isfinite(estimated_opt))):
            logger.error(f"{self.__class__.__name__} returned a non-finite solution ({return_status}).")
            return MPCResult(
                actuation=None, converged=False, cost=f_val,
                status=SolveStatus.NUMERICAL_ERROR, status_detail=return_status,
                solve_time=watch.elapsed,
            )

        status = SolveStatus.from_solver_stats(stats)
        if status is not SolveStatus.CONVERGED:
            logger.warning(f"{self.__class__.__name__} did not converge: {return_status}. Returning degraded plan.")

        return MPCResult(
            actuation=self.layout.first_actuation(estimated_opt),
            converged=status is SolveStatus.CONVERGED,
            cost=f_val,
            status=status,
            status_detail=return_status,
            solve_time=watch.elapsed,
            trajectory=self.layout.unpack(estimated_opt),
        )

    def solve_actuation(self, x0, coeffs, **kwargs) -> List[float]:
        """
        Return `[steering, acceleration]` for this cycle.

        Raises `InvalidInputError` for malformed inputs and `SolverNumericalError`
        when the solver produced no usable plan. Non-converged plans are returned.
        """
        result = self.solve(x0, coeffs, **kwargs)
        if result.status is SolveStatus.INVALID_INPUT:
            raise InvalidInputError(result.status_detail)
        if not result.usable:
            raise SolverNumericalError(f"no usable actuation: {result.status_detail}")
        return [result.steering, result.acceleration]


##### Functions implemented in sublcasses #####

    def init_decision_variables(self):
        raise NotImplementedError()

    def init_parameter_variables(self):
        raise NotImplementedError()

    def init_costs(self):
        raise NotImplementedError()

    def init_nonlinear_constraints(self):
        raise NotImplementedError()

    def init_box_constraints(self):
        raise NotImplementedError()

    def build_mpc_initial_values(self, x0, coeffs, **kwargs):
        raise NotImplementedError()

    def build_mpc_param_values(self, coeffs, **kwargs):
        raise NotImplementedError()
