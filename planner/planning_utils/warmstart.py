"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
import numpy as np

from planner.planning_utils.layout import DecisionLayout
from planner.planning_utils.reference import polyeval, reference_heading

WARMSTART_MODES = ("cold", "const_vx")


class Warmstart:
    """
    Initial guess generator for the flat decision vector.

    State (len=6): [x, y, psi, v, cte, epsi]
      x,y:  position in the vehicle frame
      psi:  heading [rad]
      v:    speed
      cte:  cross-track error
      epsi: heading error

    Two different modes:
        - cold:     current state at t=0 of every state channel, zero elsewhere
        - const_vx: roll the kinematic model forward with zero actuation
    Actuations are always initialised with zero.

    Output: np.ndarray of shape (layout.n_vars,)
    """

    def __init__(self, layout: DecisionLayout, mode: str = "cold"):
        if mode not in WARMSTART_MODES:
            raise ValueError(f"Unknown mode '{mode}'.")
        self.layout = layout
        self.mode = mode

    def generate(self, x0: np.ndarray, dt=None, coeffs=None, heading_reference="linear") -> np.ndarray:
        x0 = np.asarray(x0, dtype=float).reshape(-1)
        if x0.shape[0] != self.layout.n_states:
            raise ValueError("x0 must be length 6: [x, y, psi, v, cte, epsi].")

        if self.mode == "cold":
            return self._cold(x0)
        if dt is None or coeffs is None:
            raise ValueError("const_vx requires dt and coeffs.")
        return self._const_vx(x0, dt, coeffs, heading_reference)

    # ---------------- internal, all return (n_vars,) ----------------

    def _cold(self, x0: np.ndarray) -> np.ndarray:
        w0 = np.zeros(self.layout.n_vars, dtype=float)
        for start, value in zip(self.layout.state_starts(), x0):
            w0[start] = value
        return w0

    def _const_vx(self, x0: np.ndarray, dt: float, coeffs, heading_reference: str) -> np.ndarray:
        N = self.layout.N
        traj = np.zeros((self.layout.n_states, N), dtype=float)
        traj[:, 0] = x0
        for k in range(N - 1):
            x, y, psi, v, cte, epsi = traj[:, k]
            psides = float(reference_heading(coeffs, x, heading_reference))
            # zero steering and acceleration: straight line at constant speed
            traj[:, k + 1] = (
                x + v * np.cos(psi) * dt,
                y + v * np.sin(psi) * dt,
                psi,
                v,
                float(polyeval(coeffs, x)) - y + v * np.sin(epsi) * dt,
                psi - psides,
            )

        # channel-major, matching the state part of the layout
        w0 = np.zeros(self.layout.n_vars, dtype=float)
        w0[:self.layout.n_constraints] = traj.reshape(-1)
        return w0
