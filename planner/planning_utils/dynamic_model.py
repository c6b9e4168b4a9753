"""
Copyright 2025 AUMOVIO. All rights reserved.
"""

import casadi as ca
from typing import Optional

from planner.planning_utils.reference import polyeval, reference_heading

class KinematicBicycle:
    """
    Discrete kinematic bicycle model tracking a polynomial reference path in casadi.

    States (6):  [x, y, psi, v, cte, epsi]
    Controls (2):[delta, a]
    Forward Euler update over one step dt:
        x'    = x + v * cos(psi) * dt
        y'    = y + v * sin(psi) * dt
        psi'  = psi + v / Lf * delta * dt
        v'    = v + a * dt
        cte'  = (f(x) - y) + v * sin(epsi) * dt
        epsi' = (psi - psides(x)) + v * delta / Lf * dt
    with f the reference polynomial and psides its desired heading.
    """
    def __init__(self, Lf: float, dt: float, n_coeffs: int = 4, heading_reference: str = "linear"):
        if Lf <= 0:
            raise ValueError("Lf must be positive.")
        if dt <= 0:
            raise ValueError("dt must be positive.")
        if n_coeffs < 2:
            raise ValueError("the reference polynomial needs at least a constant and a linear term.")
        self.Lf = Lf
        self.dt = dt
        self.n_coeffs = n_coeffs
        self.heading_reference = heading_reference
        self.states = self.init_state_symbols()
        self.controls = self.init_control_symbols()
        self.coeffs = ca.MX.sym('coeffs', n_coeffs)
        self.next_state = self.init_step()

    def init_state_symbols(self) -> ca.MX:
        x    = ca.MX.sym('x')
        y    = ca.MX.sym('y')
        psi  = ca.MX.sym('psi')
        v    = ca.MX.sym('v')
        cte  = ca.MX.sym('cte')
        epsi = ca.MX.sym('epsi')
        states = ca.vertcat(x, y, psi, v, cte, epsi)
        return states

    def init_control_symbols(self) -> ca.MX:
        delta = ca.MX.sym('delta')
        a     = ca.MX.sym('a')
        controls = ca.vertcat(delta, a)
        return controls

    def init_step(self) -> ca.MX:
        X = self.states
        U = self.controls
        x, y, psi, v, cte, epsi = [X[i] for i in range(6)]
        delta, a = U[0], U[1]
        return ca.vertcat(*self.predict(x, y, psi, v, epsi, delta, a, self.coeffs))

    def predict(self, x, y, psi, v, epsi, delta, a, coeffs):
        """
        Apply the update equations elementwise.

        Arguments may be scalars or equally sized (symbolic) vectors, which lets
        the NLP formulation evaluate all horizon steps in one shot. Returns the
        tuple of predicted `(x, y, psi, v, cte, epsi)`.
        """
        dt, Lf = self.dt, self.Lf
        f0 = polyeval(coeffs, x)
        psides0 = reference_heading(coeffs, x, self.heading_reference)
        return (
            x + v * ca.cos(psi) * dt,
            y + v * ca.sin(psi) * dt,
            psi + v / Lf * delta * dt,
            v + a * dt,
            (f0 - y) + v * ca.sin(epsi) * dt,
            (psi - psides0) + v * delta / Lf * dt,
        )

    def get_f(self, fname: Optional[str]="step", sname: Optional[str]="input_state", cname: Optional[str]="control_input", pname: Optional[str]="coeffs", rhsname: Optional[str]="next_state") -> ca.Function:
        """
        Returns CasADi function step(states, controls, coeffs) -> next_state with named I/O.
        """
        f = ca.Function(
            fname,
            [self.states, self.controls, self.coeffs],
            [self.next_state],
            [sname, cname, pname],
            [rhsname]
        )
        return f
