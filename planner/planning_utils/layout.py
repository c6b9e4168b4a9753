"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

STATE_NAMES = ("x", "y", "psi", "v", "cte", "epsi")
CONTROL_NAMES = ("delta", "a")


@dataclass(frozen=True)
class DecisionLayout:
    """
    Offsets of the named slices inside the flat decision vector.

    The decision vector stacks the whole predicted trajectory channel by channel,

        [x(0..N-1), y(0..N-1), psi(0..N-1), v(0..N-1), cte(0..N-1), epsi(0..N-1),
         delta(0..N-2), a(0..N-2)]

    i.e. N states and N-1 actuations (the actuation at the last node is never
    applied). The same offsets index the constraint vector, whose length is
    `n_states * N`: block `t=0` of every state channel holds the initial state,
    the remaining entries the dynamics residuals.

    Computed once per horizon length and shared read-only by cost, constraint,
    bound and extraction code.
    """
    N: int

    def __post_init__(self):
        if self.N < 3:
            raise ValueError(f"horizon N must be at least 3, got {self.N}.")
        # every slice is contiguous and the slices tile the vector
        assert self.a_start + self.N - 1 == self.n_vars
        assert self.delta_start == self.n_constraints

    @property
    def n_states(self) -> int:
        return len(STATE_NAMES)

    @property
    def n_controls(self) -> int:
        return len(CONTROL_NAMES)

    @property
    def n_vars(self) -> int:
        return self.N * self.n_states + (self.N - 1) * self.n_controls

    @property
    def n_constraints(self) -> int:
        return self.N * self.n_states

    @property
    def x_start(self) -> int:
        return 0

    @property
    def y_start(self) -> int:
        return self.x_start + self.N

    @property
    def psi_start(self) -> int:
        return self.y_start + self.N

    @property
    def v_start(self) -> int:
        return self.psi_start + self.N

    @property
    def cte_start(self) -> int:
        return self.v_start + self.N

    @property
    def epsi_start(self) -> int:
        return self.cte_start + self.N

    @property
    def delta_start(self) -> int:
        return self.epsi_start + self.N

    @property
    def a_start(self) -> int:
        return self.delta_start + self.N - 1

    def state_starts(self) -> Tuple[int, ...]:
        """Offsets of the state channels in `STATE_NAMES` order."""
        return tuple(self.start(name) for name in STATE_NAMES)

    def start(self, name: str) -> int:
        if name not in STATE_NAMES + CONTROL_NAMES:
            raise KeyError(f"unknown decision slice '{name}'.")
        return getattr(self, f"{name}_start")

    def length(self, name: str) -> int:
        return self.N if name in STATE_NAMES else self.N - 1

    def slice(self, name: str) -> slice:
        begin = self.start(name)
        return slice(begin, begin + self.length(name))

    def split(self, w) -> Dict:
        """Return the named slices of `w` (numpy array or casadi expression)."""
        return {name: w[self.slice(name)] for name in STATE_NAMES + CONTROL_NAMES}

    def unpack(self, w) -> Dict[str, np.ndarray]:
        """Numeric version of `split` returning flat numpy arrays."""
        w = np.asarray(w, dtype=float).reshape(-1)
        assert w.shape[0] == self.n_vars, f"decision vector has {w.shape[0]} entries, expected {self.n_vars}"
        return {name: w[s].copy() for name, s in ((n, self.slice(n)) for n in STATE_NAMES + CONTROL_NAMES)}

    def first_actuation(self, w) -> Tuple[float, float]:
        """Steering and acceleration to apply this cycle; the rest of the plan is discarded."""
        w = np.asarray(w, dtype=float).reshape(-1)
        assert w.shape[0] == self.n_vars, f"decision vector has {w.shape[0]} entries, expected {self.n_vars}"
        return float(w[self.delta_start]), float(w[self.a_start])
