"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
import enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np


class MPCError(Exception):
    """Base class of all errors raised by the MPC planner."""


class ConfigurationError(MPCError, ValueError):
    """Invalid planner configuration, raised at construction time."""


class InvalidInputError(MPCError, ValueError):
    """Malformed state or reference coefficients handed to a solve."""


class SolverNumericalError(MPCError, RuntimeError):
    """The solver returned no usable actuation (non-finite cost or solution)."""


class SolveStatus(enum.Enum):
    CONVERGED = "converged"
    TIME_LIMIT = "time_limit"
    NOT_CONVERGED = "not_converged"
    INVALID_INPUT = "invalid_input"
    NUMERICAL_ERROR = "numerical_error"

    @classmethod
    def from_solver_stats(cls, stats: Dict) -> "SolveStatus":
        """
        Map casadi `nlpsol.stats()` onto a solve status.

        Time-budget exhaustion is reported by IPOPT as `Maximum_CpuTime_Exceeded`
        or `Maximum_WallTime_Exceeded`; it is an expected outcome of a real-time
        solve and kept apart from other failures.
        """
        if stats.get("success", False):
            return cls.CONVERGED
        return_status = str(stats.get("return_status", ""))
        if "CpuTime" in return_status or "WallTime" in return_status:
            return cls.TIME_LIMIT
        return cls.NOT_CONVERGED


@dataclass
class MPCResult:
    """
    Outcome of one receding-horizon solve.

    `actuation` holds the first (steering, acceleration) pair of the optimised
    plan. It is also filled for non-converged solves so the caller can decide
    whether to apply a degraded command or hold the previous one; it is `None`
    only when there is nothing usable (invalid input, numerical failure).
    """
    actuation: Optional[Tuple[float, float]]
    converged: bool
    cost: float
    status: SolveStatus
    status_detail: str = ""
    solve_time: float = 0.0
    trajectory: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def steering(self) -> Optional[float]:
        return None if self.actuation is None else self.actuation[0]

    @property
    def acceleration(self) -> Optional[float]:
        return None if self.actuation is None else self.actuation[1]

    @property
    def usable(self) -> bool:
        return self.actuation is not None
