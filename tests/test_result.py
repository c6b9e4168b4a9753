"""
Tests for solve status mapping and the result type.
"""

import pytest

from planner.planning_utils.result import MPCResult, SolveStatus


@pytest.mark.parametrize(
    "stats, expected",
    [
        ({"success": True, "return_status": "Solve_Succeeded"}, SolveStatus.CONVERGED),
        ({"success": False, "return_status": "Maximum_CpuTime_Exceeded"}, SolveStatus.TIME_LIMIT),
        ({"success": False, "return_status": "Maximum_WallTime_Exceeded"}, SolveStatus.TIME_LIMIT),
        ({"success": False, "return_status": "Maximum_Iterations_Exceeded"}, SolveStatus.NOT_CONVERGED),
        ({"success": False, "return_status": "Infeasible_Problem_Detected"}, SolveStatus.NOT_CONVERGED),
        ({}, SolveStatus.NOT_CONVERGED),
    ],
)
def test_status_from_solver_stats(stats, expected):
    assert SolveStatus.from_solver_stats(stats) is expected


def test_result_accessors():
    result = MPCResult(actuation=(0.1, -0.4), converged=False, cost=3.0, status=SolveStatus.TIME_LIMIT)

    assert result.steering == 0.1
    assert result.acceleration == -0.4
    assert result.usable
    assert result.trajectory == {}


def test_result_without_actuation():
    result = MPCResult(actuation=None, converged=False, cost=float("nan"), status=SolveStatus.INVALID_INPUT)

    assert result.steering is None
    assert result.acceleration is None
    assert not result.usable
