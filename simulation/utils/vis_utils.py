"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
import math
from typing import Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection
from matplotlib.patches import Rectangle


def get_polyline_arc_length(points: np.ndarray) -> np.ndarray:
    """Calculate cumulative distance from the start for each vertex in a sequence."""
    steps = points[1:] - points[:-1]
    segment_lengths = np.hypot(steps[:, 0], steps[:, 1])
    total_lengths = np.insert(np.cumsum(segment_lengths), 0, 0.0)
    return total_lengths


def sample_reference(coeffs: Sequence[float], x_min: float, x_max: float, n_points: int = 100) -> np.ndarray:
    """Sample the reference polynomial (lowest order first) on `[x_min, x_max]` as an (n_points, 2) polyline."""
    xs = np.linspace(x_min, x_max, n_points)
    ys = np.polynomial.polynomial.polyval(xs, np.asarray(coeffs, dtype=float))
    return np.stack([xs, ys], axis=-1)


def plot_vehicle(
    ax: plt.Axes,
    cur_location: np.ndarray,
    heading: float,
    color: str,
    bbox_size: Tuple[float, float] = (4.5, 2.0),
    alpha: float = 1.0,
    label: str = None,
    zorder: int = 50,
) -> None:
    """Render the vehicle footprint at a specified location and orientation."""

    length, width = bbox_size
    radius = np.hypot(length, width)
    angle_offset = math.atan2(width, length)

    corner_x = cur_location[0] - (radius / 2) * math.cos(heading + angle_offset)
    corner_y = cur_location[1] - (radius / 2) * math.sin(heading + angle_offset)

    box = Rectangle(
        xy=(corner_x, corner_y),
        width=length,
        height=width,
        angle=np.degrees(heading),
        facecolor=color,
        edgecolor=color,
        alpha=alpha,
        label=label,
        zorder=zorder,
    )
    ax.add_patch(box)


def plot_polyline(
    ax,
    path: np.ndarray,
    cmap: str = "spring",
    linewidth: int = 3,
    alpha: float = 0.8,
    zorder: int = 100,
    label=None,
) -> LineCollection:
    """Draw a polyline colored by its arc length."""
    distances = get_polyline_arc_length(path)
    segments = np.concatenate([path[:-1, None], path[1:, None]], axis=1)
    gradient = LineCollection(
        segments,
        cmap=cmap,
        norm=plt.Normalize(distances.min(), max(distances.max(), 1e-9)),
        zorder=zorder,
        alpha=alpha,
        label=label,
    )
    gradient.set_array(distances[:-1])
    gradient.set_linewidth(linewidth)
    ax.add_collection(gradient)
    return gradient


def plot_plan(result, coeffs: Sequence[float], dt: float = None, title: str = None):
    """
    Plot one MPC cycle: the optimised path against the reference polynomial
    (top) and the planned steering and acceleration (bottom).

    Parameters
    ----------
    result : MPCResult
        Result of `PolyMPC.solve` carrying the optimised trajectory.
    coeffs : sequence of float
        Reference polynomial coefficients used for the solve.
    dt : float, optional
        Step duration; the actuation axis shows steps instead of seconds when omitted.
    title : str, optional
        Figure title.

    Returns
    -------
    matplotlib.figure.Figure

    Raises
    ------
    ValueError
        If the result carries no trajectory (invalid input or numerical failure).
    """
    plan = result.trajectory
    if not plan:
        raise ValueError(f"nothing to plot for a result with status {result.status.value}.")

    path = np.stack([plan["x"], plan["y"]], axis=-1)
    fig, (ax_path, ax_act) = plt.subplots(2, 1, figsize=(8, 8))

    margin = 1.0
    reference = sample_reference(coeffs, path[:, 0].min() - margin, path[:, 0].max() + margin)
    ax_path.plot(reference[:, 0], reference[:, 1], color="black", linestyle="--", linewidth=1.5, label="reference")
    plot_polyline(ax_path, path, label="plan")
    plot_vehicle(ax_path, path[0], plan["psi"][0], color="tab:blue", alpha=0.5, label="ego")
    ax_path.set_xlabel("x [m]")
    ax_path.set_ylabel("y [m]")
    ax_path.axis("equal")
    ax_path.legend(loc="upper left")

    steps = np.arange(len(plan["delta"]))
    t = steps * dt if dt is not None else steps
    ax_act.step(t, plan["delta"], where="post", label="steering [rad]")
    ax_act.step(t, plan["a"], where="post", label="acceleration")
    ax_act.set_xlabel("time [s]" if dt is not None else "step")
    ax_act.grid(True, alpha=0.3)
    ax_act.legend(loc="upper right")

    status = f"{result.status.value}, cost={result.cost:.3f}"
    fig.suptitle(f"{title} ({status})" if title else status)
    fig.tight_layout()
    return fig
