"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
import casadi as ca
import numpy as np

HEADING_REFERENCES = ("linear", "tangent")


def polyeval(coeffs, x):
    """
    Evaluate the reference polynomial `c0 + c1*x + ... + cn*x^n` at `x` (Horner scheme).

    Works on floats, numpy arrays and casadi expressions alike, so the same
    function is used inside the symbolic NLP and in numeric post-processing.
    """
    result = 0
    for k in reversed(range(_numel(coeffs))):
        result = result * x + coeffs[k]
    return result


def polyderiv(coeffs, x):
    """Evaluate the first derivative of the reference polynomial at `x`."""
    n = _numel(coeffs)
    result = 0
    for k in reversed(range(1, n)):
        result = result * x + k * coeffs[k]
    return result


def reference_heading(coeffs, x, mode="linear"):
    """
    Desired heading `psides` of the reference path.

    `linear` only uses the first order term (atan(c1)), which is exact at x=0
    of the vehicle frame and a good approximation on low curvature paths.
    `tangent` uses the slope of the full polynomial at `x`.
    """
    if mode == "linear":
        return ca.atan(coeffs[1])
    elif mode == "tangent":
        return ca.atan(polyderiv(coeffs, x))
    raise ValueError(f"Unknown heading reference '{mode}', expected one of {HEADING_REFERENCES}.")


def pad_coeffs(coeffs, n_coeffs):
    """Zero-pad polynomial coefficients (lowest order first) to `n_coeffs` entries."""
    coeffs = np.asarray(coeffs, dtype=float).reshape(-1)
    if coeffs.shape[0] > n_coeffs:
        raise ValueError(f"got {coeffs.shape[0]} coefficients, at most {n_coeffs} are supported.")
    padded = np.zeros(n_coeffs, dtype=float)
    padded[:coeffs.shape[0]] = coeffs
    return padded


def _numel(coeffs):
    if isinstance(coeffs, (ca.MX, ca.SX, ca.DM)):
        return coeffs.numel()
    return len(coeffs)
