"""
Copyright 2025 AUMOVIO. All rights reserved.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from omegaconf import DictConfig, OmegaConf

logger = logging.getLogger(__name__)

# Default planner configuration, grouped the same way as the planner constructor arguments.
DEFAULT_CONFIG: Dict[str, Any] = {
    "time": {
        "N": 25,        # horizon steps
        "dt": 0.05,     # step duration [s]
    },
    "constraints": {
        "Lf": 2.67,                     # center of gravity to front axle [m]
        "max_steering_angle_rad": 1.0,  # steering limit [rad]
        "max_acc": 1.0,                 # normalized throttle/brake limit
        "unbounded": 1.0e19,            # IPOPT treats |bound| >= 1e19 as infinite
    },
    "controller": {
        "ref_v": 40.0,      # target cruising speed
        "w_cte": 1.0,       # cross-track error
        "w_epsi": 1.0,      # heading error
        "w_v": 1.0,         # speed tracking
        "w_delta": 1.0,     # steering magnitude
        "w_a": 1.0,         # acceleration magnitude
        "w_ddelta": 1.0,    # steering change between steps
        "w_da": 1.0,        # acceleration change between steps
        "heading_reference": "linear",
        "warmstart": "cold",
    },
    "reference": {
        "n_coeffs": 4,      # cubic fit
    },
    "solver": {
        "plugin": "ipopt",
        "expand": True,
        "jit": False,
        "print_time": 0,
        "ipopt": {
            "print_level": 0,
            "sb": "yes",
            "max_cpu_time": 0.5,
            "honor_original_bounds": "yes",
        },
    },
    "verbose": False,
}


def build_config(overrides: Optional[Mapping] = None) -> Dict[str, Any]:
    """
    Merge `overrides` onto the default planner configuration.

    Unknown keys are rejected, except below `solver` where any nlpsol/IPOPT
    option may be passed through. Accepts plain dicts as well as hydra
    `DictConfig` objects and returns a plain, resolved dict.
    """
    base = OmegaConf.create(DEFAULT_CONFIG)
    OmegaConf.set_struct(base, True)
    # solver options are forwarded verbatim to casadi
    OmegaConf.set_struct(base.solver, False)
    if overrides is not None:
        if not isinstance(overrides, DictConfig):
            overrides = OmegaConf.create(dict(overrides))
        base = OmegaConf.merge(base, overrides)
    cfg = OmegaConf.to_container(base, resolve=True)
    logger.debug(f"Planner configuration: {cfg}")
    return cfg
