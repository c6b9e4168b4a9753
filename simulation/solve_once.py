"""
Copyright 2025 AUMOVIO. All rights reserved.
"""

import sys
import os
basepath = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if not basepath in sys.path:
    sys.path.insert(0, basepath)

import hydra
import matplotlib.pyplot as plt
from hydra.utils import instantiate
from omegaconf import DictConfig

from simulation.utils.vis_utils import plot_plan

import logging
logger = logging.getLogger(__name__)


@hydra.main(version_base=None, config_path="../configs", config_name="solve_once")
def run(cfg: DictConfig) -> None:
    """Solve a single MPC cycle for the configured state and reference polynomial."""
    planner = instantiate(cfg.planner)
    logger.info(f"Solving one cycle with {planner.__class__.__name__} (N={planner.N}, dt={planner.dt})")
    result = planner.solve(list(cfg.state), list(cfg.coeffs))
    if result.usable:
        logger.info(
            f"steering={result.steering:.5f} acceleration={result.acceleration:.5f} "
            f"cost={result.cost:.4f} status={result.status.value} ({result.status_detail}) "
            f"in {result.solve_time:.4f}s"
        )
    else:
        logger.error(f"No usable actuation: {result.status.value} ({result.status_detail})")
        return

    if cfg.get("plot_path"):
        fig = plot_plan(result, list(cfg.coeffs), dt=planner.dt, title=planner.__class__.__name__)
        fig.savefig(cfg.plot_path)
        plt.close(fig)
        logger.info(f"Saved plan to {cfg.plot_path}")


if __name__ == '__main__':
    run()
