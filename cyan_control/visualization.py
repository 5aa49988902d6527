"""
Visualization utilities for simulated path-following runs.

This module plots the followed path against the ground-truth and estimated
trajectories, together with the motor powers and tracking error over time.
"""

from pathlib import Path as FilePath
from typing import Optional, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from .config import COLOR_ESTIMATE, COLOR_GUIDE, COLOR_PATH, COLOR_TRUTH
from .path import Path
from .simulation import SimulationResult


def style_axis(
    ax: Axes,
    title: Optional[str] = None,
    xlabel: Optional[str] = None,
    ylabel: Optional[str] = None,
    grid: bool = True,
) -> None:
    """Apply the shared axis styling.

    Args:
        ax: Matplotlib axis to style.
        title: Axis title (optional).
        xlabel: X-axis label (optional).
        ylabel: Y-axis label (optional).
        grid: Whether to show grid lines (default: True).
    """
    if title:
        ax.set_title(title, fontweight="bold")
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    if grid:
        ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)


def plot_run(
    result: SimulationResult,
    path: Path,
    save_path: Optional[Union[str, FilePath]] = None,
    show: bool = False,
) -> Figure:
    """Plot a simulated run.

    Left: XY view of the path waypoints, true and estimated trajectories.
    Right: motor powers (top) and tracking error (bottom) over time.

    Args:
        result: Recorded run.
        path: Path that was followed.
        save_path: If given, the figure is saved there as a PNG.
        show: Display the figure interactively.

    Returns:
        The matplotlib figure.
    """
    fig = plt.figure(figsize=(14, 7))
    grid = fig.add_gridspec(2, 2, width_ratios=[1.2, 1])
    ax_xy = fig.add_subplot(grid[:, 0])
    ax_power = fig.add_subplot(grid[0, 1])
    ax_error = fig.add_subplot(grid[1, 1], sharex=ax_power)

    waypoints = np.array([(p.x, p.y) for p in path.points])
    ax_xy.plot(
        waypoints[:, 0],
        waypoints[:, 1],
        "o--",
        color=COLOR_PATH,
        linewidth=2,
        markersize=6,
        label="Path",
    )
    ax_xy.plot(
        result.true_pose[:, 0],
        result.true_pose[:, 1],
        "-",
        color=COLOR_TRUTH,
        linewidth=1.5,
        label="Ground truth",
    )
    ax_xy.plot(
        result.estimated_pose[:, 0],
        result.estimated_pose[:, 1],
        ":",
        color=COLOR_ESTIMATE,
        linewidth=1.5,
        label="Estimate",
    )
    if result.steps:
        ax_xy.plot(*result.true_pose[0, :2], "s", color=COLOR_GUIDE, markersize=8, label="Start")
        ax_xy.plot(*result.true_pose[-1, :2], "*", color=COLOR_GUIDE, markersize=12, label="End")
    ax_xy.set_aspect("equal", adjustable="datalim")
    style_axis(ax_xy, title="Trajectory", xlabel="x", ylabel="y")
    ax_xy.legend(loc="best", framealpha=0.9)

    ax_power.plot(result.time, result.motor_powers[:, 0], color=COLOR_PATH, label="Left")
    ax_power.plot(result.time, result.motor_powers[:, 1], color=COLOR_TRUTH, label="Right")
    ax_power.axhline(0.0, color=COLOR_GUIDE, linewidth=0.8, alpha=0.6)
    ax_power.set_ylim(-1.1, 1.1)
    style_axis(ax_power, title="Motor Powers", ylabel="power")
    ax_power.legend(loc="best", framealpha=0.9)

    ax_error.plot(result.time, result.tracking_error, color=COLOR_ESTIMATE)
    style_axis(
        ax_error,
        title=f"Tracking Error (mean {result.mean_tracking_error:.3f}, max {result.max_tracking_error:.3f})",
        xlabel="time (s)",
        ylabel="distance to path",
    )

    status = "finished" if result.finished else "not finished"
    fig.suptitle(f"Path following: {status} after {result.steps} steps", fontweight="bold")
    fig.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()

    return fig
