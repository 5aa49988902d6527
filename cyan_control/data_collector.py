"""Data collection and CSV logging for simulated runs.

This module provides CSV data logging for:
- Trajectory (ground truth, estimate and motor powers per control step)
- Debug packets dumped from the in-memory debug logger
"""

import csv
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional, TextIO

from .config import DEBUG_CSV_NAME, RESULTS_DIR_NAME, TERM_BLUE, TERM_RESET, TRAJECTORY_CSV_NAME
from .debugger import DebugPacket
from .geometry import Pose2D


class DataCollector:
    """Manages CSV file creation and logging for a run.

    Attributes:
        run_dir: Directory path for this run's output files.
        trajectory_output_path: Path of the trajectory CSV.
        debug_output_path: Path of the debug packet CSV.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates timestamped
                directory. Can also be set via RUN_DIR environment variable.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        self.trajectory_csv_file: Optional[TextIO] = None
        self.trajectory_csv_writer: Any = None
        self.debug_csv_file: Optional[TextIO] = None
        self.debug_csv_writer: Any = None

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # Create timestamped directory: results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / RESULTS_DIR_NAME / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.trajectory_output_path: Path = self.run_dir / TRAJECTORY_CSV_NAME
        self.debug_output_path: Path = self.run_dir / DEBUG_CSV_NAME

    def setup(self) -> None:
        """Create the CSV files and write their headers.

        Must be called before writing data.
        """
        self.trajectory_csv_file = open(self.trajectory_output_path, "w", newline="")
        self.trajectory_csv_writer = csv.writer(self.trajectory_csv_file)
        self.trajectory_csv_writer.writerow(
            [
                "timestamp",
                "x_true",
                "y_true",
                "theta_true",
                "x_est",
                "y_est",
                "theta_est",
                "left_power",
                "right_power",
            ]
        )
        self.trajectory_csv_file.flush()

        self.debug_csv_file = open(self.debug_output_path, "w", newline="")
        self.debug_csv_writer = csv.writer(self.debug_csv_file)
        self.debug_csv_writer.writerow(["timestamp", "header", "value"])
        self.debug_csv_file.flush()

        print(f"{TERM_BLUE}✓ Initialized data collection to {self.run_dir}/{TERM_RESET}")

    def log_step(
        self, timestamp: float, truth: Pose2D, estimate: Pose2D, left_power: float, right_power: float
    ) -> None:
        """Log one control step to the trajectory CSV.

        Args:
            timestamp: Simulated time (seconds).
            truth: Ground-truth pose.
            estimate: Estimated pose.
            left_power: Left motor power.
            right_power: Right motor power.
        """
        if self.trajectory_csv_writer is None:
            raise RuntimeError("DataCollector.setup() must be called before logging")
        self.trajectory_csv_writer.writerow(
            [
                timestamp,
                truth.x,
                truth.y,
                truth.theta,
                estimate.x,
                estimate.y,
                estimate.theta,
                left_power,
                right_power,
            ]
        )
        if self.trajectory_csv_file:
            self.trajectory_csv_file.flush()

    def log_packets(self, timestamp: float, packets: Iterable[DebugPacket]) -> None:
        """Log dumped debug packets, one row each.

        Args:
            timestamp: Simulated time (seconds).
            packets: Packets dumped from a debug logger.
        """
        if self.debug_csv_writer is None:
            raise RuntimeError("DataCollector.setup() must be called before logging")
        for packet in packets:
            self.debug_csv_writer.writerow([timestamp, packet.header.identifier(), packet.value])
        if self.debug_csv_file:
            self.debug_csv_file.flush()

    def close(self) -> None:
        """Close all CSV files and report the output location."""
        if self.trajectory_csv_file:
            self.trajectory_csv_file.close()
        if self.debug_csv_file:
            self.debug_csv_file.close()

        print(f"{TERM_BLUE}✓ Saved run data to {self.run_dir}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
