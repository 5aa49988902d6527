"""
Closed-loop tests: simulated tank chassis, recording, plotting and the CLI.

Run:
    python -m pytest tests/test_simulation.py -v
"""

import csv
import logging
import math

import matplotlib.pyplot as plt
import numpy as np
import pytest

from cyan_control.cli import main, parse_waypoints
from cyan_control.config import DEBUG_CSV_NAME, PLOT_FILE_NAME, RESULTS_DIR_NAME, TRAJECTORY_CSV_NAME
from cyan_control.data_collector import DataCollector
from cyan_control.debugger import Logger
from cyan_control.geometry import Pose2D
from cyan_control.localizer import LocalizerKind
from cyan_control.path import Path
from cyan_control.simulation import SUPPORTED_KINDS, SimulatedTankDrive, distance_to_polyline, run_simulation
from cyan_control.visualization import plot_run


# ── simulated chassis ────────────────────────────────────────────────────

def test_drive_straight():
    drive = SimulatedTankDrive(track_width=10.0, max_wheel_speed=10.0, ticks_to_distance=0.5)
    drive.apply_powers(1.0, 1.0, 0.5)
    assert drive.pose == Pose2D(5.0, 0.0, 0.0)
    assert drive.left_ticks() == pytest.approx(10.0)
    assert drive.time == 0.5


def test_drive_spin_in_place():
    drive = SimulatedTankDrive(track_width=10.0, max_wheel_speed=10.0)
    drive.apply_powers(-0.5, 0.5, 1.0)
    pose = drive.pose
    assert pose.x == pytest.approx(0.0)
    assert pose.theta == pytest.approx(1.0)
    assert drive.heading_deg() == pytest.approx(math.degrees(1.0))


def test_drive_clamps_powers():
    drive = SimulatedTankDrive(max_wheel_speed=10.0)
    drive.apply_powers(5.0, 5.0, 1.0)
    assert drive.pose.x == pytest.approx(10.0)


def test_mecanum_cannot_run_on_tank_chassis():
    with pytest.raises(ValueError):
        SimulatedTankDrive().measurement_provider(LocalizerKind.MECANUM)
    with pytest.raises(ValueError):
        run_simulation(Path.from_coordinates([(0, 0), (10, 0)]), kind=LocalizerKind.MECANUM)


def test_distance_to_polyline():
    vertices = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]])
    positions = np.array([[5.0, 2.0], [12.0, 5.0], [-3.0, -4.0]])
    assert distance_to_polyline(positions, vertices) == pytest.approx([2.0, 2.0, 5.0])


# ── closed loop ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("kind", SUPPORTED_KINDS)
def test_straight_path_is_finished_with_every_estimator(kind):
    path = Path.from_coordinates([(0, 0), (100, 0)])
    result = run_simulation(path, kind=kind)
    assert result.finished, f"{kind} did not finish"
    end = result.true_pose[-1]
    assert math.hypot(end[0] - 100.0, end[1]) < 3.0, f"end={end}"
    assert result.max_tracking_error < 1.0
    assert result.final_estimate_error < 1.0


def test_corner_path_is_finished():
    path = Path.from_coordinates([(0, 0), (100, 0), (100, 100)])
    result = run_simulation(path)
    assert result.finished
    end = result.true_pose[-1]
    assert math.hypot(end[0] - 100.0, end[1] - 100.0) < 3.0, f"end={end}"
    assert result.steps == len(result.time) == len(result.motor_powers)


def test_step_budget_is_respected():
    path = Path.from_coordinates([(0, 0), (1000, 0)])
    result = run_simulation(path, max_steps=25)
    assert not result.finished
    assert result.steps == 25


# ── recording and plotting ───────────────────────────────────────────────

def test_run_is_recorded_to_csv(tmp_path):
    path = Path.from_coordinates([(0, 0), (50, 0)])
    with DataCollector(output_dir=str(tmp_path), run_dir=str(tmp_path / "run")) as collector:
        result = run_simulation(path, collector=collector, logger=Logger())

    with open(collector.trajectory_output_path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0][:3] == ["timestamp", "x_true", "y_true"]
    assert len(rows) == result.steps + 1

    with open(collector.debug_output_path, newline="") as f:
        debug_rows = list(csv.reader(f))
    headers = {row[1] for row in debug_rows[1:]}
    assert {"robotX", "Distance Error"} <= headers


def test_collector_creates_timestamped_run_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("RUN_DIR", raising=False)
    collector = DataCollector(output_dir=str(tmp_path))
    assert collector.run_dir.parent == tmp_path / RESULTS_DIR_NAME
    assert collector.run_dir.name.startswith("run_")


def test_collector_requires_setup(tmp_path):
    collector = DataCollector(run_dir=str(tmp_path / "run"))
    with pytest.raises(RuntimeError):
        collector.log_step(0.0, Pose2D(0.0, 0.0), Pose2D(0.0, 0.0), 0.0, 0.0)


def test_plot_run_saves_png(tmp_path):
    path = Path.from_coordinates([(0, 0), (30, 0), (30, 30)])
    result = run_simulation(path)
    target = tmp_path / "plot.png"
    fig = plot_run(result, path, save_path=target)
    assert target.exists() and target.stat().st_size > 0
    assert len(fig.axes) == 3
    plt.close(fig)


# ── command line ─────────────────────────────────────────────────────────

def test_parse_waypoints():
    assert parse_waypoints("0,0 10,-2.5") == [(0.0, 0.0), (10.0, -2.5)]
    with pytest.raises(Exception):
        parse_waypoints("0,0 10")


def test_cli_runs_and_writes_outputs(tmp_path, monkeypatch):
    monkeypatch.delenv("RUN_DIR", raising=False)
    code = main(
        ["--estimator", "gyro-tank", "--waypoints", "0,0 60,0", "--output-dir", str(tmp_path), "--plot"]
    )
    assert code == 0
    (run_dir,) = (tmp_path / RESULTS_DIR_NAME).iterdir()
    assert (run_dir / TRAJECTORY_CSV_NAME).exists()
    assert (run_dir / DEBUG_CSV_NAME).exists()
    assert (run_dir / PLOT_FILE_NAME).exists()
    plt.close("all")


def test_cli_rejects_single_waypoint(tmp_path):
    assert main(["--waypoints", "0,0", "--output-dir", str(tmp_path)]) == 1


def test_cli_rejects_non_finite_waypoint(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        code = main(["--waypoints", "nan,0 10,0", "--output-dir", str(tmp_path)])
    assert code == 1
    assert "finite" in caplog.text
    assert not (tmp_path / RESULTS_DIR_NAME).exists()
