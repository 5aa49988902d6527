"""Closed-loop simulation of a differential drive chassis.

This module provides a kinematic tank chassis that turns motor powers into
ground-truth motion and cumulative encoder / IMU readings, and a runner that
drives the path follower against it:
- SimulatedTankDrive: ground truth and simulated sensors
- run_simulation: follower + estimator + chassis in closed loop
- SimulationResult: recorded trajectory and tracking statistics
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import numpy.typing as npt

from .config import (
    SIM_ADMISSIBLE_ERROR,
    SIM_DT,
    SIM_ENCODER_WIDTH,
    SIM_LOOKAHEAD,
    SIM_MAX_STEPS,
    SIM_MAX_WHEEL_SPEED,
    SIM_TICKS_TO_DISTANCE,
    SIM_TRACK_WIDTH,
)
from .data_collector import DataCollector
from .debugger import Logger
from .follower import PathFollower
from .geometry import Pose2D
from .localizer import (
    GyroTankMeasurementProvider,
    LocalizerKind,
    MeasurementProvider,
    TankMeasurementProvider,
    ThreeDeadWheelMeasurementProvider,
    TwoDeadWheelMeasurementProvider,
    create_localizer,
)
from .mathutil import clamp, wrap_to_pi
from .model import ReverseSide, TankDriveVectorInterpreter
from .path import Path
from .pid import PIDCoefficients, PIDController

SUPPORTED_KINDS = (
    LocalizerKind.TANK,
    LocalizerKind.GYRO_TANK,
    LocalizerKind.THREE_DEAD_WHEEL,
    LocalizerKind.TWO_DEAD_WHEEL,
)
"""Estimators that can run on the simulated tank chassis."""

_IMU_KINDS = (LocalizerKind.GYRO_TANK, LocalizerKind.TWO_DEAD_WHEEL)


class SimulatedTankDrive:
    """Kinematic differential drive with ideal encoders and IMU.

    Motor powers in [-1, 1] scale the maximum wheel speed. Parallel dead
    wheels sit ``encoder_width`` apart, symmetric about the chassis center;
    the perpendicular dead wheel sits on the center and never turns since a
    tank chassis does not slide sideways.

    Attributes:
        track_width: Distance between the drive wheels.
        encoder_width: Distance between the parallel dead wheels.
        max_wheel_speed: Wheel speed at full power, in distance per second.
        ticks_to_distance: Distance travelled per encoder tick.
        time: Simulated time in seconds.
    """

    def __init__(
        self,
        track_width: float = SIM_TRACK_WIDTH,
        encoder_width: float = SIM_ENCODER_WIDTH,
        max_wheel_speed: float = SIM_MAX_WHEEL_SPEED,
        ticks_to_distance: float = SIM_TICKS_TO_DISTANCE,
        initial_pose: Optional[Pose2D] = None,
    ) -> None:
        if track_width <= 0 or encoder_width <= 0:
            raise ValueError("Track and encoder widths must be positive")
        if ticks_to_distance <= 0:
            raise ValueError(f"ticks_to_distance must be positive, got {ticks_to_distance}")

        self.track_width = track_width
        self.encoder_width = encoder_width
        self.max_wheel_speed = max_wheel_speed
        self.ticks_to_distance = ticks_to_distance
        self.time = 0.0

        self.initial_pose = initial_pose if initial_pose is not None else Pose2D(0.0, 0.0, 0.0)
        self._x = self.initial_pose.x
        self._y = self.initial_pose.y
        self._theta = self.initial_pose.theta

        # Cumulative travelled distances and unwrapped rotation since start
        self._left = 0.0
        self._right = 0.0
        self._rotation = 0.0

    @property
    def pose(self) -> Pose2D:
        """Ground-truth pose."""
        return Pose2D(self._x, self._y, self._theta)

    def apply_powers(self, left: float, right: float, dt: float) -> None:
        """Drive both sides at the given powers for dt seconds.

        Args:
            left: Left motor power, clamped to [-1, 1].
            right: Right motor power, clamped to [-1, 1].
            dt: Time step in seconds.
        """
        d_left = clamp(-1.0, 1.0, left) * self.max_wheel_speed * dt
        d_right = clamp(-1.0, 1.0, right) * self.max_wheel_speed * dt

        d_center = (d_left + d_right) / 2.0
        d_theta = (d_right - d_left) / self.track_width

        # Midpoint heading integrates the arc more closely than the estimators do
        heading = self._theta + d_theta / 2.0
        self._x += d_center * math.cos(heading)
        self._y += d_center * math.sin(heading)
        self._theta = wrap_to_pi(self._theta + d_theta)

        self._left += d_left
        self._right += d_right
        self._rotation += d_theta
        self.time += dt

    # Sensor channels, in encoder ticks (IMU in degrees)

    def _ticks(self, distance: float) -> float:
        return distance / self.ticks_to_distance

    def left_ticks(self) -> float:
        return self._ticks(self._left)

    def right_ticks(self) -> float:
        return self._ticks(self._right)

    def parallel_ticks(self) -> float:
        return self._ticks((self._left + self._right) / 2.0)

    def left_parallel_ticks(self) -> float:
        center = (self._left + self._right) / 2.0
        return self._ticks(center - self._rotation * self.encoder_width / 2.0)

    def right_parallel_ticks(self) -> float:
        center = (self._left + self._right) / 2.0
        return self._ticks(center + self._rotation * self.encoder_width / 2.0)

    def perp_ticks(self) -> float:
        return 0.0

    def heading_deg(self) -> float:
        """IMU heading relative to the start heading."""
        return math.degrees(self._rotation)

    def measurement_provider(self, kind: LocalizerKind) -> MeasurementProvider:
        """Build the measurement provider an estimator of the given kind needs.

        Raises:
            ValueError: If the estimator cannot run on a tank chassis.
        """
        t2d = self.ticks_to_distance
        if kind is LocalizerKind.TANK:
            return TankMeasurementProvider(self.left_ticks, self.right_ticks, t2d)
        if kind is LocalizerKind.GYRO_TANK:
            return GyroTankMeasurementProvider(self.left_ticks, self.right_ticks, self.heading_deg, t2d)
        if kind is LocalizerKind.THREE_DEAD_WHEEL:
            return ThreeDeadWheelMeasurementProvider(
                self.perp_ticks, self.left_parallel_ticks, self.right_parallel_ticks, t2d
            )
        if kind is LocalizerKind.TWO_DEAD_WHEEL:
            return TwoDeadWheelMeasurementProvider(self.perp_ticks, self.parallel_ticks, self.heading_deg, t2d)
        raise ValueError(f"{kind.value} estimator cannot run on a simulated tank chassis")


@dataclass
class SimulationResult:
    """Recorded closed-loop run.

    Attributes:
        time: Simulated time of each step (s).
        true_pose: Ground-truth (x, y, theta) per step, shape (n, 3).
        estimated_pose: Estimated (x, y, theta) per step, shape (n, 3).
        motor_powers: (left, right) per step, shape (n, 2).
        tracking_error: Distance of the true position to the path per step.
        finished: Whether the path was completed within the step budget.
    """

    time: npt.NDArray[np.float64]
    true_pose: npt.NDArray[np.float64]
    estimated_pose: npt.NDArray[np.float64]
    motor_powers: npt.NDArray[np.float64]
    tracking_error: npt.NDArray[np.float64]
    finished: bool

    @property
    def steps(self) -> int:
        return len(self.time)

    @property
    def mean_tracking_error(self) -> float:
        return float(np.mean(self.tracking_error)) if self.steps else 0.0

    @property
    def max_tracking_error(self) -> float:
        return float(np.max(self.tracking_error)) if self.steps else 0.0

    @property
    def final_estimate_error(self) -> float:
        """Distance between the final estimated and true positions."""
        if not self.steps:
            return 0.0
        return float(np.hypot(*(self.estimated_pose[-1, :2] - self.true_pose[-1, :2])))


def distance_to_polyline(
    positions: npt.NDArray[np.float64], vertices: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """Shortest distance of each position to a polyline.

    Args:
        positions: Query positions, shape (n, 2).
        vertices: Polyline vertices, shape (m, 2) with m >= 2.

    Returns:
        Distances, shape (n,).
    """
    starts = vertices[:-1]
    ends = vertices[1:]
    directions = ends - starts
    lengths_sq = np.sum(directions**2, axis=1)
    lengths_sq = np.where(lengths_sq == 0, 1.0, lengths_sq)

    # (n, m-1) projection parameters clamped onto each segment
    relative = positions[:, None, :] - starts[None, :, :]
    t = np.clip(np.sum(relative * directions[None, :, :], axis=2) / lengths_sq, 0.0, 1.0)
    closest = starts[None, :, :] + t[:, :, None] * directions[None, :, :]
    distances = np.hypot(*(positions[:, None, :] - closest).transpose(2, 0, 1))
    return np.min(distances, axis=1)


def run_simulation(
    path: Path,
    kind: LocalizerKind = LocalizerKind.TANK,
    lookahead: float = SIM_LOOKAHEAD,
    admissible_error: float = SIM_ADMISSIBLE_ERROR,
    coefficients: Optional[PIDCoefficients] = None,
    dt: float = SIM_DT,
    max_steps: int = SIM_MAX_STEPS,
    reverse_drive: bool = True,
    drive: Optional[SimulatedTankDrive] = None,
    collector: Optional[DataCollector] = None,
    logger: Optional[Logger] = None,
) -> SimulationResult:
    """Follow a path with the simulated chassis.

    Each step the follower updates the estimator, picks the lookahead point and
    commands the motors; the chassis then moves for dt seconds. The run ends
    when the path is finished and the follower has stopped, or after
    max_steps.

    Args:
        path: Path to follow. Its cursor is reset before the run.
        kind: Estimator to run on the chassis.
        lookahead: Pure pursuit lookahead radius.
        admissible_error: Arrival tolerance.
        coefficients: Heading PID gains. Default: proportional-only.
        dt: Control period in seconds.
        max_steps: Step budget.
        reverse_drive: Allow driving backwards to targets behind the robot.
        drive: Chassis to drive. Default: a fresh SimulatedTankDrive at the
            first waypoint, facing the second.
        collector: Optional CSV recorder, already set up.
        logger: Optional debug logger; dumped into the collector every step.

    Returns:
        The recorded run.

    Raises:
        ValueError: If the estimator cannot run on the simulated chassis.
    """
    if kind not in SUPPORTED_KINDS:
        raise ValueError(f"{kind.value} estimator cannot run on a simulated tank chassis")

    if drive is None:
        first, second = path.points[0], path.points[1]
        heading = math.atan2(second.y - first.y, second.x - first.x)
        drive = SimulatedTankDrive(initial_pose=Pose2D(first.x, first.y, heading))

    start = drive.pose
    localizer = create_localizer(
        kind,
        drive.measurement_provider(kind),
        track_width=drive.track_width,
        encoder_width=drive.encoder_width,
        initial_pose=start,
        heading_offset_deg=math.degrees(start.theta) if kind in _IMU_KINDS else None,
        logger=logger,
    )
    controller = PIDController(coefficients, clock=lambda: drive.time)
    interpreter = TankDriveVectorInterpreter(ReverseSide.RIGHT, reverse_drive=reverse_drive)
    follower = PathFollower(localizer, interpreter, controller, admissible_error=admissible_error)
    follower.setup_pure_pursuit(lookahead)
    if logger is not None:
        follower.attach_logger(logger)

    path.reset()
    logging.info(f"Simulating {kind.value} estimator over {len(path)} waypoints")

    times: List[float] = []
    truths: List[tuple] = []
    estimates: List[tuple] = []
    powers: List[tuple] = []
    finished = False

    for _ in range(max_steps):
        follower.follow_path(path)
        left, right = follower.motor_powers
        truth = drive.pose
        estimate = localizer.pose()

        times.append(drive.time)
        truths.append((truth.x, truth.y, truth.theta))
        estimates.append((estimate.x, estimate.y, estimate.theta))
        powers.append((left, right))

        if collector is not None:
            collector.log_step(drive.time, truth, estimate, left, right)
        if logger is not None:
            follower.debug()
            packets = logger.dump()
            if collector is not None:
                collector.log_packets(drive.time, packets)

        if follower.target is None and path.is_finished(estimate):
            finished = True
            break

        drive.apply_powers(left, right, dt)

    if finished:
        logging.info(f"Path finished after {len(times)} steps ({drive.time:.2f} s)")
    else:
        logging.warning(f"Path not finished within {max_steps} steps")

    true_pose = np.array(truths, dtype=np.float64).reshape(-1, 3)
    vertices = np.array([(p.x, p.y) for p in path.points], dtype=np.float64)
    return SimulationResult(
        time=np.array(times, dtype=np.float64),
        true_pose=true_pose,
        estimated_pose=np.array(estimates, dtype=np.float64).reshape(-1, 3),
        motor_powers=np.array(powers, dtype=np.float64).reshape(-1, 2),
        tracking_error=distance_to_polyline(true_pose[:, :2], vertices),
        finished=finished,
    )
