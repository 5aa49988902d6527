"""Localization module: pose estimation from wheel encoders and an optional IMU.

This module provides incremental dead-reckoning estimators for the supported
chassis types:
- Differential drive with an IMU heading (GyroTankOdometry)
- Differential drive, heading integrated from the wheels (TankKinematics)
- Three dead wheels: two parallel, one perpendicular (ThreeDeadWheelOdometry)
- Two dead wheels plus an IMU heading (TwoDeadWheelOdometry)
- Four-wheel mecanum drive (MecanumKinematics)

Every estimator pulls fresh cumulative readings from its measurement provider on
``update()``, subtracts the previous readings and integrates the difference
under its kinematic model. Calling ``update()`` twice in one control tick is
harmless: the second call sees zero deltas.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Union

from .debugger import Logger
from .geometry import Pose2D
from .mathutil import require_finite, shift_deg, wrap_to_pi
from .units import DistanceUnit

Reading = Callable[[], float]


class PositionProvider(Protocol):
    """What the follower and the pure pursuit calculator need from an estimator."""

    def pose(self) -> Pose2D: ...

    def update(self) -> None: ...


# ============================================================================
# Measurement Providers
# ============================================================================


@dataclass(frozen=True)
class TankMeasurementProvider:
    """Left / right drive encoder sources of a differential drive."""

    left_ticks: Reading
    right_ticks: Reading
    ticks_to_distance: float = 1.0


@dataclass(frozen=True)
class GyroTankMeasurementProvider:
    """Drive encoders plus an IMU heading in degrees."""

    left_ticks: Reading
    right_ticks: Reading
    heading_deg: Reading
    ticks_to_distance: float = 1.0


@dataclass(frozen=True)
class ThreeDeadWheelMeasurementProvider:
    """Perpendicular and left / right parallel dead wheel encoders."""

    perp_ticks: Reading
    left_parallel_ticks: Reading
    right_parallel_ticks: Reading
    ticks_to_distance: float = 1.0


@dataclass(frozen=True)
class TwoDeadWheelMeasurementProvider:
    """Perpendicular and parallel dead wheel encoders plus an IMU heading in degrees."""

    perp_ticks: Reading
    parallel_ticks: Reading
    heading_deg: Reading
    ticks_to_distance: float = 1.0


@dataclass(frozen=True)
class MecanumMeasurementProvider:
    """Encoders of the four mecanum wheels."""

    lf_ticks: Reading
    rf_ticks: Reading
    lb_ticks: Reading
    rb_ticks: Reading
    ticks_to_distance: float = 1.0


MeasurementProvider = Union[
    TankMeasurementProvider,
    GyroTankMeasurementProvider,
    ThreeDeadWheelMeasurementProvider,
    TwoDeadWheelMeasurementProvider,
    MecanumMeasurementProvider,
]


def _distance(provider: MeasurementProvider, channel: str) -> float:
    """Read an encoder channel and convert ticks to distance."""
    ticks = require_finite(getattr(provider, channel)(), channel)
    return ticks * provider.ticks_to_distance


def _heading(provider: MeasurementProvider) -> float:
    return require_finite(provider.heading_deg(), "heading_deg")


def _require_width(width: float, name: str) -> float:
    width = require_finite(width, name)
    if width == 0:
        raise ValueError(f"{name} must be non-zero")
    return width


# ============================================================================
# Estimators
# ============================================================================


class Localizer:
    """Common state and debug plumbing of the pose estimators.

    Subclasses implement ``update()`` and keep ``_x``, ``_y`` and ``_theta``
    current; ``_commit()`` publishes them as the current pose.

    Attributes:
        distance_unit: Unit of the estimated coordinates, if declared.
    """

    SYSTEM_NAME = "LOCALIZER"

    def __init__(
        self,
        initial_pose: Optional[Pose2D] = None,
        distance_unit: Optional[DistanceUnit] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        pose = initial_pose if initial_pose is not None else Pose2D(0.0, 0.0, 0.0)
        self._x = pose.x
        self._y = pose.y
        self._theta = pose.theta
        self._pose = pose
        self.distance_unit = distance_unit
        self._logger = logger

    def pose(self) -> Pose2D:
        """Return the current pose estimate."""
        return self._pose

    def update(self) -> None:
        raise NotImplementedError

    def reset(self, pose: Optional[Pose2D] = None) -> None:
        """Re-home the estimate without touching the encoder bookkeeping."""
        pose = pose if pose is not None else Pose2D(0.0, 0.0, 0.0)
        self._x, self._y, self._theta = pose.x, pose.y, pose.theta
        self._pose = pose
        logging.info(f"{self.SYSTEM_NAME} reset to ({pose.x:.3f}, {pose.y:.3f}) heading={pose.theta:.3f} rad")

    def _commit(self) -> None:
        self._pose = Pose2D(self._x, self._y, self._theta)

    def attach_logger(self, logger: Logger) -> None:
        self._logger = logger

    def debug(self) -> None:
        """Record the current estimate into the attached debug logger, if any."""
        if self._logger is None:
            return
        self._logger.log_value("robotX", self._x)
        self._logger.log_value("robotY", self._y)
        self._logger.log_value("robotHeading", self._theta)


class GyroTankOdometry(Localizer):
    """Differential drive odometry with the IMU as the heading source.

    Heading is never integrated: every update reads the IMU, applies the
    heading offset and uses the result directly.
    """

    SYSTEM_NAME = "GYRO_TANK_ODOMETRY"

    def __init__(
        self,
        measurement_provider: GyroTankMeasurementProvider,
        initial_pose: Optional[Pose2D] = None,
        heading_offset_deg: Optional[float] = None,
        distance_unit: Optional[DistanceUnit] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize the estimator.

        Args:
            measurement_provider: Encoder and IMU sources.
            initial_pose: Starting pose (default: origin, heading 0).
            heading_offset_deg: Degrees added to the IMU reading. If None, the
                initial pose heading is used.
            distance_unit: Unit of the estimated coordinates.
            logger: Optional debug logger.
        """
        super().__init__(initial_pose, distance_unit, logger)
        self._provider = measurement_provider
        if heading_offset_deg is None:
            heading_offset_deg = math.degrees(self._theta)
        else:
            self._theta = math.radians(shift_deg(0.0, heading_offset_deg))
            self._commit()
        self.heading_offset_deg = require_finite(heading_offset_deg, "heading_offset_deg")

        self._previous_left = 0.0
        self._previous_right = 0.0

    def update(self) -> None:
        heading = _heading(self._provider)
        current_left = _distance(self._provider, "left_ticks")
        current_right = _distance(self._provider, "right_ticks")

        self._theta = math.radians(shift_deg(heading, self.heading_offset_deg))

        d_left = current_left - self._previous_left
        d_right = current_right - self._previous_right
        d_center = (d_left + d_right) / 2.0

        self._x += d_center * math.cos(self._theta)
        self._y += d_center * math.sin(self._theta)

        self._previous_left = current_left
        self._previous_right = current_right
        self._commit()


class TankKinematics(Localizer):
    """Differential drive odometry without an IMU.

    Heading is integrated from the wheel difference. Translation uses the
    heading from before the update.
    """

    SYSTEM_NAME = "TANK_KINEMATICS"

    def __init__(
        self,
        measurement_provider: TankMeasurementProvider,
        track_width: float,
        initial_pose: Optional[Pose2D] = None,
        distance_unit: Optional[DistanceUnit] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(initial_pose, distance_unit, logger)
        self._provider = measurement_provider
        self.track_width = _require_width(track_width, "track_width")

        self._previous_left = 0.0
        self._previous_right = 0.0

    def update(self) -> None:
        current_left = _distance(self._provider, "left_ticks")
        current_right = _distance(self._provider, "right_ticks")

        d_left = current_left - self._previous_left
        d_right = current_right - self._previous_right

        d_center = (d_right + d_left) * 0.5
        d_theta = (d_right - d_left) / self.track_width

        self._x += d_center * math.cos(self._theta)
        self._y += d_center * math.sin(self._theta)
        self._theta = wrap_to_pi(self._theta + d_theta)

        self._previous_left = current_left
        self._previous_right = current_right
        self._commit()


class ThreeDeadWheelOdometry(Localizer):
    """Odometry from two parallel dead wheels and one perpendicular dead wheel.

    The robot-frame motion (perpendicular, parallel) is rotated into the
    world frame by the heading before the update; the heading then advances
    by the parallel wheel difference over the encoder width.
    """

    SYSTEM_NAME = "THREE_DEAD_WHEEL_ODOMETRY"

    def __init__(
        self,
        measurement_provider: ThreeDeadWheelMeasurementProvider,
        encoder_width: float,
        initial_pose: Optional[Pose2D] = None,
        distance_unit: Optional[DistanceUnit] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(initial_pose, distance_unit, logger)
        self._provider = measurement_provider
        self.encoder_width = _require_width(encoder_width, "encoder_width")

        self._previous_perpendicular = 0.0
        self._previous_left_parallel = 0.0
        self._previous_right_parallel = 0.0

    def update(self) -> None:
        current_perpendicular = _distance(self._provider, "perp_ticks")
        current_left = _distance(self._provider, "left_parallel_ticks")
        current_right = _distance(self._provider, "right_parallel_ticks")

        d_perpendicular = current_perpendicular - self._previous_perpendicular
        d_left = current_left - self._previous_left_parallel
        d_right = current_right - self._previous_right_parallel

        d_theta = (d_right - d_left) / self.encoder_width
        d_parallel = (d_right + d_left) * 0.5

        cos = math.cos(self._theta)
        sin = math.sin(self._theta)
        self._x += d_perpendicular * sin + d_parallel * cos
        self._y += -d_perpendicular * cos + d_parallel * sin
        self._theta = wrap_to_pi(self._theta + d_theta)

        self._previous_perpendicular = current_perpendicular
        self._previous_left_parallel = current_left
        self._previous_right_parallel = current_right
        self._commit()


class TwoDeadWheelOdometry(Localizer):
    """Odometry from a perpendicular and a parallel dead wheel plus an IMU heading."""

    SYSTEM_NAME = "TWO_DEAD_WHEEL_ODOMETRY"

    def __init__(
        self,
        measurement_provider: TwoDeadWheelMeasurementProvider,
        initial_pose: Optional[Pose2D] = None,
        heading_offset_deg: Optional[float] = None,
        distance_unit: Optional[DistanceUnit] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(initial_pose, distance_unit, logger)
        self._provider = measurement_provider
        if heading_offset_deg is None:
            heading_offset_deg = math.degrees(self._theta)
        else:
            self._theta = math.radians(shift_deg(0.0, heading_offset_deg))
            self._commit()
        self.heading_offset_deg = require_finite(heading_offset_deg, "heading_offset_deg")

        self._previous_perpendicular = 0.0
        self._previous_parallel = 0.0

    def update(self) -> None:
        heading = _heading(self._provider)
        current_perpendicular = _distance(self._provider, "perp_ticks")
        current_parallel = _distance(self._provider, "parallel_ticks")

        self._theta = math.radians(shift_deg(heading, self.heading_offset_deg))

        d_perpendicular = current_perpendicular - self._previous_perpendicular
        d_parallel = current_parallel - self._previous_parallel

        cos = math.cos(self._theta)
        sin = math.sin(self._theta)
        self._x += d_perpendicular * sin + d_parallel * cos
        self._y += -d_perpendicular * cos + d_parallel * sin

        self._previous_perpendicular = current_perpendicular
        self._previous_parallel = current_parallel
        self._commit()


class MecanumKinematics(Localizer):
    """Four-wheel mecanum forward kinematics.

    Forward motion is the mean of all wheels, strafe the mean of the two
    diagonals' difference and rotation the right/left difference over four
    track widths.
    """

    SYSTEM_NAME = "MECANUM_KINEMATICS"

    def __init__(
        self,
        measurement_provider: MecanumMeasurementProvider,
        track_width: float,
        initial_pose: Optional[Pose2D] = None,
        distance_unit: Optional[DistanceUnit] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(initial_pose, distance_unit, logger)
        self._provider = measurement_provider
        self.track_width = _require_width(track_width, "track_width")

        self._previous_lf = 0.0
        self._previous_rf = 0.0
        self._previous_lb = 0.0
        self._previous_rb = 0.0

    def update(self) -> None:
        current_lf = _distance(self._provider, "lf_ticks")
        current_rf = _distance(self._provider, "rf_ticks")
        current_lb = _distance(self._provider, "lb_ticks")
        current_rb = _distance(self._provider, "rb_ticks")

        d_lf = current_lf - self._previous_lf
        d_rf = current_rf - self._previous_rf
        d_lb = current_lb - self._previous_lb
        d_rb = current_rb - self._previous_rb

        d_forward = (d_lf + d_rf + d_lb + d_rb) / 4.0
        d_strafe = (d_lb + d_rf - d_lf - d_rb) / 4.0
        d_theta = (d_rb + d_rf - d_lb - d_lf) / (4.0 * self.track_width)

        cos = math.cos(self._theta)
        sin = math.sin(self._theta)
        self._x += d_strafe * sin + d_forward * cos
        self._y += d_strafe * cos - d_forward * sin
        self._theta = wrap_to_pi(self._theta + d_theta)

        self._previous_lf = current_lf
        self._previous_rf = current_rf
        self._previous_lb = current_lb
        self._previous_rb = current_rb
        self._commit()


# ============================================================================
# Factory
# ============================================================================


class LocalizerKind(Enum):
    """Supported estimator types, valued by their CLI name."""

    GYRO_TANK = "gyro-tank"
    TANK = "tank"
    THREE_DEAD_WHEEL = "three-dead-wheel"
    TWO_DEAD_WHEEL = "two-dead-wheel"
    MECANUM = "mecanum"


_PROVIDER_TYPES = {
    LocalizerKind.GYRO_TANK: GyroTankMeasurementProvider,
    LocalizerKind.TANK: TankMeasurementProvider,
    LocalizerKind.THREE_DEAD_WHEEL: ThreeDeadWheelMeasurementProvider,
    LocalizerKind.TWO_DEAD_WHEEL: TwoDeadWheelMeasurementProvider,
    LocalizerKind.MECANUM: MecanumMeasurementProvider,
}


def create_localizer(
    kind: LocalizerKind,
    measurement_provider: MeasurementProvider,
    track_width: Optional[float] = None,
    encoder_width: Optional[float] = None,
    initial_pose: Optional[Pose2D] = None,
    heading_offset_deg: Optional[float] = None,
    distance_unit: Optional[DistanceUnit] = None,
    logger: Optional[Logger] = None,
) -> Localizer:
    """Build the estimator for a chassis type.

    Args:
        kind: Estimator type.
        measurement_provider: Provider matching the estimator type.
        track_width: Wheel track width (tank and mecanum kinematics).
        encoder_width: Parallel dead wheel spacing (three dead wheels).
        initial_pose: Starting pose.
        heading_offset_deg: IMU heading offset (IMU-based estimators).
        distance_unit: Unit of the estimated coordinates.
        logger: Optional debug logger.

    Returns:
        The configured estimator.

    Raises:
        ValueError: If the provider does not match the kind or a required
            geometry parameter is missing.
    """
    expected = _PROVIDER_TYPES[kind]
    if not isinstance(measurement_provider, expected):
        raise ValueError(
            f"{kind.value} localizer needs a {expected.__name__}, "
            f"got {type(measurement_provider).__name__}"
        )

    common = {"initial_pose": initial_pose, "distance_unit": distance_unit, "logger": logger}

    if kind is LocalizerKind.GYRO_TANK:
        return GyroTankOdometry(measurement_provider, heading_offset_deg=heading_offset_deg, **common)
    if kind is LocalizerKind.TWO_DEAD_WHEEL:
        return TwoDeadWheelOdometry(measurement_provider, heading_offset_deg=heading_offset_deg, **common)
    if kind is LocalizerKind.THREE_DEAD_WHEEL:
        if encoder_width is None:
            raise ValueError("three-dead-wheel localizer needs an encoder_width")
        return ThreeDeadWheelOdometry(measurement_provider, encoder_width, **common)

    if track_width is None:
        raise ValueError(f"{kind.value} localizer needs a track_width")
    if kind is LocalizerKind.TANK:
        return TankKinematics(measurement_provider, track_width, **common)
    return MecanumKinematics(measurement_provider, track_width, **common)
