"""Path follower for the control core.

This module closes the loop between a pose estimator and a chassis:
- Computes distance and heading error to a target point
- Runs a PID controller on the heading error
- Hands the resulting drive command to a chassis vector interpreter

Targets come from single points, point sequences, or paths and path sequences
tracked with circle-line intersection pure pursuit.
"""

import logging
import math
from typing import Optional, Tuple

from .config import DEFAULT_ADMISSIBLE_ERROR
from .debugger import Logger, MessageLevel
from .geometry import Point, Pose2D, SmartPoint
from .localizer import PositionProvider
from .mathutil import wrap_to_pi
from .model import DriveCommand, VectorInterpreter
from .path import Path, PathSequence, PointSequence
from .pid import PIDController
from .pursuit import CircleLineIntersectionCalculator
from .units import DistanceUnit


class PathFollower:
    """Drives a chassis towards points, point sequences and paths.

    Attributes:
        admissible_error: Distance to a target below which it counts as reached.
        distance_unit: Unit of the estimator's coordinates, if declared. Targets
            declared in another unit are converted into it.
    """

    SYSTEM_NAME = "PATH_FOLLOWER"

    def __init__(
        self,
        position_provider: PositionProvider,
        vector_interpreter: VectorInterpreter,
        controller: Optional[PIDController] = None,
        admissible_error: float = DEFAULT_ADMISSIBLE_ERROR,
        distance_unit: Optional[DistanceUnit] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize the follower.

        Args:
            position_provider: Pose estimator, updated once per follow call.
            vector_interpreter: Chassis mixer receiving the drive commands.
            controller: Heading PID. Default: proportional-only controller.
            admissible_error: Arrival tolerance, in the estimator's unit.
            distance_unit: Unit of the estimator's coordinates.
            logger: Optional debug logger, shared with the collaborators.
        """
        self._position_provider = position_provider
        self._interpreter = vector_interpreter
        self._controller = controller if controller is not None else PIDController()
        self.admissible_error = admissible_error
        self.distance_unit = distance_unit
        self._kernel: Optional[CircleLineIntersectionCalculator] = None
        self._logger = logger

        # Values from the last follow call, for debugging
        self._target: Optional[Point] = None
        self._distance_error = 0.0
        self._heading_error = 0.0
        self._steer = 0.0

    @property
    def controller(self) -> PIDController:
        return self._controller

    @property
    def vector_interpreter(self) -> VectorInterpreter:
        return self._interpreter

    @property
    def pure_pursuit(self) -> Optional[CircleLineIntersectionCalculator]:
        return self._kernel

    @property
    def motor_powers(self) -> Tuple[float, ...]:
        """Latest per-motor outputs of the vector interpreter."""
        return self._interpreter.motor_inputs()

    @property
    def target(self) -> Optional[Point]:
        """Target of the last follow call, None when stopped."""
        return self._target

    def setup_pure_pursuit(self, lookahead: float, admissible_error: Optional[float] = None) -> None:
        """Enable path following.

        Args:
            lookahead: Lookahead circle radius, in the path's unit.
            admissible_error: Arrival tolerance for followed paths. Default: the
                follower's own admissible error.
        """
        error = admissible_error if admissible_error is not None else self.admissible_error
        self._kernel = CircleLineIntersectionCalculator(
            self._position_provider, lookahead, admissible_error=error, logger=self._logger
        )

    def _convert(self, point: Point, unit: Optional[DistanceUnit]) -> Point:
        """Express a point declared in ``unit`` in the follower's unit."""
        if unit is None or self.distance_unit is None or unit is self.distance_unit:
            return point
        return SmartPoint(unit, point.x, point.y).as_point(self.distance_unit)

    def _stop(self, reason: str) -> None:
        self._interpreter.stop()
        self._target = None
        self._distance_error = 0.0
        self._heading_error = 0.0
        self._steer = 0.0
        logging.debug(f"Follower stopped: {reason}")
        if self._logger is not None:
            self._logger.log_message(reason, MessageLevel.INFO)

    def _follow(self, target: Optional[Point], pose: Pose2D) -> None:
        if target is None:
            self._stop("No target")
            return
        if target.distance_from(pose) < self.admissible_error:
            self._stop("Target reached")
            return

        dx = target.x - pose.x
        dy = target.y - pose.y
        distance = math.hypot(dx, dy)
        heading_error = wrap_to_pi(math.atan2(dy, dx) - pose.theta)

        # Share of the distance carried by each axis
        denominator = abs(dx) + abs(dy)
        if denominator == 0:
            denominator = distance or 1.0

        steer = self._controller.update(heading_error) / math.pi

        self._interpreter.process(DriveCommand(dx / denominator, dy / denominator, steer, heading_error))

        self._target = target
        self._distance_error = distance
        self._heading_error = heading_error
        self._steer = steer
        logging.debug(
            f"Target ({target.x:.3f}, {target.y:.3f}) distance={distance:.3f} "
            f"heading_error={heading_error:.3f} steer={steer:.3f}"
        )

    def follow_point(self, point: Optional[Point]) -> None:
        """Steer towards a point, or stop when it is missing or reached."""
        self._position_provider.update()
        self._follow(point, self._position_provider.pose())

    def follow_smart_point(self, point: SmartPoint) -> None:
        """Steer towards a point declared with its own unit."""
        self.follow_point(point.as_point(self.distance_unit))

    def follow_point_sequence(self, sequence: PointSequence) -> bool:
        """Steer towards the current point of a sequence, advancing when it is reached.

        Returns:
            False once the last point has been reached, True otherwise.
        """
        self._position_provider.update()
        pose = self._position_provider.pose()

        target = self._convert(sequence.current, sequence.unit)
        if target.distance_from(pose) < self.admissible_error:
            following = sequence.next()
            if following is None:
                self._stop("Point sequence finished")
                return False
            target = self._convert(following, sequence.unit)

        self._follow(target, pose)
        return True

    def follow_path(self, path: Path) -> None:
        """Steer towards the pure pursuit lookahead point of a path.

        Does nothing unless ``setup_pure_pursuit`` has been called.
        """
        if self._kernel is None:
            logging.warning("follow_path called before setup_pure_pursuit, ignoring")
            if self._logger is not None:
                self._logger.log_message("Pure pursuit is not set up", MessageLevel.WARNING)
            return

        if self._kernel.target_path is not path:
            self._kernel.set_target_path(path)

        target = self._kernel.get_target_point()
        if target is not None:
            target = self._convert(target, path.distance_unit)
        self._follow(target, self._position_provider.pose())

    def follow_path_sequence(self, sequence: PathSequence) -> bool:
        """Follow the current path of a sequence, moving on when it is finished.

        Returns:
            False once the last path is finished, True otherwise.
        """
        path = sequence.next_update(self._position_provider.pose())
        if path is None:
            self._stop("Path sequence finished")
            return False
        self.follow_path(path)
        return True

    def attach_logger(self, logger: Logger) -> None:
        """Share a debug logger with the follower and its collaborators."""
        self._logger = logger
        self._interpreter.attach_logger(logger)
        if self._kernel is not None:
            self._kernel.attach_logger(logger)
        attach = getattr(self._position_provider, "attach_logger", None)
        if attach is not None:
            attach(logger)

    def debug(self) -> None:
        """Record the follower state and its collaborators' into the debug logger."""
        if self._logger is None:
            return
        provider_debug = getattr(self._position_provider, "debug", None)
        if provider_debug is not None:
            provider_debug()
        if self._target is not None:
            self._logger.log_value("Target X", self._target.x)
            self._logger.log_value("Target Y", self._target.y)
        self._logger.log_value("Distance Error", self._distance_error)
        self._logger.log_value("Heading Error", self._heading_error)
        self._logger.log_value("Steer", self._steer)
        self._interpreter.log()
        if self._kernel is not None:
            self._kernel.debug()
