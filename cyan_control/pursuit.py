"""Circle-line intersection pure pursuit.

The lookahead point is where a circle of radius ``lookahead`` centered on the
robot crosses the current path segment. See "Implementation of the Pure
Pursuit Path Tracking Algorithm" (Coulter, CMU-RI-TR-92-01) for background.
"""

import logging
import math
from typing import List, Optional, Tuple

from .config import BOUNDS_TOLERANCE, DEFAULT_ADMISSIBLE_ERROR, POINT_DIFFERENCE_THRESHOLD
from .debugger import Logger, MessageLevel
from .geometry import Point
from .localizer import PositionProvider
from .mathutil import in_range
from .path import Path


class ChordMissError(ArithmeticError):
    """The line through the segment does not reach the lookahead circle.

    Attributes:
        discriminant: The negative discriminant of the intersection quadratic.
    """

    def __init__(self, discriminant: float) -> None:
        super().__init__(f"Discriminant must be non-negative, got {discriminant}")
        self.discriminant = discriminant


def _nudge(value: float, other: float, threshold: float) -> float:
    """Move value away from other by threshold when the two nearly coincide."""
    if abs(value - other) >= threshold:
        return value
    return value + threshold if value >= other else value - threshold


def _solve(
    a: Point, b: Point, center: Point, radius: float, threshold: float
) -> Tuple[float, List[Tuple[float, float]], List[Point]]:
    """Intersect the line through a and b with the circle.

    Returns:
        Tuple of (discriminant, both roots in world coordinates, roots lying
        inside the segment's bounding box).

    Raises:
        ChordMissError: If the discriminant is negative.
    """
    ax = _nudge(a.x, b.x, threshold)
    ay = _nudge(a.y, b.y, threshold)

    slope = (b.y - ay) / (b.x - ax)

    # First endpoint relative to the circle center
    x1 = ax - center.x
    y1 = ay - center.y

    quadratic_a = 1.0 + slope**2
    quadratic_b = 2.0 * slope * y1 - 2.0 * slope**2 * x1
    quadratic_c = slope**2 * x1**2 - 2.0 * y1 * slope * x1 + y1**2 - radius**2

    discriminant = quadratic_b**2 - 4.0 * quadratic_a * quadratic_c
    if discriminant < 0:
        raise ChordMissError(discriminant)

    root = math.sqrt(discriminant)
    min_x, max_x = min(ax, b.x) - BOUNDS_TOLERANCE, max(ax, b.x) + BOUNDS_TOLERANCE
    min_y, max_y = min(ay, b.y) - BOUNDS_TOLERANCE, max(ay, b.y) + BOUNDS_TOLERANCE

    roots = []
    admitted = []
    for x_root in ((-quadratic_b + root) / (2.0 * quadratic_a), (-quadratic_b - root) / (2.0 * quadratic_a)):
        y_root = slope * (x_root - x1) + y1
        x_world = x_root + center.x
        y_world = y_root + center.y
        roots.append((x_world, y_world))
        if in_range(min_x, max_x, x_world) and in_range(min_y, max_y, y_world):
            admitted.append(Point(x_world, y_world))

    return discriminant, roots, admitted


def circle_line_intersection(
    a: Point,
    b: Point,
    center: Point,
    radius: float,
    threshold: float = POINT_DIFFERENCE_THRESHOLD,
) -> List[Point]:
    """Intersections of segment a-b with a circle, restricted to the segment's bounding box.

    Args:
        a: First segment endpoint.
        b: Second segment endpoint.
        center: Circle center (the robot position).
        radius: Circle radius (the lookahead).
        threshold: Axis difference below which a is nudged to keep the slope finite.

    Returns:
        Zero, one or two admitted intersection points.

    Raises:
        ChordMissError: If the line through the segment misses the circle.
    """
    return _solve(a, b, center, radius, threshold)[2]


class CircleLineIntersectionCalculator:
    """Chooses the point of a path the robot should steer towards.

    Keeps track of the segment the robot is on, switches segments when the
    segment end enters the lookahead circle (or the robot has drifted closer to
    a later waypoint) and falls back to the nearest waypoints when the circle
    does not cross the segment.

    Attributes:
        lookahead: Radius of the lookahead circle.
        admissible_error: Arrival tolerance handed to the target path.
        difference_threshold: Axis difference below which segment endpoints
            are nudged apart.
    """

    SYSTEM_NAME = "CLI_CALC"
    SYSTEM_VERSION = "1.0"

    def __init__(
        self,
        position_provider: PositionProvider,
        lookahead: float,
        admissible_error: float = DEFAULT_ADMISSIBLE_ERROR,
        logger: Optional[Logger] = None,
    ) -> None:
        if not lookahead > 0:
            raise ValueError(f"Lookahead must be positive, got {lookahead}")
        self._position_provider = position_provider
        self.lookahead = lookahead
        self.admissible_error = admissible_error
        self.difference_threshold = POINT_DIFFERENCE_THRESHOLD
        self._path: Optional[Path] = None
        self._logger = logger

        # Debug values from the last calculation
        self._dbg_discriminant = -1.0
        self._dbg_solutions: List[Tuple[float, float]] = []
        self._dbg_points_found = 0
        self._dbg_segment_id = 0

    @property
    def target_path(self) -> Optional[Path]:
        return self._path

    def set_target_path(self, path: Path) -> None:
        """Set the path to follow and hand it this calculator's arrival tolerance."""
        self._path = path
        path.set_admissible_error(self.admissible_error)

    def set_difference_threshold(self, threshold: float) -> None:
        self.difference_threshold = threshold

    def _intersect(self, a: Point, b: Point, center: Point) -> List[Point]:
        try:
            discriminant, roots, admitted = _solve(a, b, center, self.lookahead, self.difference_threshold)
        except ChordMissError as e:
            self._dbg_discriminant = e.discriminant
            self._dbg_solutions = []
            self._dbg_points_found = 0
            raise
        self._dbg_discriminant = discriminant
        self._dbg_solutions = roots
        self._dbg_points_found = len(admitted)
        return admitted

    def get_target_point(self) -> Optional[Point]:
        """Calculate the point of the path to follow.

        Returns:
            The lookahead point, or None when there is no target path or it
            is finished.
        """
        if self._path is None:
            logging.warning("Pure pursuit has no target path")
            return None

        self._position_provider.update()
        pose = self._position_provider.pose()
        path = self._path

        if path.is_finished(pose):
            return None

        a, b = path.current_segment()
        nearest_next = path.closest_next_point(pose)

        end_distance = b.distance_from(pose)
        inside_lookahead = end_distance <= self.lookahead
        drifted_ahead = nearest_next is not None and end_distance > nearest_next.distance_from(pose)

        if inside_lookahead or drifted_ahead:
            path.next_segment()
            a, b = path.current_segment()
            end_distance = b.distance_from(pose)
        self._dbg_segment_id = path.segment_index

        # Final waypoint inside the circle: nothing left to look ahead to
        if path.is_on_last_segment and end_distance <= self.lookahead:
            return b

        try:
            solutions = self._intersect(a, b, pose.to_point())
        except ChordMissError as e:
            logging.debug(f"Lookahead circle missed segment {path.segment_index}: {e}")
            if self._logger is not None:
                self._logger.log_message(
                    f"Chord miss on segment {path.segment_index}, using closest waypoint",
                    MessageLevel.WARNING,
                )
            solutions = [path.closest_point(pose)]

        # Prefer the candidate furthest along the segment, i.e. nearest to its end
        preferred = None
        for candidate in solutions:
            if preferred is None or candidate.distance_from(b) < preferred.distance_from(b):
                preferred = candidate

        if preferred is None:
            following = path.closest_next_point(pose)
            # Overshot onto the last segment with the circle clear of it: head for its end
            return following if following is not None else b
        return preferred

    def attach_logger(self, logger: Logger) -> None:
        self._logger = logger

    def debug(self) -> None:
        """Record the last calculation into the attached debug logger, if any."""
        if self._logger is None:
            return
        self._logger.log_value("Discriminant", self._dbg_discriminant)
        self._logger.log_value("Points Found", self._dbg_points_found)
        for i, (x, y) in enumerate(self._dbg_solutions, 1):
            self._logger.log_value(f"Solution {i} X", x)
            self._logger.log_value(f"Solution {i} Y", y)
        self._logger.log_value("Current Segment", self._dbg_segment_id)
        if self._path is not None:
            self._logger.log_value("Is Path Finished", self._path.is_finished(self._position_provider.pose()))
