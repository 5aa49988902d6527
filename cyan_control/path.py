"""Path definitions for waypoint and pure pursuit following.

This module defines the geometric targets the follower can track:
- Path: ordered waypoints with a segment cursor, used by pure pursuit
- PointSequence: waypoints visited one at a time
- PathSequence: several paths followed back to back
"""

import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np
import numpy.typing as npt

from .config import CLOSEST_POINT_SWITCH_THRESHOLD, DEFAULT_ADMISSIBLE_ERROR
from .geometry import Point, Pose2D
from .units import DistanceUnit


class EmptyPathError(ValueError):
    """Raised when a path is declared with fewer than two waypoints."""


def _pick_closest(
    points: Tuple[Point, ...],
    distances: npt.NDArray[np.float64],
    start: int,
    threshold: float,
) -> Optional[Point]:
    """Scan distances from start, keeping the current best unless beaten by more than threshold."""
    if start >= len(points):
        return None
    best = start
    for i in range(start + 1, len(points)):
        if distances[best] - distances[i] > threshold:
            best = i
    return points[best]


class Path:
    """Ordered waypoints followed segment by segment with pure pursuit.

    The cursor always names a valid segment: ``segment_index`` is the index of
    the segment's first waypoint. Reaching the final segment sets a sticky
    flag that only ``reset()`` clears.

    Attributes:
        admissible_error: Distance to the final waypoint below which the path
            counts as finished.
        distance_unit: Unit of the waypoint coordinates, if declared.
        switch_threshold: Improvement required before a closer waypoint
            replaces the current nearest one.
    """

    def __init__(
        self,
        *points: Point,
        admissible_error: float = DEFAULT_ADMISSIBLE_ERROR,
        distance_unit: Optional[DistanceUnit] = None,
        switch_threshold: float = CLOSEST_POINT_SWITCH_THRESHOLD,
    ) -> None:
        """Create a path through the given waypoints, in order.

        Raises:
            EmptyPathError: If fewer than two waypoints are given.
        """
        if len(points) < 2:
            raise EmptyPathError(f"A path needs at least two points, got {len(points)}")

        self._points: Tuple[Point, ...] = tuple(points)
        self._xy = np.array([(p.x, p.y) for p in self._points], dtype=np.float64)

        self.admissible_error = admissible_error
        self.distance_unit = distance_unit
        self.switch_threshold = switch_threshold

        self._segment_index = 0
        self._is_on_last_segment = False

    @classmethod
    def from_coordinates(cls, coordinates: Iterable[Tuple[float, float]], **kwargs) -> "Path":
        """Build a path from (x, y) pairs."""
        return cls(*(Point(x, y) for x, y in coordinates), **kwargs)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> Tuple[Point, ...]:
        return self._points

    @property
    def segment_index(self) -> int:
        return self._segment_index

    @property
    def is_on_last_segment(self) -> bool:
        return self._is_on_last_segment

    @property
    def last_point(self) -> Point:
        return self._points[-1]

    def set_admissible_error(self, error: float) -> None:
        """Set the distance tolerance used to decide whether the path is finished."""
        self.admissible_error = error

    def current_segment(self) -> Tuple[Point, Point]:
        """Return the two waypoints of the segment the robot is estimated to be on."""
        i = self._segment_index
        return self._points[i], self._points[i + 1]

    def next_segment(self) -> None:
        """Move the cursor to the next segment; no-op once on the last one."""
        if self._is_on_last_segment:
            return

        self._segment_index += 1
        if self._segment_index >= len(self._points) - 1:
            self._is_on_last_segment = True
            self._segment_index = max(0, len(self._points) - 2)
            logging.debug("Path cursor reached the last segment")

    def is_finished(self, pose: Pose2D) -> bool:
        """Check whether the robot has reached the final waypoint on the last segment."""
        return self._is_on_last_segment and self.last_point.distance_from(pose) < self.admissible_error

    def reset(self) -> None:
        """Rewind the cursor so the path can be followed again."""
        self._segment_index = 0
        self._is_on_last_segment = False

    def _distances(self, pose: Pose2D) -> npt.NDArray[np.float64]:
        return np.hypot(self._xy[:, 0] - pose.x, self._xy[:, 1] - pose.y)

    def closest_point(self, pose: Pose2D) -> Point:
        """Nearest declared waypoint to the robot."""
        return _pick_closest(self._points, self._distances(pose), 0, self.switch_threshold)

    def closest_next_point(self, pose: Pose2D) -> Optional[Point]:
        """Nearest waypoint beyond the current segment, or None if there is none."""
        return _pick_closest(
            self._points, self._distances(pose), self._segment_index + 2, self.switch_threshold
        )

    def copy(self) -> "Path":
        """Copy of the path with a fresh cursor."""
        return Path(
            *self._points,
            admissible_error=self.admissible_error,
            distance_unit=self.distance_unit,
            switch_threshold=self.switch_threshold,
        )

    def reverse(self) -> "Path":
        """Copy of the path traversed backwards, with a fresh cursor."""
        return Path(
            *reversed(self._points),
            admissible_error=self.admissible_error,
            distance_unit=self.distance_unit,
            switch_threshold=self.switch_threshold,
        )

    def __repr__(self) -> str:
        return f"Path({len(self._points)} points, segment={self._segment_index})"


class PointSequence:
    """Waypoints followed one at a time.

    Attributes:
        unit: Unit of the waypoint coordinates, if declared.
    """

    def __init__(self, *points: Point, unit: Optional[DistanceUnit] = None) -> None:
        if not points:
            raise ValueError("A point sequence needs at least one point")
        self._points: List[Point] = list(points)
        self._index = 0
        self.unit = unit

    def __len__(self) -> int:
        return len(self._points)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Point:
        return self._points[self._index]

    def next(self) -> Optional[Point]:
        """Advance to the next point; returns None once the sequence is exhausted."""
        if self._index == len(self._points) - 1:
            return None
        self._index += 1
        return self.current

    def append(self, point: Point) -> None:
        self._points.append(point)

    def insert(self, index: int, point: Point) -> None:
        self._points.insert(index, point)

    def reset(self) -> None:
        self._index = 0

    def copy(self) -> "PointSequence":
        return PointSequence(*self._points, unit=self.unit)

    def reverse(self) -> "PointSequence":
        return PointSequence(*reversed(self._points), unit=self.unit)


class PathSequence:
    """Paths followed back to back.

    Every path in the sequence shares the sequence's error threshold.
    """

    def __init__(self, error_threshold: float, *paths: Path) -> None:
        if not paths:
            raise ValueError("A path sequence needs at least one path")
        self.error_threshold = error_threshold
        self._paths: List[Path] = []
        for path in paths:
            self.append(path)
        self._index = 0

    def __len__(self) -> int:
        return len(self._paths)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Path:
        return self._paths[self._index]

    def next_update(self, pose: Pose2D) -> Optional[Path]:
        """Advance past a finished path.

        Args:
            pose: Current robot pose.

        Returns:
            The path to follow now, or None once the last path is finished.
        """
        if not self.current.is_finished(pose):
            return self.current
        if self._index == len(self._paths) - 1:
            return None
        self._index += 1
        logging.debug(f"Path sequence advanced to path {self._index}")
        return self.current

    def append(self, path: Path) -> None:
        path.set_admissible_error(self.error_threshold)
        self._paths.append(path)

    def insert(self, index: int, path: Path) -> None:
        path.set_admissible_error(self.error_threshold)
        self._paths.insert(index, path)

    def reset(self) -> None:
        """Rewind the sequence and every path in it."""
        self._index = 0
        for path in self._paths:
            path.reset()

    def copy(self) -> "PathSequence":
        return PathSequence(self.error_threshold, *(p.copy() for p in self._paths))

    def reverse(self) -> "PathSequence":
        return PathSequence(self.error_threshold, *(p.reverse() for p in reversed(self._paths)))
