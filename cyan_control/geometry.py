"""Planar geometry value types: points, poses, vectors and unit-aware points."""

import math
from dataclasses import dataclass, field
from typing import Optional, Union

from .mathutil import require_finite, wrap_to_pi
from .units import Distance, DistanceUnit


@dataclass(frozen=True)
class Pose2D:
    """Planar position plus heading.

    Attributes:
        x: X coordinate (path units).
        y: Y coordinate (path units).
        theta: Heading in radians, normalized to (-π, π] on construction.
    """

    x: float
    y: float
    theta: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", require_finite(self.x, "Pose x"))
        object.__setattr__(self, "y", require_finite(self.y, "Pose y"))
        object.__setattr__(self, "theta", wrap_to_pi(require_finite(self.theta, "Pose theta")))

    def to_point(self) -> "Point":
        return Point(self.x, self.y)

    def __str__(self) -> str:
        return f"X: {self.x:f}, Y: {self.y:f}, Theta: {self.theta:f}"


@dataclass(frozen=True)
class Point:
    """A waypoint in some implicit linear unit."""

    x: float
    y: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", require_finite(self.x, "Point x"))
        object.__setattr__(self, "y", require_finite(self.y, "Point y"))

    @property
    def distance_from_origin(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_from(self, other: Union["Point", Pose2D]) -> float:
        """Euclidean distance to another point or to a pose's position."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def angle(self) -> float:
        """Polar angle of the point as seen from the origin (radians)."""
        return math.atan2(self.y, self.x)

    def as_pose(self, theta: float = 0.0) -> Pose2D:
        return Pose2D(self.x, self.y, theta)

    def __str__(self) -> str:
        return f"X: {self.x:f}, Y: {self.y:f}"


@dataclass(frozen=True)
class Vector2D:
    """Cartesian vector with derived polar coordinates.

    Used to describe sensor placement relative to the robot center.
    """

    x: float
    y: float
    r: float = field(init=False)
    phi: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", require_finite(self.x, "Vector x"))
        object.__setattr__(self, "y", require_finite(self.y, "Vector y"))
        object.__setattr__(self, "r", math.hypot(self.x, self.y))
        object.__setattr__(self, "phi", math.atan2(self.y, self.x))

    @classmethod
    def from_polar(cls, r: float, phi: float) -> "Vector2D":
        return cls(r * math.cos(phi), r * math.sin(phi))


class SmartPoint:
    """A point whose coordinates carry their unit of measurement.

    Smart points are the unit-safe way of handing targets to the follower: they
    are converted into the follower's unit at the API boundary.
    """

    __slots__ = ("_unit", "_x", "_y")

    def __init__(self, unit: DistanceUnit, x: float, y: float) -> None:
        self._unit = unit
        self._x = Distance(x, unit)
        self._y = Distance(y, unit)

    @classmethod
    def from_distances(cls, x: Distance, y: Distance) -> "SmartPoint":
        """Build a smart point in x's unit from two distances."""
        return cls(x.unit, x.value, y.value_in(x.unit))

    @property
    def unit(self) -> DistanceUnit:
        return self._unit

    @property
    def x(self) -> Distance:
        return self._x

    @property
    def y(self) -> Distance:
        return self._y

    @property
    def distance_from_origin(self) -> Distance:
        return Distance(math.hypot(self._x.value, self._y.value), self._unit)

    def distance_from(self, other: "SmartPoint") -> float:
        """Distance to another smart point, expressed in this point's unit."""
        return math.hypot(
            self._x.value - other.x.value_in(self._unit),
            self._y.value - other.y.value_in(self._unit),
        )

    def angle(self) -> float:
        return math.atan2(self._y.value, self._x.value)

    def as_point(self, unit: Optional[DistanceUnit] = None) -> Point:
        """Raw point in ``unit`` (defaults to the point's own unit)."""
        unit = unit or self._unit
        return Point(self._x.value_in(unit), self._y.value_in(unit))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SmartPoint):
            return NotImplemented
        return self._x == other.x and self._y == other.y

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SmartPoint({self._unit.name}, {self._x.value!r}, {self._y.value!r})"
