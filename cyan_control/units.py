"""Linear distances bound to a unit of measurement.

Conversions pivot through meters: every unit knows its length in meters and a
value is converted by multiplying with its own factor and dividing by the
target's factor.
"""

from enum import Enum
from typing import Union

from .config import DISTANCE_EQUALITY_TOLERANCE_M
from .mathutil import require_finite


class DistanceUnit(Enum):
    """Supported linear distance units, valued by their length in meters."""

    CM = 0.01
    METER = 1.0
    INCH = 0.0254
    FOOT = 0.3048
    MM = 0.001

    @property
    def meters(self) -> float:
        """Length of one unit in meters."""
        return self.value


class Distance:
    """A linear distance with its unit of measurement.

    Attributes:
        value: Raw value in ``unit``.
        unit: The unit the value is expressed in.
    """

    __slots__ = ("_value", "_unit")

    def __init__(self, value: float, unit: DistanceUnit) -> None:
        if not isinstance(unit, DistanceUnit):
            raise ValueError(f"Distance unit must be a DistanceUnit, got {unit!r}")
        self._value = require_finite(value, "Distance value")
        self._unit = unit

    @property
    def value(self) -> float:
        return self._value

    @property
    def unit(self) -> DistanceUnit:
        return self._unit

    def value_in(self, unit: DistanceUnit) -> float:
        """Return the raw value converted to ``unit``.

        Raises:
            ValueError: If unit is not a DistanceUnit.
        """
        if not isinstance(unit, DistanceUnit):
            raise ValueError(f"Distance unit must be a DistanceUnit, got {unit!r}")
        if unit is self._unit:
            return self._value
        return self._value * self._unit.meters / unit.meters

    def convert_to(self, unit: DistanceUnit) -> "Distance":
        """Return an equivalent Distance expressed in ``unit``."""
        return Distance(self.value_in(unit), unit)

    @property
    def meters(self) -> float:
        return self.value_in(DistanceUnit.METER)

    def _coerce(self, other: Union["Distance", float]) -> float:
        # Bare numbers are taken to be in self's unit
        if isinstance(other, Distance):
            return other.value_in(self._unit)
        return require_finite(other, "Distance operand")

    def add(self, other: Union["Distance", float]) -> "Distance":
        """Sum of two distances, expressed in this distance's unit."""
        return Distance(self._value + self._coerce(other), self._unit)

    def sub(self, other: Union["Distance", float]) -> "Distance":
        """Difference of two distances, expressed in this distance's unit."""
        return Distance(self._value - self._coerce(other), self._unit)

    __add__ = add
    __sub__ = sub

    def __neg__(self) -> "Distance":
        return Distance(-self._value, self._unit)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Distance):
            return NotImplemented
        return abs(self.meters - other.meters) < DISTANCE_EQUALITY_TOLERANCE_M

    # Equality is tolerance based, so distances cannot be hashed consistently
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Distance({self._value!r}, {self._unit.name})"
