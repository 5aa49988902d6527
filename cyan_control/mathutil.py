"""Angle and scalar helpers shared by the localization and pathing code."""

import math

from .config import EPSILON


def wrap_to_pi(angle: float) -> float:
    """Wrap an angle in radians to (-π, π].

    Angles already inside the interval are returned untouched, so the
    operation is idempotent.
    """
    if -math.pi < angle <= math.pi:
        return angle
    wrapped = math.atan2(math.sin(angle), math.cos(angle))
    # atan2 can land on -π exactly
    if wrapped <= -math.pi:
        wrapped += 2.0 * math.pi
    return wrapped


def shift_deg(angle: float, offset: float) -> float:
    """Offset an angle in degrees and reduce it to (-180, 180].

    This is how raw IMU headings are combined with a mounting / start offset.

    Args:
        angle: Angle in degrees.
        offset: Offset in degrees.

    Returns:
        The shifted angle in degrees, in (-180, 180].
    """
    shifted = math.fmod(angle + offset, 360.0)
    if shifted > 180.0:
        shifted -= 360.0
    elif shifted <= -180.0:
        shifted += 360.0
    return shifted


def hypot(x: float, y: float) -> float:
    """Length of the hypotenuse of a right triangle with sides x and y."""
    return math.hypot(x, y)


def in_range(low: float, high: float, value: float) -> bool:
    """Check whether value lies in [low, high] (inclusive)."""
    return low <= value <= high


def clamp(low: float, high: float, value: float) -> float:
    """Clamp value between low and high.

    Raises:
        ValueError: If low is greater than high.
    """
    if low > high:
        raise ValueError(f"Minimum value {low} cannot be greater than maximum value {high}")
    return max(low, min(high, value))


def sign(value: float) -> int:
    """Sign of value; zero is considered positive."""
    return -1 if value < 0 else 1


def epsilon_equals(a: float, b: float, epsilon: float = EPSILON) -> bool:
    """Check whether two floats differ by less than epsilon."""
    return abs(a - b) < epsilon


def require_finite(value: float, name: str) -> float:
    """Return value as float, raising ValueError when it is NaN or infinite."""
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value
