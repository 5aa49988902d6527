"""PID controller used for steering on heading error.

The controller samples a monotonic clock on every update, so the integral and
derivative terms follow wall-clock time regardless of the host's loop rate.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import PID_KD, PID_KI, PID_KP, PID_MAX_INTEGRAL, PID_MIN_DELTA_TIME
from .mathutil import require_finite


def _integral_limit(value: float) -> float:
    """Absolute anti-windup limit; infinity disables the clamp."""
    value = float(value)
    if math.isnan(value):
        raise ValueError("Max integral must not be NaN")
    return abs(value)


@dataclass
class PIDCoefficients:
    """Tunable PID gains.

    Attributes:
        kp: Proportional gain.
        ki: Integral gain.
        kd: Derivative gain.
    """

    kp: float = PID_KP
    ki: float = PID_KI
    kd: float = PID_KD


class PIDController:
    """Proportional, integral and derivative controller with anti-windup.

    Control law (after the first update):
        I += e * dt, clamped to [-max_integral, max_integral]
        D = (e - e_prev) / dt
        u = kp * e + ki * I + kd * D

    The first update after construction or ``reset_integral`` only returns
    the proportional term and records the sample.

    Attributes:
        max_integral: Anti-windup limit for the integral sum.
    """

    def __init__(
        self,
        coefficients: Optional[PIDCoefficients] = None,
        clock: Callable[[], float] = time.monotonic,
        max_integral: float = PID_MAX_INTEGRAL,
    ) -> None:
        """Initialize the controller.

        Args:
            coefficients: PID gains. Default: proportional-only (kp=1).
            clock: Zero-argument callable returning monotonic time in seconds.
                Default: time.monotonic.
            max_integral: Anti-windup limit (absolute value is used).
        """
        self._coefficients = coefficients if coefficients is not None else PIDCoefficients()
        self._clock = clock

        self.max_integral = _integral_limit(max_integral)

        # Integral state (accumulated error)
        self._integral_sum = 0.0

        # Previous sample for derivative computation
        self._previous_time = 0.0
        self._previous_error = 0.0
        self._first_update = True

    @classmethod
    def from_gains(cls, kp: float, ki: float = 0.0, kd: float = 0.0, **kwargs) -> "PIDController":
        return cls(PIDCoefficients(kp, ki, kd), **kwargs)

    def update(self, error: float) -> float:
        """Update the controller with the current error.

        Args:
            error: Current error (finite).

        Returns:
            Controller output.

        Raises:
            ValueError: If error is NaN or infinite.
        """
        error = require_finite(error, "PID error")
        current_time = self._clock()
        delta_time = current_time - self._previous_time

        if self._first_update or delta_time <= PID_MIN_DELTA_TIME:
            self._first_update = False
            self._previous_time = current_time
            self._previous_error = error
            return self._coefficients.kp * error

        # Accumulate integral of error with anti-windup
        self._integral_sum += error * delta_time
        self._integral_sum = max(-self.max_integral, min(self.max_integral, self._integral_sum))

        derivative = (error - self._previous_error) / delta_time

        self._previous_time = current_time
        self._previous_error = error

        return (
            self._coefficients.kp * error
            + self._coefficients.ki * self._integral_sum
            + self._coefficients.kd * derivative
        )

    def reset_integral(self) -> None:
        """Clear the integral sum; the next update behaves like a first update."""
        self._integral_sum = 0.0
        self._first_update = True

    def set_max_integral(self, max_integral: float) -> None:
        """Set the anti-windup limit (absolute value is used).

        Raises:
            ValueError: If the limit is NaN.
        """
        self.max_integral = _integral_limit(max_integral)

    @property
    def integral_sum(self) -> float:
        return self._integral_sum

    @property
    def is_initialized(self) -> bool:
        """True once the controller has been updated at least once."""
        return not self._first_update

    @property
    def coefficients(self) -> PIDCoefficients:
        """Copy of the controller gains."""
        c = self._coefficients
        return PIDCoefficients(c.kp, c.ki, c.kd)
