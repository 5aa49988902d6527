"""
Chassis drive models.

This module maps a desired motion vector from the path follower onto
individual motor commands in [-1, 1] for a differential drive (tank) or a
mecanum chassis.

For a tank chassis the mixing is:
    left = linear + steer * s
    right = linear - steer * s

and for a mecanum chassis:
    LF = y + x * s,  LB = y - x * s
    RF = y - x * s,  RB = y + x * s

where s is +1 or -1 depending on which side of the chassis has its motors
mounted in reverse.
"""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .config import REVERSE_DRIVE_HEADING, REVERSE_STEER_SCALE
from .debugger import Logger


class ReverseSide(Enum):
    """Side of the chassis whose motors are mounted in reverse."""

    LEFT = "left"
    RIGHT = "right"


class DriveCommand(NamedTuple):
    """Desired motion handed from the follower to a vector interpreter.

    Attributes:
        x: Normalized world-frame x component.
        y: Normalized world-frame y component.
        turn: Normalized steering effort (PID output divided by pi).
        heading_error: Heading error to the target in radians.
    """

    x: float
    y: float
    turn: float
    heading_error: float = 0.0


class VectorInterpreter(ABC):
    """Turns drive commands into per-motor outputs for one chassis type."""

    SYSTEM_NAME = "VECTOR_INTERPRETER"

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger

    @abstractmethod
    def process(self, command: DriveCommand) -> None:
        """Compute motor outputs for a command."""

    @abstractmethod
    def stop(self) -> None:
        """Set every motor output to zero."""

    @abstractmethod
    def motor_inputs(self) -> Tuple[float, ...]:
        """Latest motor outputs, indexed by the chassis channel constants."""

    def attach_logger(self, logger: Logger) -> None:
        self._logger = logger

    def log(self) -> None:
        """Record the current motor outputs into the attached debug logger, if any."""
        if self._logger is None:
            return
        for channel, value in enumerate(self.motor_inputs()):
            self._logger.log_value(f"{self.SYSTEM_NAME} Motor {channel}", value)


class TankDriveVectorInterpreter(VectorInterpreter):
    """Differential drive mixer.

    With reverse drive enabled, a target behind the robot
    (|heading error| > pi/2) is approached backwards with half the steering
    authority instead of turning in place.
    """

    SYSTEM_NAME = "TANK_DRIVE"

    LEFT_MOTOR = 0
    RIGHT_MOTOR = 1

    def __init__(
        self,
        reverse_side: ReverseSide = ReverseSide.RIGHT,
        reverse_drive: bool = True,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(logger)
        self.reverse_side = reverse_side
        self.reverse_drive = reverse_drive
        self._sign = 1.0 if reverse_side is ReverseSide.LEFT else -1.0
        self._left = 0.0
        self._right = 0.0

    def process(self, command: DriveCommand) -> None:
        linear = math.hypot(command.x, command.y)
        steer = command.turn

        if self.reverse_drive and abs(command.heading_error) > REVERSE_DRIVE_HEADING:
            linear = -linear
            steer *= REVERSE_STEER_SCALE

        left = linear + steer * self._sign
        right = linear - steer * self._sign

        # Keep both outputs in [-1, 1] without distorting their ratio
        scale = max(abs(left), abs(right), 1.0)
        self._left = left / scale
        self._right = right / scale

    def stop(self) -> None:
        self._left = 0.0
        self._right = 0.0

    def motor_inputs(self) -> Tuple[float, float]:
        return self._left, self._right


class MecanumDriveVectorInterpreter(VectorInterpreter):
    """Four-wheel mecanum mixer.

    Only the translation components of a command are mixed; the turn channel
    is ignored.
    """

    SYSTEM_NAME = "MECANUM_DRIVE"

    LEFT_FRONT_MOTOR = 0
    LEFT_BACK_MOTOR = 1
    RIGHT_FRONT_MOTOR = 2
    RIGHT_BACK_MOTOR = 3

    def __init__(self, reverse_side: ReverseSide = ReverseSide.RIGHT, logger: Optional[Logger] = None) -> None:
        super().__init__(logger)
        self.reverse_side = reverse_side
        self._sign = -1.0 if reverse_side is ReverseSide.LEFT else 1.0
        self._outputs = (0.0, 0.0, 0.0, 0.0)

    def process(self, command: DriveCommand) -> None:
        x = command.x * self._sign
        y = command.y

        outputs = (y + x, y - x, y - x, y + x)
        scale = max(max(abs(v) for v in outputs), 1.0)
        self._outputs = tuple(v / scale for v in outputs)

    def stop(self) -> None:
        self._outputs = (0.0, 0.0, 0.0, 0.0)

    def motor_inputs(self) -> Tuple[float, float, float, float]:
        return self._outputs
