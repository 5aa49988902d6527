"""
Unit tests for cyan_control.model: tank and mecanum vector interpreters.

Run:
    python -m pytest tests/test_model.py -v
"""

import math

import pytest

from cyan_control.debugger import Logger
from cyan_control.model import (
    DriveCommand,
    MecanumDriveVectorInterpreter,
    ReverseSide,
    TankDriveVectorInterpreter,
)


# ── tank ─────────────────────────────────────────────────────────────────

def test_tank_straight_ahead():
    tank = TankDriveVectorInterpreter()
    tank.process(DriveCommand(1.0, 0.0, 0.0, 0.0))
    assert tank.motor_inputs() == (1.0, 1.0)


def test_tank_positive_turn_speeds_up_right_side():
    tank = TankDriveVectorInterpreter(ReverseSide.RIGHT)
    tank.process(DriveCommand(1.0, 0.0, 0.5, 0.3))
    left, right = tank.motor_inputs()
    assert left == pytest.approx(1.0 / 3.0)
    assert right == pytest.approx(1.0)


def test_tank_reverse_side_flips_steering():
    tank = TankDriveVectorInterpreter(ReverseSide.LEFT)
    tank.process(DriveCommand(1.0, 0.0, 0.5, 0.3))
    left, right = tank.motor_inputs()
    assert left == pytest.approx(1.0)
    assert right == pytest.approx(1.0 / 3.0)


def test_tank_small_commands_are_not_scaled_up():
    tank = TankDriveVectorInterpreter()
    tank.process(DriveCommand(0.3, 0.4, 0.1, 0.0))
    left, right = tank.motor_inputs()
    assert left == pytest.approx(0.4)
    assert right == pytest.approx(0.6)


def test_tank_outputs_stay_in_unit_range():
    tank = TankDriveVectorInterpreter()
    for turn in (-1.0, -0.4, 0.0, 0.7, 1.0):
        for heading in (-3.0, -1.0, 0.0, 2.0):
            tank.process(DriveCommand(0.6, 0.4, turn, heading))
            assert all(-1.0 <= v <= 1.0 for v in tank.motor_inputs())


def test_tank_reverse_drive_for_target_behind():
    tank = TankDriveVectorInterpreter(ReverseSide.RIGHT)
    tank.process(DriveCommand(1.0, 0.0, 0.4, 3.0))
    left, right = tank.motor_inputs()
    assert left == pytest.approx(-2.0 / 3.0)
    assert right == pytest.approx(-1.0)


def test_tank_without_reverse_drive_turns_forwards():
    tank = TankDriveVectorInterpreter(ReverseSide.RIGHT, reverse_drive=False)
    tank.process(DriveCommand(1.0, 0.0, 0.4, 3.0))
    left, right = tank.motor_inputs()
    assert left == pytest.approx(0.6 / 1.4)
    assert right == pytest.approx(1.0)


def test_tank_reverse_drive_threshold_is_exclusive():
    tank = TankDriveVectorInterpreter()
    tank.process(DriveCommand(1.0, 0.0, 0.0, math.pi / 2))
    assert tank.motor_inputs() == (1.0, 1.0)


def test_tank_stop():
    tank = TankDriveVectorInterpreter()
    tank.process(DriveCommand(1.0, 0.0, 0.2, 0.0))
    tank.stop()
    assert tank.motor_inputs() == (0.0, 0.0)


# ── mecanum ──────────────────────────────────────────────────────────────

def test_mecanum_mixing_right_reversed():
    mecanum = MecanumDriveVectorInterpreter(ReverseSide.RIGHT)
    mecanum.process(DriveCommand(0.5, 0.5, 0.0))
    assert mecanum.motor_inputs() == pytest.approx((1.0, 0.0, 0.0, 1.0))


def test_mecanum_mixing_left_reversed():
    mecanum = MecanumDriveVectorInterpreter(ReverseSide.LEFT)
    mecanum.process(DriveCommand(0.5, 0.5, 0.0))
    assert mecanum.motor_inputs() == pytest.approx((0.0, 1.0, 1.0, 0.0))


def test_mecanum_normalizes_large_commands():
    mecanum = MecanumDriveVectorInterpreter()
    mecanum.process(DriveCommand(1.0, 1.0, 0.0))
    assert mecanum.motor_inputs() == pytest.approx((1.0, 0.0, 0.0, 1.0))


def test_mecanum_ignores_turn_channel():
    mecanum = MecanumDriveVectorInterpreter()
    mecanum.process(DriveCommand(0.0, 0.5, 0.9, 1.0))
    assert mecanum.motor_inputs() == pytest.approx((0.5, 0.5, 0.5, 0.5))


def test_mecanum_channel_ids_and_stop():
    assert MecanumDriveVectorInterpreter.LEFT_FRONT_MOTOR == 0
    assert MecanumDriveVectorInterpreter.LEFT_BACK_MOTOR == 1
    assert MecanumDriveVectorInterpreter.RIGHT_FRONT_MOTOR == 2
    assert MecanumDriveVectorInterpreter.RIGHT_BACK_MOTOR == 3
    mecanum = MecanumDriveVectorInterpreter()
    mecanum.process(DriveCommand(0.3, 0.2, 0.0))
    mecanum.stop()
    assert mecanum.motor_inputs() == (0.0, 0.0, 0.0, 0.0)


# ── debug ────────────────────────────────────────────────────────────────

def test_log_records_motor_outputs():
    logger = Logger()
    tank = TankDriveVectorInterpreter(logger=logger)
    tank.process(DriveCommand(0.5, 0.0, 0.0))
    tank.log()
    assert [str(p) for p in logger.dump()] == ["TANK_DRIVE Motor 0: 0.5", "TANK_DRIVE Motor 1: 0.5"]
