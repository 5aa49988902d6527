"""
Unit tests for cyan_control.pid: PID control law, timing and anti-windup.

Run:
    python -m pytest tests/test_pid.py -v
"""

import pytest

from cyan_control.pid import PIDCoefficients, PIDController


# ── first update ─────────────────────────────────────────────────────────

def test_first_update_is_proportional_only(clock):
    pid = PIDController.from_gains(2.0, 1.0, 0.5, clock=clock)
    assert pid.update(3.0) == 6.0
    assert pid.is_initialized


def test_second_update_adds_integral_and_derivative(clock):
    pid = PIDController.from_gains(2.0, 1.0, 0.5, clock=clock)
    pid.update(3.0)
    clock.advance(0.1)
    assert pid.update(3.0) == pytest.approx(6.3)


def test_derivative_term(clock):
    pid = PIDController.from_gains(0.0, 0.0, 1.0, clock=clock)
    pid.update(1.0)
    clock.advance(0.5)
    assert pid.update(2.0) == pytest.approx(2.0)


def test_tiny_time_step_returns_proportional_only(clock):
    pid = PIDController.from_gains(1.0, 10.0, 10.0, clock=clock)
    pid.update(1.0)
    clock.advance(1e-7)
    assert pid.update(5.0) == 5.0
    assert pid.integral_sum == 0.0


# ── integral behaviour ───────────────────────────────────────────────────

def test_integral_independent_of_call_frequency(clock):
    """Constant error: output depends on elapsed time, not on how often update runs."""
    outputs = []
    for steps in (2, 10, 50):
        clock.now = 0.0
        pid = PIDController.from_gains(1.5, 0.8, 0.0, clock=clock)
        pid.update(2.0)
        for _ in range(steps):
            clock.advance(1.0 / steps)
            out = pid.update(2.0)
        outputs.append(out)

    expected = 1.5 * 2.0 + 0.8 * 2.0 * 1.0
    for out in outputs:
        assert out == pytest.approx(expected), f"outputs={outputs}"


def test_anti_windup_clamps_integral(clock):
    pid = PIDController.from_gains(0.0, 1.0, 0.0, clock=clock, max_integral=0.5)
    pid.update(1.0)
    for _ in range(10):
        clock.advance(0.2)
        out = pid.update(1.0)
    assert pid.integral_sum == 0.5
    assert out == pytest.approx(0.5)


def test_anti_windup_clamps_negative_side(clock):
    pid = PIDController.from_gains(0.0, 1.0, 0.0, clock=clock)
    pid.set_max_integral(-0.25)
    pid.update(-1.0)
    for _ in range(5):
        clock.advance(1.0)
        pid.update(-1.0)
    assert pid.integral_sum == -0.25


def test_reset_integral_restarts_controller(clock):
    pid = PIDController.from_gains(1.0, 1.0, 0.0, clock=clock)
    pid.update(1.0)
    clock.advance(1.0)
    pid.update(1.0)
    assert pid.integral_sum == pytest.approx(1.0)

    pid.reset_integral()
    assert pid.integral_sum == 0.0
    assert not pid.is_initialized
    clock.advance(1.0)
    assert pid.update(4.0) == 4.0


# ── configuration ────────────────────────────────────────────────────────

def test_default_coefficients_are_proportional_only():
    c = PIDController().coefficients
    assert (c.kp, c.ki, c.kd) == (1.0, 0.0, 0.0)


def test_coefficients_returns_copy():
    pid = PIDController(PIDCoefficients(1.0, 2.0, 3.0))
    pid.coefficients.kp = 100.0
    assert pid.coefficients.kp == 1.0


def test_rejects_nan_error(clock):
    pid = PIDController(clock=clock)
    with pytest.raises(ValueError):
        pid.update(float("nan"))


def test_rejects_nan_max_integral(clock):
    with pytest.raises(ValueError):
        PIDController(clock=clock, max_integral=float("nan"))
    pid = PIDController.from_gains(0.0, 1.0, 0.0, clock=clock, max_integral=0.5)
    with pytest.raises(ValueError):
        pid.set_max_integral(float("nan"))
    assert pid.max_integral == 0.5


def test_infinite_max_integral_disables_clamp(clock):
    pid = PIDController.from_gains(0.0, 1.0, 0.0, clock=clock)
    pid.set_max_integral(float("-inf"))
    assert pid.max_integral == float("inf")
    pid.update(10.0)
    clock.advance(1.0)
    assert pid.update(10.0) == pytest.approx(10.0)
