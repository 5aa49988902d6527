"""Shared fixtures: fake clocks, encoder sources and a headless plotting backend."""

import matplotlib

matplotlib.use("Agg")

import pytest

from cyan_control.geometry import Pose2D


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt


class FakeEncoders:
    """Cumulative tick channels set by the test, read through bound methods."""

    def __init__(self, **channels: float) -> None:
        self.channels = dict(channels)

    def reader(self, name: str):
        return lambda: self.channels[name]

    def move(self, **deltas: float) -> None:
        for name, delta in deltas.items():
            self.channels[name] += delta


class FakePositionProvider:
    """Pose estimator stand-in returning a pose set by the test."""

    def __init__(self, pose: Pose2D = Pose2D(0.0, 0.0, 0.0)) -> None:
        self.current = pose
        self.updates = 0

    def pose(self) -> Pose2D:
        return self.current

    def update(self) -> None:
        self.updates += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return FakePositionProvider()
