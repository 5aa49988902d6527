"""
Unit tests for cyan_control.path: segment cursor, nearest-waypoint queries and sequences.

Run:
    python -m pytest tests/test_path.py -v
"""

import pytest

from cyan_control.geometry import Point, Pose2D
from cyan_control.path import EmptyPathError, Path, PathSequence, PointSequence


def _square():
    return Path.from_coordinates([(0, 0), (10, 0), (10, 10), (0, 10)])


# ── construction ─────────────────────────────────────────────────────────

def test_path_needs_two_points():
    with pytest.raises(EmptyPathError):
        Path()
    with pytest.raises(EmptyPathError):
        Path(Point(0.0, 0.0))
    assert isinstance(EmptyPathError("x"), ValueError)


def test_from_coordinates():
    path = Path.from_coordinates([(0, 0), (1, 2)], admissible_error=0.5)
    assert path.points == (Point(0.0, 0.0), Point(1.0, 2.0))
    assert path.admissible_error == 0.5


# ── segment cursor ───────────────────────────────────────────────────────

def test_segments_are_consecutive_points():
    for n in (2, 3, 6):
        path = Path.from_coordinates([(i, i * i) for i in range(n)])
        for _ in range(n + 3):
            a, b = path.current_segment()
            i = path.points.index(a)
            assert path.points[i + 1] == b, f"n={n} index={path.segment_index}"
            path.next_segment()


def test_next_segment_is_sticky_on_last_segment():
    path = _square()
    path.next_segment()
    assert path.segment_index == 1
    assert not path.is_on_last_segment

    path.next_segment()
    path.next_segment()
    assert path.is_on_last_segment
    assert path.segment_index == 2
    assert path.current_segment() == (Point(10.0, 10.0), Point(0.0, 10.0))

    path.next_segment()
    assert path.segment_index == 2


def test_reset_rewinds_cursor():
    path = _square()
    for _ in range(5):
        path.next_segment()
    path.reset()
    assert path.segment_index == 0
    assert not path.is_on_last_segment


def test_is_finished_requires_last_segment():
    path = Path.from_coordinates([(0, 0), (10, 0)], admissible_error=0.5)
    at_end = Pose2D(10.0, 0.1, 0.0)
    assert not path.is_finished(at_end)
    path.next_segment()
    assert path.is_finished(at_end)
    assert not path.is_finished(Pose2D(9.0, 0.0, 0.0))


# ── nearest-waypoint queries ─────────────────────────────────────────────

def test_closest_point():
    path = _square()
    assert path.closest_point(Pose2D(9.0, 1.0, 0.0)) == Point(10.0, 0.0)
    assert path.closest_point(Pose2D(1.0, 8.0, 0.0)) == Point(0.0, 10.0)


def test_closest_point_keeps_earlier_waypoint_within_threshold():
    path = Path.from_coordinates([(0, 0), (0.002, 0), (5, 0)])
    assert path.closest_point(Pose2D(0.002, 0.0, 0.0)) == Point(0.0, 0.0)


def test_closest_point_switches_when_clearly_closer():
    path = Path.from_coordinates([(0, 0), (1, 0), (1.002, 0)])
    assert path.closest_point(Pose2D(1.001, 0.0, 0.0)) == Point(1.0, 0.0)


def test_closest_next_point_skips_current_segment():
    path = _square()
    pose = Pose2D(10.0, 0.0, 0.0)
    assert path.closest_next_point(pose) == Point(10.0, 10.0)
    path.next_segment()
    assert path.closest_next_point(pose) == Point(0.0, 10.0)
    path.next_segment()
    assert path.closest_next_point(pose) is None


# ── copies ───────────────────────────────────────────────────────────────

def test_copy_and_reverse_have_fresh_cursor():
    path = _square()
    path.next_segment()
    copy = path.copy()
    assert copy.segment_index == 0
    assert copy.points == path.points

    reverse = path.reverse()
    assert reverse.points == tuple(reversed(path.points))
    assert reverse.segment_index == 0
    assert reverse.admissible_error == path.admissible_error


# ── PointSequence ────────────────────────────────────────────────────────

def test_point_sequence_walks_points():
    seq = PointSequence(Point(0.0, 0.0), Point(1.0, 0.0))
    assert seq.current == Point(0.0, 0.0)
    assert seq.next() == Point(1.0, 0.0)
    assert seq.index == 1
    assert seq.next() is None
    assert seq.current == Point(1.0, 0.0)


def test_point_sequence_edit_and_reset():
    seq = PointSequence(Point(0.0, 0.0))
    seq.append(Point(2.0, 0.0))
    seq.insert(1, Point(1.0, 0.0))
    assert len(seq) == 3
    seq.next()
    assert seq.current == Point(1.0, 0.0)
    seq.reset()
    assert seq.index == 0
    assert seq.reverse().current == Point(2.0, 0.0)


def test_point_sequence_needs_a_point():
    with pytest.raises(ValueError):
        PointSequence()


# ── PathSequence ─────────────────────────────────────────────────────────

def test_path_sequence_shares_error_threshold():
    first = Path.from_coordinates([(0, 0), (1, 0)], admissible_error=5.0)
    seq = PathSequence(0.2, first)
    second = Path.from_coordinates([(1, 0), (1, 1)])
    seq.append(second)
    assert first.admissible_error == 0.2
    assert second.admissible_error == 0.2


def test_path_sequence_advances_on_finished_path():
    first = Path.from_coordinates([(0, 0), (1, 0)])
    second = Path.from_coordinates([(1, 0), (1, 1)])
    seq = PathSequence(0.1, first, second)

    at_first_end = Pose2D(1.0, 0.0, 0.0)
    assert seq.next_update(at_first_end) is first

    first.next_segment()
    assert seq.next_update(at_first_end) is second
    assert seq.index == 1

    second.next_segment()
    assert seq.next_update(Pose2D(1.0, 1.0, 0.0)) is None


def test_path_sequence_reset_resets_paths():
    first = Path.from_coordinates([(0, 0), (1, 0), (2, 0)])
    seq = PathSequence(0.1, first, first.reverse())
    first.next_segment()
    seq.reset()
    assert seq.index == 0
    assert first.segment_index == 0


def test_path_sequence_reverse():
    first = Path.from_coordinates([(0, 0), (1, 0)])
    second = Path.from_coordinates([(1, 0), (1, 1)])
    reverse = PathSequence(0.1, first, second).reverse()
    assert reverse.current.points == (Point(1.0, 1.0), Point(1.0, 0.0))
    assert len(reverse) == 2
