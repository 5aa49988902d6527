"""
Unit tests for cyan_control.debugger: bounded debug packet buffer.

Run:
    python -m pytest tests/test_debugger.py -v
"""

import logging

import pytest

from cyan_control.config import LOGGER_FULL_MESSAGE
from cyan_control.debugger import DebugPacket, Identifier, IndexIdentifier, Logger, MessageLevel


# ── identifiers ──────────────────────────────────────────────────────────

def test_identifiers():
    assert Identifier("robotX").identifier() == "robotX"
    assert IndexIdentifier(3).identifier() == "Index[3]"
    assert MessageLevel.WARNING.identifier() == "Warning"
    assert str(DebugPacket(Identifier("speed"), 1.5)) == "speed: 1.5"


def test_message_levels_map_to_logging():
    assert MessageLevel.DEBUG.logging_level == logging.DEBUG
    assert MessageLevel.CRITICAL.logging_level == logging.CRITICAL


# ── capacity ─────────────────────────────────────────────────────────────

def test_never_exceeds_capacity():
    for capacity in (1, 2, 3, 5, 50):
        logger = Logger(capacity)
        for i in range(capacity * 3):
            logger.log_value("value", i)
            assert len(logger) <= capacity, f"capacity={capacity}"
        assert logger.is_full


def test_full_warning_recorded_once():
    logger = Logger(10)
    for i in range(30):
        logger.log_value("value", i)

    packets = logger.dump()
    warnings = [p for p in packets if p.header is MessageLevel.WARNING]
    assert len(warnings) == 1
    assert warnings[0].value == LOGGER_FULL_MESSAGE
    assert packets[-1] is warnings[0]
    # Values 0..7 fit before the buffer reports full
    assert [p.value for p in packets[:-1]] == list(range(8))


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        Logger(0)


# ── dump / clear / flush ─────────────────────────────────────────────────

def test_dump_returns_snapshot_and_clears():
    logger = Logger(50)
    logger.log_value("a", 1)
    logger.log_message("hello", MessageLevel.INFO)

    packets = logger.dump()
    assert [str(p) for p in packets] == ["a: 1", "Info: hello"]
    assert len(logger) == 0
    assert logger.dump() == []


def test_dump_reenables_recording():
    logger = Logger(10)
    for i in range(20):
        logger.log_value("v", i)
    assert logger.is_full
    logger.dump()
    assert not logger.is_full
    logger.log_value("v", 99)
    assert len(logger) == 1
    assert not logger.is_full


def test_small_logger_warns_again_after_dump():
    """With capacity 3 the first packet after a dump already reaches the warning mark."""
    logger = Logger(3)
    for i in range(5):
        logger.log_value("v", i)
    logger.dump()
    logger.log_value("v", 99)
    packets = logger.dump()
    assert len(packets) == 2, packets
    assert packets[1].header is MessageLevel.WARNING


def test_flush_to_sink():
    logger = Logger()
    logger.log_value("x", 1.0)
    received = []
    flushed = logger.flush(received.append)
    assert received == flushed
    assert len(logger) == 0


def test_flush_to_logging(caplog):
    logger = Logger()
    logger.log_message("motor stalled", MessageLevel.ERROR)
    logger.log_value("robotX", 2.5)
    with caplog.at_level(logging.DEBUG):
        logger.flush()
    assert ("root", logging.ERROR, "motor stalled") in caplog.record_tuples
    assert ("root", logging.DEBUG, "robotX: 2.5") in caplog.record_tuples
