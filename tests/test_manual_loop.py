"""Tests for ManualEventLoop"""

import pytest

from looptask.infrastructure.loop.manual import ManualEventLoop


def test_callbacks_run_in_due_order():
    """Test callbacks run by due time, FIFO among equals"""
    loop = ManualEventLoop()
    calls = []
    loop.call_later(2, lambda: calls.append("late"))
    loop.call_soon(lambda: calls.append("soon-1"))
    loop.call_later(1, lambda: calls.append("middle"))
    loop.call_soon(lambda: calls.append("soon-2"))

    ran = loop.advance(5)

    assert calls == ["soon-1", "soon-2", "middle", "late"]
    assert ran == 4
    assert loop.time() == 5


def test_clock_only_moves_on_advance():
    """Test nothing runs until the clock reaches the deadline"""
    loop = ManualEventLoop({"start_time": 10})
    calls = []
    loop.call_later(1, lambda: calls.append(loop.time()))

    loop.advance(0.5)
    assert calls == []
    loop.advance(0.5)
    assert calls == [11.0]


def test_cancelled_handle_does_not_run():
    """Test cancelled callbacks are skipped"""
    loop = ManualEventLoop()
    calls = []
    handle = loop.call_later(1, lambda: calls.append(1))

    handle.cancel()
    handle.cancel()
    loop.advance(2)

    assert handle.cancelled()
    assert calls == []
    assert loop.pending == 0
    assert loop.next_deadline() is None


def test_run_once_defers_newly_armed_callbacks():
    """Test callbacks armed while running wait for the next run_once"""
    loop = ManualEventLoop()
    calls = []

    def first():
        calls.append("first")
        loop.call_soon(lambda: calls.append("second"))

    loop.call_soon(first)

    assert loop.run_once() == 1
    assert calls == ["first"]
    assert loop.run_once() == 1
    assert calls == ["first", "second"]


def test_advance_runs_chained_callbacks():
    """Test callbacks armed during advance() run if they fall due"""
    loop = ManualEventLoop()
    times = []

    def tick():
        times.append(loop.time())
        if len(times) < 3:
            loop.call_later(1, tick)

    loop.call_soon(tick)
    loop.advance(10)

    assert times == [0.0, 1.0, 2.0]


def test_negative_delay_is_immediate():
    """Test a negative delay behaves like call_soon"""
    loop = ManualEventLoop()
    calls = []
    loop.call_later(-5, lambda: calls.append(1))

    loop.advance(0)

    assert calls == [1]


def test_cannot_move_backwards():
    """Test advance() rejects negative durations"""
    with pytest.raises(ValueError):
        ManualEventLoop().advance(-1)


def test_invalid_start_time():
    """Test start_time must be a number"""
    with pytest.raises(ValueError):
        ManualEventLoop({"start_time": "noon"})


def test_invalid_callback_cap():
    """Test max_callbacks_per_instant must be a positive integer"""
    with pytest.raises(ValueError, match="max_callbacks_per_instant"):
        ManualEventLoop({"max_callbacks_per_instant": 0})


def test_advance_caps_callbacks_rearming_at_same_instant(caplog):
    """Test a callback that keeps re-arming itself cannot stall advance()"""
    loop = ManualEventLoop({"max_callbacks_per_instant": 10})
    calls = []

    def spin():
        calls.append(loop.time())
        loop.call_soon(spin)

    loop.call_soon(spin)
    ran = loop.advance(1)

    assert ran == 10
    assert calls == [0.0] * 10
    assert loop.time() == 1
    assert loop.pending == 1
    assert "without the clock moving" in caplog.text

    # leftovers run on the next advance, under a fresh cap
    assert loop.advance(0) == 10
    assert len(calls) == 20
