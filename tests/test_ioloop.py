"""Tests for the IOLoop facade."""

import asyncio

import pytest

from mt import logg
from mt.ioloop import Delay, IOLoop
from mt.traceback import LogicError


def test_next_tick_runs_after_returning(loop):
    calls = []

    def cb(l):
        calls.append(l)
        l.stop()

    loop.next_tick(cb)
    assert calls == []
    loop.start()
    assert calls == [loop]


def test_timers_fire_by_deadline(loop):
    calls = []
    loop.timer(0.03, lambda l: (calls.append("late"), l.stop()))
    loop.timer(0.01, lambda l: calls.append("early"))
    loop.start()
    assert calls == ["early", "late"]


def test_timer_can_be_cancelled(loop):
    calls = []
    handle = loop.timer(0.01, lambda l: calls.append("cancelled"))
    handle.cancel()
    loop.timer(0.02, lambda l: l.stop())
    loop.start()
    assert calls == []


def test_start_on_running_loop_is_rejected(loop):
    raised = []

    def cb(l):
        with pytest.raises(LogicError) as excinfo:
            l.start()
        raised.append(excinfo.value)
        l.stop()

    loop.next_tick(cb)
    loop.start()
    assert len(raised) == 1
    assert "already running" in str(raised[0])
    assert not loop.is_running


def test_is_running(loop):
    seen = []
    loop.next_tick(lambda l: (seen.append(l.is_running), l.stop()))
    assert not loop.is_running
    loop.start()
    assert seen == [True]


def test_ensure_future_success(loop):
    async def double(x):
        await asyncio.sleep(0)
        return 2 * x

    calls = []

    def cb(l, exc, result):
        calls.append((l, exc, result))
        l.stop()

    fut = loop.ensure_future(double(21), cb)
    loop.start()
    assert fut.done()
    assert calls == [(loop, None, 42)]


def test_ensure_future_failure(loop):
    async def fail():
        raise ValueError("bad")

    calls = []

    def cb(l, exc, result):
        calls.append((exc, result))
        l.stop()

    loop.ensure_future(fail(), cb)
    loop.start()
    assert isinstance(calls[0][0], ValueError)
    assert calls[0][1] is None


def test_ensure_future_cancelled(loop):
    calls = []

    def cb(l, exc, result):
        calls.append((exc, result))
        l.stop()

    fut = loop.ensure_future(asyncio.sleep(10), cb)
    loop.next_tick(lambda l: fut.cancel())
    loop.start()
    assert isinstance(calls[0][0], asyncio.CancelledError)
    assert calls[0][1] is None


def test_delay_factory(loop):
    delay = loop.delay()
    assert isinstance(delay, Delay)
    assert delay.loop is loop
    assert delay.remaining == 0

    delay = loop.delay(lambda d: None, lambda d, *args: None)
    assert delay.remaining == 2
    assert delay.pending == 1


def test_singleton_is_recreated_after_close():
    first = IOLoop.singleton()
    assert IOLoop.singleton() is first
    first.close()
    second = IOLoop.singleton()
    try:
        assert second is not first
    finally:
        second.close()


def test_wraps_a_given_asyncio_loop():
    aio_loop = asyncio.new_event_loop()
    ioloop = IOLoop(aio_loop=aio_loop)
    try:
        assert ioloop.aio_loop is aio_loop
    finally:
        ioloop.close()
    assert aio_loop.is_closed()


def test_logger_reports_start_and_stop(loop, caplog):
    loop.logger = logg.logger
    loop.next_tick(lambda l: l.stop())
    with caplog.at_level(logg.DEBUG):
        loop.start()
    assert "IOLoop: started." in caplog.text
    assert "IOLoop: stopped." in caplog.text
    assert loop.delay().logger is logg.logger
