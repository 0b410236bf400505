"""Event loop facade over asyncio."""

import asyncio
import typing as tp

from mt.traceback import LogicError


__all__ = ["IOLoop"]


class IOLoop:
    """A callback-oriented event loop backed by an asyncio event loop.

    Every callback the loop invokes receives the IOLoop instance as its first argument, so a token
    made by :func:`mt.ioloop.Delay.begin`, which discards its first argument by default, can be
    passed directly to :func:`next_tick`, :func:`timer` or :func:`ensure_future`.

    Parameters
    ----------
    aio_loop : asyncio.AbstractEventLoop, optional
        the asyncio event loop to drive. If not provided, a new one is created and owned by the
        instance.
    logger : mt.logg.IndentedLoggerAdapter, optional
        logger for debugging purposes, if needed. Nothing is logged if None is given.

    Examples
    --------
    >>> from mt.ioloop import IOLoop
    >>> loop = IOLoop()
    >>> handle = loop.timer(0.1, lambda l: l.stop())
    >>> loop.start()  # returns after 0.1 seconds
    >>> loop.close()
    """

    _singleton = None

    def __init__(
        self, aio_loop: tp.Optional[asyncio.AbstractEventLoop] = None, logger=None
    ):
        self.aio_loop = asyncio.new_event_loop() if aio_loop is None else aio_loop
        self.logger = logger

    @classmethod
    def singleton(cls) -> "IOLoop":
        """Returns the process-wide IOLoop, creating it on first use."""
        if IOLoop._singleton is None or IOLoop._singleton.aio_loop.is_closed():
            IOLoop._singleton = cls()
        return IOLoop._singleton

    @property
    def is_running(self) -> bool:
        """Whether the underlying asyncio loop is running."""
        return self.aio_loop.is_running()

    def next_tick(self, cb: tp.Callable) -> asyncio.Handle:
        """Invokes `cb(self)` as soon as possible, but never before this function returns."""
        return self.aio_loop.call_soon(cb, self)

    def timer(self, after: float, cb: tp.Callable) -> asyncio.TimerHandle:
        """Invokes `cb(self)` after a number of seconds.

        Returns
        -------
        asyncio.TimerHandle
            handle whose `cancel()` method removes the timer
        """
        return self.aio_loop.call_later(after, cb, self)

    def ensure_future(self, aw: tp.Awaitable, cb: tp.Callable) -> asyncio.Future:
        """Schedules an awaitable and invokes `cb(self, exc, result)` once it is done.

        On success `exc` is None. On failure `result` is None and `exc` is the raised exception. A
        cancelled awaitable is reported with an :class:`asyncio.CancelledError`.

        Parameters
        ----------
        aw : awaitable
            a coroutine, task or future
        cb : function
            the completion callback, typically a token from :func:`mt.ioloop.Delay.begin`

        Returns
        -------
        asyncio.Future
            the scheduled future
        """
        fut = asyncio.ensure_future(aw, loop=self.aio_loop)

        def on_done(fut):
            if fut.cancelled():
                cb(self, asyncio.CancelledError(), None)
                return
            e = fut.exception()
            if e is not None:
                cb(self, e, None)
            else:
                cb(self, None, fut.result())

        fut.add_done_callback(on_done)
        return fut

    def start(self):
        """Runs the loop until :func:`stop` is invoked.

        Raises
        ------
        LogicError
            if the loop is already running
        """
        if self.is_running:
            raise LogicError("The IOLoop is already running.", debug={"ioloop": self})
        if self.logger:
            self.logger.debug("IOLoop: started.")
        self.aio_loop.run_forever()
        if self.logger:
            self.logger.debug("IOLoop: stopped.")

    def stop(self):
        """Stops the loop once the callbacks of the current iteration have run."""
        self.aio_loop.stop()

    def delay(self, *steps) -> "Delay":
        """Makes a :class:`mt.ioloop.Delay` bound to this loop.

        Parameters
        ----------
        steps : list
            step functions. If any is given, they are passed as-is to :func:`Delay.steps`.

        Returns
        -------
        Delay
            the new delay
        """
        from .delay import Delay

        delay = Delay(loop=self, logger=self.logger)
        if steps:
            delay.steps(*steps)
        return delay

    def close(self):
        """Closes the underlying asyncio loop. The loop cannot be started afterwards."""
        if not self.aio_loop.is_closed():
            self.aio_loop.close()
        if IOLoop._singleton is self:
            IOLoop._singleton = None
