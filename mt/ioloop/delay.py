"""Synchronising and sequentialising callbacks on an IOLoop.

A :class:`Delay` counts outstanding events. Each :func:`Delay.begin` call hands out a
:class:`Token` and increments the counter. Invoking the token stores its arguments and decrements
the counter. When the counter reaches zero, the values of all tokens are flattened in the order
the tokens were handed out, which may differ from the order in which they were invoked, and given
to the next step. When there is no next step, or the step does not begin any new event, the
"finish" event is emitted with those values.

Parallel mode, waiting for many events at once:

.. code-block:: python

   from mt.ioloop import IOLoop

   loop = IOLoop()
   delay = loop.delay()
   delay.on("finish", lambda delay, *args: print("BOOM!", args))
   for i in range(1, 4):
       loop.timer(i * 0.1, delay.begin())
   delay.wait()

Sequential mode, chaining steps:

.. code-block:: python

   def first(delay):
       loop.timer(0.2, delay.begin())

   def second(delay, *args):
       loop.timer(0.1, delay.begin())
       loop.timer(0.3, delay.begin())

   def third(delay, *args):
       print("Done after 0.5 seconds.")

   loop.delay(first, second, third).wait()
"""

import typing as tp

from mt.event import EventEmitter
from mt.traceback import LogicError

from .base import IOLoop


__all__ = ["Token", "Delay"]


class Token:
    """Completion token for one event of a :class:`Delay`.

    A token is made by :func:`Delay.begin` and must be invoked exactly once. Invoking it twice
    corrupts the event counter of its delay. Nothing guards against that.

    Parameters
    ----------
    delay : Delay
        the delay that handed out the token
    token_id : int
        slot of the token within the current cycle of the delay
    discard_first : bool
        whether to drop the first argument the token is invoked with
    """

    __slots__ = ("delay", "id", "discard_first")

    def __init__(self, delay: "Delay", token_id: int, discard_first: bool = True):
        self.delay = delay
        self.id = token_id
        self.discard_first = discard_first

    def __call__(self, *args):
        if self.discard_first:
            args = args[1:]
        self.delay._step(self.id, args)

    def __repr__(self):
        return "Token(id={}, discard_first={})".format(self.id, self.discard_first)


class Delay(EventEmitter):
    """Manages callbacks and controls the flow of events on an :class:`IOLoop`.

    Events
    ------
    error
        `cb(delay, err)`. Emitted if a step raises. No more steps will be reached and "finish"
        will never be emitted.
    finish
        `cb(delay, *args)`. Emitted once the event counter reaches zero and there are no more
        steps.

    Parameters
    ----------
    loop : IOLoop, optional
        the event loop to schedule on. Defaults to :func:`IOLoop.singleton`.
    logger : mt.logg.IndentedLoggerAdapter, optional
        logger for debugging purposes, if needed. Nothing is logged if None is given.
    """

    EVENTS = ("error", "finish")

    def __init__(self, loop: tp.Optional[IOLoop] = None, logger=None):
        super().__init__()
        self._loop = loop
        self.logger = logger

        self._pending = 0
        self._counter = 0
        self._results = {}
        self._steps = []
        self._failed = False
        self._busy = False

    # ----- properties -----

    @property
    def loop(self) -> IOLoop:
        """The event loop to schedule on."""
        if self._loop is None:
            self._loop = IOLoop.singleton()
        return self._loop

    @loop.setter
    def loop(self, loop: IOLoop):
        self._loop = loop

    @property
    def pending(self) -> int:
        """Number of tokens handed out but not yet invoked in the current cycle."""
        return self._pending

    @property
    def failed(self) -> bool:
        """Whether a step has raised."""
        return self._failed

    @property
    def remaining(self) -> int:
        """Number of steps that have not been run yet."""
        return len(self._steps)

    # ----- events -----

    def on(self, name: str, cb: tp.Callable) -> tp.Callable:
        if name not in Delay.EVENTS:
            raise ValueError(
                "Unknown event '{}'. Expected one of {}.".format(name, Delay.EVENTS)
            )
        return super().on(name, cb)

    # ----- public -----

    def begin(self, discard_first: bool = True) -> Token:
        """Increments the event counter and returns a token to decrement it again.

        Arguments passed to the token are queued in the right order for the next step, or for the
        "finish" event and :func:`wait`.

        Parameters
        ----------
        discard_first : bool
            whether the first argument passed to the token is to be ignored. This is the slot in
            which :class:`IOLoop` passes itself, and in which many callback APIs pass an error or
            None.

        Returns
        -------
        Token
            the token
        """
        self._pending += 1
        token = Token(self, self._counter, discard_first=discard_first)
        self._counter += 1
        return token

    def steps(self, *fns) -> "Delay":
        """Sequentialises multiple events.

        The first step runs on the next tick of the loop, the next one once the event counter
        reaches zero, and so on until there are no more steps or a step does not begin any new
        event. Each step is invoked as `step(delay, *args)` where `args` are the values of the
        tokens begun by the previous step.

        Returns
        -------
        Delay
            the delay itself
        """
        self._steps = list(fns)
        self.loop.next_tick(self.begin())
        return self

    def wait(self) -> tuple:
        """Starts the loop and stops it again once "error" or "finish" gets emitted.

        Returns
        -------
        tuple
            the values carried by the "finish" event

        Raises
        ------
        LogicError
            if the loop is already running, or if it stops before "error" or "finish" gets
            emitted
        Exception
            whatever a step raised
        """
        loop = self.loop
        if loop.is_running:
            raise LogicError(
                "Cannot wait for a delay while its IOLoop is running.",
                debug={"pending": self._pending, "remaining": self.remaining},
            )

        outcome = {}

        def on_error(delay, err):
            delay.loop.stop()
            outcome["error"] = err

        def on_finish(delay, *args):
            delay.loop.stop()
            outcome["args"] = args

        error_cb = self.once("error", on_error)
        finish_cb = self.once("finish", on_finish)
        try:
            loop.start()
        finally:
            self.unsubscribe("error", error_cb)
            self.unsubscribe("finish", finish_cb)

        if "error" in outcome:
            raise outcome["error"]
        if "args" not in outcome:
            raise LogicError(
                "The IOLoop stopped before the delay finished.",
                debug={"pending": self._pending, "remaining": self.remaining},
            )
        return outcome["args"]

    # ----- internal -----

    def _step(self, token_id: int, args: tuple):
        self._results[token_id] = args
        if self._failed:
            return
        self._pending -= 1
        if self._pending or self._busy:
            return

        self._busy = True
        try:
            self._transition()
        finally:
            self._busy = False

    def _transition(self):
        results = self._results
        self._results = {}
        args = tuple(x for i in sorted(results) for x in results[i])
        self._counter = 0

        if self._steps:
            step = self._steps.pop(0)
            if self.logger:
                self.logger.debug(
                    "Delay: running step {} with {} value(s), {} step(s) left.".format(
                        getattr(step, "__name__", repr(step)), len(args), len(self._steps)
                    )
                )
            try:
                step(self, *args)
            except Exception as e:
                self._failed = True
                if self.logger:
                    self.logger.warn_last_exception()
                    self.logger.warning("Delay: step raised, no more steps will be run.")
                self.emit("error", e)
                return

        if not self._counter and not self._pending:
            if self.logger:
                self.logger.debug("Delay: finished with {} value(s).".format(len(args)))
            self.emit("finish", *args)
        elif not self._pending:
            self.loop.next_tick(self.begin())
