"""A minimal event emitter.

An :class:`EventEmitter` keeps, for every event name, an ordered list of subscribers. Emitting an
event invokes each subscriber with the emitter followed by the event payload:

.. code-block:: python

   from mt.event import EventEmitter

   e = EventEmitter()
   e.on("greet", lambda emitter, name: print(f"Hello {name}!"))
   e.emit("greet", "world")

The event named "error" is special. If it is emitted while nobody listens to it, the error is
raised instead of being dropped.
"""

import typing as tp

from mt.traceback import LogicError


__all__ = ["EventEmitter"]


class EventEmitter:
    """Event emitter with per-name ordered subscribers."""

    def __init__(self):
        self._events = {}

    def on(self, name: str, cb: tp.Callable) -> tp.Callable:
        """Subscribes to an event.

        Parameters
        ----------
        name : str
            event name
        cb : function
            subscriber, invoked as `cb(emitter, *args)` for every `emit(name, *args)`

        Returns
        -------
        function
            the subscriber itself, so that it can be unsubscribed later
        """
        if not callable(cb):
            raise TypeError("'{}' object is not callable".format(type(cb).__name__))
        self._events.setdefault(name, []).append(cb)
        return cb

    def once(self, name: str, cb: tp.Callable) -> tp.Callable:
        """Subscribes to an event for one emission only.

        The wrapper unsubscribes itself before invoking `cb`.

        Returns
        -------
        function
            the wrapper that has actually been subscribed
        """

        def wrapper(emitter, *args):
            emitter.unsubscribe(name, wrapper)
            return cb(emitter, *args)

        wrapper.__wrapped__ = cb
        return self.on(name, wrapper)

    def unsubscribe(self, name: str, cb: tp.Optional[tp.Callable] = None):
        """Unsubscribes one subscriber from an event, or all of them if `cb` is None."""
        if cb is None:
            self._events.pop(name, None)
            return self

        l_subscribers = self._events.get(name, [])
        l_subscribers = [x for x in l_subscribers if x is not cb]
        if l_subscribers:
            self._events[name] = l_subscribers
        else:
            self._events.pop(name, None)
        return self

    def subscribers(self, name: str) -> list:
        """Returns a copy of the subscribers of an event, in subscription order."""
        return list(self._events.get(name, []))

    def has_subscribers(self, name: str) -> bool:
        """Checks whether an event has at least one subscriber."""
        return bool(self._events.get(name))

    def emit(self, name: str, *args):
        """Emits an event, invoking each current subscriber in order.

        The subscribers are those present when the emission starts. Exceptions raised by a
        subscriber propagate to the caller.

        Raises
        ------
        Exception
            the payload itself, if `name` is "error", nobody listens and the payload is an
            exception. If the payload is not an exception, a :class:`LogicError` is raised
            instead.
        """
        l_subscribers = self.subscribers(name)
        if l_subscribers:
            for cb in l_subscribers:
                cb(self, *args)
        elif name == "error":
            err = args[0] if args else None
            if isinstance(err, Exception):
                raise err
            raise LogicError(
                "Unhandled error event.",
                debug={"emitter": type(self).__name__, "payload": args},
            )
        return self
