"""Additional utitlities dealing with traceback.

Instead of:

.. code-block:: python

   import traceback

You do:

.. code-block:: python

   from mt import traceback

It will import the traceback package plus the additional stuff implemented here, namely a way to
turn an exception into printable lines and the :class:`LogicError` raised by :mod:`mt.ioloop`
whenever the event loop or a delay is driven the wrong way.

Please see Python package `traceback`_ for more details.

.. _traceback:
   https://docs.python.org/3/library/traceback.html
"""

import traceback as _tb
from traceback import *


__all__ = [
    "format_exc_info",
    "LogicError",
]


def format_exc_info(exc_type, exc_value, exc_traceback):
    """Formats (exception type, exception value, traceback) into a list of lines.

    Parameters
    ----------
    exc_type : type
        the exception type, as returned by :func:`sys.exc_info`
    exc_value : BaseException
        the exception value
    exc_traceback : traceback
        the traceback object, or None

    Returns
    -------
    list
        list of strings, each of which is one line without the trailing carriage return
    """
    lines = _tb.format_exception(exc_type, exc_value, exc_traceback)
    return "".join(lines).rstrip("\n").split("\n")


class LogicError(RuntimeError):
    """An error in the logic, defined by a message and a debugging dictionary.

    Optionally the error that caused this error can be attached, in which case its traceback is
    rendered above the message.

    Parameters
    ----------
    msg : str
        the message
    debug : dict, optional
        key-value pairs that help locate the problem, rendered under "Where:"
    causing_error : BaseException, optional
        the error that caused this one
    """

    def __init__(self, msg, debug=None, causing_error=None):
        super().__init__(msg, {} if debug is None else debug, causing_error)

    @property
    def msg(self):
        return self.args[0]

    @property
    def debug(self):
        return self.args[1]

    @property
    def causing_error(self):
        return self.args[2]

    def __str__(self):
        l_lines = []

        causing_error = self.causing_error
        if causing_error is not None:
            l_lines.append(f"With {type(causing_error).__name__}" + " {")
            if causing_error.__traceback__ is not None:
                l_lines.append("  Traceback:")
                for line in _tb.format_tb(causing_error.__traceback__):
                    for subline in line.rstrip("\n").split("\n"):
                        l_lines.append("  " + subline)
            for line in str(causing_error).split("\n"):
                l_lines.append("  " + line)
            l_lines.append("} " + f"{type(causing_error).__name__}")

        l_lines.append(f"{self.msg}")

        if self.debug:
            l_lines.append("Where:")
            for k, v in self.debug.items():
                l_lines.append(f"  {k}: {v}")

        return "\n".join(l_lines)
