"""Customised logging.

This module extends Python's package `logging`_ with the customisation used throughout mtdelay.
Instead of:

.. code-block:: python

   import logging

You do:

.. code-block:: python

   from mt import logg

It will import the logging package plus the additional stuff implemented here: an indented,
colour-coded logger adapter, a factory to make one, and scoped logging via the with statement.

Components like :class:`mt.ioloop.IOLoop` and :class:`mt.ioloop.Delay` accept an optional
`logger` keyword. Pass :attr:`logger` (or any logger made by :func:`make_logger`) to see what they
are doing. They stay silent by default.

.. _logging:
   https://docs.python.org/3/library/logging.html
"""

from logging import *
import functools
import contextlib
import shutil as _sh
import sys as _sys
import os as _os
import os.path as _op
import tempfile as _tf
import getpass as _gp
import typing as tp

from colorama import Fore
from colorama import init as _colorama_init

_colorama_init()

from mt import traceback


__all__ = [
    "IndentedLoggerAdapter",
    "make_logger",
    "prepare_file_handler",
    "init",
    "logger",
    "ScopedLog",
    "scoped_log",
    "scoped_info",
    "scoped_warn",
    "scoped_warning",
    "scoped_debug",
]


# -----------------------------------------------------------------------------
# base implementation
# -----------------------------------------------------------------------------


class IndentedFilter(Filter):
    """Stamps the current indentation of the adapter onto every record."""

    def __init__(self, indented_logger_adapter):
        super().__init__()
        self.parent = indented_logger_adapter

    def filter(self, record):
        record.indent = self.parent.indent
        return True


_level_colors = {
    CRITICAL: Fore.LIGHTRED_EX,
    ERROR: Fore.LIGHTMAGENTA_EX,
    WARNING: Fore.LIGHTYELLOW_EX,
    INFO: Fore.LIGHTWHITE_EX,
    DEBUG: Fore.LIGHTBLUE_EX,
}


class IndentedLoggerAdapter(LoggerAdapter):
    """Logger with indenting capability.

    Multi-line messages are broken into one record per line and each line is coloured by its
    level.
    """

    def __init__(self, logger, extra=None):
        super().__init__(logger, extra)
        self.indent = 0
        self.last_exception = None

        # add a filter that adds 'indent' to every log record
        self.logger.addFilter(IndentedFilter(self))

    def process(self, msg, kwargs):
        return "  " * self.indent + msg, kwargs

    def inc(self):
        self.indent += 1

    def dec(self):
        self.indent -= 1

    def log(self, level, msg: tp.Union[str, bytes], *args, **kwargs):
        if isinstance(msg, bytes):
            msg = msg.decode()
        elif not isinstance(msg, str):
            msg = str(msg)
        color = _level_colors.get(level, "")
        for m in msg.split("\n"):
            super().log(level, color + m, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self.log(CRITICAL, msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self.log(ERROR, msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self.log(WARNING, msg, *args, **kwargs)

    warn = warning

    def info(self, msg, *args, **kwargs):
        self.log(INFO, msg, *args, **kwargs)

    def debug(self, msg, *args, **kwargs):
        self.log(DEBUG, msg, *args, **kwargs)

    # ----- scoped logging -----

    def scoped_info(self, msg: str, curly: bool = False):
        return ScopedLog(self, INFO, msg=msg, curly=curly)

    def scoped_warning(self, msg: str, curly: bool = False):
        return ScopedLog(self, WARNING, msg=msg, curly=curly)

    scoped_warn = scoped_warning

    def scoped_debug(self, msg: str, curly: bool = False):
        return ScopedLog(self, DEBUG, msg=msg, curly=curly)

    # ----- useful warning messages -----

    def warn_last_exception(self):
        """Warns the exception currently being handled, line by line."""
        for x in traceback.format_exc_info(*_sys.exc_info()):
            self.warning(x)


_std_format = (
    Fore.CYAN
    + "%(asctime)s "
    + Fore.LIGHTGREEN_EX
    + "%(levelname)8s"
    + Fore.WHITE
    + ": ["
    + Fore.LIGHTMAGENTA_EX
    + "%(name)s"
    + Fore.LIGHTWHITE_EX
    + "] %(message)s"
    + Fore.RESET
)


class StdFilter(Filter):
    """Drops records nested deeper than `max_indent`."""

    def __init__(self, max_indent=None, name=""):
        super().__init__(name=name)
        self.max_indent = max_indent

    def filter(self, record):
        if self.max_indent is None:
            return True
        return getattr(record, "indent", 0) <= self.max_indent


def make_logger(logger_name, max_indent=10):
    """Make a singleton logger.

    Parameters
    ----------
    logger_name : str
        name of the logger
    max_indent : int
        max number of indents shown on the standard output. Default to 10.

    Returns
    -------
    IndentedLoggerAdapter
        the adapter wrapping :func:`logging.getLogger(logger_name)`. The wrapped logger captures
        everything and has one coloured standard handler thresholding at DEBUG. Calling the
        function again with the same name does not add another handler.
    """
    init()

    adapter = make_logger._adapters.get(logger_name, None)
    if adapter is not None:
        return adapter

    base_logger = getLogger(logger_name)
    base_logger.setLevel(1)  # capture everything but let the handlers decide
    adapter = IndentedLoggerAdapter(base_logger)

    std_handler = StreamHandler()
    std_handler.setLevel(DEBUG)
    std_handler.addFilter(StdFilter(max_indent=max_indent))

    columns = _sh.get_terminal_size(fallback=(128, 72))[0]
    fmt_str = _std_format if columns >= 80 else "%(levelname).1s %(message)s"
    formatter = Formatter(fmt_str)
    formatter.default_time_format = "%a %H:%M:%S"
    std_handler.setFormatter(formatter)
    base_logger.addHandler(std_handler)

    make_logger._adapters[logger_name] = adapter
    return adapter


make_logger._adapters = {}


def prepare_file_handler(prefix="mtdelay", filepath=None):
    """Prepares a file handler for logging.

    Parameters
    ----------
    prefix : str
        prefix of the log filename, used when `filepath` is not given
    filepath : str, optional
        path to the log file. Default is `<temp_dirpath>/<prefix>.debug.log`. Any existing file is
        removed first.

    Returns
    -------
    logging.FileHandler
        a handler thresholding at DEBUG, with process ids and numeric log levels in each line
    """
    init()
    if filepath is None:
        filepath = _op.join(init._temp_dirpath, prefix + ".debug.log")
    if _op.exists(filepath):  # remove previous file
        _os.remove(filepath)
    file_handler = FileHandler(filepath)
    file_handler.setLevel(DEBUG)
    file_handler.setFormatter(
        Formatter("%(asctime)s {pid=%(process)5d log_level=%(levelno)2d} %(message)s")
    )
    return file_handler


# -----------------------------------------------------------------------------
# module initialisation
# -----------------------------------------------------------------------------


def init():
    """Initialises the module if it has not been initialised."""
    if init._completed:
        return

    temp_dirpath = _op.join(_tf.gettempdir(), _gp.getuser(), ".mtdelay")
    _os.makedirs(temp_dirpath, exist_ok=True)
    setattr(init, "_temp_dirpath", temp_dirpath)

    init._completed = True


init._completed = False

logger = make_logger("mtdelay")


# -----------------------------------------------------------------------------
# scoped logging
# -----------------------------------------------------------------------------


class ScopedLog:
    """Scoped-log a message.

    >>> from mt import logg
    >>> with logg.ScopedLog(logg.logger, logg.DEBUG, 'hello world'):
    ...     logg.logger.info("Hi there")
    hello world:
      Hi there

    Parameters
    ----------
    indented_logger_adapter : IndentedLoggerAdapter
        the logger
    level : int
        logging level (e.g. logging.INFO, logging.DEBUG, etc)
    msg : str
        message to log
    curly : bool
        whether or not to print a curly bracket
    """

    def __init__(
        self,
        indented_logger_adapter: IndentedLoggerAdapter,
        level: int,
        msg: str,
        curly: bool = False,
    ):
        if not isinstance(indented_logger_adapter, IndentedLoggerAdapter):
            raise ValueError(
                "Argument `indented_logger_adapter` is expected to be an IndentedLoggerAdapter."
            )
        if level not in _level_colors:
            raise ValueError("Unknown logging level {}.".format(level))

        self.logger = indented_logger_adapter
        self.level = level
        self.msg = msg
        self.curly = curly

    def __enter__(self):
        self.logger.log(self.level, "{ " + self.msg if self.curly else self.msg + ":")
        self.logger.inc()
        return self

    def __exit__(self, exc_type, exc_value, traceback_obj):
        if exc_type is not None and self.logger.last_exception is not exc_value:
            self.logger.last_exception = exc_value
            for line in traceback.format_exc_info(exc_type, exc_value, traceback_obj):
                self.logger.debug("##{}".format(line))

        self.logger.dec()
        if self.curly:
            self.logger.log(self.level, "} " + self.msg)


def scoped_log(
    level,
    msg: str,
    logger: tp.Optional[IndentedLoggerAdapter] = logger,
    curly: bool = False,
):
    """Scoped log function that can be used in a with statement.

    Parameters
    ----------
    level : int
        level. Passed as-is to :class:`ScopedLog`.
    msg : str
        message. Passed as-is to :class:`ScopedLog`.
    logger : IndentedLoggerAdapter, optional
        which logger to process the message. Default is the default logger of mtdelay. If None is
        provided, a null context is returned.
    curly : bool
        whether or not to print a curly bracket. Passed as-is to :class:`ScopedLog`.
    """

    if logger is None:
        return contextlib.nullcontext()
    return ScopedLog(logger, level, msg=msg, curly=curly)


scoped_info = functools.partial(scoped_log, INFO)
scoped_warning = functools.partial(scoped_log, WARNING)
scoped_warn = scoped_warning
scoped_debug = functools.partial(scoped_log, DEBUG)
