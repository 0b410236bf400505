"""Callback-based flow control on top of asyncio.

An :class:`IOLoop` is a thin, callback-oriented facade over an asyncio event loop. A
:class:`Delay` made on it fans out independent events and gets notified once all of them are done,
or chains steps where each step receives the results of the events begun by the previous one.
"""

from .base import *
from .delay import *


__api__ = [
    "IOLoop",
    "Delay",
    "Token",
]
