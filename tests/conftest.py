import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from mt.ioloop import IOLoop


@pytest.fixture
def loop():
    """A fresh IOLoop that stops by itself after 5 seconds and fails the test if it had to."""
    ioloop = IOLoop()
    timed_out = []

    def watchdog(l):
        timed_out.append(True)
        l.stop()

    ioloop.timer(5.0, watchdog)
    yield ioloop
    ioloop.close()
    if timed_out:
        pytest.fail("The IOLoop was still running after 5 seconds.")
