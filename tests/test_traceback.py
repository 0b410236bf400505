"""Tests for the traceback helpers."""

import sys

from mt import traceback


def test_format_exc_info():
    try:
        raise ValueError("formatted")
    except ValueError:
        lines = traceback.format_exc_info(*sys.exc_info())
    assert lines[0].startswith("Traceback")
    assert lines[-1] == "ValueError: formatted"


def test_logic_error_message_and_debug():
    e = traceback.LogicError("Something went wrong.", debug={"pending": 2})
    assert e.msg == "Something went wrong."
    assert e.debug == {"pending": 2}
    assert e.causing_error is None
    assert str(e) == "Something went wrong.\nWhere:\n  pending: 2"


def test_logic_error_with_causing_error():
    try:
        raise KeyError("inner")
    except KeyError as inner:
        e = traceback.LogicError("Outer failure.", causing_error=inner)

    text = str(e)
    lines = text.split("\n")
    assert lines[0] == "With KeyError {"
    assert "  Traceback:" in lines
    assert "  'inner'" in lines
    assert "} KeyError" in lines
    assert lines[-1] == "Outer failure."


def test_logic_error_is_a_runtime_error():
    assert issubclass(traceback.LogicError, RuntimeError)


def test_logic_errors_do_not_share_debug_dicts():
    first = traceback.LogicError("First.")
    second = traceback.LogicError("Second.")
    first.debug["key"] = "value"
    assert second.debug == {}
    assert str(second) == "Second."
