import logging

import httpx
import pytest

from cors_gateway.utils.exception_logging import (
    MAX_CAUSE_DEPTH,
    cause_chain,
    format_exception_message,
    log_exception_with_details,
)


def _wrapped(outer_message: str, inner: BaseException) -> BaseException:
    try:
        try:
            raise inner
        except BaseException as e:
            raise httpx.ConnectError(outer_message) from e
    except httpx.ConnectError as outer:
        return outer


class TestFormatExceptionMessage:
    def test_plain_exception(self):
        assert format_exception_message(ValueError("bad value")) == "bad value"

    def test_none(self):
        assert format_exception_message(None) == "None"

    def test_empty_message_uses_type_name(self):
        assert format_exception_message(httpx.ReadTimeout("")) == "ReadTimeout"

    def test_cause_chain_joined(self):
        error = _wrapped("connect failed", OSError("Name or service not known"))

        assert format_exception_message(error) == "connect failed: Name or service not known"

    def test_repeated_messages_collapsed(self):
        error = _wrapped("[Errno 111] Connection refused", ConnectionRefusedError(111, "Connection refused"))

        assert format_exception_message(error) == "[Errno 111] Connection refused"

    def test_exception_group(self):
        group = ExceptionGroup("unhandled errors", [ValueError("a"), RuntimeError("b")])

        message = format_exception_message(group)

        assert message.startswith("unhandled errors")
        assert "Sub-exceptions: a; b" in message

    def test_broken_str(self):
        class Broken(Exception):
            def __str__(self):
                raise RuntimeError("nope")

        assert "Broken" in format_exception_message(Broken())


def test_cause_chain_is_bounded_and_cycle_safe():
    first = ValueError("first")
    second = ValueError("second")
    first.__cause__ = second
    second.__cause__ = first

    assert cause_chain(first) == [first, second]

    error = ValueError("0")
    for i in range(1, MAX_CAUSE_DEPTH * 2):
        wrapper = ValueError(str(i))
        wrapper.__cause__ = error
        error = wrapper
    assert len(cause_chain(error)) == MAX_CAUSE_DEPTH


def test_log_exception_with_details(caplog):
    logger = logging.getLogger("test.exception_logging")
    error = _wrapped("connect failed", OSError("certificate verify failed"))

    with caplog.at_level(logging.ERROR, logger="test.exception_logging"):
        log_exception_with_details(logger, "Proxy error:", error)

    assert "Proxy error: connect failed: certificate verify failed" in caplog.text


def test_log_exception_never_raises():
    class ExplodingLogger:
        def isEnabledFor(self, level):
            return False

        def log(self, *args, **kwargs):
            raise RuntimeError("handler broke")

    log_exception_with_details(ExplodingLogger(), "prefix", ValueError("x"))


@pytest.mark.parametrize("level", [logging.WARNING, logging.INFO])
def test_log_level_respected(caplog, level):
    logger = logging.getLogger("test.exception_logging.level")

    with caplog.at_level(logging.DEBUG, logger="test.exception_logging.level"):
        log_exception_with_details(logger, "note:", ValueError("x"), level=level)

    assert caplog.records[-1].levelno == level
