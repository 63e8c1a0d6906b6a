"""
Utility functions for describing and logging upstream failures.

httpx wraps transport failures a few levels deep (``httpx.ConnectError`` from
``httpcore.ConnectError`` from ``ssl.SSLError`` or ``socket.gaierror``), and
anyio can surface them inside exception groups. These helpers flatten both
into something readable for a log line or an error body.
"""

import logging
from typing import List, Optional

MAX_CAUSE_DEPTH = 8


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.

    Args:
        obj: The object to convert to string

    Returns:
        A string representation of the object, falling back to safe alternatives
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _safe_get_exceptions(exception_group) -> list:
    try:
        return list(exception_group.exceptions)
    except Exception:
        return []


def cause_chain(exception: Optional[BaseException]) -> List[BaseException]:
    """
    Return the exception followed by its explicit or implicit causes.

    Stops at MAX_CAUSE_DEPTH and on cycles.
    """
    chain: List[BaseException] = []
    seen = set()
    current = exception
    while current is not None and id(current) not in seen:
        if len(chain) >= MAX_CAUSE_DEPTH:
            break
        chain.append(current)
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return chain


def _describe_one(exception: BaseException) -> str:
    text = _safe_str(exception)
    if not text:
        return type(exception).__name__
    return text


def format_exception_message(exception: Optional[BaseException]) -> str:
    """
    Format an exception message, including its cause chain and sub-exceptions.

    Messages that repeat what an outer exception already said are skipped, so
    ``ConnectError: [Errno -2] Name or service not known`` is not printed
    twice when httpx re-raises the httpcore error with the same text.

    Args:
        exception: The exception to format

    Returns:
        A formatted string describing the exception
    """
    if exception is None:
        return "None"

    try:
        sub_exceptions = _safe_get_exceptions(exception) if hasattr(exception, "exceptions") else []
        if sub_exceptions:
            parts = [format_exception_message(sub) for sub in sub_exceptions]
            return f"{_describe_one(exception)} (Sub-exceptions: {'; '.join(parts)})"

        messages: List[str] = []
        for link in cause_chain(exception):
            text = _describe_one(link)
            if text not in messages:
                messages.append(text)
        return ": ".join(messages)
    except Exception:
        try:
            return f"<{type(exception).__name__} (formatting failed)>"
        except Exception:
            return "<exception (all formatting failed)>"


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its flattened cause chain.

    This function never raises, even for broken exception objects or
    misbehaving logger handlers.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "Proxy error:")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        message = f"{prefix} {format_exception_message(exception)}"
        exc_info = exception if logger.isEnabledFor(logging.DEBUG) else None
        logger.log(level, message, exc_info=exc_info)
    except Exception:
        try:
            logger.log(logging.ERROR, f"{prefix} (logging details failed)")
        except Exception:
            pass
