"""
Function executor: runs one tool handler and captures its outcome.

Handles both sync and async handlers:
- Async handlers are awaited directly
- Sync handlers run in a thread pool to avoid blocking sibling jobs

The executor never raises on handler failure. Anything the handler raises,
BaseException subclasses such as SystemExit included, comes back as a
rejection Result carrying a serialized error. Only task cancellation and
KeyboardInterrupt propagate.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Literal

from .errors import ValidationError

logger = logging.getLogger("agentrpc.execute")

ResultType = Literal["success", "rejection"]
Handler = Callable[[Any], Any]


@dataclass(frozen=True)
class Result:
    """Outcome of a single job execution."""

    type: ResultType
    content: Any
    function_execution_time: float  # milliseconds


def serialize_error(error: Any) -> dict[str, Any]:
    """
    Convert a raised value into a JSON-safe dict.

    Always has "name" and "message". Never raises: values that are not
    exceptions, or exceptions whose str() fails, degrade to a generic form.
    """
    if not isinstance(error, BaseException):
        return {"name": "NonError", "message": _safe_str(error)}

    serialized: dict[str, Any] = {
        "name": type(error).__name__,
        "message": _safe_str(error),
    }

    try:
        serialized["stack"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    except Exception:
        logger.debug(f"Could not format traceback for {serialized['name']}")

    if isinstance(error, ValidationError):
        serialized["issues"] = [issue.to_dict() for issue in error.issues]

    return serialized


def _safe_str(value: Any) -> str:
    for convert in (str, repr):
        try:
            return convert(value)
        except Exception:
            continue
    return f"<unprintable {type(value).__name__}>"


async def _invoke(handler: Handler, args: Any) -> Any:
    if inspect.iscoroutinefunction(handler):
        result = await handler(args)
    else:
        result = await asyncio.to_thread(handler, args)

    # Sync callables may still hand back an awaitable (e.g. functools.partial of a coroutine)
    if inspect.isawaitable(result):
        result = await result
    return result


def _rejection(error: BaseException, start: float) -> Result:
    elapsed = (time.perf_counter() - start) * 1000
    logger.debug(f"Handler raised {type(error).__name__} after {elapsed:.1f}ms")
    return Result(type="rejection", content=serialize_error(error), function_execution_time=elapsed)


async def _settle(handler: Handler, args: Any, start: float) -> Result:
    # Runs as its own task under wait_for before Python 3.12; no BaseException may escape it
    try:
        content = await _invoke(handler, args)
    except (asyncio.CancelledError, KeyboardInterrupt):
        raise
    except BaseException as e:
        return _rejection(e, start)

    elapsed = (time.perf_counter() - start) * 1000
    return Result(type="success", content=content, function_execution_time=elapsed)


async def execute_fn(handler: Handler, args: Any, timeout: float | None = None) -> Result:
    """
    Invoke a handler with validated args and time it.

    Args:
        handler: tool implementation, called with a single positional argument
        args: validated input
        timeout: optional seconds before the run is abandoned as a rejection

    Returns:
        Result with type "success" and the return value, or "rejection" and
        the serialized error.
    """
    start = time.perf_counter()
    if timeout is None:
        return await _settle(handler, args, start)

    try:
        return await asyncio.wait_for(_settle(handler, args, start), timeout=timeout)
    except asyncio.TimeoutError as e:
        return _rejection(e, start)
