"""
Tests for the function executor and error serialization.
"""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from agentrpc.errors import ValidationError, ValidationIssue
from agentrpc.execute import execute_fn, serialize_error


class TestSerializeError:
    """Tests for serialize_error."""

    def test_exception_keeps_name_and_message(self) -> None:
        serialized = serialize_error(ValueError("bad value"))
        assert serialized["name"] == "ValueError"
        assert serialized["message"] == "bad value"
        assert "ValueError: bad value" in serialized["stack"]

    def test_validation_error_includes_issues(self) -> None:
        error = ValidationError([ValidationIssue(path=("a", 0), message="wrong")])
        serialized = serialize_error(error)
        assert serialized["name"] == "ValidationError"
        assert serialized["issues"] == [{"path": ["a", 0], "message": "wrong"}]

    @pytest.mark.parametrize("value", ["plain string", {"code": 1}, 42, None])
    def test_non_exception_values_degrade_gracefully(self, value: object) -> None:
        serialized = serialize_error(value)
        assert serialized["name"] == "NonError"
        assert isinstance(serialized["message"], str)

    def test_unprintable_exception_does_not_raise(self) -> None:
        class Unprintable(Exception):
            def __str__(self) -> str:
                raise RuntimeError("no str")

        serialized = serialize_error(Unprintable())
        assert serialized["name"] == "Unprintable"
        assert isinstance(serialized["message"], str)

    def test_unprintable_value_does_not_raise(self) -> None:
        class Hostile:
            def __str__(self) -> str:
                raise RuntimeError("no str")

            def __repr__(self) -> str:
                raise RuntimeError("no repr")

        serialized = serialize_error(Hostile())
        assert serialized == {"name": "NonError", "message": "<unprintable Hostile>"}


class TestExecuteFn:
    """Tests for execute_fn."""

    @pytest.mark.asyncio
    async def test_async_handler_success(self) -> None:
        async def handler(args: dict) -> str:
            return f"Hello {args['name']}"

        result = await execute_fn(handler, {"name": "Ada"})
        assert result.type == "success"
        assert result.content == "Hello Ada"
        assert result.function_execution_time >= 0

    @pytest.mark.asyncio
    async def test_sync_handler_runs_off_the_event_loop(self) -> None:
        loop_thread = threading.get_ident()
        seen: list[int] = []

        def handler(args: dict) -> int:
            seen.append(threading.get_ident())
            return args["x"] * 2

        result = await execute_fn(handler, {"x": 21})
        assert result.type == "success"
        assert result.content == 42
        assert seen and seen[0] != loop_thread

    @pytest.mark.asyncio
    async def test_sync_handler_returning_awaitable(self) -> None:
        async def inner() -> str:
            return "done"

        result = await execute_fn(lambda args: inner(), {})
        assert result.type == "success"
        assert result.content == "done"

    @pytest.mark.asyncio
    async def test_raising_handler_becomes_rejection(self) -> None:
        async def handler(args: dict) -> None:
            raise RuntimeError("boom")

        result = await execute_fn(handler, {})
        assert result.type == "rejection"
        assert result.content["name"] == "RuntimeError"
        assert result.content["message"] == "boom"
        assert result.function_execution_time >= 0

    @pytest.mark.asyncio
    async def test_sync_raising_handler_becomes_rejection(self) -> None:
        def handler(args: dict) -> None:
            raise KeyError("missing")

        result = await execute_fn(handler, {})
        assert result.type == "rejection"
        assert result.content["name"] == "KeyError"

    @pytest.mark.asyncio
    async def test_system_exit_from_sync_handler_becomes_rejection(self) -> None:
        def handler(args: dict) -> None:
            raise SystemExit(3)

        result = await execute_fn(handler, {})
        assert result.type == "rejection"
        assert result.content["name"] == "SystemExit"
        assert result.content["message"] == "3"

    @pytest.mark.asyncio
    async def test_base_exception_subclass_becomes_rejection(self) -> None:
        class Halt(BaseException):
            pass

        async def handler(args: dict) -> None:
            raise Halt("stop here")

        result = await execute_fn(handler, {})
        assert result.type == "rejection"
        assert result.content["name"] == "Halt"
        assert result.content["message"] == "stop here"

    @pytest.mark.asyncio
    async def test_base_exception_with_timeout_becomes_rejection(self) -> None:
        async def handler(args: dict) -> None:
            raise SystemExit("bye")

        result = await execute_fn(handler, {}, timeout=1.0)
        assert result.type == "rejection"
        assert result.content["name"] == "SystemExit"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        started = asyncio.Event()

        async def handler(args: dict) -> None:
            started.set()
            await asyncio.sleep(5)

        task = asyncio.create_task(execute_fn(handler, {}))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_timing_covers_handler_runtime(self) -> None:
        async def handler(args: dict) -> str:
            await asyncio.sleep(0.05)
            return "slow"

        start = time.perf_counter()
        result = await execute_fn(handler, {})
        wall_ms = (time.perf_counter() - start) * 1000

        assert 40 <= result.function_execution_time <= wall_ms + 1

    @pytest.mark.asyncio
    async def test_timeout_becomes_rejection(self) -> None:
        async def handler(args: dict) -> str:
            await asyncio.sleep(5)
            return "never"

        result = await execute_fn(handler, {}, timeout=0.01)
        assert result.type == "rejection"
        assert result.content["name"] == "TimeoutError"
