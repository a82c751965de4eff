"""
Kernel Serial Emission Tests
"""

import asyncio
import logging
from unittest.mock import Mock

import pytest

from weft import Kernel
from weft.errors import CyclicDependencyError


class TestSerialOrdering:
    @pytest.mark.asyncio
    async def test_each_listener_awaited_before_next(self, kernel):
        calls = []

        async def slow(event, ctx):
            calls.append("slow:start")
            await asyncio.sleep(0.01)
            calls.append("slow:end")

        kernel.on("e", slow, priority=10)
        kernel.on("e", lambda event, ctx: calls.append("fast"))

        await kernel.emit_serial("e")

        assert calls == ["slow:start", "slow:end", "fast"]

    @pytest.mark.asyncio
    async def test_same_order_as_parallel(self, kernel):
        calls = []
        kernel.on("e", lambda event, ctx: calls.append("c"), id="c", after=["a", "b"], priority=100)
        kernel.on("e", lambda event, ctx: calls.append("b"), id="b", after="a", priority=50)
        kernel.on("e", lambda event, ctx: calls.append("a"), id="a")
        kernel.on("e", lambda event, ctx: calls.append("free"), priority=-1)

        await kernel.emit_serial("e")

        assert calls == ["a", "free", "b", "c"]

    @pytest.mark.asyncio
    async def test_cycle_raises_before_any_listener(self, kernel):
        handler = Mock()
        kernel.on("e", handler)
        kernel.on("e", Mock(), id="a", after="a")

        with pytest.raises(CyclicDependencyError):
            await kernel.emit_serial("e")

        handler.assert_not_called()


class TestSerialErrors:
    @pytest.mark.asyncio
    async def test_boundary_continues_after_failure(self, kernel):
        calls = []

        def broken(event, ctx):
            calls.append("broken")
            raise RuntimeError("boom")

        kernel.on("e", lambda event, ctx: calls.append("first"), priority=3)
        kernel.on("e", broken, id="broken", priority=2)
        kernel.on("e", lambda event, ctx: calls.append("third"), priority=1)

        await kernel.emit_serial("e")

        assert calls == ["first", "broken", "third"]
        assert [error.listener_id for error in kernel.get_execution_errors()] == ["broken"]

    @pytest.mark.asyncio
    async def test_failing_on_error_does_not_stop_dispatch(self, caplog):
        kernel = Kernel(on_error=Mock(side_effect=RuntimeError("reporter broke")))
        later = Mock()
        kernel.on("e", Mock(side_effect=ValueError("bad")), priority=1)
        kernel.on("e", later, priority=-1)

        with caplog.at_level(logging.ERROR, logger="weft.kernel.kernel"):
            await kernel.emit_serial("e")

        later.assert_called_once()
        assert "reporter broke" in caplog.text

    @pytest.mark.asyncio
    async def test_fail_fast_without_boundary(self, strict_kernel):
        calls = []
        error = RuntimeError("boom")

        def broken(event, ctx):
            calls.append("broken")
            raise error

        strict_kernel.on("e", lambda event, ctx: calls.append("first"), priority=3)
        strict_kernel.on("e", broken, priority=2)
        strict_kernel.on("e", lambda event, ctx: calls.append("third"), priority=1)

        with pytest.raises(RuntimeError) as exc_info:
            await strict_kernel.emit_serial("e")

        assert exc_info.value is error
        assert calls == ["first", "broken"]
        assert len(strict_kernel.get_execution_errors()) == 1

    @pytest.mark.asyncio
    async def test_fail_fast_prunes_only_listeners_that_ran(self, strict_kernel):
        strict_kernel.once("e", Mock(), priority=3)
        strict_kernel.on("e", Mock(side_effect=ValueError("bad")), priority=2)
        strict_kernel.once("e", Mock(), id="pending", priority=1)

        with pytest.raises(ValueError):
            await strict_kernel.emit_serial("e")

        assert [entry.id for level in strict_kernel.resolve("e") for entry in level][-1] == "pending"
        assert strict_kernel.listener_count("e") == 2

    @pytest.mark.asyncio
    async def test_stop_propagation(self, kernel):
        later = Mock()

        async def gate(event, ctx):
            await asyncio.sleep(0)
            ctx.stop_propagation()

        kernel.on("e", gate, priority=1)
        kernel.on("e", later)

        await kernel.emit_serial("e")

        later.assert_not_called()
