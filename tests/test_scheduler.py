"""Tests for caretpop.scheduler."""

from __future__ import annotations

import asyncio

import pytest

from caretpop.scheduler import LoopScheduler


class TestLoopSchedulerWithoutLoop:
    def test_call_soon_runs_immediately(self) -> None:
        calls: list[str] = []
        LoopScheduler().call_soon(lambda: calls.append("ran"))
        assert calls == ["ran"]

    def test_call_later_needs_a_loop(self) -> None:
        with pytest.raises(RuntimeError):
            LoopScheduler().call_later(0.1, lambda: None)


class TestLoopSchedulerOnLoop:
    async def test_call_soon_defers_to_next_turn(self) -> None:
        calls: list[str] = []
        LoopScheduler().call_soon(lambda: calls.append("ran"))
        assert calls == []
        await asyncio.sleep(0)
        assert calls == ["ran"]

    async def test_call_later_fires_after_delay(self) -> None:
        fired = asyncio.Event()
        LoopScheduler().call_later(0.01, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1)
        assert fired.is_set()

    async def test_cancelled_timer_does_not_fire(self) -> None:
        calls: list[str] = []
        handle = LoopScheduler().call_later(0.01, lambda: calls.append("ran"))
        handle.cancel()
        await asyncio.sleep(0.05)
        assert calls == []

    async def test_explicit_loop(self) -> None:
        loop = asyncio.get_running_loop()
        fired = asyncio.Event()
        LoopScheduler(loop).call_soon(fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1)
