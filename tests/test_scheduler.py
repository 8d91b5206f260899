"""Tests for the polling scheduler."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from tw2dynalist.services.scheduler import PollingScheduler


class CountingTask:
    def __init__(self, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail

    async def __call__(self) -> None:
        self.calls += 1
        if self.fail:
            raise RuntimeError("boom")


async def wait_for_calls(task: CountingTask, count: int, timeout: float = 3.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while task.calls < count and loop.time() < deadline:
        await asyncio.sleep(0.02)


class TestPollingScheduler:
    async def test_runs_immediately_on_start(self) -> None:
        task = CountingTask()
        scheduler = PollingScheduler(task, timedelta(hours=1))

        scheduler.start()
        try:
            await wait_for_calls(task, 1)
            assert task.calls == 1
            assert scheduler.next_run_time is not None
        finally:
            scheduler.stop()

    async def test_repeats_at_interval(self) -> None:
        task = CountingTask()
        scheduler = PollingScheduler(task, timedelta(seconds=0.2))

        scheduler.start()
        try:
            await wait_for_calls(task, 3)
        finally:
            scheduler.stop()

        assert task.calls >= 3

    async def test_stop(self) -> None:
        task = CountingTask()
        scheduler = PollingScheduler(task, timedelta(seconds=0.1))
        scheduler.start()
        await wait_for_calls(task, 1)

        scheduler.stop()
        calls = task.calls
        await asyncio.sleep(0.3)

        assert not scheduler.is_running
        assert scheduler.next_run_time is None
        assert task.calls == calls

    async def test_failing_task_keeps_schedule(self) -> None:
        task = CountingTask(fail=True)
        scheduler = PollingScheduler(task, timedelta(seconds=0.1))

        scheduler.start()
        try:
            await wait_for_calls(task, 2)
            assert scheduler.is_running
        finally:
            scheduler.stop()

        assert task.calls >= 2

    async def test_run_now(self) -> None:
        task = CountingTask()
        scheduler = PollingScheduler(task, timedelta(hours=1))
        scheduler.start()
        try:
            await wait_for_calls(task, 1)

            assert scheduler.run_now() is True
            await wait_for_calls(task, 2)
        finally:
            scheduler.stop()

        assert task.calls == 2

    def test_run_now_when_stopped(self) -> None:
        scheduler = PollingScheduler(CountingTask(), timedelta(hours=1))
        assert scheduler.run_now() is False
