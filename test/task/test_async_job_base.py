"""Unit tests for AsyncRecurringJob."""

import asyncio

import pytest

from core.task.async_job_base import AsyncRecurringJob


class CountingJob(AsyncRecurringJob):
    def __init__(self, interval_seconds: float = 0.01, fail_on: set[int] | None = None, fail_start: bool = False):
        super().__init__(interval_seconds)
        self.runs = 0
        self.fail_on = fail_on or set()
        self.fail_start = fail_start
        self.started = False
        self.stopped = False

    async def on_start(self) -> None:
        if self.fail_start:
            raise RuntimeError("store unavailable")
        self.started = True

    async def on_stop(self) -> None:
        self.stopped = True

    async def run_once(self) -> None:
        self.runs += 1
        if self.runs in self.fail_on:
            raise ValueError(f"iteration {self.runs} failed")


@pytest.mark.asyncio
async def test_job_runs_repeatedly_until_stopped():
    job = CountingJob()

    job.start()
    await asyncio.sleep(0.05)
    await job.stop()

    assert job.started is True
    assert job.stopped is True
    assert job.runs >= 2
    assert job.is_running is False


@pytest.mark.asyncio
async def test_exception_in_iteration_does_not_stop_loop():
    job = CountingJob(fail_on={1})

    job.start()
    await asyncio.sleep(0.05)
    await job.stop()

    assert job.runs >= 2


@pytest.mark.asyncio
async def test_failed_start_aborts_loop():
    job = CountingJob(fail_start=True)

    task = job.start()
    await task

    assert job.runs == 0
    assert job.is_running is False


@pytest.mark.asyncio
async def test_start_twice_returns_same_task():
    job = CountingJob(interval_seconds=60)

    first = job.start()
    second = job.start()
    await asyncio.sleep(0)

    assert first is second
    await job.stop()


@pytest.mark.asyncio
async def test_stop_interrupts_long_sleep():
    job = CountingJob(interval_seconds=3600)

    job.start()
    await asyncio.sleep(0.01)
    await asyncio.wait_for(job.stop(), timeout=1.0)

    assert job.runs == 1
    assert job.stopped is True


@pytest.mark.asyncio
async def test_stop_without_start_is_safe():
    job = CountingJob()

    await job.stop()

    assert job.is_running is False


class SlowJob(AsyncRecurringJob):
    def __init__(self):
        super().__init__(interval_seconds=0.01)
        self.active = 0
        self.max_active = 0

    async def run_once(self) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0.05)
        finally:
            self.active -= 1


class TestStopStartRace:
    @pytest.mark.asyncio
    async def test_start_while_stopping_is_refused(self):
        # GIVEN a loop in the middle of an iteration
        job = SlowJob()
        first = job.start()
        await asyncio.sleep(0.01)

        # WHEN stop is pending and start is called again
        stopping = asyncio.create_task(job.stop())
        await asyncio.sleep(0)

        assert job.is_running is False
        assert job.is_stopping is True
        with pytest.raises(RuntimeError):
            job.start()

        # THEN the pending stop completes and the old loop is gone
        await asyncio.wait_for(stopping, timeout=1.0)
        assert first.done()
        assert job.is_stopping is False
        assert job.max_active == 1

    @pytest.mark.asyncio
    async def test_restart_after_stop_runs_a_single_loop(self):
        job = SlowJob()
        first = job.start()
        await asyncio.sleep(0.01)
        await job.stop()

        second = job.start()
        await asyncio.sleep(0.2)
        await asyncio.wait_for(job.stop(), timeout=1.0)

        assert second is not first
        assert first.done() and second.done()
        assert job.max_active == 1

    @pytest.mark.asyncio
    async def test_concurrent_stops_both_return(self):
        job = SlowJob()
        job.start()
        await asyncio.sleep(0.01)

        await asyncio.wait_for(asyncio.gather(job.stop(), job.stop()), timeout=1.0)

        assert job.is_running is False
        assert job.is_stopping is False
