import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class AsyncRecurringJob(ABC):
    """
    Base class for recurring asynchronous background jobs.

    Subclasses must implement `run_once()`, which will be executed
    every interval. Optional `on_start()` runs once before the first
    iteration and `on_stop()` once after the last one.

    Stopping is cooperative: the iteration in progress is allowed to
    finish, only the sleep between iterations is interrupted. Each
    background task owns its stop event, so a stopping loop can never be
    picked up again by a later `start()`.
    """

    def __init__(self, interval_seconds: float):
        """
        Args:
            interval_seconds: Time between each execution of `run_once()`.
        """
        self._interval = float(interval_seconds)
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    # ----------------------------------------------------------------------
    # Required implementation in subclasses
    # ----------------------------------------------------------------------
    @abstractmethod
    async def run_once(self) -> None:
        """
        The operation that should be executed once per loop.
        Subclasses must implement this method.
        """
        ...

    async def on_start(self) -> None:
        """Runs inside the background task before the first iteration. Raising aborts the start."""
        return None

    async def on_stop(self) -> None:
        """Runs inside the background task after the last iteration."""
        return None

    # ----------------------------------------------------------------------
    # Internal background loop
    # ----------------------------------------------------------------------
    async def _loop(self, stop_event: asyncio.Event) -> None:
        """Internal loop executed inside the background task."""
        name = self.__class__.__name__

        try:
            await self.on_start()
        except Exception as e:
            logger.exception(f"[{name}] start-up failed, loop not started: {e}")
            stop_event.set()
            return

        logger.info(f"[{name}] loop started (interval={self._interval}s)")

        try:
            while not stop_event.is_set():
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    logger.info(f"[{name}] task cancelled")
                    break
                except Exception as e:
                    logger.exception(f"[{name}] exception in run_once: {e}")

                if self._interval > 0 and not stop_event.is_set():
                    try:
                        await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
                    except asyncio.TimeoutError:
                        pass
                    except asyncio.CancelledError:
                        break
        finally:
            try:
                await self.on_stop()
            except Exception as e:
                logger.exception(f"[{name}] exception in on_stop: {e}")
            logger.info(f"[{name}] loop stopped")

    # ----------------------------------------------------------------------
    # Public API: start & stop
    # ----------------------------------------------------------------------
    @property
    def interval(self) -> float:
        return self._interval

    def _task_alive(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_running(self) -> bool:
        return self._task_alive() and not self._stop_event.is_set()

    @property
    def is_stopping(self) -> bool:
        """True while a stop was requested but the last iteration has not finished yet."""
        return self._task_alive() and self._stop_event.is_set()

    def start(self) -> asyncio.Task:
        """
        Start the recurring job in the background.

        Returns:
            asyncio.Task: The background task handle.

        Raises:
            RuntimeError: the previous loop is still finishing its last iteration.
        """
        if self._task_alive():
            if self._stop_event.is_set():
                raise RuntimeError(f"{self.__class__.__name__} is still stopping, retry once stop() completes")
            logger.warning(f"[{self.__class__.__name__}] already running")
            return self._task

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(self._stop_event))
        return self._task

    async def stop(self, timeout_sec: float | None = None) -> None:
        """
        Stop the background job and wait for the current iteration to finish.
        Safe to call even if the job is not running, or concurrently with another stop().

        Args:
            timeout_sec: cancel the task if it has not finished by then (None waits indefinitely).
        """
        task, stop_event = self._task, self._stop_event
        if task is None:
            return

        stop_event.set()
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout_sec)
        except asyncio.TimeoutError:
            logger.warning(f"[{self.__class__.__name__}] did not stop within {timeout_sec}s, cancelling")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        finally:
            if self._task is task and task.done():
                self._task = None
