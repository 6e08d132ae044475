"""Intent scheduling: take-latest, take-every, and debounced workflows as asyncio tasks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

WorkflowFactory = Callable[[], Awaitable[Any]]


class IntentScheduler:
    """Runs workflow coroutines on the current event loop under a cancellation policy.

    take_latest keeps one cancellation handle per intent key and cancels the
    previous task before starting a new one. take_every spawns independent
    tasks. debounce delays the factory and restarts the delay on every call.
    """

    def __init__(self) -> None:
        self._latest: dict[str, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Workflow task %s raised %s: %s",
                task.get_name(),
                type(exc).__name__,
                exc,
                exc_info=exc,
            )

    def cancel(self, key: str) -> bool:
        """Cancel the pending task held under `key`. Returns True if one was running."""
        task = self._latest.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled pending '%s' workflow", key)
        return True

    def take_latest(self, key: str, factory: WorkflowFactory) -> asyncio.Task:
        self.cancel(key)
        task = self._track(asyncio.create_task(factory(), name=key))
        self._latest[key] = task
        return task

    def take_every(self, key: str, factory: WorkflowFactory) -> asyncio.Task:
        return self._track(asyncio.create_task(factory(), name=key))

    def debounce(
        self, key: str, delay_seconds: float, factory: WorkflowFactory
    ) -> asyncio.Task:
        """Run `factory` after `delay_seconds` of quiet on `key`."""

        async def _delayed() -> Any:
            await asyncio.sleep(delay_seconds)
            # Past the delay: detach so a later call does not cancel the real work.
            if self._latest.get(key) is asyncio.current_task():
                del self._latest[key]
            return await factory()

        return self.take_latest(key, _delayed)

    def is_pending(self, key: str) -> bool:
        task = self._latest.get(key)
        return task is not None and not task.done()

    async def drain(self) -> None:
        """Wait until every scheduled task, including ones spawned meanwhile, settles."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._latest.clear()
        await self.drain()
