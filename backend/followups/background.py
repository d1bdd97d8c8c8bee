"""Tracked fire-and-forget work that must not outlive a graceful shutdown."""
from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class BackgroundTaskGroup:
    """Runs jobs off the request path and remembers them until they finish.

    At most ``limit`` jobs execute at once; the rest wait their turn.  A
    failing job is logged and otherwise ignored.
    """

    def __init__(self, limit: int = 100) -> None:
        self._semaphore = asyncio.Semaphore(limit)
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        job: Coroutine[Any, Any, Any],
        name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> asyncio.Task | None:
        """Schedule ``job``; returns ``None`` once the group is closed.

        A job offered after ``close`` is dropped with a warning.  The caller's
        own work has usually committed by then and must still succeed.
        """

        if self._closed:
            job.close()
            logger.warning("background_task_rejected", task=name, **(context or {}))
            return None

        task = asyncio.create_task(self._run(job, name, context or {}), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, job, name: str | None, context: dict[str, Any]) -> None:
        async with self._semaphore:
            try:
                await job
            except asyncio.CancelledError:
                logger.warning("background_task_cancelled", task=name, **context)
                raise
            except Exception:
                logger.exception("background_task_failed", task=name, **context)

    def close(self) -> None:
        """Refuse new jobs from now on."""

        self._closed = True

    async def wait_drained(self, timeout: float | None = None) -> bool:
        """Wait for in-flight jobs.

        Returns ``False`` if ``timeout`` elapsed first; the stragglers are
        cancelled in that case.
        """

        pending = set(self._tasks)
        if not pending:
            return True

        logger.info("background_drain_started", pending=len(pending))
        done, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        logger.info(
            "background_drain_finished",
            completed=len(done),
            cancelled=len(still_running),
        )
        return not still_running
