"""Task completion poller.

Writes are acknowledged before they are searchable.  The poller asks the
write endpoint for the task status until it reads ``published``.  There is
no cap on the number of polls: a task stuck in ``notPublished`` is polled
forever, each poll bounded only by the dispatcher's own failover.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from urllib.parse import quote

from algolite.models.request import HostClass, RequestSpec
from algolite.models.response import ApiResponse, Success
from algolite.shaping import task_handle
from algolite.transport.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 1000

Sleep = Callable[[float], Awaitable[object]]


class TaskPoller:
    """Polls task status through a :class:`Dispatcher`.

    Args:
        dispatcher: Dispatcher used for the status requests.
        poll_interval_ms: Default delay between polls.
        sleep: Awaitable sleep taking seconds; ``asyncio.sleep`` by default.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._dispatcher = dispatcher
        self.poll_interval_ms = poll_interval_ms
        self._sleep = sleep

    async def wait_for_task(
        self,
        index: str,
        task_id: str | int,
        poll_interval_ms: int | None = None,
    ) -> ApiResponse | None:
        """Poll until the task is published.

        Args:
            index: Index the task belongs to.
            task_id: Task identifier from the write response.
            poll_interval_ms: Delay between polls; the poller default if None.

        Returns:
            ``None`` once the task is published, otherwise the first result
            that was neither ``published`` nor ``notPublished``, unchanged.
        """
        interval = self.poll_interval_ms if poll_interval_ms is None else poll_interval_ms
        spec = RequestSpec(method="GET", path=f"{quote(index, safe='')}/task/{task_id}")

        polls = 0
        while True:
            polls += 1
            result = await self._dispatcher.dispatch(HostClass.WRITE, spec)
            status = None
            if isinstance(result, Success) and isinstance(result.body, dict):
                status = result.body.get("status")

            if status == "published":
                logger.info("Task %s on %s published after %d poll(s)", task_id, index, polls)
                return None
            if status != "notPublished":
                logger.debug("Task %s on %s stopped polling: %r", task_id, index, result)
                return result

            logger.debug("Task %s on %s not published, retrying in %d ms", task_id, index, interval)
            await self._sleep(interval / 1000)

    async def wait(self, response: ApiResponse, poll_interval_ms: int | None = None) -> ApiResponse:
        """Wait on the task carried by a write response.

        Responses without ``indexName`` and ``taskID`` (and error results)
        are returned unchanged.  When polling fails the failing result is
        returned instead of ``response``.
        """
        handle = task_handle(response)
        if handle is None:
            return response

        failure = await self.wait_for_task(handle.index, handle.task_id, poll_interval_ms)
        return response if failure is None else failure
