"""Fire-and-forget warm-up requests.

Each URL is POSTed with an empty body on a detached asyncio task. Callers
never await the task or see its outcome. The only way to bound the tasks is
`Warmer.drain`, which the application calls once before exiting: it waits up
to a grace period and then cancels whatever is still in flight.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp

log = logging.getLogger(__name__)


DEFAULT_GRACE_SECONDS = 5.0


class Warmer:
    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, url: str) -> asyncio.Task:
        """Start warming *url* in the background and return immediately."""
        task = asyncio.get_running_loop().create_task(self._post(url), name=f"warm {url}")
        # The loop only holds weak references to tasks.
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.debug("%s failed: %r", task.get_name(), task.exception())

    async def _post(self, url: str) -> None:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(url, data=b"") as response:
                    log.debug("Warm request to %s answered %d", url, response.status)
        except asyncio.CancelledError:
            log.debug("Warm request to %s cancelled", url)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            log.debug("Warm request to %s failed: %s", url, exc)

    async def drain(self, grace: float = DEFAULT_GRACE_SECONDS) -> None:
        """Wait at most *grace* seconds for outstanding requests, then cancel them."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        if grace > 0:
            log.debug("Waiting up to %.1fs for %d warm request(s)", grace, len(tasks))
            _, not_done = await asyncio.wait(tasks, timeout=grace)
        else:
            not_done = set(tasks)
        for task in not_done:
            task.cancel()
        if not_done:
            log.debug("Abandoning %d warm request(s)", len(not_done))
        await asyncio.gather(*tasks, return_exceptions=True)
