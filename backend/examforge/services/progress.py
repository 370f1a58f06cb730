from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from typing import Awaitable, Callable, Union

from examforge.core.exceptions import GenerationCancelledError
from examforge.schemas.generator import ProgressEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], Union[None, Awaitable[None]]]


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProgressReporter:
    """Cooperative suspension point shared by both search engines.

    Every ``interval`` iterations (and always on the last one) it publishes a
    non-decreasing percentage to the callback and/or queue, yields control to
    the event loop, then honours the cancellation token.
    """

    def __init__(
        self,
        *,
        total: int,
        on_progress: ProgressCallback | None = None,
        queue: asyncio.Queue | None = None,
        cancel_token: CancellationToken | None = None,
        interval: int = 1,
    ) -> None:
        self.total = max(1, total)
        self.on_progress = on_progress
        self.queue = queue
        self.cancel_token = cancel_token
        self.interval = max(1, interval)
        self.last_progress = 0.0

    def check_cancelled(self, iteration: int) -> None:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            logger.info("Generation cancelled at iteration %s/%s", iteration, self.total)
            raise GenerationCancelledError(iteration)

    def publishes(self, iteration: int) -> bool:
        return iteration % self.interval == 0 or iteration >= self.total

    async def step(self, iteration: int, best_fitness: float | None = None) -> None:
        if not self.publishes(iteration):
            return

        progress = min(100.0, max(self.last_progress, 100.0 * iteration / self.total))
        self.last_progress = progress
        if self.on_progress is not None:
            outcome = self.on_progress(progress)
            if inspect.isawaitable(outcome):
                await outcome
        if self.queue is not None:
            self.queue.put_nowait(ProgressEvent(progress=progress, iteration=iteration, best_fitness=best_fitness))

        await asyncio.sleep(0)
        self.check_cancelled(iteration)
