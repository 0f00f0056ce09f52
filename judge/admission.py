import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from judge.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class AdmissionLimiter:
    """Caps how many submission runs are in flight at once.

    Callers wait up to ``queue_timeout`` seconds for a slot and are turned
    away with a 503 after that.
    """

    def __init__(self, max_concurrent: int, queue_timeout: float) -> None:
        self.max_concurrent = max_concurrent
        self.queue_timeout = queue_timeout
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self.queue_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Admission refused: %d runs in flight, waited %.1fs", self._active, self.queue_timeout
            )
            raise ServiceUnavailableError(
                detail="Too many submissions are running, try again shortly",
                max_concurrent=self.max_concurrent,
            )
        self._active += 1
        try:
            yield
        finally:
            self._active -= 1
            self._semaphore.release()
