"""
Generation counter for superseded searches.

Every call to ``begin()`` starts a new generation and makes all earlier ones
stale.  ``run()`` adds a debounce delay in front of the fetch and drops the
response if a newer search started while it was waiting or in flight.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchGuard:
    def __init__(self) -> None:
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def run(
        self,
        fetch: Callable[[], Awaitable[T]],
        delay: float = 0.0,
    ) -> Optional[T]:
        generation = self.begin()

        if delay > 0:
            await asyncio.sleep(delay)
            if not self.is_current(generation):
                logger.debug("Search %d superseded before it was sent", generation)
                return None

        result = await fetch()
        if not self.is_current(generation):
            logger.debug("Discarding stale response for search %d", generation)
            return None
        return result
