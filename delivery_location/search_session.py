"""Debounced place search that ignores out-of-order responses."""

import asyncio
import re
from collections.abc import Awaitable, Callable

from delivery_location.base_geocoder import GeocodingPort
from delivery_location.config import MIN_QUERY_LENGTH, SEARCH_DEBOUNCE_S
from delivery_location.errors import InvalidPostalCode
from delivery_location.logging_config import get_logger
from delivery_location.models import LocationSuggestion

logger = get_logger(module="search_session")

_POSTAL_CODE_RE = re.compile(r"^\d{6}$")


def is_valid_postal_code(postal_code: str) -> bool:
    """Check a Singapore postal code.

    Six digits whose first two (the postal sector) fall in 01-80 or 96-98.
    """
    if not _POSTAL_CODE_RE.match(postal_code):
        return False
    sector = int(postal_code[:2])
    return 1 <= sector <= 80 or 96 <= sector <= 98


class Debouncer:
    """Runs the most recently scheduled coroutine after a quiet period.

    Scheduling again before the delay elapses replaces the pending call.
    Once the delay has elapsed the call is detached and ``cancel()`` no
    longer affects it.
    """

    def __init__(self, delay_s: float):
        self.delay_s = delay_s
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callable[[], Awaitable[None]]) -> asyncio.Task:
        self.cancel()
        task = asyncio.ensure_future(self._run(callback))
        self._task = task
        return task

    async def _run(self, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.delay_s)
        self._task = None
        await callback()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None


class SearchSession:
    """Turns keystrokes into at most one provider search per typing pause.

    Every keystroke bumps ``generation``. A response is applied only if its
    generation is still the latest when it arrives, so a slow answer to an
    old query can never overwrite the answer to a newer one.
    """

    def __init__(
        self,
        geocoder: GeocodingPort,
        on_results: Callable[[list[LocationSuggestion]], None],
        on_cleared: Callable[[], None] | None = None,
        debounce_s: float = SEARCH_DEBOUNCE_S,
    ):
        self.geocoder = geocoder
        self.on_results = on_results
        self.on_cleared = on_cleared
        self.query = ""
        self.pending = False
        self.generation = 0
        self._debouncer = Debouncer(debounce_s)

    def update_query(self, text: str) -> None:
        """Record a keystroke and restart the debounce timer."""
        self.query = text
        self.generation += 1
        self.pending = True
        generation = self.generation
        self._debouncer.schedule(lambda: self._run(generation))

    async def search_now(self, text: str) -> list[LocationSuggestion] | None:
        """Search immediately, skipping the debounce.

        Returns:
            The results, or None when they were superseded before arriving
            or the query was too short to search.
        """
        self._debouncer.cancel()
        self.query = text
        self.generation += 1
        self.pending = True
        return await self._run(self.generation)

    async def search_postal_code(self, postal_code: str) -> list[LocationSuggestion] | None:
        """Validate a postal code locally, then search for it.

        Raises:
            InvalidPostalCode: Without calling the provider.
        """
        postal_code = postal_code.strip()
        if not is_valid_postal_code(postal_code):
            raise InvalidPostalCode(postal_code)
        return await self.search_now(postal_code)

    async def _run(self, generation: int) -> list[LocationSuggestion] | None:
        if generation != self.generation:
            return None

        query = self.query.strip()
        if len(query) <= MIN_QUERY_LENGTH:
            self.pending = False
            if self.on_cleared is not None:
                self.on_cleared()
            return None

        results = await self.geocoder.search(query)

        if generation != self.generation:
            logger.debug(
                "stale_search_discarded",
                query=query,
                generation=generation,
                latest=self.generation,
            )
            return None

        self.pending = False
        self.on_results(results)
        return results

    def reset(self) -> None:
        """Cancel the timer and make every outstanding response inert."""
        self._debouncer.cancel()
        self.generation += 1
        self.query = ""
        self.pending = False
