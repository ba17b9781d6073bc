"""
Debounced, supersedable search session.

    Idle --set_query--> (debounce) --> Phase1 --emit--> Awaiting-Upgrade
         --vector ready--> Phase2 --emit--> Idle

Every set_query() bumps a generation counter. Work belonging to an older
generation may still finish (model calls cannot be interrupted) but its
updates are dropped, so a slow phase 2 for an old query never replaces the
results of a newer one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, List, Optional, Set

from ..exceptions import CatalogUnavailableError
from ..models import SearchOptions, SearchResult
from .engine import SearchEngine

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_NO_RESULTS = "no_results"
STATUS_CATALOG_UNAVAILABLE = "catalog_unavailable"

DEFAULT_DEBOUNCE_MS = 150


@dataclass
class SearchUpdate:
    generation: int
    phase: int  # 1 = keyword, 2 = vector upgrade
    results: List[SearchResult] = field(default_factory=list)
    status: str = STATUS_OK
    suggestion: Optional[str] = None


UpdateListener = Callable[[SearchUpdate], None]


class SearchSession:
    """
    One user's live search box.

    Example:
        session = SearchSession(engine, listener=render)
        session.set_query("food")
        session.set_query("food bank")   # "food" is superseded
        await session.wait()
    """

    def __init__(
        self,
        engine: SearchEngine,
        listener: Optional[UpdateListener] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ):
        self.engine = engine
        self.listener = listener
        self.debounce_ms = debounce_ms
        self.generation = 0
        self.latest: Optional[SearchUpdate] = None
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._queue: "asyncio.Queue[Optional[SearchUpdate]]" = asyncio.Queue()
        self._closed = False

    def set_query(self, query: str, options: Optional[SearchOptions] = None) -> int:
        """
        Schedule a search for query after the debounce delay.

        Returns:
            The generation assigned to this query
        """
        if self._closed:
            raise RuntimeError("SearchSession is closed")

        self.generation += 1
        generation = self.generation

        if self._timer is not None and not self._timer.done():
            self._timer.cancel()

        self._timer = asyncio.get_running_loop().create_task(
            self._debounce(generation, query, options or SearchOptions())
        )
        return generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation and not self._closed

    async def _debounce(self, generation: int, query: str, options: SearchOptions):
        await asyncio.sleep(self.debounce_ms / 1000)
        task = asyncio.get_running_loop().create_task(self._execute(generation, query, options))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def _emit(self, update: SearchUpdate):
        if not self.is_current(update.generation):
            logger.debug(f"Dropping stale phase {update.phase} update (generation {update.generation})")
            return
        self.latest = update
        self._queue.put_nowait(update)
        if self.listener is not None:
            try:
                self.listener(update)
            except Exception as e:
                logger.warning(f"Search update listener failed: {e}")

    async def _execute(self, generation: int, query: str, options: SearchOptions):
        try:
            results = await self.engine.phase_one(query, options)
        except CatalogUnavailableError as e:
            logger.error(f"Search failed, catalog unavailable: {e}")
            self._emit(SearchUpdate(generation, 1, [], STATUS_CATALOG_UNAVAILABLE))
            return

        has_query = bool(query and query.strip())
        status = STATUS_OK if results or not has_query else STATUS_NO_RESULTS
        suggestion = None
        if has_query:
            suggestion = await self.engine.get_suggestion(query, include_catalog=not results)
        self._emit(SearchUpdate(generation, 1, results, status, suggestion))

        if not has_query or not self.is_current(generation):
            return
        if not results and not options.semantic_rescue:
            return

        query_vector = await self.engine.query_vector(query, options)
        if query_vector is None or not self.is_current(generation):
            return

        try:
            upgraded = await self.engine.phase_two(query, results, options, query_vector)
        except CatalogUnavailableError as e:
            logger.debug(f"Phase 2 skipped, catalog unavailable: {e}")
            return

        status = STATUS_OK if upgraded else STATUS_NO_RESULTS
        self._emit(SearchUpdate(generation, 2, upgraded, status, suggestion))

    async def wait(self):
        """Wait until the pending debounce and all in-flight searches finish"""
        if self._timer is not None:
            # A cancelled timer is a superseded query, not an error
            await asyncio.gather(self._timer, return_exceptions=True)
        if self._inflight:
            await asyncio.gather(*list(self._inflight))

    async def updates(self) -> AsyncIterator[SearchUpdate]:
        """Iterate over emitted updates until close()"""
        while True:
            update = await self._queue.get()
            if update is None:
                return
            yield update

    def close(self):
        """Cancel pending work and end the updates() iterator"""
        if self._closed:
            return
        self._closed = True
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._queue.put_nowait(None)
