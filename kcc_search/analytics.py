"""
Privacy-preserving search analytics.

Never records query text, user identity or exact location. An event is the
category filter, a coarse result-count bucket and whether a location was
used. Repeated searches for the same concept can be grouped by an anonymous
pattern hash (SHA-256 of the sorted tokens).

Recording is fire-and-forget: failures are logged and never reach the caller.
"""

import asyncio
import hashlib
import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Set

from .database import ServiceDB

logger = logging.getLogger(__name__)


def detect_query_pattern(tokens: Iterable[str]) -> str:
    """
    Anonymous hash of a tokenized query.

    Token order does not matter ("food bank" and "bank food" collide).

    Returns:
        Hex SHA-256 of the sorted tokens joined by "|", or "" for no tokens
    """
    tokens = sorted(tokens)
    if not tokens:
        return ""
    return hashlib.sha256("|".join(tokens).encode("utf-8")).hexdigest()


def result_count_bucket(count: int) -> str:
    """Coarse bucket: "0", "1-5" or "5+" """
    if count <= 0:
        return "0"
    if count <= 5:
        return "1-5"
    return "5+"


@dataclass
class SearchEvent:
    category: str
    result_count_bucket: str
    has_location: bool
    status: str = "ok"
    pattern: str = ""


def build_search_event(
    result_count: int,
    category: Optional[str] = None,
    has_location: bool = False,
    status: str = "ok",
    tokens: Iterable[str] = (),
) -> SearchEvent:
    return SearchEvent(
        category=category or "All",
        result_count_bucket=result_count_bucket(result_count),
        has_location=has_location,
        status=status,
        pattern=detect_query_pattern(tokens),
    )


class SearchAnalytics:
    """Fire-and-forget event sink (Postgres when configured, else the log)"""

    def __init__(self, db: Optional[ServiceDB] = None):
        self.db = db
        self._tasks: Set[asyncio.Task] = set()

    async def _write(self, event: SearchEvent):
        try:
            if self.db is not None:
                await self.db.insert_search_event(
                    event.category,
                    event.result_count_bucket,
                    event.has_location,
                )
            else:
                logger.info(f"Search event: {asdict(event)}")
        except Exception as e:
            logger.warning(f"Failed to record search analytics: {e}")

    def track(self, event: SearchEvent) -> Optional[asyncio.Task]:
        """Schedule the write on the running loop and return immediately"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, dropping search event")
            return None

        task = loop.create_task(self._write(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self):
        """Wait for pending writes (shutdown and tests)"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
