"""
Persistent on-device embedding cache.

One row per key (query text or service id), upserted on set, no TTL. Backed
by a local SQLite file so entries survive restarts. When no storage is
available (no path configured, or the file cannot be opened) the cache is a
no-op: get returns None, set/clear do nothing.

Structure:
    vectors(id TEXT PRIMARY KEY, embedding TEXT (JSON), metadata TEXT (JSON),
            updated_at REAL (epoch ms))
"""

import json
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..models import Service

logger = logging.getLogger(__name__)


@dataclass
class VectorCacheEntry:
    id: str
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)
    updated_at: float = 0.0


class VectorCache:
    """SQLite-backed key -> embedding store"""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Args:
            path: SQLite file path. None disables persistence (no-op cache),
                e.g. when running without a writable user data directory.
        """
        self.path = Path(path) if path else None
        self.conn: Optional[sqlite3.Connection] = None
        self._available = self.path is not None

    def _connect(self) -> Optional[sqlite3.Connection]:
        """Open the database lazily; disable the cache if that fails"""
        if not self._available:
            return None
        if self.conn is None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.conn = sqlite3.connect(str(self.path))
                self.conn.execute("""
                    CREATE TABLE IF NOT EXISTS vectors (
                        id TEXT PRIMARY KEY,
                        embedding TEXT NOT NULL,
                        metadata TEXT NOT NULL,
                        updated_at REAL NOT NULL
                    )
                """)
                self.conn.commit()
            except (OSError, sqlite3.Error) as e:
                logger.warning(f"Vector cache unavailable ({self.path}): {e}")
                self._available = False
                self.conn = None
        return self.conn

    @property
    def available(self) -> bool:
        return self._connect() is not None

    async def get(self, key: str) -> Optional[VectorCacheEntry]:
        conn = self._connect()
        if conn is None:
            return None

        try:
            row = conn.execute(
                "SELECT id, embedding, metadata, updated_at FROM vectors WHERE id = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            return VectorCacheEntry(
                id=row[0],
                embedding=json.loads(row[1]),
                metadata=json.loads(row[2]),
                updated_at=row[3],
            )
        except (sqlite3.Error, ValueError) as e:
            logger.warning(f"Vector cache read failed for {key}: {e}")
            return None

    async def set(self, key: str, embedding: Iterable[float], metadata: Optional[Dict[str, Any]] = None) -> None:
        conn = self._connect()
        if conn is None:
            return

        try:
            conn.execute(
                "INSERT OR REPLACE INTO vectors (id, embedding, metadata, updated_at) VALUES (?, ?, ?, ?)",
                (
                    key,
                    json.dumps([float(x) for x in embedding]),
                    json.dumps(metadata or {}),
                    time.time() * 1000,
                ),
            )
            conn.commit()
        except (sqlite3.Error, ValueError, TypeError) as e:
            logger.warning(f"Vector cache write failed for {key}: {e}")

    async def clear(self) -> None:
        conn = self._connect()
        if conn is None:
            return
        try:
            conn.execute("DELETE FROM vectors")
            conn.commit()
        except sqlite3.Error as e:
            logger.warning(f"Vector cache clear failed: {e}")
            return
        logger.info("Vector cache cleared")

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None


async def hydrate_vector_store(services: Iterable[Service], cache: VectorCache) -> int:
    """
    Cache every service embedding that is not stored yet.

    Returns:
        Number of vectors written
    """
    count = 0
    for service in services:
        if not service.embedding:
            continue
        if await cache.get(service.id) is not None:
            continue
        metadata = {"category": service.intent_category.value}
        if service.coordinates is not None:
            metadata["lat"] = service.coordinates.lat
            metadata["lng"] = service.coordinates.lng
        await cache.set(service.id, service.embedding, metadata)
        count += 1

    if count:
        logger.debug(f"Hydrated {count} new vectors into the vector cache")
    return count
