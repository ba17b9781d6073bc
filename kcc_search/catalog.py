"""
Service catalog loading.

Sources, tried in order by FallbackCatalogLoader:
1. PostgreSQL (when DATABASE_URL is configured), with curated metadata
   (synthetic queries, identity tags) overlaid from the static JSON
2. Static JSON catalog (data/services.json) + embeddings (data/embeddings.json)

Records that fail validation are skipped with a warning; one bad row never
takes the whole catalog down. If every source fails, CatalogUnavailableError
is raised so callers can show a retry affordance instead of "no results".
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from .database import ServiceDB
from .exceptions import CatalogLoadError, CatalogUnavailableError
from .models import Service

logger = logging.getLogger(__name__)


def parse_services(records: Iterable[dict], embeddings: Optional[Dict[str, List[float]]] = None) -> List[Service]:
    """Validate raw records into Service models, skipping invalid ones"""
    embeddings = embeddings or {}
    services: List[Service] = []
    skipped = 0

    for record in records:
        if not record.get("embedding") and record.get("id") in embeddings:
            record = {**record, "embedding": embeddings[record["id"]]}
        try:
            services.append(Service.model_validate(record))
        except ValidationError as e:
            skipped += 1
            logger.warning(f"Skipping invalid service record {record.get('id', '?')}: {e.error_count()} error(s)")
            logger.debug(f"Validation details for {record.get('id', '?')}: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} invalid service records")
    return services


class CatalogLoader(ABC):
    """A source of Service records"""

    @abstractmethod
    async def load_services(self) -> List[Service]:
        """
        Load the full catalog.

        Raises:
            CatalogLoadError: Source unreachable or unreadable
        """
        pass


class JsonCatalogLoader(CatalogLoader):
    """Static JSON catalog with optional embeddings overlay"""

    def __init__(self, services_path: Union[str, Path], embeddings_path: Optional[Union[str, Path]] = None):
        self.services_path = Path(services_path)
        self.embeddings_path = Path(embeddings_path) if embeddings_path else None

    def _read_json(self, path: Path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogLoadError(f"Cannot read {path}: {e}") from e

    def load_records(self) -> List[dict]:
        data = self._read_json(self.services_path)
        if not isinstance(data, list):
            raise CatalogLoadError(f"{self.services_path} must contain a JSON array")
        return data

    def load_embeddings(self) -> Dict[str, List[float]]:
        if self.embeddings_path is None or not self.embeddings_path.exists():
            return {}
        data = self._read_json(self.embeddings_path)
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {self.embeddings_path}: expected an object of id -> vector")
            return {}
        return data

    async def load_services(self) -> List[Service]:
        services = parse_services(self.load_records(), self.load_embeddings())
        logger.info(f"Loaded {len(services)} services from {self.services_path}")
        return services


class PostgresCatalogLoader(CatalogLoader):
    """Published services from PostgreSQL, overlaid with static curated metadata"""

    OVERLAY_FIELDS = ("synthetic_queries", "synthetic_queries_fr", "identity_tags")

    def __init__(self, db: ServiceDB, static: Optional[JsonCatalogLoader] = None):
        self.db = db
        self.static = static

    def _static_records(self) -> Dict[str, dict]:
        if self.static is None:
            return {}
        try:
            return {r["id"]: r for r in self.static.load_records() if "id" in r}
        except CatalogLoadError as e:
            logger.warning(f"Static metadata overlay unavailable: {e}")
            return {}

    async def load_services(self) -> List[Service]:
        try:
            rows = await self.db.fetch_services()
        except Exception as e:
            raise CatalogLoadError(f"Database fetch failed: {e}") from e

        if not rows:
            raise CatalogLoadError("Database returned no services")

        static = self._static_records()
        embeddings = self.static.load_embeddings() if self.static is not None else {}

        merged = []
        for row in rows:
            overlay = static.get(row.get("id"), {})
            for field_name in self.OVERLAY_FIELDS:
                if not row.get(field_name) and overlay.get(field_name):
                    row[field_name] = overlay[field_name]
            merged.append(row)

        services = parse_services(merged, embeddings)
        logger.info(f"Loaded {len(services)} services from PostgreSQL")
        return services


class FallbackCatalogLoader(CatalogLoader):
    """
    Try loaders in order and cache the first successful catalog.

    Raises CatalogUnavailableError when every loader fails.
    """

    def __init__(self, loaders: Sequence[CatalogLoader]):
        if not loaders:
            raise ValueError("At least one catalog loader is required")
        self.loaders = list(loaders)
        self._cache: Optional[List[Service]] = None

    async def load_services(self) -> List[Service]:
        if self._cache is not None:
            return self._cache

        errors = []
        for loader in self.loaders:
            try:
                services = await loader.load_services()
            except CatalogLoadError as e:
                logger.warning(f"{type(loader).__name__} failed (trying next source): {e}")
                errors.append(str(e))
                continue
            self._cache = services
            return services

        logger.error(f"Catalog unavailable: all {len(self.loaders)} sources failed")
        raise CatalogUnavailableError("; ".join(errors))

    @property
    def loaded(self) -> bool:
        return self._cache is not None

    def invalidate(self):
        """Forget the cached catalog (next call reloads)"""
        self._cache = None


def build_catalog_loader(
    services_json: str,
    embeddings_json: Optional[str] = None,
    database_url: Optional[str] = None,
) -> FallbackCatalogLoader:
    """DB first (if configured), then static JSON"""
    static = JsonCatalogLoader(services_json, embeddings_json)
    loaders: List[CatalogLoader] = []
    if database_url:
        loaders.append(PostgresCatalogLoader(ServiceDB(database_url), static=static))
    loaders.append(static)
    return FallbackCatalogLoader(loaders)
