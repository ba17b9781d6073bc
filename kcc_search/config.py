"""
Runtime configuration from environment variables.

Loads .env.local (local dev, highest priority) or .env before reading
variables, same as the API entry point.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


def load_environment(root: Path = PROJECT_ROOT) -> Optional[Path]:
    """Load .env.local or .env from the project root. Returns the file used."""
    env_local = root / ".env.local"
    env_file = root / ".env"

    if env_local.exists():
        load_dotenv(env_local, override=True)
        return env_local
    if env_file.exists():
        load_dotenv(env_file, override=True)
        return env_file
    return None


def _bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    services_json: str = "data/services.json"
    embeddings_json: Optional[str] = "data/embeddings.json"
    database_url: Optional[str] = None

    embedding_enabled: bool = False
    embedding_provider: str = "local"  # local | vertex_ai
    embedding_model: Optional[str] = None
    gcp_project_id: Optional[str] = None
    gcp_location: str = "us-central1"
    vector_cache_path: Optional[str] = None

    query_expansion_enabled: bool = False
    query_expansion_model: str = "gemini-2.5-flash"

    search_debounce_ms: int = 150
    log_level: str = "INFO"
    port: int = 8080

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            services_json=os.getenv("SERVICES_JSON", "data/services.json"),
            embeddings_json=os.getenv("EMBEDDINGS_JSON", "data/embeddings.json") or None,
            database_url=os.getenv("DATABASE_URL") or None,
            embedding_enabled=_bool("EMBEDDING_ENABLED", False),
            embedding_provider=os.getenv("EMBEDDING_PROVIDER", "local").lower(),
            embedding_model=os.getenv("EMBEDDING_MODEL") or None,
            gcp_project_id=os.getenv("GCP_PROJECT_ID") or os.getenv("GOOGLE_CLOUD_PROJECT"),
            gcp_location=os.getenv("GCP_LOCATION", "us-central1"),
            vector_cache_path=os.getenv("VECTOR_CACHE_PATH") or None,
            query_expansion_enabled=_bool("QUERY_EXPANSION_ENABLED", False),
            query_expansion_model=os.getenv("QUERY_EXPANSION_MODEL", "gemini-2.5-flash"),
            search_debounce_ms=int(os.getenv("SEARCH_DEBOUNCE_MS", "150")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "8080")),
        )
