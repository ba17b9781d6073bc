#!/usr/bin/env python3
"""
Generate service embeddings for phase 2 re-ranking.

Reads data/services.json, embeds one descriptive text per service with the
configured provider (EMBEDDING_PROVIDER, local by default) and writes
data/embeddings.json as {service_id: [floats]}.

Usage:
    python scripts/generate_embeddings.py
    python scripts/generate_embeddings.py --output data/embeddings.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from kcc_search.ai import EmbeddingFactory, ModelState
from kcc_search.catalog import JsonCatalogLoader
from kcc_search.config import Settings, load_environment
from kcc_search.exceptions import CatalogLoadError
from kcc_search.models import Service


def semantic_text(service: Service) -> str:
    """One line describing the service for the embedding model"""
    parts = [
        f"Service: {service.name}",
        f"Category: {service.intent_category.value}",
        f"Description: {service.description}",
        f"Tags: {', '.join(t.tag for t in service.identity_tags)}",
        f"Queries: {', '.join(service.synthetic_queries)}",
        f"Notes: {service.eligibility_notes or ''}",
    ]
    return " ".join(" ".join(parts).split())


async def run(args: argparse.Namespace) -> int:
    load_environment(project_root)
    settings = Settings.from_env()
    settings.embedding_enabled = True

    try:
        services = await JsonCatalogLoader(args.services).load_services()
    except CatalogLoadError as e:
        print(f"Error loading services: {e}", file=sys.stderr)
        return 1

    engine = EmbeddingFactory.create(settings)
    print(f"Loading embedding model ({settings.embedding_provider})...")
    if await engine.init() != ModelState.READY:
        print(f"Error loading model: {engine.error}", file=sys.stderr)
        return 1

    print(f"Generating embeddings for {len(services)} services...")
    embeddings = {}
    for service in services:
        print(f"   - Embedding: {service.name}...")
        vector = await engine.embed_uncached(semantic_text(service))
        if vector is None:
            print(f"Error embedding {service.id}", file=sys.stderr)
            return 1
        embeddings[service.id] = vector

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        json.dump(embeddings, f)
    await engine.teardown()

    print(f"Saved {len(embeddings)} embeddings to {output}")
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Generate service embeddings")
    parser.add_argument("--services", default=str(project_root / "data" / "services.json"))
    parser.add_argument("--output", default=str(project_root / "data" / "embeddings.json"))
    sys.exit(asyncio.run(run(parser.parse_args())))


if __name__ == "__main__":
    main()
