#!/usr/bin/env python3
"""
Search the service catalog from the command line.

Runs the same engine as the API against the local catalog (data/services.json
or DATABASE_URL), keyword-only unless EMBEDDING_ENABLED=true.

Usage:
    python scripts/search_cli.py "food bank"
    python scripts/search_cli.py "shelter" --category Housing --near 44.2312,-76.486
    python scripts/search_cli.py "" --category Food --open-now
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from kcc_search.ai import EmbeddingFactory
from kcc_search.catalog import build_catalog_loader
from kcc_search.config import Settings, load_environment
from kcc_search.exceptions import CatalogUnavailableError
from kcc_search.models import Coordinates, SearchOptions
from kcc_search.search import SearchEngine


def parse_location(value: str) -> Coordinates:
    try:
        lat, lng = (float(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected LAT,LNG, got {value!r}")
    return Coordinates(lat=lat, lng=lng)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search community services")
    parser.add_argument("query", help="Search query (may be empty with --category or --near)")
    parser.add_argument("--category", help="Filter by intent category (e.g. Food, Crisis)")
    parser.add_argument("--near", type=parse_location, metavar="LAT,LNG", help="Sort by distance from here")
    parser.add_argument("--open-now", action="store_true", help="Only services open right now")
    parser.add_argument("--scope", choices=["all", "local", "provincial"], default="all")
    parser.add_argument("--top", type=int, default=5, help="Number of results to print (default: 5)")
    return parser


async def run(args: argparse.Namespace) -> int:
    load_environment(project_root)
    settings = Settings.from_env()

    catalog = build_catalog_loader(
        str(project_root / settings.services_json),
        str(project_root / settings.embeddings_json) if settings.embeddings_json else None,
        settings.database_url,
    )
    embedding_engine = EmbeddingFactory.create(settings)
    if embedding_engine is not None:
        await embedding_engine.init()

    engine = SearchEngine(catalog, embedding_engine=embedding_engine)
    options = SearchOptions(
        category=args.category,
        location=args.near,
        open_now=args.open_now,
        scope=args.scope,
    )

    print(f'\nSearching for: "{args.query}"\n')
    start = time.perf_counter()
    try:
        results = await engine.search_services(args.query, options)
    except CatalogUnavailableError as e:
        print(f"Catalog unavailable: {e}", file=sys.stderr)
        return 1
    elapsed_ms = (time.perf_counter() - start) * 1000

    if not results:
        print("No results found.")
        suggestion = await engine.get_suggestion(args.query)
        if suggestion:
            print(f'Did you mean: "{suggestion}"?')
        return 0

    print(f"Found {len(results)} results in {elapsed_ms:.2f}ms:\n")
    print("=" * 80)
    for i, result in enumerate(results[:args.top], start=1):
        distance = f" ({result.distance_km:.1f} km)" if result.distance_km is not None else ""
        print(f"{i}. [{result.score:.1f}] {result.service.name}{distance}")
        print(f"   Reasons: {' | '.join(result.match_reasons)}\n")
    print("=" * 80)
    return 0


def main():
    """Main entry point."""
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
