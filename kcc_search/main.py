"""
Kingston Care Connect search API - FastAPI application

Serves the hybrid service search over HTTP:
- Keyword ranking with synonym expansion and crisis safety boost
- Optional vector upgrade (sentence-transformers locally, or Vertex AI)
- Static JSON catalog, or PostgreSQL + pgvector when DATABASE_URL is set

Privacy:
- Query text is never stored; analytics are bucketed and anonymous
- Responses to queries are marked Cache-Control: no-store
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Literal, Optional

from .config import Settings, load_environment

# Load .env.local first (highest priority), then .env as fallback
env_path = load_environment()
if env_path:
    print(f"Loading environment from: {env_path}")
else:
    print("WARNING: No .env.local or .env file found - using system environment variables only")

# Configure logging: console (brief) + file (detailed)
from .logging_config import setup_logging

settings = Settings.from_env()
setup_logging(
    log_file="logs/kcc-search.log",
    console_level=getattr(logging, settings.log_level, logging.INFO),
    file_level=logging.DEBUG  # Always DEBUG in file for troubleshooting
)

logger = logging.getLogger(__name__)


from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from google import genai
from pydantic import BaseModel, Field

from .ai import EmbeddingEngine, EmbeddingFactory, QueryExpander, hydrate_vector_store
from .analytics import SearchAnalytics, build_search_event
from .catalog import FallbackCatalogLoader, build_catalog_loader
from .database import ServiceDB
from .exceptions import CatalogUnavailableError
from .models import Coordinates, IntentCategory, SearchOptions, SearchResult, UserContext
from .rate_limit import RateLimiter, get_client_ip
from .search import SearchEngine, tokenize
from .search.scoring import freshness_status
from .search.session import STATUS_CATALOG_UNAVAILABLE, STATUS_NO_RESULTS, STATUS_OK

# Version tracking
APP_VERSION = "0.3.0"
APP_START_TIME = datetime.utcnow().isoformat() + "Z"

SEARCH_RATE_LIMIT = 60  # requests per minute per client IP
RETRY_AFTER_SECONDS = 30

# Global instances
catalog_loader: Optional[FallbackCatalogLoader] = None
embedding_engine: Optional[EmbeddingEngine] = None
search_engine: Optional[SearchEngine] = None
analytics: Optional[SearchAnalytics] = None
analytics_db: Optional[ServiceDB] = None
rate_limiter = RateLimiter(limit=SEARCH_RATE_LIMIT, window_seconds=60)


def _create_expander(config: Settings) -> Optional[QueryExpander]:
    if not config.query_expansion_enabled:
        return None
    try:
        client = genai.Client(vertexai=True, project=config.gcp_project_id, location=config.gcp_location)
    except Exception as e:
        logger.warning(f"Query expansion disabled, Gen AI client unavailable: {e}")
        return None
    logger.info(f"Query expansion enabled ({config.query_expansion_model})")
    return QueryExpander(client, model_name=config.query_expansion_model)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup resources"""
    global catalog_loader, embedding_engine, search_engine, analytics, analytics_db

    config = Settings.from_env()

    catalog_loader = build_catalog_loader(
        config.services_json,
        config.embeddings_json,
        config.database_url,
    )

    embedding_engine = EmbeddingFactory.create(config)
    if embedding_engine is not None:
        await embedding_engine.init()

    search_engine = SearchEngine(
        catalog_loader,
        embedding_engine=embedding_engine,
        expander=_create_expander(config),
    )

    try:
        services = await catalog_loader.load_services()
        logger.info(f"Catalog ready: {len(services)} services")
        if embedding_engine is not None and embedding_engine.cache is not None:
            await hydrate_vector_store(services, embedding_engine.cache)
    except CatalogUnavailableError as e:
        # Keep serving: search endpoints answer 503 until the catalog loads
        logger.error(f"Catalog not available at startup: {e}")

    analytics_db = ServiceDB(config.database_url) if config.database_url else None
    analytics = SearchAnalytics(analytics_db)

    yield

    logger.info("Shutting down...")
    await analytics.drain()
    if analytics_db is not None:
        await analytics_db.disconnect()
    if embedding_engine is not None:
        await embedding_engine.teardown()
        if embedding_engine.cache is not None:
            embedding_engine.cache.close()
    catalog_loader = None
    embedding_engine = None
    search_engine = None
    analytics = None
    analytics_db = None


# FastAPI app
app = FastAPI(
    title="Kingston Care Connect Search API",
    description="Hybrid keyword + vector search over verified community services",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class HealthResponse(BaseModel):
    status: str
    version: str
    started_at: str
    uptime_seconds: float
    catalog_loaded: bool
    embedding_state: str


class SearchFilters(BaseModel):
    category: Optional[IntentCategory] = None
    open_now: bool = False
    scope: Literal["all", "local", "provincial"] = "all"


class SearchPagination(BaseModel):
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class UserContextModel(BaseModel):
    age_group: Optional[Literal["youth", "adult", "senior"]] = None
    identities: List[str] = Field(default_factory=list)
    has_opted_in: bool = False


class SearchRequest(BaseModel):
    query: str = Field(default="", max_length=500, description="User query (may be empty with a filter)")
    locale: Literal["en", "fr", "ar", "zh-Hans", "es"] = "en"
    filters: SearchFilters = Field(default_factory=SearchFilters)
    location: Optional[Coordinates] = None
    options: SearchPagination = Field(default_factory=SearchPagination)
    user_context: Optional[UserContextModel] = None

    class Config:
        json_schema_extra = {
            "example": {
                "query": "food bank",
                "locale": "en",
                "filters": {"category": "Food", "open_now": False, "scope": "all"},
                "location": {"lat": 44.2312, "lng": -76.486},
                "options": {"limit": 20, "offset": 0},
            }
        }


class ServiceResultItem(BaseModel):
    id: str
    name: str
    description: str
    intent_category: str
    verification_level: str
    scope: str
    score: float
    match_reasons: List[str]
    distance_km: Optional[float] = None
    eligibility: str = "unknown"
    crisis: bool = False
    freshness: str
    address: Optional[str] = None
    phone: Optional[str] = None
    url: Optional[str] = None


class SearchMeta(BaseModel):
    total: int
    limit: int
    offset: int
    status: str
    suggestion: Optional[str] = None


class SearchResponse(BaseModel):
    data: List[ServiceResultItem]
    meta: SearchMeta


class EmbeddingRequest(BaseModel):
    query: str = Field(default="", description="Text to embed")


class EmbeddingResponse(BaseModel):
    embedding: List[float]
    dimension: int


class SuggestionResponse(BaseModel):
    suggestion: Optional[str] = None


class AnalyticsEventRequest(BaseModel):
    category: Optional[str] = None
    result_count: int = Field(..., ge=0)
    has_location: bool = False


def _result_item(result: SearchResult, locale: str) -> ServiceResultItem:
    service = result.service
    french = locale == "fr"
    return ServiceResultItem(
        id=service.id,
        name=(service.name_fr if french and service.name_fr else service.name),
        description=(service.description_fr if french and service.description_fr else service.description),
        intent_category=service.intent_category.value,
        verification_level=service.verification_level.value,
        scope=service.scope.value,
        score=round(result.score, 2),
        match_reasons=result.match_reasons,
        distance_km=round(result.distance_km, 2) if result.distance_km is not None else None,
        eligibility=result.eligibility,
        crisis=result.crisis,
        freshness=freshness_status(service),
        address=(service.address_fr if french and service.address_fr else service.address),
        phone=service.phone,
        url=service.url,
    )


def _rate_limit(request: Request):
    client = request.client.host if request.client else "unknown"
    result = rate_limiter.check(get_client_ip(request.headers, fallback=client))
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers=result.headers(rate_limiter.limit),
        )


def _require_engine() -> SearchEngine:
    if search_engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search engine not initialized",
        )
    return search_engine


# Routes
@app.get("/", response_model=dict)
async def root():
    """Root endpoint"""
    return {
        "service": "Kingston Care Connect Search API",
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint"""
    start_time = datetime.fromisoformat(APP_START_TIME.rstrip('Z'))
    uptime = (datetime.utcnow() - start_time).total_seconds()

    return HealthResponse(
        status="healthy",
        version=APP_VERSION,
        started_at=APP_START_TIME,
        uptime_seconds=round(uptime, 2),
        catalog_loaded=catalog_loader is not None and catalog_loader.loaded,
        embedding_state=embedding_engine.state.value if embedding_engine is not None else "disabled",
    )


@app.post("/v1/search/services", response_model=SearchResponse, response_model_exclude_none=True)
async def search_services(body: SearchRequest, request: Request, response: Response):
    """
    Search the service directory.

    Example:
        POST /v1/search/services
        {
            "query": "I am hungry",
            "filters": {"category": "Food"},
            "options": {"limit": 10}
        }
    """
    _rate_limit(request)
    engine = _require_engine()

    query = body.query
    has_query = bool(query.strip())
    category = body.filters.category.value if body.filters.category else None
    limit, offset = body.options.limit, body.options.offset

    options = SearchOptions(
        category=category,
        location=body.location,
        open_now=body.filters.open_now,
        scope=body.filters.scope,
    )
    if body.user_context is not None:
        options.user_context = UserContext(
            age_group=body.user_context.age_group,
            identities=body.user_context.identities,
            has_opted_in=body.user_context.has_opted_in,
        )

    try:
        results = await engine.search_services(query, options)
    except CatalogUnavailableError as e:
        logger.error(f"Search failed, catalog unavailable: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "data": [],
                "meta": {"total": 0, "limit": limit, "offset": offset, "status": STATUS_CATALOG_UNAVAILABLE},
                "detail": "Service directory temporarily unavailable, please retry",
            },
            headers={"Retry-After": str(RETRY_AFTER_SECONDS), "Cache-Control": "no-store"},
        )

    search_status = STATUS_OK if results or not has_query else STATUS_NO_RESULTS
    suggestion = await engine.get_suggestion(query, include_catalog=not results) if has_query else None

    if analytics is not None and has_query:
        analytics.track(build_search_event(
            len(results),
            category=category,
            has_location=body.location is not None,
            status=search_status,
            tokens=tokenize(query),
        ))

    # Privacy: no caching when query present
    response.headers["Cache-Control"] = "no-store" if has_query else "public, s-maxage=60"

    page = results[offset:offset + limit]
    return SearchResponse(
        data=[_result_item(r, body.locale) for r in page],
        meta=SearchMeta(
            total=len(results),
            limit=limit,
            offset=offset,
            status=search_status,
            suggestion=suggestion,
        ),
    )


@app.post("/v1/embed", response_model=EmbeddingResponse)
async def create_embedding(body: EmbeddingRequest, response: Response):
    """
    Embed a query with the server-side model (for clients without one).

    Example:
        POST /v1/embed
        {
            "query": "food bank"
        }
    """
    if not body.query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query is required",
        )

    if embedding_engine is None or not embedding_engine.is_ready:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Embedding model not initialized",
        )

    embedding = await embedding_engine.generate_embedding(body.query)
    if embedding is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Embedding generation failed",
        )

    response.headers["Cache-Control"] = "no-store"
    return EmbeddingResponse(embedding=embedding, dimension=len(embedding))


@app.get("/v1/suggest", response_model=SuggestionResponse)
async def suggest(q: str = Query(default="", max_length=500)):
    """Did-you-mean suggestion for a possibly misspelled query"""
    engine = _require_engine()
    return SuggestionResponse(suggestion=await engine.get_suggestion(q))


@app.post("/v1/analytics/search", status_code=status.HTTP_202_ACCEPTED)
async def track_search(body: AnalyticsEventRequest):
    """Record an anonymous search event (never fails the caller)"""
    if analytics is not None:
        analytics.track(build_search_event(
            body.result_count,
            category=body.category,
            has_location=body.has_location,
        ))
    return {"accepted": True}


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kcc_search.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,  # Development only
    )
