"""FastAPI application entry point"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config.database import init_db
from app.config.settings import settings
from app.crawlers.search.contracts import FetchState
from app.orchestrator import SearchOrchestrator
from app.schemas import RepositoryResponse, SearchRequest, SearchResponse

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_orchestrator() -> SearchOrchestrator:
    return SearchOrchestrator()


@asynccontextmanager
async def lifespan(application: FastAPI):
    init_db()
    logger.info("Database schema initialized")
    # One orchestrator per app start; its store pool does not outlive the lifespan.
    application.state.orchestrator = build_orchestrator()
    try:
        yield
    finally:
        application.state.orchestrator.shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    description="Search GitHub repositories and keep a local, queryable copy",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)


def get_orchestrator(request: Request) -> SearchOrchestrator:
    return request.app.state.orchestrator


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        location = error.get("loc") or ()
        field = str(location[-1]) if location else "request"
        errors[field] = error.get("msg", "Invalid value")
    logger.warning(f"Validation Exception caught: {errors}")
    return JSONResponse(status_code=400, content=errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception):
    logger.error(f"Unhandled Exception caught: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": f"An unexpected error occurred: {exc}"},
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "github-searcher",
        "version": settings.APP_VERSION
    }


@app.post("/api/github/search", response_model=SearchResponse)
async def search_github_repositories(
    search_request: SearchRequest,
    search_orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Search GitHub for repositories and save or update them in the database"""
    logger.info(f"Received search request: {search_request}")
    result = await search_orchestrator.search_and_reconcile(search_request)

    if result.state == FetchState.RATE_LIMITED:
        return JSONResponse(
            status_code=429,
            headers={"Retry-After": str(result.retry_after_seconds)},
            content={
                "error": "GitHub API Rate Limit Exceeded",
                "message": result.error,
                "retryAfterSeconds": result.retry_after_seconds,
            },
        )

    if result.state == FetchState.API_ERROR:
        return JSONResponse(
            status_code=result.status_code or 502,
            content={"error": "GitHub API Error", "message": result.error},
        )

    if result.state != FetchState.OK:
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": f"An unexpected error occurred: {result.error}"},
        )

    reconciled = result.data
    return SearchResponse(
        message="Repositories fetched and saved successfully",
        repositories=[RepositoryResponse.from_record(record) for record in reconciled.records],
        stats=reconciled.stats(),
    )


@app.get("/api/github/repositories", response_model=list[RepositoryResponse])
async def get_stored_repositories(
    language: Optional[str] = Query(None, description="Filter repositories by programming language"),
    min_stars: Optional[int] = Query(None, alias="minStars", description="Filter repositories by minimum number of stars"),
    sort: Optional[str] = Query(None, description="Sort by 'stars', 'forks' or 'lastUpdated'"),
    search_orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Get repositories already stored in the database"""
    logger.info(
        f"Received request to get stored repositories with language: {language}, minStars: {min_stars}, sort: {sort}"
    )
    records = await search_orchestrator.read_stored(language=language, min_stars=min_stars, sort=sort)
    return [RepositoryResponse.from_record(record) for record in records]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
