"""
Application factories for the two independently deployed services.

    uvicorn article_review.main:article_app --port 5002
    uvicorn article_review.main:review_app --port 5003

Each process builds its own cache in the lifespan and keeps it on
``app.state`` until shutdown; request handlers receive it through the
``get_cache`` dependency.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from article_review.cache import build_cache
from article_review.clients.article_client import ArticleClient
from article_review.config import settings
from article_review.database import create_tables
from article_review.logging_config import configure_logging
from article_review.middleware import TimingMiddleware
from article_review.models import Article, Review
from article_review.routers import articles, metrics, reviews

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred while processing your request."},
    )


def _build_app(title: str, lifespan, routers) -> FastAPI:
    app = FastAPI(title=title, version=VERSION, lifespan=lifespan)

    # Middleware
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, _unexpected_error)

    # Routers
    for router in routers:
        app.include_router(router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": title, "version": VERSION}

    return app


# ---------------------------------------------------------------------------
# Article service
# ---------------------------------------------------------------------------

@asynccontextmanager
async def article_lifespan(app: FastAPI):
    configure_logging(settings, "articles")
    await create_tables(Article)
    app.state.cache = build_cache(settings)
    await app.state.cache.connect()
    yield
    await app.state.cache.disconnect()


def create_article_app() -> FastAPI:
    return _build_app(
        "Article API",
        article_lifespan,
        [articles.router, metrics.articles_router],
    )


# ---------------------------------------------------------------------------
# Review service
# ---------------------------------------------------------------------------

@asynccontextmanager
async def review_lifespan(app: FastAPI):
    configure_logging(settings, "reviews")
    await create_tables(Review)
    app.state.cache = build_cache(settings)
    await app.state.cache.connect()
    app.state.article_client = ArticleClient.from_settings(settings)
    logger.info("Checking article references against %s", settings.ARTICLE_SERVICE_URL)
    yield
    await app.state.article_client.aclose()
    await app.state.cache.disconnect()


def create_review_app() -> FastAPI:
    return _build_app(
        "Review API",
        review_lifespan,
        [reviews.router, metrics.reviews_router],
    )


article_app = create_article_app()
review_app = create_review_app()
