from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from article_review.cache import CacheBackend
from article_review.database import get_db
from article_review.dependencies import get_cache
from article_review.routers.common import unwrap
from article_review.schemas import MetricsResponse
from article_review.services import article_service, review_service

# One router per deployed service; each app mounts only its own.
articles_router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])
reviews_router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

@articles_router.get("", response_model=MetricsResponse)
async def get_article_metrics(
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    total = unwrap(await article_service.count_articles(db, cache))
    return MetricsResponse(resource=article_service.RESOURCE, total_records=total, cache_info=cache.stats)

@reviews_router.get("", response_model=MetricsResponse)
async def get_review_metrics(
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    total = unwrap(await review_service.count_reviews(db, cache))
    return MetricsResponse(resource=review_service.RESOURCE, total_records=total, cache_info=cache.stats)
