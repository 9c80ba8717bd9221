"""
Review service: CRUD for the Review resource.

Reviews point at an article owned by the Article service.  Create and
update verify that article over HTTP before touching the store:

1. both identifiers are shape-checked, before any store or network call;
2. (update only) the review is read from the store, not the cache;
3. the article reference is verified;
4. the store is mutated and the cache keys are evicted.

A failed check means nothing was written, so an aborted request needs no
compensation.
"""
from functools import partial

from sqlalchemy.ext.asyncio import AsyncSession

from article_review.cache import CacheBackend
from article_review.errors import ServiceError
from article_review.models import Review
from article_review.schemas import ReviewCreate, ReviewResponse, ReviewUpdate
from article_review.services.article_reference import (
    ArticleExistenceChecker,
    verify_article_reference,
)
from article_review.services.cached_collection import CachedCollection
from article_review.store import DocumentCollection
from article_review.validation import canonical_object_id, validate_object_id

RESOURCE = "reviews"


def _reviews(db: AsyncSession, cache: CacheBackend) -> CachedCollection[ReviewResponse]:
    return CachedCollection(
        DocumentCollection(db, Review),
        cache,
        resource=RESOURCE,
        label="Review",
        schema=ReviewResponse,
    )


async def get_reviews(db: AsyncSession, cache: CacheBackend) -> list[ReviewResponse] | ServiceError:
    return await _reviews(db, cache).list_all()


async def get_review(
    db: AsyncSession, cache: CacheBackend, review_id: str
) -> ReviewResponse | ServiceError:
    return await _reviews(db, cache).get_by_id(review_id)


async def create_review(
    db: AsyncSession,
    cache: CacheBackend,
    articles: ArticleExistenceChecker,
    data: ReviewCreate,
) -> ReviewResponse | ServiceError:
    error = validate_object_id(data.id, allow_empty=True) or validate_object_id(data.article_id)
    if error:
        return error
    article_id = canonical_object_id(data.article_id)
    return await _reviews(db, cache).create(
        {**data.model_dump(), "article_id": article_id},
        check=partial(verify_article_reference, articles, article_id),
    )


async def update_review(
    db: AsyncSession,
    cache: CacheBackend,
    articles: ArticleExistenceChecker,
    review_id: str,
    data: ReviewUpdate,
) -> ReviewResponse | ServiceError:
    error = validate_object_id(review_id) or validate_object_id(data.article_id)
    if error:
        return error
    article_id = canonical_object_id(data.article_id)
    return await _reviews(db, cache).update(
        review_id,
        {**data.model_dump(), "article_id": article_id},
        check=partial(verify_article_reference, articles, article_id),
    )


async def delete_review(db: AsyncSession, cache: CacheBackend, review_id: str) -> str | ServiceError:
    return await _reviews(db, cache).delete(review_id)


async def count_reviews(db: AsyncSession, cache: CacheBackend) -> int | ServiceError:
    return await _reviews(db, cache).count()
