"""
Article service: CRUD for the Article resource.

Every function takes the request's ``AsyncSession`` and the process-wide
cache; reads go through the cache-aside accessor, writes evict the keys
they touch once the store has committed.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from article_review.cache import CacheBackend
from article_review.errors import ServiceError
from article_review.models import Article
from article_review.schemas import ArticleCreate, ArticleResponse, ArticleUpdate
from article_review.services.cached_collection import CachedCollection
from article_review.store import DocumentCollection

RESOURCE = "articles"


def _articles(db: AsyncSession, cache: CacheBackend) -> CachedCollection[ArticleResponse]:
    return CachedCollection(
        DocumentCollection(db, Article),
        cache,
        resource=RESOURCE,
        label="Article",
        schema=ArticleResponse,
    )


async def get_articles(db: AsyncSession, cache: CacheBackend) -> list[ArticleResponse] | ServiceError:
    return await _articles(db, cache).list_all()


async def get_article(
    db: AsyncSession, cache: CacheBackend, article_id: str
) -> ArticleResponse | ServiceError:
    return await _articles(db, cache).get_by_id(article_id)


async def create_article(
    db: AsyncSession, cache: CacheBackend, data: ArticleCreate
) -> ArticleResponse | ServiceError:
    return await _articles(db, cache).create(data.model_dump())


async def update_article(
    db: AsyncSession, cache: CacheBackend, article_id: str, data: ArticleUpdate
) -> ArticleResponse | ServiceError:
    return await _articles(db, cache).update(article_id, data.model_dump())


async def delete_article(db: AsyncSession, cache: CacheBackend, article_id: str) -> str | ServiceError:
    """
    Delete the article.  Reviews that reference it are left untouched;
    they live in another service and nothing cascades across that edge.
    """
    return await _articles(db, cache).delete(article_id)


async def count_articles(db: AsyncSession, cache: CacheBackend) -> int | ServiceError:
    return await _articles(db, cache).count()
