from fastapi import Query, Request

from article_review.cache import CacheBackend
from article_review.config import settings
from article_review.services.article_reference import ArticleExistenceChecker


class ListParams:
    """
    Reusable FastAPI dependency that parses the list slicing parameters.

    The full list is what gets cached; slicing is applied to the cached
    sequence, so every ``skip``/``top`` combination shares one cache entry.

    Attributes
    ----------
    skip:
        Number of leading records to drop (minimum 0).
    top:
        Maximum number of records returned, between 1 and
        ``settings.MAX_PAGE_SIZE``; larger values are rejected with 422.
    """

    def __init__(
        self,
        skip: int = Query(0, ge=0, description="Number of records to skip."),
        top: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description=f"Maximum number of records to return (max {settings.MAX_PAGE_SIZE}).",
        ),
    ) -> None:
        self.skip = skip
        self.top = top

    def apply(self, records: list) -> list:
        return records[self.skip:self.skip + self.top]


def get_cache(request: Request) -> CacheBackend:
    """The process-wide cache created in the application lifespan."""
    return request.app.state.cache


def get_article_checker(request: Request) -> ArticleExistenceChecker:
    """The Article service client created in the Review app's lifespan."""
    return request.app.state.article_client
