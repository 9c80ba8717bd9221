"""
Referential check for reviews: the article a review points at must exist
in the Article service at the moment the review is written.

The check is never cached and runs on every create and update.  Nothing
keeps the reference valid afterwards: deleting an article leaves its
reviews in place.
"""
import logging
from typing import Protocol

from article_review.errors import DependencyUnavailableError, ErrorKind, ServiceError

logger = logging.getLogger(__name__)


class ArticleExistenceChecker(Protocol):
    async def exists(self, article_id: str) -> bool:
        """True if the article resolves; raise DependencyUnavailableError on outage."""
        ...


async def verify_article_reference(
    checker: ArticleExistenceChecker, article_id: str
) -> ServiceError | None:
    """*article_id* must already be a well-formed object id."""
    try:
        exists = await checker.exists(article_id)
    except DependencyUnavailableError as exc:
        return ServiceError(ErrorKind.DEPENDENCY_UNAVAILABLE, str(exc))

    if not exists:
        logger.info("Rejected write referencing missing article %s", article_id)
        return ServiceError(
            ErrorKind.REFERENTIAL_INTEGRITY_VIOLATION,
            f"Article with id {article_id} does not exist.",
        )
    return None
