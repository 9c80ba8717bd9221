import logging
from typing import TypeVar

from fastapi import HTTPException

from article_review.errors import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def unwrap(result: T | ServiceError) -> T:
    """Return *result*, or raise the HTTPException its error kind maps to."""
    if not isinstance(result, ServiceError):
        return result
    if result.is_infrastructure:
        logger.error("%s: %s", result.kind.value, result.message)
    else:
        logger.warning("%s: %s", result.kind.value, result.message)
    raise HTTPException(status_code=result.status_code, detail=result.message)
