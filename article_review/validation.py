import re

from article_review.errors import ErrorKind, ServiceError

_OBJECT_ID_RE = re.compile(r"[0-9a-fA-F]{24}")

MALFORMED_ID_MESSAGE = "Invalid ID format. It must be a 24-digit hex string."


def is_object_id(value: str | None) -> bool:
    """Return True when *value* is exactly 24 hexadecimal characters."""
    return value is not None and _OBJECT_ID_RE.fullmatch(value) is not None


def validate_object_id(value: str | None, allow_empty: bool = False) -> ServiceError | None:
    """
    Check the shape of a record identifier before it reaches the store.

    *allow_empty* is only set for inserts, where an empty id means the
    store assigns one.  Returns None on success.
    """
    if allow_empty and not value:
        return None
    if not is_object_id(value):
        return ServiceError(ErrorKind.MALFORMED_IDENTIFIER, MALFORMED_ID_MESSAGE)
    return None


def canonical_object_id(value: str) -> str:
    """
    Lowercase form of a validated identifier.  Object ids are hex numbers,
    so ``ABC...`` and ``abc...`` name the same record; lookups, inserts and
    cache keys all use this form.
    """
    return value.lower()
