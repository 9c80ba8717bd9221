"""
Error taxonomy shared by both services.

Core operations never raise for expected failures; they return a
``ServiceError`` value whose ``kind`` the routers map to an HTTP status.
Infrastructure adapters (store, HTTP client) raise the exceptions defined
at the bottom of this module, and the core converts them into values.
"""
from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_IDENTIFIER = "malformed_identifier"
    NOT_FOUND = "not_found"
    REFERENTIAL_INTEGRITY_VIOLATION = "referential_integrity_violation"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"
    STORE_UNAVAILABLE = "store_unavailable"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.MALFORMED_IDENTIFIER: 400,
    ErrorKind.REFERENTIAL_INTEGRITY_VIOLATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE_IDENTIFIER: 409,
    ErrorKind.DEPENDENCY_UNAVAILABLE: 502,
    ErrorKind.STORE_UNAVAILABLE: 500,
}

# Kinds caused by the infrastructure rather than by the caller's input.
INFRASTRUCTURE_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.DEPENDENCY_UNAVAILABLE, ErrorKind.STORE_UNAVAILABLE}
)


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    @property
    def is_infrastructure(self) -> bool:
        return self.kind in INFRASTRUCTURE_KINDS


class StoreUnavailableError(Exception):
    """The backing store could not be reached or failed mid-operation."""


class DuplicateIdentifierError(Exception):
    """An insert used an identifier that already exists in the collection."""


class DependencyUnavailableError(Exception):
    """The owning service of a referenced record could not answer."""
