"""
Cache-aside accessor shared by the Article and Review services.

Design notes
------------
- Two logical cache keys per resource: ``all-<resource>`` for the full
  list and ``<resource>-by-id:<id>`` for a single record.  Nothing else is
  cached, so those are the only keys a write has to evict.
- Reads consult the cache first and fill it from the store on a miss.
  Concurrent misses on the same key may all hit the store and all fill
  the cache; the last writer wins and the values are equivalent.
- Writes never trust the cache: update and delete re-read the store
  before mutating, and evict only once the store has committed.
- No lock spans "read store -> mutate -> evict".  A list/detail read that
  fetched from the store just before a write commits can put the old
  value back after the write's eviction.  That entry survives until the
  next write to the same key or its TTL, which bounds the staleness.
  The same bound applies when a remote cache rejects an eviction: the
  write is acknowledged and the failure is logged at error level.
- Identifiers are lowercased after validation, so every case variant of
  an id maps to the same row and the same cache key.
- Expected failures come back as ``ServiceError`` values.  Store failures
  raised by ``DocumentCollection`` are converted here, in one place.
"""
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel

from article_review.cache import CacheBackend, CacheTTL
from article_review.errors import (
    DuplicateIdentifierError,
    ErrorKind,
    ServiceError,
    StoreUnavailableError,
)
from article_review.store import DocumentCollection
from article_review.validation import canonical_object_id, validate_object_id

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

# Runs after validation (and, for updates, after the store read) but before
# any mutation.  Returning a ServiceError aborts the write.
WriteCheck = Callable[[], Awaitable[ServiceError | None]]


class CachedCollection(Generic[RecordT]):
    def __init__(
        self,
        collection: DocumentCollection,
        cache: CacheBackend,
        *,
        resource: str,
        label: str,
        schema: type[RecordT],
        ttl: CacheTTL | None = None,
    ) -> None:
        self.collection = collection
        self.cache = cache
        self.resource = resource
        self.label = label
        self.schema = schema
        self.ttl = ttl

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @property
    def all_key(self) -> str:
        return f"all-{self.resource}"

    def id_key(self, record_id: str) -> str:
        return f"{self.resource}-by-id:{record_id}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _to_record(self, row: Any) -> RecordT:
        return self.schema.model_validate(row)

    def _not_found(self, record_id: str) -> ServiceError:
        return ServiceError(ErrorKind.NOT_FOUND, f"{self.label} with id {record_id} does not exist.")

    def _store_unavailable(self, exc: StoreUnavailableError) -> ServiceError:
        logger.error("Store unavailable for %s: %s", self.resource, exc)
        return ServiceError(ErrorKind.STORE_UNAVAILABLE, f"The {self.resource} store is unavailable.")

    async def _evict(self, *keys: str) -> None:
        # The store has already committed; the write stands either way.
        if not await self.cache.remove(*keys):
            logger.error(
                "Eviction of %r after a %s write failed; cached values may be stale until TTL",
                keys,
                self.resource,
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_all(self) -> list[RecordT] | ServiceError:
        cached = await self.cache.get(self.all_key)
        if cached is not None:
            return [self.schema.model_validate(item) for item in cached]

        try:
            rows = await self.collection.find_all()
        except StoreUnavailableError as exc:
            return self._store_unavailable(exc)

        records = [self._to_record(row) for row in rows]
        await self.cache.set(self.all_key, [r.model_dump() for r in records], ttl=self.ttl)
        return records

    async def get_by_id(self, record_id: str) -> RecordT | ServiceError:
        error = validate_object_id(record_id)
        if error:
            return error
        record_id = canonical_object_id(record_id)

        key = self.id_key(record_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return self.schema.model_validate(cached)

        try:
            row = await self.collection.find_one(record_id)
        except StoreUnavailableError as exc:
            return self._store_unavailable(exc)
        if row is None:
            return self._not_found(record_id)

        record = self._to_record(row)
        await self.cache.set(key, record.model_dump(), ttl=self.ttl)
        return record

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        values: dict[str, Any],
        check: WriteCheck | None = None,
    ) -> RecordT | ServiceError:
        """
        Insert a record.  ``values["id"]`` may be empty, in which case the
        store assigns an identifier; the returned record carries it.
        """
        record_id = values.get("id") or ""
        error = validate_object_id(record_id, allow_empty=True)
        if error:
            return error
        record_id = canonical_object_id(record_id)
        values = {**values, "id": record_id}
        if check is not None:
            error = await check()
            if error:
                return error

        try:
            row = await self.collection.insert_one(values)
        except DuplicateIdentifierError:
            return ServiceError(
                ErrorKind.DUPLICATE_IDENTIFIER,
                f"{self.label} with id {record_id} already exists.",
            )
        except StoreUnavailableError as exc:
            return self._store_unavailable(exc)

        await self._evict(self.all_key)
        record = self._to_record(row)
        logger.info("Created %s %s", self.label.lower(), record.id)
        return record

    async def update(
        self,
        record_id: str,
        values: dict[str, Any],
        check: WriteCheck | None = None,
    ) -> RecordT | ServiceError:
        """Replace every field of an existing record, read from the store first."""
        error = validate_object_id(record_id)
        if error:
            return error
        record_id = canonical_object_id(record_id)

        try:
            existing = await self.collection.find_one(record_id)
            if existing is None:
                return self._not_found(record_id)
            if check is not None:
                error = await check()
                if error:
                    return error
            row = await self.collection.replace_one(record_id, values)
        except StoreUnavailableError as exc:
            return self._store_unavailable(exc)
        if row is None:
            # Deleted between the read and the replace.
            return self._not_found(record_id)

        await self._evict(self.id_key(record_id), self.all_key)
        logger.info("Updated %s %s", self.label.lower(), record_id)
        return self._to_record(row)

    async def delete(self, record_id: str) -> str | ServiceError:
        error = validate_object_id(record_id)
        if error:
            return error
        record_id = canonical_object_id(record_id)

        try:
            existing = await self.collection.find_one(record_id)
            if existing is None:
                return self._not_found(record_id)
            deleted = await self.collection.delete_one(record_id)
        except StoreUnavailableError as exc:
            return self._store_unavailable(exc)
        if not deleted:
            return self._not_found(record_id)

        await self._evict(self.id_key(record_id), self.all_key)
        logger.info("Deleted %s %s", self.label.lower(), record_id)
        return f"{self.label} with id {record_id} has been successfully deleted."

    async def count(self) -> int | ServiceError:
        try:
            return await self.collection.count()
        except StoreUnavailableError as exc:
            return self._store_unavailable(exc)
