"""
Document-collection view over the relational store.

Each resource type lives in one table and is accessed through a
``DocumentCollection`` that offers the five operations a document store
would: find-all, find-one-by-id, insert-one, replace-one and delete-one.

- Every mutation commits before returning, so a caller that evicts cache
  entries afterwards never evicts ahead of the store.
- SQLAlchemy / driver failures are translated into ``StoreUnavailableError``
  and unique-key violations into ``DuplicateIdentifierError``; nothing
  from the driver leaks past this module.
- Identifiers are 24-character hex object ids.  When an insert carries no
  id, ``new_object_id`` assigns one.
"""
import itertools
import logging
import os
import time
from contextlib import asynccontextmanager, suppress
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from article_review.errors import DuplicateIdentifierError, StoreUnavailableError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# ---------------------------------------------------------------------------
# Object ids
# ---------------------------------------------------------------------------

# 4-byte timestamp | 5-byte per-process random | 3-byte counter
_PROCESS_UNIQUE = os.urandom(5)
_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))


def new_object_id() -> str:
    """Return a fresh 24-character lowercase hex identifier."""
    timestamp = int(time.time()).to_bytes(4, "big")
    count = (next(_counter) % 0xFFFFFF).to_bytes(3, "big")
    return (timestamp + _PROCESS_UNIQUE + count).hex()


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------

class DocumentCollection(Generic[ModelT]):
    """Ordered collection of *model* rows keyed by their ``id`` column."""

    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    @property
    def name(self) -> str:
        return self.model.__tablename__

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except IntegrityError as exc:
            await self._rollback()
            raise DuplicateIdentifierError(str(exc.orig)) from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Store %s failed on %r: %s", operation, self.name, exc)
            await self._rollback()
            raise StoreUnavailableError(f"{operation} on {self.name} failed") from exc

    async def _rollback(self) -> None:
        # The connection may already be gone; the original error is what matters.
        with suppress(SQLAlchemyError, OSError):
            await self.session.rollback()

    async def find_all(self) -> list[ModelT]:
        async with self._guard("find_all"):
            q = select(self.model).order_by(self.model.created_at, self.model.id)
            result = await self.session.execute(q)
            return list(result.scalars().all())

    async def find_one(self, record_id: str) -> ModelT | None:
        # populate_existing forces a real read even if the row is already
        # in the session's identity map.
        async with self._guard("find_one"):
            q = (
                select(self.model)
                .where(self.model.id == record_id)
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(q)
            return result.scalar_one_or_none()

    async def insert_one(self, values: dict[str, Any]) -> ModelT:
        """Insert a new row, assigning an object id when *values* has none."""
        fields = {k: v for k, v in values.items() if k != "id"}
        record_id = values.get("id") or new_object_id()
        # A Core INSERT leaves uniqueness to the database, independent of
        # whatever the session's identity map already holds.
        async with self._guard("insert_one"):
            await self.session.execute(insert(self.model).values(id=record_id, **fields))
            await self.session.commit()
        return self.model(id=record_id, **fields)

    async def replace_one(self, record_id: str, values: dict[str, Any]) -> ModelT | None:
        """Overwrite every field of the record except its id; None if absent."""
        async with self._guard("replace_one"):
            record = await self.session.get(self.model, record_id)
            if record is None:
                return None
            for field, value in values.items():
                if field != "id":
                    setattr(record, field, value)
            await self.session.commit()
            return record

    async def delete_one(self, record_id: str) -> bool:
        async with self._guard("delete_one"):
            result = await self.session.execute(
                delete(self.model).where(self.model.id == record_id)
            )
            await self.session.commit()
            return result.rowcount > 0

    async def count(self) -> int:
        async with self._guard("count"):
            q = select(func.count()).select_from(self.model)
            return (await self.session.execute(q)).scalar_one()
