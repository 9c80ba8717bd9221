from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from article_review.database import Base
from article_review.store import new_object_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Article (owned by the Article service)
# ---------------------------------------------------------------------------
class Article(Base):
    __tablename__ = "articles"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Insertion order for find-all; not part of the public record.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )


# ---------------------------------------------------------------------------
# Review (owned by the Review service)
# ---------------------------------------------------------------------------
class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    # Lives in another service's database, so there is no ForeignKey here;
    # existence is checked over HTTP at write time only.
    article_id: Mapped[str] = mapped_column(String(24), nullable=False, index=True)
    reviewer: Mapped[str] = mapped_column(String(150), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
