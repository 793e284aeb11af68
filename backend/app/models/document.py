"""
Parcel Server Backend: Document SQLAlchemy Model
=================================================

What:  ORM model for the `documents` table, the backing store of every
       collection (parcels, tracking, payments).
How:   One row per document. The free-form content lives in a JSON column;
       the collection name and a server-side insertion timestamp live in
       regular columns so they can be indexed.
Who:   Used by SQLDocumentStore for CRUD and by Alembic for schema management.

Table Design:
    - id: UUID primary key, the document's public `_id`
    - collection: logical collection name ("parcels", "tracking", "payments")
    - body: the document itself, stored without `_id`
    - created_at: insertion time (UTC); tie-break when sorting

    Index (collection, created_at) covers "list a collection, newest first".

Body representation:
    JSON has no timestamp type. Datetime values in a document (a payment's
    `paid_at`, a tracking entry's `time`) are written as fixed-width UTC
    ISO-8601 strings, e.g. `2026-01-02T03:04:05.000000+00:00`, whose text
    order is their chronological order. Client-supplied values such as a
    parcel's `createdAt` are kept as sent, number or string.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Document(Base):
    """
    A schemaless document in a named collection.

    Lifecycle:
        1. Inserted by DocumentCollection.insert_one()
        2. Optionally patched by update_one() (parcels: payment_status)
        3. Optionally removed by delete_one() (parcels only)
    """

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    collection: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    body: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_documents_collection_created_at", "collection", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """The API shape of this document: its body plus `_id`."""
        return {"_id": str(self.id), **(self.body or {})}

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, collection='{self.collection}')>"
