"""
Parcel Server Backend: SQL Document Store
==========================================

What:  DocumentStore implementation on async SQLAlchemy.
How:   Every collection maps onto rows of the `documents` table filtered by
       the collection name. Field filters compile to JSON path expressions
       (`->>` on PostgreSQL, JSON_EXTRACT on SQLite); sorts are applied to
       the fetched documents with the type ranking from store_base.
Who:   Built once by the application lifespan; shared across requests.

Session handling:
    Standalone operations open a session, run, and commit. Inside
    `transaction()` all operations reuse one session; the commit happens
    when the transaction block exits, and any exception rolls back every
    write made in the block.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.database import Base, create_session_factory
from app.models.document import Document
from app.services.store_base import (
    ID_FIELD,
    DeleteResult,
    DocumentCollection,
    DocumentStore,
    Filter,
    InsertOneResult,
    SortSpec,
    UpdateResult,
    parse_id,
    sort_documents,
    to_json_document,
)

logger = logging.getLogger(__name__)

SessionScope = Callable[[], Any]


def _field_clause(key: str, value: Any):
    """Equality test on a top-level JSON field, typed by the Python value."""
    field = Document.body[key]
    if isinstance(value, bool):
        return field.as_boolean() == value
    if isinstance(value, int):
        return field.as_integer() == value
    if isinstance(value, float):
        return field.as_float() == value
    return field.as_string() == str(value)


def _to_body(document: Dict[str, Any]) -> Dict[str, Any]:
    """Stored form of `document` without its identity."""
    body = to_json_document(document)
    body.pop(ID_FIELD, None)
    return body


class SQLDocumentCollection(DocumentCollection):
    """One logical collection inside the `documents` table."""

    def __init__(self, name: str, session_scope: SessionScope):
        self.name = name
        self._session_scope = session_scope

    def _where(self, filter: Optional[Filter]) -> list:
        clauses = [Document.collection == self.name]
        for key, value in (filter or {}).items():
            if key == ID_FIELD:
                clauses.append(Document.id == parse_id(value))
            else:
                clauses.append(_field_clause(key, value))
        return clauses

    async def find(
        self,
        filter: Optional[Filter] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[Dict[str, Any]]:
        """
        Matching documents, newest first unless `sort` says otherwise.

        Sorting happens after the fetch: a JSON field may hold numbers in
        one document and strings in another, and SQL orders a JSON path
        expression by a single type. Listings are unpaginated, so the full
        result set is in memory either way.
        """
        query = (
            select(Document)
            .where(*self._where(filter))
            .order_by(Document.created_at.desc())
        )

        async with self._session_scope() as session:
            result = await session.execute(query)
            documents = [row.to_dict() for row in result.scalars().all()]

        return sort_documents(documents, sort)

    async def find_one(self, filter: Filter) -> Optional[Dict[str, Any]]:
        query = select(Document).where(*self._where(filter)).limit(1)
        async with self._session_scope() as session:
            result = await session.execute(query)
            row = result.scalar_one_or_none()
            return row.to_dict() if row is not None else None

    async def insert_one(self, document: Dict[str, Any]) -> InsertOneResult:
        row = Document(id=uuid.uuid4(), collection=self.name, body=_to_body(document))
        async with self._session_scope() as session:
            session.add(row)
            await session.flush()
        logger.debug("Inserted %s into %s", row.id, self.name)
        return InsertOneResult(inserted_id=str(row.id))

    async def update_one(self, filter: Filter, values: Dict[str, Any]) -> UpdateResult:
        query = (
            select(Document)
            .where(*self._where(filter))
            .limit(1)
            .with_for_update()
        )
        async with self._session_scope() as session:
            result = await session.execute(query)
            row = result.scalar_one_or_none()
            if row is None:
                return UpdateResult(matched_count=0, modified_count=0)

            current = dict(row.body or {})
            updated = {**current, **_to_body(values)}
            if updated == current:
                return UpdateResult(matched_count=1, modified_count=0)

            # Reassign so the JSON column is flagged dirty
            row.body = updated
            await session.flush()
            return UpdateResult(matched_count=1, modified_count=1)

    async def delete_one(self, filter: Filter) -> DeleteResult:
        query = select(Document.id).where(*self._where(filter)).limit(1)
        async with self._session_scope() as session:
            document_id = (await session.execute(query)).scalar_one_or_none()
            if document_id is None:
                return DeleteResult(deleted_count=0)
            # rowcount is 0 if a concurrent request removed it first
            result = await session.execute(delete(Document).where(Document.id == document_id))
            return DeleteResult(deleted_count=result.rowcount or 0)


class SQLDocumentStore(DocumentStore):
    """
    Document store backed by an async SQLAlchemy engine.

    Args:
        engine:           The shared async engine (owned by this store)
        session_factory:  Optional custom factory; built from `engine` if omitted
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        _session: Optional[AsyncSession] = None,
    ):
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)
        self._session = _session

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncSession]:
        if self._session is not None:
            # Part of an enclosing transaction; it owns commit/rollback
            yield self._session
            return

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def collection(self, name: str) -> SQLDocumentCollection:
        return SQLDocumentCollection(name, self._session_scope)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLDocumentStore"]:
        if self._session is not None:
            yield self
            return

        async with self.session_factory() as session:
            try:
                yield SQLDocumentStore(self.engine, self.session_factory, _session=session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_schema(self) -> None:
        """Create missing tables (local runs and tests; production uses Alembic)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False
        return True

    async def close(self) -> None:
        await self.engine.dispose()
