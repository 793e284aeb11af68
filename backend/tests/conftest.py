"""
Parcel Server Backend: Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── store:          InMemoryDocumentStore (no database needed)
    ├── gateway:        FakePaymentGateway (no Stripe calls)
    ├── sample_parcel:  A parcel document as the frontend posts it
    ├── app:            FastAPI app built with the two fakes above
    ├── test_client:    HTTPX AsyncClient for API endpoint testing
    ├── sql_store:      SQLDocumentStore on a temporary SQLite file (aiosqlite)
    └── sql_client:     HTTPX AsyncClient for an app backed by sql_store
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_not_real"
os.environ["LOG_LEVEL"] = "WARNING"

import copy  # noqa: E402
import uuid  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.database import create_engine_from_settings  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.document_store import SQLDocumentStore  # noqa: E402
from app.services.gateway_base import PaymentGateway  # noqa: E402
from app.services.store_base import (  # noqa: E402
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


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

class InMemoryCollection(DocumentCollection):
    """
    A collection held in a Python list, in insertion order.

    Mirrors SQLDocumentCollection semantics: malformed `_id` filters raise
    ValueError, sorts rank values by type and fall back to newest-first,
    values are stored in the same JSON form.
    """

    def __init__(self, name: str, documents: List[Dict[str, Any]], failures: Dict[Tuple[str, str], Exception]):
        self.name = name
        self._documents = documents
        self._failures = failures

    def _check_failure(self, operation: str) -> None:
        error = self._failures.get((self.name, operation))
        if error is not None:
            raise error

    @staticmethod
    def _matches(document: Dict[str, Any], filter: Optional[Filter]) -> bool:
        for key, value in (filter or {}).items():
            if key == ID_FIELD:
                if document[ID_FIELD] != str(parse_id(value)):
                    return False
            elif document.get(key) != value:
                return False
        return True

    def _select(self, filter: Optional[Filter]) -> List[Dict[str, Any]]:
        # Validate the filter up front, like the SQL WHERE builder
        if filter and ID_FIELD in filter:
            parse_id(filter[ID_FIELD])
        return [doc for doc in self._documents if self._matches(doc, filter)]

    async def find(self, filter: Optional[Filter] = None, sort: Optional[SortSpec] = None) -> List[Dict[str, Any]]:
        self._check_failure("find")
        results = sort_documents(list(reversed(self._select(filter))), sort)
        return copy.deepcopy(results)

    async def find_one(self, filter: Filter) -> Optional[Dict[str, Any]]:
        self._check_failure("find_one")
        matches = self._select(filter)
        return copy.deepcopy(matches[0]) if matches else None

    async def insert_one(self, document: Dict[str, Any]) -> InsertOneResult:
        self._check_failure("insert_one")
        body = to_json_document(document)
        body.pop(ID_FIELD, None)
        inserted_id = str(uuid.uuid4())
        self._documents.append({ID_FIELD: inserted_id, **body})
        return InsertOneResult(inserted_id=inserted_id)

    async def update_one(self, filter: Filter, values: Dict[str, Any]) -> UpdateResult:
        self._check_failure("update_one")
        matches = self._select(filter)
        if not matches:
            return UpdateResult(matched_count=0, modified_count=0)
        target = matches[0]
        updated = {**target, **to_json_document(values)}
        if updated == target:
            return UpdateResult(matched_count=1, modified_count=0)
        target.update(updated)
        return UpdateResult(matched_count=1, modified_count=1)

    async def delete_one(self, filter: Filter) -> DeleteResult:
        self._check_failure("delete_one")
        matches = self._select(filter)
        if not matches:
            return DeleteResult(deleted_count=0)
        self._documents.remove(matches[0])
        return DeleteResult(deleted_count=1)


class InMemoryDocumentStore(DocumentStore):
    """
    DocumentStore fake for service and route tests.

    `fail(collection, operation, error)` makes the named operation raise.
    `transaction()` works on a deep copy that replaces the data on success.
    """

    def __init__(self, data: Optional[Dict[str, List[Dict[str, Any]]]] = None, failures=None):
        self.data: Dict[str, List[Dict[str, Any]]] = data if data is not None else {}
        self.failures: Dict[Tuple[str, str], Exception] = failures if failures is not None else {}
        self.healthy = True
        self.closed = False

    def fail(self, collection: str, operation: str, error: Exception) -> None:
        self.failures[(collection, operation)] = error

    def documents(self, collection: str) -> List[Dict[str, Any]]:
        return self.data.get(collection, [])

    def collection(self, name: str) -> InMemoryCollection:
        return InMemoryCollection(name, self.data.setdefault(name, []), self.failures)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryDocumentStore"]:
        working = InMemoryDocumentStore(copy.deepcopy(self.data), self.failures)
        yield working
        self.data.clear()
        self.data.update(working.data)

    async def ping(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


class FakePaymentGateway(PaymentGateway):
    """Records create_intent calls; raises `error` when set."""

    def __init__(self, client_secret: str = "pi_test_123_secret_abc"):
        self.client_secret = client_secret
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    async def create_intent(self, amount: int, currency: str, payment_method_types: Sequence[str]) -> str:
        self.calls.append(
            {
                "amount": amount,
                "currency": currency,
                "payment_method_types": list(payment_method_types),
            }
        )
        if self.error is not None:
            raise self.error
        return self.client_secret


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def sample_parcel():
    """A parcel document shaped like the ones the frontend posts."""
    return {
        "title": "Birthday gift",
        "type": "non-document",
        "weight": 2.5,
        "sender_name": "Alice",
        "receiver_name": "Bob",
        "created_by": "alice@example.com",
        "cost": 150,
        "payment_status": "unpaid",
        "delivery_status": "not_collected",
        "tracking_id": "PCL-20260101-ABC123",
        "createdAt": "2026-01-01T10:00:00.000Z",
    }


@pytest.fixture
def app(store, gateway):
    return create_app(document_store=store, payment_gateway=gateway)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    How:     ASGITransport routes requests directly to the app. Lifespan is
             not run, so the fakes injected into create_app() are used.
             raise_app_exceptions=False lets tests see the catch-all 500.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    """SQLDocumentStore on a fresh SQLite database file."""
    engine = create_engine_from_settings(url=f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    sql_store = SQLDocumentStore(engine)
    await sql_store.create_schema()
    yield sql_store
    await sql_store.close()


@pytest_asyncio.fixture
async def sql_client(sql_store, gateway):
    """HTTP client for an app whose document store is the SQLite-backed one."""
    app = create_app(document_store=sql_store, payment_gateway=gateway)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
