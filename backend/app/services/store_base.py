"""
Parcel Server Backend: Abstract Document Store Interface
=========================================================

What:  Contract for the document database collaborator: named collections
       with find / find_one / insert_one / update_one / delete_one, plus a
       unit-of-work `transaction()`.
How:   Concrete stores (SQLDocumentStore; an in-memory fake in the tests)
       inherit from DocumentStore and DocumentCollection.
Who:   Called by ParcelService, TrackingService and PaymentService.

Filters are equality matches on top-level fields; the `_id` key matches the
document identity. Sort specs are (field, direction) pairs with
direction -1 for descending and 1 for ascending.

Value representation:
    Documents are stored as JSON. Datetimes become fixed-width UTC ISO-8601
    strings (`2026-01-02T03:04:05.000000+00:00`), so text order is
    chronological order.

Sort order (per field, ascending):
    missing / null  <  numbers  <  strings  <  objects / arrays  <  booleans
    Numbers compare numerically, strings lexicographically. Documents with
    equal keys keep the store's order (newest first).
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Dict, List, Optional, Sequence, Tuple

from pydantic_core import to_jsonable_python

Filter = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]

# Collection names
PARCELS = "parcels"
TRACKING = "tracking"
PAYMENTS = "payments"

ID_FIELD = "_id"


def _normalize(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    if isinstance(value, dict):
        return {key: _normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def to_json_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-safe copy of `document` in the stored representation."""
    return to_jsonable_python(_normalize(document))


def sort_key(value: Any) -> Tuple[int, Any]:
    """Type-ranked key so mixed-type fields order like a document database."""
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (4, value)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (3, str(value))


def sort_documents(documents: List[Dict[str, Any]], sort: Optional[SortSpec]) -> List[Dict[str, Any]]:
    """
    Order `documents` by `sort`, keeping the incoming order between ties.

    Applies the keys last to first; Python's sort is stable (also with
    reverse=True), which yields a lexicographic multi-key order.
    """
    ordered = list(documents)
    for key, direction in reversed(list(sort or ())):
        ordered.sort(key=lambda doc: sort_key(doc.get(key)), reverse=direction < 0)
    return ordered


def parse_id(value: Any) -> uuid.UUID:
    """
    Convert a document identifier to its native form.

    Raises:
        ValueError: `value` is not a well-formed identifier.
    """
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid document id: {value!r}")
    return uuid.UUID(value)


def is_valid_id(value: Any) -> bool:
    """True if `value` is a well-formed document identifier."""
    try:
        parse_id(value)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class InsertOneResult:
    inserted_id: str
    acknowledged: bool = True


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int
    acknowledged: bool = True


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int
    acknowledged: bool = True


class DocumentCollection(ABC):
    """
    A named set of schemaless documents.

    Contract:
        - Returned documents are plain dicts that include `_id` as a string
        - insert_one ignores any `_id` in the input; the store assigns it
        - update_one / delete_one touch at most one document
        - Failures raise the backend's own exceptions; callers map them
    """

    @abstractmethod
    async def find(
        self,
        filter: Optional[Filter] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[Dict[str, Any]]:
        """All documents matching `filter`, ordered by `sort`."""
        ...

    @abstractmethod
    async def find_one(self, filter: Filter) -> Optional[Dict[str, Any]]:
        """The first matching document, or None."""
        ...

    @abstractmethod
    async def insert_one(self, document: Dict[str, Any]) -> InsertOneResult:
        ...

    @abstractmethod
    async def update_one(self, filter: Filter, values: Dict[str, Any]) -> UpdateResult:
        """
        Set `values` on the first matching document (field-level merge).

        modified_count is 0 when the document already held those values.
        """
        ...

    @abstractmethod
    async def delete_one(self, filter: Filter) -> DeleteResult:
        ...


class DocumentStore(ABC):
    """
    The database collaborator: a factory of collections.

    Lifecycle:
        Built once at startup, shared by every request, closed at shutdown.
    """

    @abstractmethod
    def collection(self, name: str) -> DocumentCollection:
        ...

    @abstractmethod
    def transaction(self) -> AsyncContextManager["DocumentStore"]:
        """
        Unit of work.

        Yields a store whose collections share one transaction. The writes
        commit together when the block exits normally and are rolled back
        if it raises.
        """
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Lightweight connectivity check; never raises."""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
