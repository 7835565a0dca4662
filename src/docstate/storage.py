"""
Storage collaborator contracts and an in-memory reference backend.

The engine only ever talks to a collection handle through four calls:

    insert_and_return_id(document) -> id
    update_where(filter, partial) -> None
    delete_where(filter) -> None
    find_where(filter) -> list of documents

Filters are plain dicts of field -> value (equality) or field -> {"$in": [...]}.
Single-document operations always filter on identity equality.

Errors raised by a handle propagate to the caller unchanged; nothing here
retries.
"""

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from docstate.config import get_config

logger = logging.getLogger(__name__)


@runtime_checkable
class Collection(Protocol):
    def insert_and_return_id(self, document: Dict[str, Any]) -> Any: ...

    def update_where(self, filter: Dict[str, Any], partial: Dict[str, Any]) -> None: ...

    def delete_where(self, filter: Dict[str, Any]) -> None: ...

    def find_where(self, filter: Dict[str, Any]) -> List[Dict[str, Any]]: ...


@runtime_checkable
class Connection(Protocol):
    def collection(self, name: str) -> Collection: ...


@dataclass(frozen=True)
class Operation:
    """One call recorded by InMemoryCollection."""
    name: str
    filter: Dict[str, Any] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)


def _matches(document: Dict[str, Any], filter: Dict[str, Any]) -> bool:
    for key, expected in filter.items():
        actual = document.get(key)
        if isinstance(expected, dict) and '$in' in expected:
            if actual not in expected['$in']:
                return False
        elif actual != expected:
            return False
    return True


class InMemoryCollection:
    """Dict-backed collection handle.

    Keeps an operation journal in `operations` so callers can see exactly which
    writes reached storage.
    """

    def __init__(self, name: str):
        self.name = name
        self._documents: Dict[Any, Dict[str, Any]] = {}
        self.operations: List[Operation] = []

    def insert_and_return_id(self, document: Dict[str, Any]) -> Any:
        id_field = get_config().id_field
        stored = copy.deepcopy(document)
        doc_id = stored.get(id_field)
        if doc_id is None:
            doc_id = uuid.uuid4().hex
        stored[id_field] = doc_id
        self._documents[doc_id] = stored
        self.operations.append(Operation('insert', payload=copy.deepcopy(stored)))
        logger.debug(f"[{self.name}] insert {doc_id!r}")
        return doc_id

    def update_where(self, filter: Dict[str, Any], partial: Dict[str, Any]) -> None:
        self.operations.append(Operation('update', dict(filter), copy.deepcopy(partial)))
        for document in self._select(filter):
            document.update(copy.deepcopy(partial))

    def delete_where(self, filter: Dict[str, Any]) -> None:
        self.operations.append(Operation('delete', dict(filter)))
        id_field = get_config().id_field
        for document in self._select(filter):
            del self._documents[document[id_field]]

    def find_where(self, filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._select(filter)]

    def _select(self, filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [doc for doc in list(self._documents.values()) if _matches(doc, filter)]

    def operations_named(self, name: str) -> List[Operation]:
        return [op for op in self.operations if op.name == name]

    def __len__(self) -> int:
        return len(self._documents)


class InMemoryConnection:
    """Connection handing out one InMemoryCollection per name."""

    def __init__(self):
        self._collections: Dict[str, InMemoryCollection] = {}

    def collection(self, name: str) -> InMemoryCollection:
        if name not in self._collections:
            self._collections[name] = InMemoryCollection(name)
        return self._collections[name]

    def get(self, name: str) -> Optional[InMemoryCollection]:
        return self._collections.get(name)
