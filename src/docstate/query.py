"""
Query: filter accumulator bound to one model type and its collection handle.

No translation happens here. Filters are handed to the collection's
find_where() as a plain dict; scopes contribute by calling where()/where_in().
"""

from typing import Any, Dict, Iterable, List, Optional

from docstate.config import get_config


class Query:
    """Filters for one model type.

    Args:
        model_type: Model class used to hydrate results
        collection: Collection handle (find_where/update_where/...)
        connection: Connection name handed on to hydrated models
    """

    def __init__(self, model_type: type, collection: Any, connection: Optional[str] = None):
        self.model_type = model_type
        self.collection = collection
        self.connection = connection
        self.filters: Dict[str, Any] = {}
        self.scopes_applied: List[str] = []

    def where(self, field: str, value: Any) -> 'Query':
        self.filters[get_config().resolve_key(field)] = value
        return self

    def where_in(self, field: str, values: Iterable[Any]) -> 'Query':
        self.filters[get_config().resolve_key(field)] = {'$in': list(values)}
        return self

    def get(self) -> List[Any]:
        """Fetch matching documents as persisted model instances."""
        return [
            self.model_type.new_instance(document, exists=True, connection=self.connection)
            for document in self.collection.find_where(dict(self.filters))
        ]

    def first(self) -> Optional[Any]:
        results = self.get()
        return results[0] if results else None

    def find(self, doc_id: Any) -> Optional[Any]:
        return self.where(get_config().id_field, doc_id).first()

    def count(self) -> int:
        return len(self.collection.find_where(dict(self.filters)))

    def __repr__(self) -> str:
        return f"Query({self.model_type.__qualname__}, filters={self.filters!r})"
