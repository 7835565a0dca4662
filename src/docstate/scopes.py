"""
Named query predicates registered per concrete model type.

Every query built for a type runs through its registered scopes unless the
caller suppresses them by name (or with the wildcard "*").

Scopes are keyed by the concrete type: a subclass does not see its parent's
scopes. Default scope names are the scope's fully-qualified type name, so two
scope classes with the same short name in different modules never collide.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from docstate.errors import InvalidScopeRegistration

logger = logging.getLogger(__name__)

WILDCARD = '*'

IgnoreEntry = Union[str, type]


def default_scope_name(scope_type: type) -> str:
    return f"{scope_type.__module__}.{scope_type.__qualname__}"


class Scope:
    """Base class for scopes. Subclasses implement apply(query, model).

    Set the class attribute `name` for a short, stable name; otherwise the
    fully-qualified class name is used.
    """
    name: Optional[str] = None

    def get_name(self) -> str:
        return self.name or default_scope_name(type(self))

    def apply(self, query: Any, model: Any) -> None:
        raise NotImplementedError


class FunctionScope(Scope):
    """Adapts a plain callable (query, model) -> None into a named scope."""

    def __init__(self, name: str, fn: Callable[[Any, Any], None]):
        if not callable(fn):
            raise InvalidScopeRegistration(f"Scope {name!r} needs a callable, got {type(fn).__name__}")
        self.name = name
        self._fn = fn

    def apply(self, query: Any, model: Any) -> None:
        self._fn(query, model)

    def __repr__(self) -> str:
        return f"FunctionScope({self.name!r})"


def scope_name(scope: Any) -> str:
    get_name = getattr(scope, 'get_name', None)
    if callable(get_name):
        return get_name()
    return default_scope_name(type(scope))


def _normalize_ignore(ignore: Iterable[IgnoreEntry]) -> set:
    names = set()
    for entry in ignore:
        if isinstance(entry, type):
            names.add(entry.name if getattr(entry, 'name', None) else default_scope_name(entry))
        else:
            names.add(entry)
    return names


class ScopeRegistry:
    """Ordered scopes of one model type."""

    def __init__(self):
        self._scopes: Dict[str, Any] = {}

    def register(self, scope: Any) -> str:
        """Register scope and return the name it was stored under.

        Raises:
            InvalidScopeRegistration: scope has no callable apply(); a scope
                class passed instead of an instance is rejected too, as is
                a Scope subclass that never overrides apply()
        """
        if isinstance(scope, type) or not callable(getattr(scope, 'apply', None)):
            raise InvalidScopeRegistration(
                f"Scope must be an object with a callable apply(query, model), got {scope!r}"
            )
        if isinstance(scope, Scope) and type(scope).apply is Scope.apply:
            raise InvalidScopeRegistration(
                f"{type(scope).__qualname__} does not implement apply(query, model)"
            )
        name = scope_name(scope)
        # Re-registering a name replaces the scope in place
        self._scopes[name] = scope
        logger.debug(f"Registered scope {name!r}")
        return name

    def remove(self, name: IgnoreEntry) -> None:
        for key in _normalize_ignore((name,)):
            self._scopes.pop(key, None)

    def names(self) -> List[str]:
        return list(self._scopes)

    def get(self, name: str) -> Optional[Any]:
        return self._scopes.get(name)

    def apply_all(self, query: Any, model: Any, ignore: Iterable[IgnoreEntry] = ()) -> List[str]:
        """Apply every non-ignored scope in registration order.

        Returns:
            Names of the scopes that were applied
        """
        ignored = _normalize_ignore(ignore)
        if WILDCARD in ignored:
            return []
        applied = []
        for name, scope in list(self._scopes.items()):
            if name in ignored:
                continue
            scope.apply(query, model)
            applied.append(name)
        return applied

    def __contains__(self, name: str) -> bool:
        return name in self._scopes

    def __len__(self) -> int:
        return len(self._scopes)
