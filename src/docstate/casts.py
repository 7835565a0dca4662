"""
Per-field value transformations.

A Cast bundles up to three callables:

    write   - applied by set() before the value is stored
    read    - applied by get() before the value is returned
    persist - applied only by Model.to_dict(to_persist=True)

Persist may differ from read: a datetime field lives in memory as an aware
datetime and goes to storage as an integer epoch.

Mutators (accessor/mutator methods on the model) take priority over casts in
both directions. A set-mutator takes full control of storage; it is expected
to call model.store.put() itself.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

from docstate.errors import UnknownCastError

Transform = Callable[[Any], Any]
Mutator = Callable[[Any, Any], Any]  # (model, value) -> value


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class Cast:
    """Read/write/persist transform triple for one field."""
    read: Transform = _identity
    write: Transform = _identity
    persist: Optional[Transform] = None

    def to_persist(self, value: Any) -> Any:
        if self.persist is None:
            return value
        return self.persist(value)


def _nullable(fn: Transform) -> Transform:
    def wrapper(value: Any) -> Any:
        if value is None:
            return None
        return fn(value)
    wrapper.__name__ = getattr(fn, '__name__', 'cast')
    return wrapper


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return _to_datetime(datetime.fromisoformat(value))
    raise TypeError(f"Cannot cast {type(value).__name__} to datetime")


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc).date()
    raise TypeError(f"Cannot cast {type(value).__name__} to date")


def _to_timestamp(value: Any) -> int:
    if isinstance(value, (datetime, date, str)):
        return int(_to_datetime(value).timestamp())
    return int(value)


def _simple(fn: Transform) -> Cast:
    wrapped = _nullable(fn)
    return Cast(read=wrapped, write=wrapped)


BUILTIN_CASTS: Dict[str, Cast] = {
    'int': _simple(int),
    'float': _simple(float),
    'str': _simple(str),
    'bool': _simple(_to_bool),
    'dict': _simple(dict),
    'list': _simple(list),
    'datetime': Cast(
        read=_nullable(_to_datetime),
        write=_nullable(_to_datetime),
        persist=_nullable(_to_timestamp),
    ),
    'date': Cast(
        read=_nullable(_to_date),
        write=_nullable(_to_date),
        persist=_nullable(lambda d: _to_date(d).isoformat()),
    ),
    'timestamp': _simple(_to_timestamp),
}


def resolve_cast(spec: Union[str, Cast]) -> Cast:
    """Turn a cast declaration (built-in name or Cast) into a Cast."""
    if isinstance(spec, Cast):
        return spec
    if isinstance(spec, str):
        try:
            return BUILTIN_CASTS[spec]
        except KeyError:
            raise UnknownCastError(
                f"Unknown cast {spec!r}. Available: {sorted(BUILTIN_CASTS)}"
            ) from None
    raise UnknownCastError(f"Cast declaration must be a name or Cast, got {type(spec).__name__}")


class CastRegistry:
    """Casts and mutators for one model type.

    Populated once when the type boots; shared by every instance of the type.
    """

    def __init__(self):
        self._casts: Dict[str, Cast] = {}
        self._get_mutators: Dict[str, Mutator] = {}
        self._set_mutators: Dict[str, Mutator] = {}

    # === Registration ===

    def register(self, key: str, spec: Union[str, Cast]) -> None:
        self._casts[key] = resolve_cast(spec)

    def register_many(self, specs: Dict[str, Union[str, Cast]]) -> None:
        for key, spec in specs.items():
            self.register(key, spec)

    def register_get_mutator(self, key: str, fn: Mutator) -> None:
        self._get_mutators[key] = fn

    def register_set_mutator(self, key: str, fn: Mutator) -> None:
        self._set_mutators[key] = fn

    # === Casts ===

    def has_cast(self, key: str) -> bool:
        return key in self._casts

    def read_cast(self, key: str, value: Any) -> Any:
        cast = self._casts.get(key)
        return cast.read(value) if cast is not None else value

    def write_cast(self, key: str, value: Any) -> Any:
        cast = self._casts.get(key)
        return cast.write(value) if cast is not None else value

    def persist_cast(self, key: str, value: Any) -> Any:
        cast = self._casts.get(key)
        return cast.to_persist(value) if cast is not None else value

    # === Mutators ===

    def has_get_mutator(self, key: str) -> bool:
        return key in self._get_mutators

    def has_set_mutator(self, key: str) -> bool:
        return key in self._set_mutators

    def get_mutated(self, owner: Any, key: str, value: Any) -> Any:
        return self._get_mutators[key](owner, value)

    def set_mutated(self, owner: Any, key: str, value: Any) -> Any:
        return self._set_mutators[key](owner, value)

    def keys(self):
        return self._casts.keys()
