"""
AttributeStore: current values, saved baseline and dirty keys for one document.

Three co-indexed structures:

    current  - live values (authoritative)
    original - deep copy of current as of the last resync
    dirty    - insertion-ordered set of keys touched since the last resync

set() ALWAYS marks its key dirty, even when the new value equals the old one.
resync() is the only operation that clears the dirty set (discard() restores
current from original and clears it too).

All operations are in-memory and do not raise.
"""
import copy
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Union

from docstate.casts import CastRegistry
from docstate.config import get_config

logger = logging.getLogger(__name__)

RelationResolver = Callable[[str], Any]


class AttributeStore:
    """Dirty-tracking attribute map owned by exactly one document.

    Args:
        owner: The document passed to accessor/mutator functions
        casts: Cast/mutator registry of the owner's type (empty if None)
        relation_resolver: Called with the resolved key before any attribute
                           lookup; a non-None result short-circuits get()
    """

    def __init__(
        self,
        owner: Any = None,
        casts: Optional[CastRegistry] = None,
        relation_resolver: Optional[RelationResolver] = None,
    ):
        self._owner = owner
        self._casts = casts if casts is not None else CastRegistry()
        self._relation_resolver = relation_resolver

        self._current: Dict[str, Any] = {}
        self._original: Dict[str, Any] = {}
        self._dirty: Dict[str, None] = {}

    @staticmethod
    def resolve_key(key: str) -> str:
        return get_config().resolve_key(key)

    # ==================== READ ====================

    def get(self, key: str) -> Any:
        key = self.resolve_key(key)

        if self._relation_resolver is not None:
            related = self._relation_resolver(key)
            if related is not None:
                return related

        if key in self._current or self._casts.has_get_mutator(key):
            return self._transform_for_read(key, self._current.get(key))

        return None

    def _transform_for_read(self, key: str, value: Any) -> Any:
        if self._casts.has_get_mutator(key):
            return self._casts.get_mutated(self._owner, key, value)
        if self._casts.has_cast(key):
            return self._casts.read_cast(key, value)
        return value

    def raw(self, key: str, default: Any = None) -> Any:
        """Stored value without accessors or casts."""
        return self._current.get(self.resolve_key(key), default)

    def has(self, key: str) -> bool:
        return self.resolve_key(key) in self._current

    def attributes(self) -> Dict[str, Any]:
        return dict(self._current)

    def originals(self) -> Dict[str, Any]:
        return dict(self._original)

    def original(self, key: Optional[str] = None, default: Any = None) -> Any:
        if key is None:
            return dict(self._original)
        return self._original.get(self.resolve_key(key), default)

    # ==================== WRITE ====================

    def set(self, key: str, value: Any) -> 'AttributeStore':
        key = self.resolve_key(key)

        # Mutator decides where (and whether) the value is stored
        if self._casts.has_set_mutator(key):
            self._dirty[key] = None
            self._casts.set_mutated(self._owner, key, value)
            return self

        if self._casts.has_cast(key):
            value = self._casts.write_cast(key, value)

        return self.put(key, value)

    def put(self, key: str, value: Any) -> 'AttributeStore':
        """Store value as-is and mark key dirty."""
        key = self.resolve_key(key)
        self._dirty[key] = None
        self._current[key] = value
        return self

    def remove(self, key: str) -> 'AttributeStore':
        """Drop key; it stays dirty so diff() reports it as None."""
        key = self.resolve_key(key)
        if key in self._current:
            del self._current[key]
            self._dirty[key] = None
        return self

    def set_raw(self, attributes: Dict[str, Any], sync: bool = False) -> 'AttributeStore':
        """Replace current wholesale. No casts, no mutators, dirty set untouched."""
        self._current = dict(attributes)
        if sync:
            self.resync()
        return self

    def merge_raw(self, attributes: Dict[str, Any], sync: bool = False, force: bool = False) -> 'AttributeStore':
        """Route each pair through set(), skipping keys already present unless force."""
        for key, value in attributes.items():
            if force or not self.has(key):
                self.set(key, value)
        if sync:
            self.resync()
        return self

    # ==================== DIRTY TRACKING ====================

    @property
    def dirty_keys(self) -> Iterable[str]:
        return tuple(self._dirty)

    def diff(self) -> Dict[str, Any]:
        """Current values of dirty keys; absent keys map to None."""
        return {key: self._current.get(key) for key in self._dirty}

    def has_changed(self, keys: Union[None, str, Iterable[str]] = None) -> bool:
        if keys is None:
            return bool(self._dirty)
        if isinstance(keys, str):
            keys = (keys,)
        return any(self.resolve_key(k) in self._dirty for k in keys)

    def resync(self) -> 'AttributeStore':
        """Take current as the new baseline."""
        self._original = copy.deepcopy(self._current)
        self._dirty = {}
        return self

    def discard(self) -> 'AttributeStore':
        """Throw away unsynced changes and return to the baseline."""
        if self._dirty:
            logger.debug(f"Discarding changes to {list(self._dirty)}")
        self._current = copy.deepcopy(self._original)
        self._dirty = {}
        return self

    def __len__(self) -> int:
        return len(self._current)

    def __repr__(self) -> str:
        return f"AttributeStore(current={self._current!r}, dirty={list(self._dirty)!r})"
