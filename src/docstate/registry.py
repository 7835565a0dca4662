"""
ModelRegistry: process-wide, type-keyed table of per-model-type metadata.

Each concrete model type gets one ModelMeta holding its casts, scopes,
relation resolvers and booted flag. Entries are created lazily and populated
once by ModelRegistry.boot() the first time the type is instantiated.

Thread safety: entry creation and booting take a re-entrant lock, so two
threads instantiating the same type concurrently boot it exactly once, and
neither sees the type before boot() has finished.
Registration after start-up (new scopes while queries run) is not supported.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from docstate.casts import CastRegistry
from docstate.events import fire_model_event
from docstate.scopes import ScopeRegistry

logger = logging.getLogger(__name__)


@dataclass
class ModelMeta:
    """Class-level state of one model type. Never owned by an instance."""
    model_type: type
    casts: CastRegistry = field(default_factory=CastRegistry)
    scopes: ScopeRegistry = field(default_factory=ScopeRegistry)
    relations: Dict[str, Callable[[Any], Any]] = field(default_factory=dict)
    booted: bool = False
    # Only ever observed true by the thread holding ModelRegistry._lock
    booting: bool = False


class ModelRegistry:
    """Singleton registry of ModelMeta keyed by model type."""
    _metas: Dict[type, ModelMeta] = {}
    _lock = threading.RLock()

    @classmethod
    def meta_for(cls, model_type: type) -> ModelMeta:
        meta = cls._metas.get(model_type)
        if meta is not None:
            return meta
        with cls._lock:
            meta = cls._metas.get(model_type)
            if meta is None:
                meta = ModelMeta(model_type=model_type)
                cls._metas[model_type] = meta
            return meta

    @classmethod
    def is_booted(cls, model_type: type) -> bool:
        meta = cls._metas.get(model_type)
        return meta is not None and meta.booted

    @classmethod
    def boot(cls, model_type: type, instance: Any) -> bool:
        """Boot model_type once. Returns True if this call did the booting.

        Order: booting event -> model_type.boot() -> booted event. The booted
        flag is set only after all three finish; other threads block on the
        lock until then. Instances created inside boot() on the booting
        thread see meta.booting and do not re-enter.
        """
        meta = cls.meta_for(model_type)
        if meta.booted:
            return False
        with cls._lock:
            if meta.booted or meta.booting:
                return False
            meta.booting = True
            try:
                hub = instance.get_event_hub()
                fire_model_event(hub, instance, 'booting', halt=False)
                model_type.boot()
                fire_model_event(hub, instance, 'booted', halt=False)
                meta.booted = True
            finally:
                # On failure the type stays unbooted so the next instantiation retries
                meta.booting = False
        logger.debug(f"Booted model {model_type.__qualname__}")
        return True

    @classmethod
    def types(cls) -> List[type]:
        return list(cls._metas)

    @classmethod
    def clear(cls) -> None:
        """Forget every type (tests)."""
        with cls._lock:
            cls._metas.clear()
