"""
Model: a document composed of independent capabilities.

Each instance owns one AttributeStore and one set of ModelFlags. Casts,
scopes and relation resolvers are class-level and live in the type's
ModelMeta (see registry.py); hooks live in the EventHub keyed by
(phase, model type).

Declaring a model:

    class Post(Model):
        collection = "posts"            # default: snake_case plural of class name
        casts = {"views": "int", "published_at": "datetime"}
        hidden = ("secret",)
        timestamps = True

        @classmethod
        def boot(cls):
            super().boot()
            cls.add_scope(PublishedScope())

        @accessor("title")
        def _title_upper(self, value):
            return value.upper() if value else value

    Post.saving(lambda post: post.get("title") is not None)
    post = Post.create({"title": "hello"})
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Optional, Sequence, Union

from docstate.attributes import AttributeStore
from docstate.casts import Cast
from docstate.config import get_config, get_connection, get_validator as get_default_validator
from docstate.errors import IdentityImmutableError
from docstate.events import EventHub, fire_model_event, get_event_hub as get_default_event_hub, model_event_name
from docstate.lifecycle import LifecycleController
from docstate.query import Query
from docstate.registry import ModelRegistry
from docstate.scopes import FunctionScope

logger = logging.getLogger(__name__)

ACCESSOR_MARKER = '__docstate_accessor__'
MUTATOR_MARKER = '__docstate_mutator__'
RELATION_MARKER = '__docstate_relation__'

OBSERVABLE_EVENTS = (
    'creating', 'created',
    'updating', 'updated',
    'saving', 'saved',
    'deleting', 'deleted',
)


def _mark(marker: str, field_name: str) -> Callable[[Callable], Callable]:
    def decorator(fn: Callable) -> Callable:
        setattr(fn, marker, field_name)
        return fn
    return decorator


def accessor(field_name: str) -> Callable[[Callable], Callable]:
    """Mark method(self, stored_value) -> value as the get-mutator of field_name."""
    return _mark(ACCESSOR_MARKER, field_name)


def mutator(field_name: str) -> Callable[[Callable], Callable]:
    """Mark method(self, value) as the set-mutator of field_name.

    The method owns storage: it should call self.store.put(...) itself.
    """
    return _mark(MUTATOR_MARKER, field_name)


def relation(field_name: str) -> Callable[[Callable], Callable]:
    """Mark method(self) -> related value; a non-None result wins over attributes."""
    return _mark(RELATION_MARKER, field_name)


def _camel_to_snake(name: str) -> str:
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def _pluralize(word: str) -> str:
    if re.search('[^aeiou]y$', word):
        return word[:-1] + 'ies'
    if re.search('(s|x|z|ch|sh)$', word):
        return word + 'es'
    return word + 's'


@dataclass
class ModelFlags:
    """Per-document lifecycle flags."""
    exists: bool = False
    deleted: bool = False
    # True only while fill(..., exists=True) runs
    fill_exists: bool = False


class Model:
    """Base class for documents."""

    collection: ClassVar[Optional[str]] = None
    connection: ClassVar[Optional[str]] = None
    casts: ClassVar[Dict[str, Union[str, Cast]]] = {}
    hidden: ClassVar[Sequence[str]] = ()
    timestamps: ClassVar[bool] = False
    observables: ClassVar[Sequence[str]] = ()
    event_hub: ClassVar[Optional[EventHub]] = None
    validator: ClassVar[Optional[Any]] = None

    def __init__(self, attributes: Optional[Dict[str, Any]] = None):
        meta = ModelRegistry.meta_for(type(self))
        self.flags = ModelFlags()
        self.store = AttributeStore(owner=self, casts=meta.casts, relation_resolver=self._resolve_relation)
        self._connection_name: Optional[str] = None

        self.fire_model_event('initializing', halt=False)
        ModelRegistry.boot(type(self), self)

        if attributes:
            self.fill(attributes)

    # ==================== BOOT ====================

    @classmethod
    def boot(cls) -> None:
        """Populate class-level registries. Runs once per concrete type.

        Override to register scopes or hooks; call super().boot() first.
        """
        meta = ModelRegistry.meta_for(cls)
        meta.casts.register_many(cls.casts)

        # Walk the MRO base-first so subclass definitions win
        for klass in reversed(cls.__mro__):
            for member in vars(klass).values():
                fn = getattr(member, '__func__', member)
                if hasattr(fn, ACCESSOR_MARKER):
                    meta.casts.register_get_mutator(getattr(fn, ACCESSOR_MARKER), fn)
                if hasattr(fn, MUTATOR_MARKER):
                    meta.casts.register_set_mutator(getattr(fn, MUTATOR_MARKER), fn)
                if hasattr(fn, RELATION_MARKER):
                    meta.relations[getattr(fn, RELATION_MARKER)] = fn

    @classmethod
    def add_scope(cls, scope: Any, name: Optional[str] = None) -> str:
        """Register a scope on this concrete type.

        A plain callable (query, model) is accepted when name is given.
        """
        if name is not None and not hasattr(scope, 'apply'):
            scope = FunctionScope(name, scope)
        return ModelRegistry.meta_for(cls).scopes.register(scope)

    # ==================== ATTRIBUTES ====================

    def get(self, key: str) -> Any:
        return self.store.get(key)

    def set(self, key: str, value: Any) -> 'Model':
        config = get_config()
        key = config.resolve_key(key)
        if key == config.id_field and self.flags.exists and not self.flags.fill_exists:
            current = self.store.raw(key)
            candidate = ModelRegistry.meta_for(type(self)).casts.write_cast(key, value)
            if candidate != current:
                raise IdentityImmutableError(
                    f"Cannot change {key} of persisted {type(self).__qualname__} from {current!r} to {value!r}"
                )
        self.store.set(key, value)
        return self

    def fill(self, attributes: Dict[str, Any], exists: bool = False) -> 'Model':
        """Set every attribute through set(); exists=True allows overwriting the identity."""
        self.flags.fill_exists = exists
        try:
            for key, value in attributes.items():
                self.set(key, value)
        finally:
            self.flags.fill_exists = False
        return self

    def get_id(self) -> Any:
        return self.store.get(get_config().id_field)

    def get_attributes(self) -> Dict[str, Any]:
        return self.store.attributes()

    def get_original(self, key: Optional[str] = None, default: Any = None) -> Any:
        return self.store.original(key, default)

    def get_changes(self) -> Dict[str, Any]:
        return self.store.diff()

    def has_changed(self, keys: Union[None, str, Iterable[str]] = None) -> bool:
        return self.store.has_changed(keys)

    def sync_original(self) -> 'Model':
        self.store.resync()
        return self

    def _resolve_relation(self, key: str) -> Any:
        resolver = ModelRegistry.meta_for(type(self)).relations.get(key)
        if resolver is None:
            return None
        return resolver(self)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return self.store.has(key)

    @property
    def exists(self) -> bool:
        return self.flags.exists

    # ==================== TIMESTAMPS ====================

    @classmethod
    def uses_timestamps(cls) -> bool:
        return cls.timestamps

    def fresh_timestamp(self) -> datetime:
        return get_config().clock()

    def update_timestamps(self) -> None:
        """Refresh updated_at, and created_at for new documents, unless set explicitly."""
        config = get_config()
        now = self.fresh_timestamp()
        if not self.store.has_changed(config.updated_at_field):
            self.set(config.updated_at_field, now)
        if not self.flags.exists and not self.store.has_changed(config.created_at_field):
            self.set(config.created_at_field, now)

    def touch(self) -> bool:
        if not self.uses_timestamps():
            return False
        self.update_timestamps()
        return self.save()

    # ==================== EVENTS ====================

    @classmethod
    def get_event_hub(cls) -> EventHub:
        return cls.event_hub if cls.event_hub is not None else get_default_event_hub()

    def fire_model_event(self, phase: str, halt: Optional[bool] = None) -> Any:
        return fire_model_event(self.get_event_hub(), self, phase, halt)

    @classmethod
    def register_model_event(cls, phase: str, callback: Callable) -> Callable:
        return cls.get_event_hub().listen(model_event_name(phase, cls), callback)

    @classmethod
    def booting(cls, callback: Callable) -> Callable:
        return cls.register_model_event('booting', callback)

    @classmethod
    def booted(cls, callback: Callable) -> Callable:
        return cls.register_model_event('booted', callback)

    @classmethod
    def validating(cls, callback: Callable) -> Callable:
        return cls.register_model_event('validating', callback)

    @classmethod
    def validated(cls, callback: Callable) -> Callable:
        return cls.register_model_event('validated', callback)

    @classmethod
    def saving(cls, callback: Callable) -> Callable:
        return cls.register_model_event('saving', callback)

    @classmethod
    def saved(cls, callback: Callable) -> Callable:
        return cls.register_model_event('saved', callback)

    @classmethod
    def creating(cls, callback: Callable) -> Callable:
        return cls.register_model_event('creating', callback)

    @classmethod
    def created(cls, callback: Callable) -> Callable:
        return cls.register_model_event('created', callback)

    @classmethod
    def updating(cls, callback: Callable) -> Callable:
        return cls.register_model_event('updating', callback)

    @classmethod
    def updated(cls, callback: Callable) -> Callable:
        return cls.register_model_event('updated', callback)

    @classmethod
    def deleting(cls, callback: Callable) -> Callable:
        return cls.register_model_event('deleting', callback)

    @classmethod
    def deleted(cls, callback: Callable) -> Callable:
        return cls.register_model_event('deleted', callback)

    @classmethod
    def observable_events(cls) -> List[str]:
        return list(OBSERVABLE_EVENTS) + list(cls.observables)

    @classmethod
    def observe(cls, *observers: Any) -> None:
        """Register every method of each observer named after an observable event.

        Observer classes are instantiated with no arguments.
        """
        for observer in observers:
            if isinstance(observer, type):
                observer = observer()
            for event in cls.observable_events():
                method = getattr(observer, event, None)
                if callable(method):
                    cls.register_model_event(event, method)

    # ==================== STORAGE ====================

    @classmethod
    def get_collection(cls) -> str:
        if cls.collection:
            return cls.collection
        return _pluralize(_camel_to_snake(cls.__name__))

    def get_connection_name(self) -> Optional[str]:
        return self._connection_name if self._connection_name is not None else type(self).connection

    def set_connection(self, name: Optional[str]) -> 'Model':
        self._connection_name = name
        return self

    def collection_handle(self) -> Any:
        """Collection handle with no scopes applied (used for writes)."""
        return get_connection(self.get_connection_name()).collection(self.get_collection())

    def new_query(self, ignore_scopes: Iterable[Any] = ()) -> Query:
        query = Query(type(self), self.collection_handle(), connection=self.get_connection_name())
        query.scopes_applied = ModelRegistry.meta_for(type(self)).scopes.apply_all(query, self, ignore_scopes)
        return query

    @classmethod
    def query(cls, ignore_scopes: Iterable[Any] = ()) -> Query:
        return cls().new_query(ignore_scopes)

    @classmethod
    def find(cls, doc_id: Any) -> Optional['Model']:
        return cls.query().find(doc_id)

    @classmethod
    def all(cls) -> List['Model']:
        return cls.query().get()

    @classmethod
    def new_instance(cls, attributes: Optional[Dict[str, Any]] = None, exists: bool = False,
                     connection: Optional[str] = None) -> 'Model':
        """Hydrate a document whose attributes are already the baseline."""
        model = cls()
        model.set_connection(connection)
        model.fill(dict(attributes or {}), exists)
        model.sync_original()
        model.flags.exists = exists
        return model

    @classmethod
    def create(cls, attributes: Dict[str, Any], save: bool = True) -> 'Model':
        instance = cls()
        instance.fill(attributes)
        if save:
            instance.save()
        return instance

    def save(self) -> bool:
        return LifecycleController(self, self.collection_handle()).save()

    def delete(self) -> bool:
        if not self.flags.exists:
            return True
        return LifecycleController(self, self.collection_handle()).delete()

    def validate(self) -> bool:
        return LifecycleController(self, None).validate()

    @classmethod
    def destroy(cls, *ids: Any) -> int:
        """Delete the documents with the given ids. Returns how many were deleted."""
        if len(ids) == 1 and isinstance(ids[0], (list, tuple, set)):
            ids = tuple(ids[0])
        count = 0
        for model in cls.query().where_in(get_config().id_field, ids).get():
            if model.delete():
                count += 1
        return count

    @classmethod
    def get_validator(cls) -> Any:
        return cls.validator if cls.validator is not None else get_default_validator()

    @classmethod
    def schema_name(cls) -> str:
        return f"{cls.__name__}Schema"

    # ==================== SERIALIZATION ====================

    def is_hidden(self, key: str) -> bool:
        return key in self.hidden

    def to_dict(self, to_persist: bool = True) -> Dict[str, Any]:
        """Attributes as a plain dict with the identity under its alias.

        to_persist=True applies persist-casts and drops hidden fields.
        """
        config = get_config()
        casts = ModelRegistry.meta_for(type(self)).casts
        result = {}
        for key in self.store.attributes():
            out_key = config.id_alias if key == config.id_field else key
            value = self.get(key)
            if to_persist:
                if self.is_hidden(key) or self.is_hidden(out_key):
                    continue
                value = casts.persist_cast(key, value)
            result[out_key] = value
        return result

    def to_clone(self) -> 'Model':
        """Unsaved copy of this document without its identity."""
        config = get_config()
        attributes = self.to_dict(to_persist=False)
        attributes.pop(config.id_alias, None)
        attributes.pop(config.id_field, None)
        return type(self).create(attributes, save=False)

    def __repr__(self) -> str:
        state = 'deleted' if self.flags.deleted else ('persisted' if self.flags.exists else 'transient')
        return f"<{type(self).__qualname__} {state} {self.store.attributes()!r}>"
