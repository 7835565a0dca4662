"""
Change-tracking and persistence-lifecycle engine for document models.

A document tracks which fields changed since it was last synchronized with
storage, writes only those fields on update, and fires hooks at every phase of
its create/update/delete lifecycle.

Key Features:
- Dirty tracking with a deep-copied baseline (AttributeStore)
- Per-field read/write/persist casts and accessor/mutator methods
- Per-type named scopes applied to every query, with selective bypass
- Lifecycle hooks with halt-on-false semantics (EventHub)
- Pluggable storage and validator collaborators

Quick Start:
    >>> from docstate import Model, InMemoryConnection, register_connection
    >>>
    >>> register_connection("default", InMemoryConnection(), default=True)
    >>>
    >>> class Article(Model):
    ...     casts = {"views": "int"}
    ...     timestamps = True
    >>>
    >>> article = Article.create({"title": "Hello", "views": "3"})
    >>> article.exists, article.has_changed()
    (True, False)
    >>> article["title"] = "Hello again"
    >>> article.get_changes()
    {'title': 'Hello again'}

Modules:
    - attributes: AttributeStore (current/original/dirty)
    - casts: Cast and CastRegistry
    - scopes: Scope, FunctionScope, ScopeRegistry
    - events: EventHub, HookResult, model event naming
    - registry: ModelRegistry of per-type metadata
    - lifecycle: LifecycleController (create/update/delete/save)
    - model: Model base class and accessor/mutator/relation decorators
    - query: Query filter accumulator
    - storage: collaborator protocols and in-memory backend
    - validation: NullValidator and JsonSchemaValidator
    - config: process-wide settings, connections and validator
    - errors: exception hierarchy
"""

# Configuration
from docstate.config import (
    DocStateConfig,
    configure,
    get_config,
    reset_config,
    register_connection,
    get_connection,
    set_validator,
    get_validator,
)

# Errors
from docstate.errors import (
    DocStateError,
    ValidationFailed,
    InvalidScopeRegistration,
    UnknownCastError,
    IdentityImmutableError,
    DocumentDeletedError,
    ConnectionNotConfigured,
)

# Core components
from docstate.attributes import AttributeStore
from docstate.casts import Cast, CastRegistry, BUILTIN_CASTS
from docstate.scopes import Scope, FunctionScope, ScopeRegistry, WILDCARD
from docstate.events import (
    EventHub,
    HookResult,
    get_event_hub,
    model_event_name,
    fire_model_event,
)
from docstate.registry import ModelMeta, ModelRegistry
from docstate.lifecycle import LifecycleController

# Model surface
from docstate.model import Model, ModelFlags, accessor, mutator, relation
from docstate.query import Query

# Collaborators
from docstate.storage import Collection, Connection, InMemoryCollection, InMemoryConnection
from docstate.validation import Validator, NullValidator, JsonSchemaValidator

__all__ = [
    # Configuration
    'DocStateConfig',
    'configure',
    'get_config',
    'reset_config',
    'register_connection',
    'get_connection',
    'set_validator',
    'get_validator',
    # Errors
    'DocStateError',
    'ValidationFailed',
    'InvalidScopeRegistration',
    'UnknownCastError',
    'IdentityImmutableError',
    'DocumentDeletedError',
    'ConnectionNotConfigured',
    # Core components
    'AttributeStore',
    'Cast',
    'CastRegistry',
    'BUILTIN_CASTS',
    'Scope',
    'FunctionScope',
    'ScopeRegistry',
    'WILDCARD',
    'EventHub',
    'HookResult',
    'get_event_hub',
    'model_event_name',
    'fire_model_event',
    'ModelMeta',
    'ModelRegistry',
    'LifecycleController',
    # Model surface
    'Model',
    'ModelFlags',
    'accessor',
    'mutator',
    'relation',
    'Query',
    # Collaborators
    'Collection',
    'Connection',
    'InMemoryCollection',
    'InMemoryConnection',
    'Validator',
    'NullValidator',
    'JsonSchemaValidator',
]

__version__ = "0.1.0"
