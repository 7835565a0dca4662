"""
Process-wide configuration for docstate.

Module-level storage with explicit setters/getters, populated once during
application start-up:

- the active DocStateConfig (identity field names, timestamp field names, clock)
- named storage connections (objects exposing collection(name))
- the validator collaborator used by Model.validate()

Registration is guarded by a lock; reads are lock-free.
"""

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from docstate.errors import ConnectionNotConfigured


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DocStateConfig:
    """Framework settings shared by every model type."""
    id_field: str = "_id"
    id_alias: str = "id"
    created_at_field: str = "created_at"
    updated_at_field: str = "updated_at"
    clock: Callable[[], datetime] = utc_now
    default_connection: str = "default"

    def resolve_key(self, key: str) -> str:
        """Map the identity alias onto the canonical identity field."""
        return self.id_field if key == self.id_alias else key


_lock = threading.Lock()
_config: DocStateConfig = DocStateConfig()
_connections: Dict[str, Any] = {}
_validator: Optional[Any] = None


def get_config() -> DocStateConfig:
    return _config


def configure(**overrides: Any) -> DocStateConfig:
    """Replace selected settings, keeping the rest.

    Example:
        configure(created_at_field="createdAt", updated_at_field="updatedAt")
    """
    global _config
    with _lock:
        _config = replace(_config, **overrides)
        return _config


def reset_config() -> None:
    """Restore defaults and drop registered connections and validator."""
    global _config, _validator
    with _lock:
        _config = DocStateConfig()
        _connections.clear()
        _validator = None


def register_connection(name: str, connection: Any, default: bool = False) -> None:
    """Register a storage connection under name.

    Args:
        name: Name models refer to through their `connection` attribute
        connection: Object exposing collection(name) -> collection handle
        default: Also make this the connection used by models without one
    """
    global _config
    with _lock:
        _connections[name] = connection
        if default:
            _config = replace(_config, default_connection=name)


def get_connection(name: Optional[str] = None) -> Any:
    key = name if name is not None else _config.default_connection
    try:
        return _connections[key]
    except KeyError:
        raise ConnectionNotConfigured(
            f"No connection registered as {key!r}. Registered: {sorted(_connections)}"
        ) from None


def set_validator(validator: Optional[Any]) -> None:
    global _validator
    with _lock:
        _validator = validator


def get_validator() -> Any:
    """Return the configured validator, or a NullValidator when none is set."""
    if _validator is None:
        from docstate.validation import NullValidator
        return NullValidator()
    return _validator
