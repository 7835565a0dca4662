"""
Exception hierarchy for docstate.

Hook aborts are NOT exceptions: a halting listener that returns False makes
save()/delete() return False. Everything here is a hard failure.

Storage errors are never wrapped; whatever the collection handle raises
reaches the caller unchanged.
"""
from typing import Any, List, Optional


class DocStateError(Exception):
    """Base class for all docstate errors."""


class ValidationFailed(DocStateError):
    """The validator collaborator rejected a document."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None, schema: Optional[str] = None):
        super().__init__(message)
        self.errors: List[Any] = list(errors or [])
        self.schema = schema

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return f"{base} ({len(self.errors)} error(s): {self.errors[0]})"


class InvalidScopeRegistration(DocStateError, TypeError):
    """Registered object does not provide a callable apply(query, model)."""


class UnknownCastError(DocStateError, ValueError):
    """Cast name is not one of the registered built-in casts."""


class IdentityImmutableError(DocStateError):
    """Identity field of a persisted document was reassigned."""


class DocumentDeletedError(DocStateError):
    """Deleted is a terminal state; the document cannot be saved again."""


class ConnectionNotConfigured(DocStateError, LookupError):
    """No connection registered under the requested name."""
