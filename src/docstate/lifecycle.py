"""
LifecycleController: create/update/delete/save orchestration for one document.

State machine:

    Transient (exists=False) --create--> Persisted (exists=True) --delete--> Deleted

Deleted is terminal: saving a deleted document raises DocumentDeletedError.

Two signalling channels, never conflated:
- a halting hook returning False -> the operation returns False, no side effect
- validation or storage failure   -> exception propagates to the caller

On a storage failure nothing is resynced: the dirty set stays intact so the
caller can retry save().
"""

import logging
from typing import Any

from docstate.config import get_config
from docstate.errors import DocumentDeletedError, ValidationFailed

logger = logging.getLogger(__name__)


class LifecycleController:
    """Drives one document through its persistence lifecycle.

    Args:
        model: The document (Model instance)
        collection: Collection handle the writes go to (scopes never applied)
    """

    def __init__(self, model: Any, collection: Any):
        self.model = model
        self.collection = collection

    def _fire(self, phase: str, halt: bool = True) -> Any:
        return self.model.fire_model_event(phase, halt=halt)

    def _identity_filter(self) -> dict:
        return {get_config().id_field: self.model.get_id()}

    # ==================== VALIDATION ====================

    def validate(self) -> bool:
        """Validate current attributes against "<ClassName>Schema".

        Returns:
            False if a validating hook aborted, True otherwise

        Raises:
            ValidationFailed: the validator reported violations
        """
        if self._fire('validating') is False:
            return False

        validator = self.model.get_validator()
        schema = self.model.schema_name()
        if not validator.schema_exists(schema):
            return True

        if not validator.validate(self.model.store.attributes(), schema):
            raise ValidationFailed(
                f"Error validating {type(self.model).__qualname__} against {schema}",
                errors=list(validator.errors),
                schema=schema,
            )

        self._fire('validated', halt=False)
        return True

    # ==================== TRANSITIONS ====================

    def perform_insert(self) -> bool:
        model = self.model
        if self._fire('creating') is False:
            return False

        if model.uses_timestamps():
            model.update_timestamps()

        doc_id = self.collection.insert_and_return_id(model.store.attributes())
        model.set(get_config().id_field, doc_id)
        model.flags.exists = True
        logger.debug(f"Inserted {type(model).__qualname__} {doc_id!r}")

        self._fire('created', halt=False)
        return True

    def perform_update(self) -> bool:
        model = self.model
        if self._fire('updating') is False:
            return False

        if model.uses_timestamps():
            model.update_timestamps()

        changes = model.store.diff()
        if changes:
            self.collection.update_where(self._identity_filter(), changes)
            logger.debug(f"Updated {type(model).__qualname__} {model.get_id()!r}: {sorted(changes)}")
            self._fire('updated', halt=False)

        return True

    def perform_delete(self) -> bool:
        model = self.model
        if not model.flags.exists:
            return True

        if self._fire('deleting') is False:
            return False

        self.collection.delete_where(self._identity_filter())
        model.flags.exists = False
        model.flags.deleted = True
        logger.debug(f"Deleted {type(model).__qualname__} {model.get_id()!r}")

        self._fire('deleted', halt=False)
        return True

    # ==================== ENTRY POINTS ====================

    def save(self) -> bool:
        model = self.model
        if model.flags.deleted:
            raise DocumentDeletedError(
                f"{type(model).__qualname__} {model.get_id()!r} was deleted and cannot be saved again"
            )

        if not self.validate():
            return False

        if self._fire('saving') is False:
            return False

        if model.flags.exists:
            saved = self.perform_update() if model.store.has_changed() else True
        else:
            saved = self.perform_insert()

        if saved:
            self._fire('saved', halt=False)
            model.store.resync()

        return saved

    def delete(self) -> bool:
        return self.perform_delete()
