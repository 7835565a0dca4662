"""
Validator collaborators.

Model.validate() looks up a schema named "<ClassName>Schema". A missing schema
means the document is valid.

JsonSchemaValidator delegates the actual checking to the jsonschema library.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import jsonschema

logger = logging.getLogger(__name__)


@runtime_checkable
class Validator(Protocol):
    errors: List[Dict[str, Any]]

    def schema_exists(self, name: str) -> bool: ...

    def validate(self, document: Dict[str, Any], schema_name: str) -> bool: ...


class NullValidator:
    """Validator with no schemas: every document passes."""

    def __init__(self):
        self.errors: List[Dict[str, Any]] = []

    def schema_exists(self, name: str) -> bool:
        return False

    def validate(self, document: Dict[str, Any], schema_name: str) -> bool:
        return True


class JsonSchemaValidator:
    """JSON Schema validator keyed by schema name.

    Schemas can be registered directly or loaded from a directory where each
    "<Name>.json" file becomes the schema called <Name>.

    After validate() returns False, `errors` holds one dict per violation:
    {"path": "tags/0", "message": "...", "validator": "type"}.
    """

    def __init__(self, schemas: Optional[Dict[str, Dict[str, Any]]] = None, directory: Optional[str] = None):
        self._schemas: Dict[str, Dict[str, Any]] = {}
        self._validators: Dict[str, Any] = {}
        self.errors: List[Dict[str, Any]] = []
        for name, schema in (schemas or {}).items():
            self.register_schema(name, schema)
        if directory is not None:
            self.load_directory(directory)

    def register_schema(self, name: str, schema: Dict[str, Any]) -> None:
        validator_cls = jsonschema.validators.validator_for(schema)
        validator_cls.check_schema(schema)
        self._schemas[name] = schema
        self._validators[name] = validator_cls(schema)

    def load_directory(self, directory: str) -> int:
        """Register every *.json file in directory. Returns how many were loaded."""
        loaded = 0
        for filename in sorted(os.listdir(directory)):
            if not filename.endswith('.json'):
                continue
            with open(os.path.join(directory, filename), 'r') as json_file:
                schema = json.load(json_file)
            self.register_schema(filename[:-len('.json')], schema)
            loaded += 1
        logger.debug(f"Loaded {loaded} schema(s) from {directory}")
        return loaded

    def schema_exists(self, name: str) -> bool:
        return name in self._schemas

    def validate(self, document: Dict[str, Any], schema_name: str) -> bool:
        validator = self._validators[schema_name]
        self.errors = [
            {
                'path': '/'.join(str(part) for part in error.absolute_path),
                'message': error.message,
                'validator': error.validator,
            }
            for error in sorted(validator.iter_errors(document), key=lambda e: [str(part) for part in e.absolute_path])
        ]
        return not self.errors
