"""JSON schema for vehicle registration files."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml
from jsonschema import Draft7Validator, ValidationError
from jsonschema.exceptions import best_match

from .errors import InvalidRecord

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    """Load the JSON schema from schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def format_error(error: ValidationError) -> str:
    message = f"Schema validation error: {error.message}"
    if error.path:
        message += f" (at {'.'.join(str(p) for p in error.path)})"
    return message


def validate_document(data: Any) -> None:
    """Raise InvalidRecord if data is not a valid vehicle document."""
    validator = Draft7Validator(load_schema())
    error = best_match(validator.iter_errors(data))
    if error is not None:
        raise InvalidRecord(format_error(error))
