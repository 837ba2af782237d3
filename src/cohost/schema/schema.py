"""
Centralized JSON Schema Loading Module.

This module loads the JSON schema files describing the cohost wire format
and exposes them as module-level constants. Response bodies are checked
against these schemas before any field is read from them, so a server-side
format change surfaces as a clear ResponseValidationError instead of a
KeyError deep inside the publish pipeline.

File Location:
    Schemas live next to this module (src/cohost/schema/). The path is
    resolved from __file__ so it works regardless of the working directory.

Error Handling:
    - FileNotFoundError: Schema file doesn't exist at expected path
    - json.JSONDecodeError: Schema file contains invalid JSON syntax
    Both abort the import; a missing schema is a packaging bug.
"""
import json
from pathlib import Path
from typing import Dict, Any

from jsonschema import validate, ValidationError

from ..errors import ResponseValidationError

SCHEMA_DIR = Path(__file__).parent


def _load_schema(schema_filename: str) -> Dict[str, Any]:
    """Load a JSON schema file from the schema directory.

    Args:
        schema_filename: Name of the JSON schema file (e.g., "post_response.json")

    Returns:
        Parsed JSON schema as a dictionary, ready for use with jsonschema

    Raises:
        FileNotFoundError: If the schema file doesn't exist
        json.JSONDecodeError: If the schema file contains invalid JSON
    """
    schema_path = SCHEMA_DIR / schema_filename

    if not schema_path.exists():
        raise FileNotFoundError(
            f"Schema file not found: {schema_path}. "
            f"Expected location: {SCHEMA_DIR}"
        )

    try:
        with open(schema_path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise json.JSONDecodeError(
            f"Invalid JSON in schema file {schema_filename}: {e.msg}",
            e.doc,
            e.pos
        ) from e


# Loaded once at import time
SALT_RESPONSE_SCHEMA = _load_schema("salt_response.json")
LOGIN_RESPONSE_SCHEMA = _load_schema("login_response.json")
POST_RESPONSE_SCHEMA = _load_schema("post_response.json")
ATTACHMENT_START_RESPONSE_SCHEMA = _load_schema("attachment_start_response.json")
ATTACHMENT_FINISH_RESPONSE_SCHEMA = _load_schema("attachment_finish_response.json")
TRPC_RESPONSE_SCHEMA = _load_schema("trpc_response.json")


def validate_payload(payload: Any, schema: Dict[str, Any]) -> None:
    """Validate a decoded JSON payload against one of the schemas above.

    Args:
        payload: Decoded JSON value (usually a dict from response.json())
        schema: Schema constant from this module

    Raises:
        ResponseValidationError: If validation fails, with the failing field path

    Example:
        >>> validate_payload({"postId": 12}, POST_RESPONSE_SCHEMA)
        >>> validate_payload({}, POST_RESPONSE_SCHEMA)
        ResponseValidationError: Post Response failed schema validation: 'postId' is a required property at path:
    """
    try:
        validate(instance=payload, schema=schema)
    except ValidationError as e:
        path_str = ".".join(str(p) for p in e.path)
        title = schema.get("title", "payload")
        raise ResponseValidationError(
            f"{title} failed schema validation: {e.message} at path: {path_str}"
        ) from e
