"""Schema Package - JSON Schemas for the cohost wire format.

Schemas are stored as JSON files (Draft 7) next to this package and loaded
once at import time.

Available Schemas:
    SALT_RESPONSE_SCHEMA: GET login/salt
    LOGIN_RESPONSE_SCHEMA: POST login
    POST_RESPONSE_SCHEMA: response of post create/edit
    ATTACHMENT_START_RESPONSE_SCHEMA: attachment upload start (unwrapped)
    ATTACHMENT_FINISH_RESPONSE_SCHEMA: attachment upload finish
    TRPC_RESPONSE_SCHEMA: tRPC result envelope

Usage:
    from cohost.schema import POST_RESPONSE_SCHEMA, validate_payload
    validate_payload(response.json(), POST_RESPONSE_SCHEMA)
"""
from .schema import (
    SALT_RESPONSE_SCHEMA,
    LOGIN_RESPONSE_SCHEMA,
    POST_RESPONSE_SCHEMA,
    ATTACHMENT_START_RESPONSE_SCHEMA,
    ATTACHMENT_FINISH_RESPONSE_SCHEMA,
    TRPC_RESPONSE_SCHEMA,
    validate_payload,
)

__all__ = [
    "SALT_RESPONSE_SCHEMA",
    "LOGIN_RESPONSE_SCHEMA",
    "POST_RESPONSE_SCHEMA",
    "ATTACHMENT_START_RESPONSE_SCHEMA",
    "ATTACHMENT_FINISH_RESPONSE_SCHEMA",
    "TRPC_RESPONSE_SCHEMA",
    "validate_payload",
]
