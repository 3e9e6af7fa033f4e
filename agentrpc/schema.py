"""
Schema handling for tool inputs.

A tool schema is one of two kinds, decided once at registration time:
- a pydantic BaseModel subclass (validated and coerced by pydantic)
- a raw JSON Schema document (validated by jsonschema, using the draft named
  by its "$schema" key, 2020-12 when absent)

Both kinds are converted to a JSON Schema string when the machine registers
its tools with the coordinator.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Union

import jsonschema
import pydantic
from jsonschema import Draft202012Validator
from jsonschema.validators import validator_for

from .errors import AgentRPCError, ValidationError, ValidationIssue


JsonSchema = Mapping[str, Any]
SchemaDescriptor = Union[type[pydantic.BaseModel], JsonSchema]


def is_model_schema(schema: Any) -> bool:
    """True if the schema is a pydantic model class."""
    return isinstance(schema, type) and issubclass(schema, pydantic.BaseModel)


def check_schema(schema: Any) -> None:
    """
    Reject schemas that are neither kind, or malformed JSON Schema documents.

    Raises:
        AgentRPCError: if the schema cannot be used for validation
    """
    if is_model_schema(schema):
        return

    if not isinstance(schema, Mapping):
        raise AgentRPCError(
            f"schema must be a pydantic model class or a JSON Schema object, got {type(schema).__name__}."
        )

    try:
        validator_for(schema, default=Draft202012Validator).check_schema(schema)
    except jsonschema.SchemaError as e:
        raise AgentRPCError(f"Invalid JSON Schema: {e.message}") from e


def to_json_schema(schema: SchemaDescriptor) -> str:
    """Serialize a schema to the JSON Schema string sent to the coordinator."""
    if is_model_schema(schema):
        return json.dumps(schema.model_json_schema())  # type: ignore[union-attr]
    return json.dumps(schema)


def validate_input(schema: SchemaDescriptor, data: Mapping[str, Any]) -> Any:
    """
    Validate job input against a tool schema.

    Returns:
        A model instance for pydantic schemas, the input itself for JSON Schema.

    Raises:
        ValidationError: listing every violation with its field path
    """
    if is_model_schema(schema):
        try:
            return schema.model_validate(data)  # type: ignore[union-attr]
        except pydantic.ValidationError as e:
            raise ValidationError(
                [ValidationIssue(path=tuple(err["loc"]), message=err["msg"]) for err in e.errors()]
            ) from e

    validator = validator_for(schema, default=Draft202012Validator)(schema)
    errors = sorted(validator.iter_errors(data), key=lambda err: [str(p) for p in err.absolute_path])
    if errors:
        raise ValidationError(
            [ValidationIssue(path=tuple(err.absolute_path), message=err.message) for err in errors]
        )
    return data
