"""JSON Schema validation utilities for tool arguments."""

from typing import Any

from jsonschema import Draft7Validator

TYPE_MAPPING = {
    "string": "string",
    "str": "string",
    "integer": "integer",
    "int": "integer",
    "number": "number",
    "float": "number",
    "boolean": "boolean",
    "bool": "boolean",
    "array": "array",
    "list": "array",
    "object": "object",
    "dict": "object",
}

# Keywords copied verbatim from a parameter definition into its schema
PASSTHROUGH_KEYWORDS = ("enum", "default", "items", "minimum", "maximum", "minItems", "maxItems")


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def create_tool_schema(
    parameters: list[dict[str, Any]],
    required: list[str] | None = None
) -> dict[str, Any]:
    """
    Create a JSON Schema from a list of parameter definitions.

    A parameter is required unless it sets ``required: False`` or carries a
    default, or ``required`` is passed explicitly.

    Args:
        parameters: Parameter definitions with name, type, description
        required: Explicit list of required parameter names

    Returns:
        JSON Schema dictionary
    """
    properties = {}

    for param in parameters:
        param_schema: dict[str, Any] = {
            "type": TYPE_MAPPING.get(param.get("type", "string"), "string"),
            "description": param.get("description", ""),
        }
        for keyword in PASSTHROUGH_KEYWORDS:
            if keyword in param:
                param_schema[keyword] = param[keyword]

        properties[param["name"]] = param_schema

    if required is None:
        required = [
            p["name"] for p in parameters
            if p.get("required", True) and "default" not in p
        ]

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }


def apply_defaults(arguments: dict[str, Any], schema: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``arguments`` with schema defaults filled in."""
    merged = dict(arguments)
    for name, prop in schema.get("properties", {}).items():
        if name not in merged and "default" in prop:
            merged[name] = prop["default"]
    return merged
