"""Validation and clean-up of the JSON schemas offered to the model as tool parameters."""

from typing import Any, Dict, Set, Type

import jsonref  # type: ignore
from pydantic import BaseModel

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

_METADATA_KEYS = ("$defs", "$schema", "$id", "title", "definitions")


class SchemaValidator:
    """
    Helper class for validating and sanitizing JSON schemas for tools.
    """

    @classmethod
    def build_parameters_schema(cls, args_model: Type[BaseModel]) -> Dict[str, Any]:
        """Build the parameter schema of a tool from its argument model.

        The schema is checked for recursion, all ``$ref`` pointers are inlined and the
        result is sanitized.

        Args:
            args_model: Pydantic model describing the tool arguments.

        Returns:
            A self-contained JSON schema.

        Raises:
            ToolValidationError: If the model is recursive.
        """
        raw_schema = args_model.model_json_schema()
        cls.assert_no_recursive_refs(raw_schema)
        # proxies=False ensures we get a plain dict back, not JsonRef objects
        resolved = jsonref.replace_refs(raw_schema, proxies=False)
        return cls.sanitize_schema(resolved)

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Checks if the schema contains recursive references by traversing the graph.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                ref = node.get("$ref")
                if ref is not None:
                    if ref in path:
                        msg = (
                            f"Recursive structure detected: {ref}. "
                            "Recursive structures are not allowed in tool inputs."
                        )
                        logger.error(msg)
                        raise ToolValidationError(msg)

                    # e.g. #/$defs/Address
                    def_name = ref.rsplit("/", 1)[-1]
                    if ref.startswith("#") and def_name in defs:
                        check(defs[def_name], path | {ref})
                    return

                for value in node.values():
                    check(value, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up the schema for the chat-completions tool format.

        Removes metadata keys, collapses ``Optional`` (``anyOf`` with null) into the
        single remaining type and closes objects with ``additionalProperties: false``.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        new_schema = {key: value for key, value in schema.items() if key not in _METADATA_KEYS}

        any_of = new_schema.get("anyOf")
        if isinstance(any_of, list):
            non_null = [option for option in any_of if option.get("type") != "null"]
            if len(non_null) == 1 and isinstance(non_null[0], dict):
                merged = {key: value for key, value in new_schema.items() if key != "anyOf"}
                merged.update({key: value for key, value in non_null[0].items() if key not in merged})
                return SchemaValidator.sanitize_schema(merged)

        if new_schema.get("type") == "object":
            new_schema.setdefault("additionalProperties", False)

        for key, value in new_schema.items():
            if key == "properties" and isinstance(value, dict):
                # Property names are user data; a field may well be called "title".
                new_schema[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                new_schema[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                new_schema[key] = [SchemaValidator.sanitize_schema(item) for item in value]

        return new_schema
