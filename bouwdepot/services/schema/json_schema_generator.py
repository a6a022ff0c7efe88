"""JSON schema and example generation for registered response contracts."""

import datetime as dt
import json
import uuid
from typing import Any, Dict, Optional

from bouwdepot.core.exceptions import SchemaGenerationError
from bouwdepot.schemas.contract import (
    CONTRACT_REGISTRY,
    MISSING,
    ContractDescriptor,
    ContractRegistry,
    FieldDescriptor,
    FieldKind,
    TypeDescriptor,
    to_json_value,
)
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"
MAX_EXAMPLE_DEPTH = 10


class JsonSchemaGenerator:
    """Renders registered contracts as draft-07 schemas and example payloads.

    Both outputs are derived from the same descriptor table, so a generated
    example always validates against the generated schema.
    """

    def __init__(self, registry: Optional[ContractRegistry] = None):
        self.registry = registry if registry is not None else CONTRACT_REGISTRY

    def generate_schema(self, contract_type: type) -> str:
        """Generate the JSON schema for ``contract_type``.

        Args:
            contract_type: Registered response contract class

        Returns:
            Indented JSON text

        Raises:
            SchemaGenerationError: If the contract or one of its nested
                contracts cannot be described
        """
        try:
            descriptor = self.registry.get(contract_type)
            schema: Dict[str, Any] = {"$schema": SCHEMA_DRAFT}
            schema.update(self._object_schema(descriptor, nullable=False))
            return json.dumps(schema, indent=2, ensure_ascii=False)
        except SchemaGenerationError as e:
            LOGGER.error(f"Error generating JSON schema for type {_type_name(contract_type)}: {e}")
            raise
        except (TypeError, ValueError) as e:
            LOGGER.error(f"Error generating JSON schema for type {_type_name(contract_type)}: {e}")
            raise SchemaGenerationError(_type_name(contract_type), str(e), original_error=e) from e

    def generate_example(self, contract_type: type) -> str:
        """Generate an example payload for ``contract_type``.

        Registered example overrides take precedence, then per-field example
        metadata, then parsing defaults, then canned values.

        Raises:
            SchemaGenerationError: If the contract cannot be described
        """
        try:
            example = self._object_example(contract_type, depth=0)
            return json.dumps(example, indent=2, ensure_ascii=False)
        except SchemaGenerationError as e:
            LOGGER.error(f"Error generating example JSON for type {_type_name(contract_type)}: {e}")
            raise
        except (TypeError, ValueError) as e:
            LOGGER.error(f"Error generating example JSON for type {_type_name(contract_type)}: {e}")
            raise SchemaGenerationError(_type_name(contract_type), str(e), original_error=e) from e

    def _object_schema(self, descriptor: ContractDescriptor, nullable: bool) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": ["object", "null"] if nullable else "object",
        }
        if descriptor.description:
            schema["description"] = descriptor.description

        schema["properties"] = {f.wire_name: self._field_schema(f) for f in descriptor.fields}

        required = descriptor.required_wire_names
        if required:
            schema["required"] = required

        schema["additionalProperties"] = False
        return schema

    def _field_schema(self, field: FieldDescriptor) -> Dict[str, Any]:
        schema = self._type_schema(field.type)
        if field.description:
            schema["description"] = field.description
        if field.default is not MISSING and field.default is not None:
            schema["default"] = to_json_value(field.default)
        return schema

    def _type_schema(self, type_descriptor: TypeDescriptor) -> Dict[str, Any]:
        if type_descriptor.kind == FieldKind.OBJECT:
            nested = self.registry.get(type_descriptor.contract)
            return self._object_schema(nested, type_descriptor.nullable)

        kind = type_descriptor.kind.value
        schema: Dict[str, Any] = {"type": [kind, "null"] if type_descriptor.nullable else kind}

        if type_descriptor.enum_values is not None:
            values = list(type_descriptor.enum_values)
            if type_descriptor.nullable:
                values.append(None)
            schema["enum"] = values

        if type_descriptor.kind == FieldKind.ARRAY:
            schema["items"] = self._type_schema(type_descriptor.items)

        return schema

    def _object_example(self, contract_type: type, depth: int) -> Dict[str, Any]:
        descriptor = self.registry.get(contract_type)

        override = self.registry.example_override(contract_type)
        if override is not None:
            return override

        return {f.wire_name: self._field_example(f, depth) for f in descriptor.fields}

    def _field_example(self, field: FieldDescriptor, depth: int) -> Any:
        if field.example is not MISSING:
            return to_json_value(field.example)
        if field.default is not MISSING and field.default:
            return to_json_value(field.default)
        return self._canned_value(field.type, depth + 1)

    def _canned_value(self, type_descriptor: TypeDescriptor, depth: int) -> Any:
        if depth > MAX_EXAMPLE_DEPTH:
            if type_descriptor.nullable:
                return None
            if type_descriptor.kind == FieldKind.ARRAY:
                return []
            if type_descriptor.kind == FieldKind.OBJECT:
                return {}

        kind = type_descriptor.kind
        python_type = type_descriptor.python_type

        if kind == FieldKind.STRING:
            if type_descriptor.enum_values:
                return type_descriptor.enum_values[0]
            if python_type is not None and issubclass(python_type, dt.datetime):
                return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
            if python_type is not None and issubclass(python_type, dt.date):
                return dt.date.today().isoformat()
            if python_type is not None and issubclass(python_type, uuid.UUID):
                return str(uuid.uuid4())
            return "Example string"
        if kind == FieldKind.INTEGER:
            return 42
        if kind == FieldKind.NUMBER:
            return 42.42
        if kind == FieldKind.BOOLEAN:
            return True
        if kind == FieldKind.ARRAY:
            return [self._canned_value(type_descriptor.items, depth + 1)]
        if kind == FieldKind.OBJECT:
            return self._object_example(type_descriptor.contract, depth)

        raise SchemaGenerationError(str(python_type), f"no example for kind {kind}")


def _type_name(contract_type: Any) -> str:
    return getattr(contract_type, "__name__", repr(contract_type))


_default_generator = JsonSchemaGenerator()


def generate_schema(contract_type: type) -> str:
    """Generate the JSON schema for a contract in the process-wide registry."""
    return _default_generator.generate_schema(contract_type)


def generate_example(contract_type: type) -> str:
    """Generate an example payload for a contract in the process-wide registry."""
    return _default_generator.generate_example(contract_type)
