"""Response contract base model and the registry that describes contracts.

A response contract is a pydantic model whose fields carry prompt metadata:
whether the model must always return the field, a description, an example
value, a wire-name override and an ignore flag. Registration turns each
contract into an explicit descriptor table that schema and example
generation walk, so no generator ever has to inspect arbitrary types.
"""

import collections.abc
import datetime as dt
import types
import typing
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticUndefined

from bouwdepot.core.exceptions import SchemaGenerationError
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

MISSING: Any = PydanticUndefined


class FieldKind(str, Enum):
    """JSON kinds a contract field can map to."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ResponseContract(BaseModel):
    """Base class for typed model replies.

    Fields are addressed on the wire by lower camel case names unless a
    field declares an explicit alias.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PromptMetadata:
    """Prompt-facing metadata attached to a contract field.

    Stored as the field's ``json_schema_extra`` so pydantic keeps it on the
    FieldInfo. When pydantic renders its own schema the example is exposed
    under ``examples``.
    """

    def __init__(self, required: Optional[bool] = None, example: Any = MISSING, ignore: bool = False):
        self.required = required
        self.example = example
        self.ignore = ignore

    def __call__(self, schema: Dict[str, Any]) -> None:
        if self.example is not MISSING:
            schema["examples"] = [to_json_value(self.example)]


def prompt_field(
    default: Any = MISSING,
    *,
    description: str = "",
    required: Optional[bool] = None,
    example: Any = MISSING,
    alias: Optional[str] = None,
    ignore: bool = False,
    default_factory: Optional[Callable[[], Any]] = None,
) -> Any:
    """Declare a contract field together with its prompt metadata.

    Args:
        default: Parsing default; omit to make the field mandatory when parsing
        description: Text shown to the model in the schema
        required: Whether the model must always return the field. Defaults to
            True when no parsing default is given
        example: Value used in the generated example response
        alias: Wire name override
        ignore: Leave the field out of the schema and the example
        default_factory: Factory for mutable defaults

    Returns:
        A pydantic FieldInfo
    """
    metadata = PromptMetadata(required=required, example=example, ignore=ignore)
    if default_factory is not None:
        return Field(
            default_factory=default_factory,
            alias=alias,
            description=description or None,
            json_schema_extra=metadata,
            exclude=ignore,
        )
    return Field(
        default,
        alias=alias,
        description=description or None,
        json_schema_extra=metadata,
        exclude=ignore,
    )


@dataclass
class TypeDescriptor:
    """Resolved JSON shape of one annotation."""

    kind: FieldKind
    nullable: bool = False
    items: Optional["TypeDescriptor"] = None
    contract: Optional[type] = None
    enum_values: Optional[List[Any]] = None
    python_type: Optional[type] = None


@dataclass
class FieldDescriptor:
    """One entry of a contract's descriptor table."""

    name: str
    wire_name: str
    type: TypeDescriptor
    required: bool
    description: str = ""
    default: Any = MISSING
    example: Any = MISSING


@dataclass
class ContractDescriptor:
    """Registration record for a response contract."""

    contract: type
    description: str
    fields: List[FieldDescriptor] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.contract.__name__

    @property
    def required_wire_names(self) -> List[str]:
        return [f.wire_name for f in self.fields if f.required]


def to_json_value(value: Any) -> Any:
    """Convert defaults and examples into plain JSON values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


_SEQUENCE_ORIGINS = (list, tuple, collections.abc.Sequence)


def _is_union(origin: Any) -> bool:
    return origin is typing.Union or origin is getattr(types, "UnionType", None)


def resolve_annotation(annotation: Any, owner: str) -> TypeDescriptor:
    """Map a python annotation onto a JSON kind.

    Raises:
        SchemaGenerationError: If the annotation has no JSON counterpart
    """
    origin = typing.get_origin(annotation)

    if _is_union(origin):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            raise SchemaGenerationError(owner, f"unsupported union {annotation!r}")
        inner = resolve_annotation(args[0], owner)
        inner.nullable = True
        return inner

    if origin in _SEQUENCE_ORIGINS:
        args = typing.get_args(annotation)
        if not args:
            raise SchemaGenerationError(owner, f"array without item type {annotation!r}")
        return TypeDescriptor(kind=FieldKind.ARRAY, items=resolve_annotation(args[0], owner))

    if not isinstance(annotation, type):
        raise SchemaGenerationError(owner, f"unsupported annotation {annotation!r}")

    # bool before int: bool is an int subclass
    if issubclass(annotation, bool):
        return TypeDescriptor(kind=FieldKind.BOOLEAN, python_type=annotation)
    if issubclass(annotation, Enum):
        values = [member.value for member in annotation]
        if not all(isinstance(v, str) for v in values):
            raise SchemaGenerationError(owner, f"enum {annotation.__name__} must have string values")
        return TypeDescriptor(kind=FieldKind.STRING, enum_values=values, python_type=annotation)
    if issubclass(annotation, int):
        return TypeDescriptor(kind=FieldKind.INTEGER, python_type=annotation)
    if issubclass(annotation, (float, Decimal)):
        return TypeDescriptor(kind=FieldKind.NUMBER, python_type=annotation)
    if issubclass(annotation, (str, dt.date, dt.datetime, dt.time, uuid.UUID)):
        return TypeDescriptor(kind=FieldKind.STRING, python_type=annotation)
    if issubclass(annotation, ResponseContract):
        return TypeDescriptor(kind=FieldKind.OBJECT, contract=annotation, python_type=annotation)

    raise SchemaGenerationError(owner, f"unsupported type {annotation.__name__}")


_KIND_TYPES = {
    FieldKind.STRING: (str,),
    FieldKind.INTEGER: (int,),
    FieldKind.NUMBER: (int, float),
    FieldKind.BOOLEAN: (bool,),
    FieldKind.ARRAY: (list,),
    FieldKind.OBJECT: (dict,),
}


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def value_errors(type_descriptor: TypeDescriptor, value: Any, path: str) -> List[str]:
    """List the ways a plain JSON value breaks the schema of ``type_descriptor``."""
    if value is None:
        return [] if type_descriptor.nullable else [f"{path} must not be null"]

    kind = type_descriptor.kind
    # bool is an int subclass but never a JSON number
    if (isinstance(value, bool) and kind is not FieldKind.BOOLEAN) or not isinstance(value, _KIND_TYPES[kind]):
        return [f"{path} is not of type {kind.value}"]
    if type_descriptor.enum_values is not None and value not in type_descriptor.enum_values:
        return [f"{path} is not one of {type_descriptor.enum_values}"]

    if kind is FieldKind.ARRAY:
        errors: List[str] = []
        for index, item in enumerate(value):
            errors.extend(value_errors(type_descriptor.items, item, f"{path}[{index}]"))
        return errors
    if kind is FieldKind.OBJECT:
        return object_errors(describe_contract(type_descriptor.contract), value, path)
    return []


def object_errors(descriptor: ContractDescriptor, value: Dict[str, Any], path: str = "") -> List[str]:
    """List unknown keys, missing required fields and mistyped values of an object."""
    fields_by_wire_name = {f.wire_name: f for f in descriptor.fields}
    errors = [f"{_join(path, key)} is not a field of {descriptor.name}" for key in value if key not in fields_by_wire_name]
    for wire_name, field_descriptor in fields_by_wire_name.items():
        if wire_name in value:
            errors.extend(value_errors(field_descriptor.type, value[wire_name], _join(path, wire_name)))
        elif field_descriptor.required:
            errors.append(f"{_join(path, wire_name)} is required")
    return errors


def describe_contract(contract: Type[ResponseContract], description: str = "") -> ContractDescriptor:
    """Build the descriptor table for ``contract``.

    Raises:
        SchemaGenerationError: If ``contract`` is not a ResponseContract or one
            of its fields cannot be mapped
    """
    name = getattr(contract, "__name__", repr(contract))
    if not isinstance(contract, type) or not issubclass(contract, ResponseContract):
        raise SchemaGenerationError(name, "not a response contract")

    descriptor = ContractDescriptor(
        contract=contract,
        description=description or (contract.__doc__ or "").strip().split("\n")[0],
    )

    for field_name, field_info in contract.model_fields.items():
        metadata = field_info.json_schema_extra
        if not isinstance(metadata, PromptMetadata):
            metadata = PromptMetadata()
        if metadata.ignore:
            continue

        if field_info.default_factory is not None:
            default = field_info.default_factory()
        else:
            default = field_info.default

        required = metadata.required
        if required is None:
            required = field_info.is_required()

        wire_name = field_info.alias or to_camel(field_name)
        type_descriptor = resolve_annotation(field_info.annotation, name)
        if metadata.example is not MISSING:
            _check_field_example(name, wire_name, field_info.annotation, type_descriptor, metadata.example)

        descriptor.fields.append(
            FieldDescriptor(
                name=field_name,
                wire_name=wire_name,
                type=type_descriptor,
                required=required,
                description=field_info.description or "",
                default=default,
                example=metadata.example,
            )
        )

    return descriptor


def _check_field_example(
    owner: str,
    wire_name: str,
    annotation: Any,
    type_descriptor: TypeDescriptor,
    example: Any,
) -> None:
    """Reject an explicit field example that the field itself would not accept."""
    try:
        TypeAdapter(annotation).validate_python(example)
    except PydanticValidationError as e:
        raise SchemaGenerationError(
            owner, f"example for {wire_name} does not match the field type", original_error=e
        ) from e
    errors = value_errors(type_descriptor, to_json_value(example), wire_name)
    if errors:
        raise SchemaGenerationError(owner, f"example for {wire_name} does not match the schema: {errors}")


class ContractRegistry:
    """Explicit table of registered response contracts.

    Populated at import time by ``register_contract``; read-only while
    validation runs are in flight.
    """

    def __init__(self):
        self._descriptors: Dict[type, ContractDescriptor] = {}
        self._example_overrides: Dict[type, Dict[str, Any]] = {}

    def register(
        self,
        contract: Type[ResponseContract],
        description: str = "",
        example: Optional[Dict[str, Any]] = None,
    ) -> ContractDescriptor:
        descriptor = describe_contract(contract, description)
        self._descriptors[contract] = descriptor
        LOGGER.debug(f"Registered response contract {descriptor.name}")
        if example is not None:
            self.register_example_override(contract, example)
        return descriptor

    def register_example_override(self, contract: type, example: Dict[str, Any]) -> None:
        """Pin the example emitted for ``contract``.

        The override must carry every required wire name, use no other keys
        (nested objects included), match each field's JSON kind and parse
        into the contract.

        Raises:
            SchemaGenerationError: If the contract is unknown or the override
                does not conform
        """
        descriptor = self.get(contract)
        missing = [w for w in descriptor.required_wire_names if w not in example]
        if missing:
            raise SchemaGenerationError(
                descriptor.name, f"example override is missing required fields {missing}"
            )
        errors = object_errors(descriptor, example)
        if errors:
            raise SchemaGenerationError(descriptor.name, f"example override does not match the schema: {errors}")
        try:
            contract.model_validate(example)
        except PydanticValidationError as e:
            raise SchemaGenerationError(
                descriptor.name, "example override does not match the contract", original_error=e
            ) from e
        self._example_overrides[contract] = example

    def get(self, contract: type) -> ContractDescriptor:
        """Return the descriptor for ``contract``.

        Raises:
            SchemaGenerationError: If the contract was never registered
        """
        descriptor = self._descriptors.get(contract)
        if descriptor is None:
            name = getattr(contract, "__name__", repr(contract))
            raise SchemaGenerationError(name, "contract is not registered")
        return descriptor

    def example_override(self, contract: type) -> Optional[Dict[str, Any]]:
        return self._example_overrides.get(contract)

    def is_registered(self, contract: type) -> bool:
        return contract in self._descriptors

    def contracts(self) -> Tuple[type, ...]:
        return tuple(self._descriptors)


CONTRACT_REGISTRY = ContractRegistry()


def register_contract(
    description: str = "",
    example: Optional[Dict[str, Any]] = None,
    registry: Optional[ContractRegistry] = None,
) -> Callable[[Type[ResponseContract]], Type[ResponseContract]]:
    """Class decorator registering a response contract.

    Args:
        description: Top-level schema description
        example: Optional example override keyed by wire names
        registry: Target registry, the process-wide one by default
    """
    target = registry if registry is not None else CONTRACT_REGISTRY

    def decorator(contract: Type[ResponseContract]) -> Type[ResponseContract]:
        target.register(contract, description=description, example=example)
        return contract

    return decorator
