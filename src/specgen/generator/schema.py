"""Derive OpenAPI schemas from shapes.

Objects are built in two passes over the Tag Extractor's field list: the
first infers each property's type from its annotation, the second applies
the field's namespace tags and ``validate`` constraints to the nodes built
by the first.
"""

import logging
import re
import types
from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Union, get_args, get_origin
from uuid import UUID

from pydantic import BaseModel

from specgen.generator.node import ARRAY, BOOLEAN, INTEGER, NUMBER, OBJECT, STRING, SchemaNode
from specgen.shape.base import (
    DEFAULT,
    DESCRIPTION,
    FORMAT,
    JSON,
    MAXIMUM,
    MINIMUM,
    PARAM_LOCATIONS,
    REQUIRED,
    TAG_KEYS,
    VALIDATE,
    FieldTagSet,
)
from specgen.shape.tags import extract_field_tags, shape_class, unwrap_optional
from specgen.shape.validator import apply_validation, compact, parse_float, parse_validation_tag

logger = logging.getLogger(__name__)

REF_PREFIX = "#/components/schemas/"

# datetime before date: datetime is a date subclass. bool before int likewise.
PRIMITIVES: list[tuple[type, str, str | None]] = [
    (bool, BOOLEAN, None),
    (int, INTEGER, None),
    (float, NUMBER, None),
    (Decimal, NUMBER, None),
    (str, STRING, None),
    (bytes, STRING, "byte"),
    (datetime, STRING, "date-time"),
    (date, STRING, "date"),
    (time, STRING, "time"),
    (UUID, STRING, "uuid"),
]


def component_name(cls: type) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", cls.__name__)


def serialized_name(field: FieldTagSet) -> str | None:
    """Name of the field on the wire, or None when ``json:"-"`` hides it."""
    raw = field.lookup(JSON)
    if raw is not None:
        name = raw.split(",", 1)[0].strip()
        if name == "-":
            return None
        if name:
            return name
    return field.alias or field.name


def param_binding(field: FieldTagSet) -> tuple[str, str] | None:
    """Return ``(location, name)`` when the field is bound to a parameter."""
    for location in PARAM_LOCATIONS:
        value = field.lookup(location)
        if value:
            return location, value.split(",", 1)[0].strip()
    return None


def _json_type(value: Any) -> str | None:
    for py_type, schema_type, _ in PRIMITIVES[:5]:
        if isinstance(value, py_type):
            return schema_type
    return None


def _strip_annotated(annotation: Any) -> Any:
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def coerce_default(raw: str, prop: SchemaNode) -> Any:
    """Convert a ``default`` tag to the property's schema type when possible."""
    if prop.has_type(INTEGER):
        try:
            return int(raw)
        except ValueError:
            return raw
    if prop.has_type(NUMBER):
        number = parse_float(raw)
        return raw if number is None else compact(number)
    if prop.has_type(BOOLEAN) and raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    return raw


def apply_field_tags(name: str, field: FieldTagSet, prop: SchemaNode, parent: SchemaNode) -> None:
    """Second pass: apply namespace tags, then the ``validate`` annotation."""
    description = field.lookup(DESCRIPTION)
    if description:
        prop.description = description

    fmt = field.lookup(FORMAT)
    if fmt:
        prop.format = fmt

    for key in (MINIMUM, MAXIMUM):
        raw = field.lookup(key)
        if raw is None:
            continue
        number = parse_float(raw)
        if number is not None:
            setattr(prop, key, compact(number))

    default = field.lookup(DEFAULT)
    if default is not None:
        prop.default = coerce_default(default, prop)

    required = field.lookup(REQUIRED)
    if required is not None and required.strip().lower() in ("true", "1"):
        parent.add_required(name)

    validate = field.lookup(VALIDATE)
    if validate is not None:
        apply_validation(parse_validation_tag(validate), name, prop, parent)


class ComponentRegistry:
    """Named component schemas, one per distinct shape (and body variant)."""

    def __init__(self):
        self.schemas: dict[str, SchemaNode] = {}
        self._names: dict[tuple[type, str], str] = {}

    def reference(self, cls: type[BaseModel], exclude_params: bool = False) -> SchemaNode:
        """Register ``cls`` if needed and return a ``$ref`` node pointing at it.

        With ``exclude_params`` the parameter-bound fields are left out and,
        when the shape has any, the schema is registered as ``<Name>Body``.
        """
        variant = "Body" if exclude_params and has_params(cls) else ""
        key = (cls, variant)
        if key not in self._names:
            name = self._unique_name(component_name(cls) + variant)
            # Reserved before building so self-references resolve.
            self._names[key] = name
            self.schemas[name] = SchemaNode(type=OBJECT)
            self.schemas[name] = self.build_object(cls, exclude_params=bool(variant))
            logger.debug("Registered component schema %s", name)
        return SchemaNode(ref=REF_PREFIX + self._names[key])

    def _unique_name(self, base: str) -> str:
        name, n = base, 1
        while name in self.schemas:
            n += 1
            name = f"{base}{n}"
        return name

    def build_object(self, cls: type[BaseModel], exclude_params: bool = False) -> SchemaNode:
        node = SchemaNode(type=OBJECT)
        chosen: dict[str, FieldTagSet] = {}

        for field in extract_field_tags(cls, TAG_KEYS):
            if exclude_params and param_binding(field):
                continue
            name = serialized_name(field)
            if name is None:
                continue
            # On a name clash the shallower field wins; at equal depth the first declared.
            current = chosen.get(name)
            if current is None or field.depth < current.depth:
                chosen[name] = field
            else:
                logger.debug("Field %s of %s shadowed by %s", field.name, cls.__name__, current.name)

        properties = {name: self.schema_for(field.annotation) for name, field in chosen.items()}
        if properties:
            node.properties = properties

        for name, field in chosen.items():
            apply_field_tags(name, field, properties[name], node)
        return node

    def schema_for(self, annotation: Any) -> SchemaNode:
        """Schema for a type expression; nested shapes become references."""
        inner, optional = unwrap_optional(_strip_annotated(annotation))
        node = self._schema_for(_strip_annotated(inner))
        if optional and node.ref is None:
            node.nullable = True
        return node

    def _schema_for(self, annotation: Any) -> SchemaNode:
        if annotation is Any or annotation is None:
            return SchemaNode()

        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin is Literal:
            values = [v.value if isinstance(v, Enum) else v for v in args]
            return SchemaNode(type=_json_type(values[0]) if values else None, enum=values)

        if origin is Union or origin is types.UnionType:
            return SchemaNode()

        if origin is not None and isinstance(origin, type):
            if issubclass(origin, Mapping):
                value = args[1] if len(args) == 2 else Any
                return SchemaNode(type=OBJECT, additional_properties=self.schema_for(value))
            if issubclass(origin, (Sequence, AbstractSet)) and not issubclass(origin, (str, bytes)):
                item = args[0] if args else Any
                return SchemaNode(type=ARRAY, items=self.schema_for(item))

        if not isinstance(annotation, type):
            return SchemaNode()

        cls = shape_class(annotation)
        if cls is not None:
            return self.reference(cls)

        if issubclass(annotation, Enum):
            values = [member.value for member in annotation]
            return SchemaNode(type=_json_type(values[0]) if values else None, enum=values)

        for py_type, schema_type, fmt in PRIMITIVES:
            if issubclass(annotation, py_type):
                return SchemaNode(type=schema_type, format=fmt)

        if issubclass(annotation, Mapping):
            return SchemaNode(type=OBJECT, additional_properties=SchemaNode())
        if issubclass(annotation, (Sequence, AbstractSet)):
            return SchemaNode(type=ARRAY, items=SchemaNode())

        return SchemaNode()


def has_params(cls: type[BaseModel]) -> bool:
    return any(param_binding(field) for field in extract_field_tags(cls, PARAM_LOCATIONS))
