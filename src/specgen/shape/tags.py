"""Extract namespaced field annotations from shapes.

Embedded sub-shapes are flattened: their fields appear in the parent's
result at the position of the embedding field, as if declared there.
"""

import types
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from .base import Embedded, FieldTag, FieldTagSet, Tag


def shape_class(shape: Any) -> type[BaseModel] | None:
    """Return the model class behind a shape class or instance, else None."""
    if isinstance(shape, BaseModel):
        return type(shape)
    if isinstance(shape, type) and issubclass(shape, BaseModel):
        return shape
    return None


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``; anything else is ``(annotation, False)``."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(args) < len(get_args(annotation)):
            return args[0], True
    return annotation, False


def is_embedded(field: FieldInfo) -> bool:
    return any(isinstance(m, Embedded) for m in field.metadata)


def extract_struct_field_tags(field: FieldInfo, namespace_keys: list[str] | tuple[str, ...]) -> list[FieldTag]:
    """Collect the requested namespaces present on one field, in key order."""
    merged: dict[str, str] = {}
    for meta in field.metadata:
        if isinstance(meta, Tag):
            merged.update(meta.values)

    return [FieldTag(key=key, value=merged[key]) for key in namespace_keys if key in merged]


def extract_field_tags(shape: Any, namespace_keys: list[str] | tuple[str, ...]) -> list[FieldTagSet]:
    """Return one FieldTagSet per declared field of ``shape``.

    Non-shape input (primitives, None, plain classes) yields an empty list.
    """
    return _extract(shape_class(shape), namespace_keys, ())


def _extract(cls: type[BaseModel] | None, namespace_keys, expanding: tuple[type, ...]) -> list[FieldTagSet]:
    if cls is None or cls in expanding:
        return []

    result: list[FieldTagSet] = []
    for name, field in cls.model_fields.items():
        if is_embedded(field):
            inner, _ = unwrap_optional(field.annotation)
            result.extend(_extract(shape_class(inner), namespace_keys, expanding + (cls,)))
            continue

        result.append(
            FieldTagSet(
                name=name,
                tags=extract_struct_field_tags(field, namespace_keys),
                annotation=field.annotation,
                alias=field.alias,
                depth=len(expanding),
            )
        )
    return result
