"""Field annotation primitives for declaring request/response shapes.

Shapes are pydantic models. Per-field annotations travel as ``Annotated``
metadata, so the model stays a plain pydantic class:

    class CreateUser(BaseModel):
        name: Annotated[str, Tag(json="name", validate="required")]
        base: Annotated[UserFields, Embedded()]
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

JSON = "json"
VALIDATE = "validate"
REQUIRED = "required"
MINIMUM = "minimum"
MAXIMUM = "maximum"
FORMAT = "format"
DEFAULT = "default"
DESCRIPTION = "description"

PARAM_LOCATIONS = ("path", "query", "header", "cookie")

# Every namespace the document generator understands.
TAG_KEYS = (JSON, VALIDATE, REQUIRED, MINIMUM, MAXIMUM, FORMAT, DEFAULT, DESCRIPTION, *PARAM_LOCATIONS)


class Tag:
    """Namespaced raw annotations attached to one field.

    Keyword names are namespaces, values are the raw annotation strings,
    e.g. ``Tag(json="email", validate="required,email")``.
    """

    def __init__(self, **values: str):
        self.values = dict(values)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self.values.items())
        return f"Tag({inner})"


class Embedded:
    """Marks a shape-typed field whose fields are flattened into the parent."""

    def __repr__(self) -> str:
        return "Embedded()"


class FieldTag(BaseModel):
    """One (namespace, raw value) pair found on a field."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str


class FieldTagSet(BaseModel):
    """All requested annotations of a single declared field."""

    name: str
    tags: list[FieldTag] = []
    annotation: Any = Field(default=None, exclude=True, repr=False)
    alias: str | None = Field(default=None, exclude=True, repr=False)
    # Number of Embedded() levels between the shape and this field.
    depth: int = Field(default=0, exclude=True, repr=False)

    def lookup(self, key: str) -> str | None:
        for tag in self.tags:
            if tag.key == key:
                return tag.value
        return None
