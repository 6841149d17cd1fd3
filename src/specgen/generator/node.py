"""Schema node model used for component schemas and their properties."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

STRING = "string"
NUMBER = "number"
INTEGER = "integer"
BOOLEAN = "boolean"
ARRAY = "array"
OBJECT = "object"


class SchemaNode(BaseModel):
    """A mutable OpenAPI 3.0 schema object.

    Attributes are snake_case in Python and dumped with their camelCase
    OpenAPI names; unset attributes are left out of the output.
    """

    model_config = ConfigDict(populate_by_name=True)

    ref: str | None = Field(default=None, alias="$ref")
    type: str | None = None
    format: str | None = None
    description: str | None = None
    nullable: bool | None = None
    enum: list[Any] | None = None
    default: Any = None
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    minimum: int | float | None = None
    exclusive_minimum: bool | None = Field(default=None, alias="exclusiveMinimum")
    maximum: int | float | None = None
    exclusive_maximum: bool | None = Field(default=None, alias="exclusiveMaximum")
    min_items: int | None = Field(default=None, alias="minItems")
    max_items: int | None = Field(default=None, alias="maxItems")
    items: "SchemaNode | None" = None
    properties: "dict[str, SchemaNode] | None" = None
    required: list[str] | None = None
    additional_properties: "SchemaNode | bool | None" = Field(default=None, alias="additionalProperties")

    def has_type(self, *names: str) -> bool:
        return self.type in names

    def add_required(self, name: str) -> None:
        """Append ``name`` to the required list unless it is already there."""
        if self.required is None:
            self.required = []
        if name not in self.required:
            self.required.append(name)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
