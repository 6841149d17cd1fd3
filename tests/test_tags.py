from typing import Annotated

from pydantic import BaseModel

from specgen.shape.base import Embedded, FieldTag, Tag
from specgen.shape.tags import extract_field_tags, extract_struct_field_tags, shape_class, unwrap_optional


class TaggedShape(BaseModel):
    has_tags: Annotated[str, Tag(json="has_tags", validate="required", params="id")]
    no_tags: str
    other_tags: Annotated[str, Tag(params="id", query="search")]


class BaseFields(BaseModel):
    created_by: Annotated[str, Tag(json="created_by")]
    note: Annotated[str, Tag(json="note", validate="max=200")]


class Audited(BaseModel):
    audit: Annotated[BaseFields, Embedded()]
    revision: Annotated[int, Tag(json="revision")]


class DerivedShape(BaseModel):
    id: Annotated[int, Tag(path="id")]
    base: Annotated[BaseFields, Embedded()]
    title: Annotated[str, Tag(json="title", validate="required")]


def _as_dict(tags: list[FieldTag]) -> dict[str, str]:
    return {t.key: t.value for t in tags}


class TestExtractStructFieldTags:
    def test_collects_requested_namespaces(self):
        field = TaggedShape.model_fields["has_tags"]
        result = extract_struct_field_tags(field, ["json", "validate", "params"])
        assert _as_dict(result) == {"json": "has_tags", "validate": "required", "params": "id"}

    def test_absent_namespace_has_no_entry(self):
        field = TaggedShape.model_fields["other_tags"]
        result = extract_struct_field_tags(field, ["json", "params", "query"])
        assert [t.key for t in result] == ["params", "query"]

    def test_keeps_requested_key_order(self):
        field = TaggedShape.model_fields["has_tags"]
        result = extract_struct_field_tags(field, ["params", "json"])
        assert [t.key for t in result] == ["params", "json"]

    def test_multiple_tag_objects_merge(self):
        class Shape(BaseModel):
            name: Annotated[str, Tag(json="name"), Tag(validate="required")]

        result = extract_struct_field_tags(Shape.model_fields["name"], ["json", "validate"])
        assert _as_dict(result) == {"json": "name", "validate": "required"}

    def test_untagged_field(self):
        result = extract_struct_field_tags(TaggedShape.model_fields["no_tags"], ["json", "validate"])
        assert result == []


class TestExtractFieldTags:
    def test_fields_in_declaration_order(self):
        result = extract_field_tags(TaggedShape, ["json", "validate", "params", "query"])
        assert [r.name for r in result] == ["has_tags", "no_tags", "other_tags"]
        assert result[1].tags == []
        assert _as_dict(result[2].tags) == {"params": "id", "query": "search"}

    def test_accepts_instance(self):
        shape = TaggedShape(has_tags="a", no_tags="b", other_tags="c")
        result = extract_field_tags(shape, ["json"])
        assert [r.name for r in result] == ["has_tags", "no_tags", "other_tags"]

    def test_non_shape_returns_empty(self):
        for value in (42, None, "text", int, object(), [TaggedShape]):
            assert extract_field_tags(value, ["json"]) == []

    def test_embedded_fields_spliced_in_place(self):
        result = extract_field_tags(DerivedShape, ["json", "path", "validate"])
        assert [r.name for r in result] == ["id", "created_by", "note", "title"]
        assert result[2].lookup("validate") == "max=200"

    def test_embedding_is_recursive(self):
        class Outer(BaseModel):
            inner: Annotated[Audited, Embedded()]
            flag: bool

        result = extract_field_tags(Outer, ["json"])
        assert [r.name for r in result] == ["created_by", "note", "revision", "flag"]
        assert [r.depth for r in result] == [2, 2, 1, 0]

    def test_optional_embedded_shape(self):
        class Partial(BaseModel):
            base: Annotated[BaseFields | None, Embedded()] = None

        result = extract_field_tags(Partial, ["json"])
        assert [r.name for r in result] == ["created_by", "note"]

    def test_inherited_fields_come_first(self):
        class Child(BaseFields):
            extra: Annotated[str, Tag(json="extra")]

        result = extract_field_tags(Child, ["json"])
        assert [r.name for r in result] == ["created_by", "note", "extra"]

    def test_annotation_is_carried(self):
        result = extract_field_tags(Audited, ["json"])
        assert result[-1].annotation is int


class TestHelpers:
    def test_shape_class(self):
        assert shape_class(BaseFields) is BaseFields
        assert shape_class(BaseFields(created_by="x", note="y")) is BaseFields
        assert shape_class(dict) is None

    def test_unwrap_optional(self):
        assert unwrap_optional(int | None) == (int, True)
        assert unwrap_optional(int) == (int, False)
        assert unwrap_optional(int | str) == (int | str, False)
