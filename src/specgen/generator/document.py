"""Assemble route declarations into one OpenAPI 3.0 document.

Routes are processed in the order given. Each becomes one operation under
``paths[path][method]``; request and response shapes are registered once
as component schemas and referenced from the operations.
"""

import json
import logging
import os
import re
import tempfile
from http import HTTPStatus
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from specgen.errors import DuplicateOperationError, InvalidOperationError, SerializationError
from specgen.generator.node import OBJECT, SchemaNode
from specgen.generator.route import DocumentConfig, Route, RouteResponse
from specgen.generator.schema import ComponentRegistry, apply_field_tags, param_binding, serialized_name
from specgen.shape.base import TAG_KEYS, FieldTagSet
from specgen.shape.tags import extract_field_tags, shape_class

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.3"
HTTP_METHODS = ("GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE")
BODYLESS_METHODS = ("GET", "HEAD", "OPTIONS", "TRACE")
CONTENT_TYPE_JSON = "application/json"
BEARER_AUTH = "Bearer Auth"
OUTPUT_FORMATS = ("yaml", "json")

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")
_PLACEHOLDER_NAME = re.compile(r"^[A-Za-z0-9_.\-]+$")


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True


def path_placeholders(path: str) -> list[str]:
    """Return the ``{name}`` placeholders of a path template, in order."""
    if not path.startswith("/"):
        raise InvalidOperationError(f"path must start with '/': {path!r}")

    names = _PLACEHOLDER.findall(path)
    rest = _PLACEHOLDER.sub("", path)
    if "{" in rest or "}" in rest:
        raise InvalidOperationError(f"unbalanced braces in path: {path!r}")

    seen = set()
    for name in names:
        if not _PLACEHOLDER_NAME.match(name):
            raise InvalidOperationError(f"invalid path placeholder {{{name}}} in {path!r}")
        if name in seen:
            raise InvalidOperationError(f"duplicate path placeholder {{{name}}} in {path!r}")
        seen.add(name)
    return names


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class DocumentBuilder:
    """Accumulates operations and component schemas for one generation call."""

    def __init__(self, config: DocumentConfig):
        self.config = config
        self.registry = ComponentRegistry()
        self.paths: dict[str, dict[str, Any]] = {}
        self.operation_count = 0

    def add_route(self, route: Route) -> None:
        method = route.method.upper()
        if method not in HTTP_METHODS:
            raise InvalidOperationError(
                f"failed to create operation context: unknown HTTP method {route.method!r} for {route.path}"
            )
        try:
            placeholders = path_placeholders(route.path)
        except InvalidOperationError as e:
            raise InvalidOperationError(f"failed to create operation context: {e}") from e

        path_item = self.paths.get(route.path, {})
        if method.lower() in path_item:
            raise DuplicateOperationError(f"failed to add operation: {method} {route.path} is already defined")

        operation = self._operation(method, route, placeholders)

        self.paths.setdefault(route.path, {})[method.lower()] = operation
        self.operation_count += 1
        logger.debug("Added operation %s %s", method, route.path)

    def _operation(self, method: str, route: Route, placeholders: list[str]) -> dict[str, Any]:
        operation: dict[str, Any] = {}
        if route.tags:
            operation["tags"] = list(route.tags)
        if route.summary:
            operation["summary"] = route.summary
        if route.description:
            operation["description"] = route.description

        cls = shape_class(route.request)
        parameters = self._parameters(cls) if cls is not None else []

        bound = [p["name"] for p in parameters if p["in"] == "path"]
        for name in bound:
            if name not in placeholders:
                raise InvalidOperationError(
                    f"failed to create operation context: missing path parameter placeholder in url {route.path}: {name}"
                )
        for name in placeholders:
            if name not in bound:
                raise InvalidOperationError(
                    f"failed to create operation context: undefined path parameter {name} in {method} {route.path}"
                )

        if parameters:
            operation["parameters"] = parameters

        if cls is not None and method not in BODYLESS_METHODS and _has_body_fields(cls):
            schema = self.registry.reference(cls, exclude_params=True)
            operation["requestBody"] = {"content": {CONTENT_TYPE_JSON: {"schema": schema.to_dict()}}}

        operation["responses"] = self._responses(method, route)
        return operation

    def _parameters(self, cls: type[BaseModel]) -> list[dict[str, Any]]:
        parameters = []
        for field in extract_field_tags(cls, TAG_KEYS):
            binding = param_binding(field)
            if binding is None:
                continue
            location, name = binding
            parameters.append({"name": name, "in": location, **self._parameter_body(location, name, field)})
        return parameters

    def _parameter_body(self, location: str, name: str, field: FieldTagSet) -> dict[str, Any]:
        """Description, required flag and schema shared by parameters and response headers."""
        # Parameters have no enclosing object; collect required-ness on a scratch node.
        holder = SchemaNode(type=OBJECT)
        prop = self.registry.schema_for(field.annotation)
        apply_field_tags(name, field, prop, holder)

        body: dict[str, Any] = {}
        if prop.description:
            body["description"] = prop.description
            prop.description = None
        if location == "path" or name in (holder.required or []):
            body["required"] = True
        body["schema"] = prop.to_dict()
        return body

    def _response_headers(self, cls: type[BaseModel]) -> dict[str, Any]:
        headers = {}
        for field in extract_field_tags(cls, TAG_KEYS):
            binding = param_binding(field)
            if binding is not None and binding[0] == "header":
                headers[binding[1]] = self._parameter_body("header", binding[1], field)
        return headers

    def _responses(self, method: str, route: Route) -> dict[str, Any]:
        responses: dict[str, Any] = {}
        for response in route.responses:
            code = str(response.status_code)
            if not 100 <= response.status_code <= 599:
                raise InvalidOperationError(
                    f"failed to create operation context: invalid status code {code} for {method} {route.path}"
                )
            if code in responses:
                raise InvalidOperationError(
                    f"failed to create operation context: status code {code} declared twice for {method} {route.path}"
                )

            entry: dict[str, Any] = {"description": response.description or _reason(response.status_code)}
            cls = shape_class(response.response)
            headers = self._response_headers(cls) if cls is not None else {}
            if headers:
                entry["headers"] = headers
            schema = self._response_schema(response)
            if schema is not None:
                entry["content"] = {CONTENT_TYPE_JSON: {"schema": schema.to_dict()}}
            responses[code] = entry
        return responses

    def _response_schema(self, response: RouteResponse) -> SchemaNode | None:
        shape = response.response
        if shape is None:
            return None
        cls = shape_class(shape)
        if cls is not None:
            if not _has_body_fields(cls):
                return None
            return self.registry.reference(cls, exclude_params=True)
        return self.registry.schema_for(shape)

    def build(self) -> dict[str, Any]:
        info = {}
        for key in ("title", "description", "version"):
            value = getattr(self.config, key)
            if value is not None:
                info[key] = value

        document: dict[str, Any] = {"openapi": OPENAPI_VERSION, "info": info, "paths": self.paths}

        components: dict[str, Any] = {}
        if self.registry.schemas:
            components["schemas"] = {name: s.to_dict() for name, s in self.registry.schemas.items()}
        if self.config.with_bearer_token_security:
            components["securitySchemes"] = {
                BEARER_AUTH: {
                    "type": "http",
                    "scheme": "bearer",
                    "description": "Bearer token authentication",
                }
            }
        if components:
            document["components"] = components
        return document


def _has_body_fields(cls: type[BaseModel]) -> bool:
    return any(
        param_binding(field) is None and serialized_name(field) is not None
        for field in extract_field_tags(cls, TAG_KEYS)
    )


def build_document(config: DocumentConfig, routes: list[Route]) -> dict[str, Any]:
    """Assemble ``routes`` into an OpenAPI document dict."""
    builder = DocumentBuilder(config)
    for route in routes:
        builder.add_route(route)
    document = builder.build()
    logger.info(
        "Assembled %d operations and %d component schemas",
        builder.operation_count,
        len(builder.registry.schemas),
    )
    return document


def serialize(document: dict[str, Any], fmt: str = "yaml") -> bytes:
    if fmt == "yaml":
        try:
            text = yaml.dump(document, Dumper=_NoAliasDumper, sort_keys=False, allow_unicode=True)
        except yaml.YAMLError as e:
            raise SerializationError(f"failed to marshal yaml spec: {e}") from e
    elif fmt == "json":
        try:
            text = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as e:
            raise SerializationError(f"failed to marshal json spec: {e}") from e
    else:
        raise SerializationError(f"unsupported output format: {fmt!r}")
    return text.encode("utf-8")


def generate_document(config: DocumentConfig, routes: list[Route], fmt: str = "yaml") -> bytes:
    """Build and serialize the document for ``routes``.

    Raises InvalidOperationError, DuplicateOperationError or SerializationError.
    """
    return serialize(build_document(config, routes), fmt)


def format_for(output_file: Path) -> str:
    return "json" if output_file.suffix.lower() == ".json" else "yaml"


def write_document(
    config: DocumentConfig,
    routes: list[Route],
    output_file: str | Path,
    fmt: str | None = None,
) -> Path:
    """Generate the document and write it to ``output_file``.

    The file only appears once the whole document has been generated and
    written; a failed call leaves any previous file untouched.
    """
    output_file = Path(output_file)
    data = generate_document(config, routes, fmt or format_for(output_file))

    output_file.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=output_file.parent, prefix=f".{output_file.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, output_file)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Wrote %s", output_file)
    return output_file
