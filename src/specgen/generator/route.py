"""Route declarations and document configuration.

Callers describe their API with these models; the document assembler
reads them and never mutates them.
"""

from typing import Any

from pydantic import BaseModel


class RouteResponse(BaseModel):
    """One documented response of a route."""

    status_code: int
    response: Any = None  # shape, shape instance, type expression or None
    description: str = ""


class Route(BaseModel):
    """A single HTTP operation to document."""

    method: str  # GET / POST / PUT / DELETE / PATCH / ...
    path: str  # /users/{id}
    request: Any = None
    responses: list[RouteResponse] = []
    tags: list[str] = []
    summary: str = ""
    description: str = ""


class DocumentConfig(BaseModel):
    """Document-level settings applied once when generation starts."""

    title: str | None = None
    description: str | None = None
    version: str | None = None
    with_bearer_token_security: bool = False
