"""Sample route declarations loaded by the CLI tests."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel

from specgen.generator.route import DocumentConfig, Route, RouteResponse
from specgen.shape.base import Embedded, Tag


class Address(BaseModel):
    street: Annotated[str, Tag(json="street", validate="required")]
    city: Annotated[str, Tag(json="city", validate="required")]


class CreateUserRequest(BaseModel):
    name: Annotated[str, Tag(json="name", validate="required")]
    email: Annotated[str, Tag(json="email", validate="required,email,min=3,max=100")]
    age: Annotated[int, Tag(json="age", validate="required,min=18,max=120")]
    gender: Annotated[str, Tag(json="gender", validate="required,oneof=male female")]
    hobbies: Annotated[list[str], Tag(json="hobbies", validate="required,min=1,max=10")]
    birthday: Annotated[datetime | None, Tag(json="birthday", validate="datetime")] = None
    addresses: Annotated[list[Address], Tag(json="addresses", validate="required,min=1")]


class UpdateUserFields(BaseModel):
    name: Annotated[str | None, Tag(json="name")] = None
    email: Annotated[str | None, Tag(json="email", format="email")] = None


class UpdateUserRequest(BaseModel):
    id: Annotated[int, Tag(path="id", required="true")]
    base: Annotated[UpdateUserFields, Embedded()]


class GetUserParams(BaseModel):
    id: Annotated[int, Tag(path="id", required="true")]


class UserResponse(BaseModel):
    id: Annotated[int, Tag(json="id")]
    name: Annotated[str, Tag(json="name")]
    email: Annotated[str, Tag(json="email")]


class ErrorResponse(BaseModel):
    message: Annotated[str, Tag(json="message")]
    code: Annotated[str, Tag(json="code")]


CONFIG = DocumentConfig(
    title="User Management API",
    description="A comprehensive API for managing users",
    version="1.0.0",
    with_bearer_token_security=True,
)

ROUTES = [
    Route(
        tags=["users"],
        summary="Create a new user",
        method="POST",
        path="/users",
        request=CreateUserRequest,
        responses=[
            RouteResponse(status_code=201, response=UserResponse),
            RouteResponse(status_code=400, response=ErrorResponse),
        ],
    ),
    Route(
        tags=["users"],
        summary="Get user by ID",
        method="GET",
        path="/users/{id}",
        request=GetUserParams,
        responses=[
            RouteResponse(status_code=200, response=UserResponse),
            RouteResponse(status_code=404, response=ErrorResponse),
        ],
    ),
    Route(
        tags=["users"],
        summary="Update user",
        method="PUT",
        path="/users/{id}",
        request=UpdateUserRequest,
        responses=[RouteResponse(status_code=200, response=UserResponse)],
    ),
]

DUPLICATE_ROUTES = ROUTES + [ROUTES[0]]
