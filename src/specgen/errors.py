"""Errors raised while assembling an OpenAPI document.

Annotation problems inside a single field never surface here: unknown
validation keywords and malformed numbers are dropped by the translator.
"""


class GenerationError(Exception):
    """Base class for every failure of a document generation call."""


class InvalidOperationError(GenerationError):
    """The route's method or path cannot form an operation."""


class DuplicateOperationError(GenerationError):
    """The same (method, path) pair was declared more than once."""


class SerializationError(GenerationError):
    """The assembled document could not be encoded."""
