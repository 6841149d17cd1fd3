"""Translate ``validate`` annotations into schema constraints.

Supported keywords: required, oneof=, email, url, uuid, datetime,
min=, max=, len=, gte=, lte=, gt=, lt=. Anything else is ignored, and a
keyword whose number does not parse contributes nothing.
"""

import logging
import math
import re

from pydantic import BaseModel

from specgen.generator.node import ARRAY, INTEGER, NUMBER, STRING, SchemaNode

logger = logging.getLogger(__name__)

FORMATS = {
    "email": "email",
    "url": "uri",
    "uuid": "uuid",
    "datetime": "date-time",
}

FLOAT_BOUNDS = ("min", "max", "gte", "lte", "gt", "lt")

# Plain decimal literals only: no whitespace, underscores or hex.
_FLOAT = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")
_INT = re.compile(r"[+-]?[0-9]+")


class ValidationInfo(BaseModel):
    """Parsed form of one field's ``validate`` annotation."""

    required: bool = False
    format: str = ""
    one_of: list[str] = []
    min: float | None = None
    max: float | None = None
    len: int | None = None
    gt: float | None = None
    lt: float | None = None
    gte: float | None = None
    lte: float | None = None


def parse_validation_tag(raw: str) -> ValidationInfo:
    """Parse a raw annotation such as ``"required,min=3,max=100"``."""
    info = ValidationInfo()
    if not raw:
        return info

    for part in raw.split(","):
        part = part.strip()

        if part == "required":
            info.required = True
            continue

        if part.startswith("oneof="):
            info.one_of = part[len("oneof="):].split()
            continue

        if part in FORMATS:
            info.format = FORMATS[part]
            continue

        key, sep, value = part.partition("=")
        if not sep:
            if part:
                logger.debug("Ignoring unknown validation keyword %r", part)
            continue

        if key in FLOAT_BOUNDS:
            number = parse_float(value)
            if number is None:
                logger.debug("Ignoring malformed bound %r", part)
            else:
                setattr(info, key, number)
        elif key == "len":
            if _INT.fullmatch(value):
                info.len = int(value)
            else:
                logger.debug("Ignoring malformed length %r", part)
        else:
            logger.debug("Ignoring unknown validation keyword %r", part)

    return info


def apply_validation(info: ValidationInfo, name: str, prop: SchemaNode, parent: SchemaNode) -> None:
    """Write ``info`` onto the property node ``prop`` named ``name`` of ``parent``.

    Which bounds apply depends on the type already inferred for ``prop``:
    string lengths, numeric ranges or array item counts.
    """
    if info.required:
        parent.add_required(name)

    if info.one_of:
        prop.enum = list(info.one_of)

    if info.format:
        prop.format = info.format

    if prop.has_type(STRING):
        if info.len is not None:
            prop.min_length = info.len
            prop.max_length = info.len
        else:
            if info.min is not None:
                prop.min_length = int(info.min)
            if info.max is not None:
                prop.max_length = int(info.max)

    if prop.has_type(NUMBER, INTEGER):
        if info.min is not None:
            prop.minimum = compact(info.min)
        elif info.gte is not None:
            prop.minimum = compact(info.gte)
        if info.gt is not None:
            prop.minimum = compact(info.gt)
            prop.exclusive_minimum = True

        if info.max is not None:
            prop.maximum = compact(info.max)
        elif info.lte is not None:
            prop.maximum = compact(info.lte)
        if info.lt is not None:
            prop.maximum = compact(info.lt)
            prop.exclusive_maximum = True

    if prop.has_type(ARRAY):
        if info.min is not None:
            prop.min_items = int(info.min)
        if info.max is not None:
            prop.max_items = int(info.max)


def parse_float(value: str) -> float | None:
    if not _FLOAT.fullmatch(value):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def compact(value: float) -> int | float:
    """Render integral floats as ints so ``18.0`` is emitted as ``18``."""
    if value.is_integer():
        return int(value)
    return value
