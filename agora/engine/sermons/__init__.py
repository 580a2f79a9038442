"""Sermons delivered at the Temple Steps."""

from .preacher import (
    Preacher,
    Sermon,
    SermonValidationError,
    format_sermon,
    parse_sermon,
    validate_sermon,
)
from .types import SERMON_EMOJI, SermonType

__all__ = [
    "Preacher",
    "SERMON_EMOJI",
    "Sermon",
    "SermonType",
    "SermonValidationError",
    "format_sermon",
    "parse_sermon",
    "validate_sermon",
]
