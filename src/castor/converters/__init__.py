"""Backend converters between the unified shape and each wire format.

Importing this package registers every field table.
"""

from __future__ import annotations

from castor.converters import content, files, live, models  # noqa: F401
from castor.converters._engine import (
    ConverterRegistry,
    ConverterSet,
    Direction,
    FieldRule,
    field,
    registry,
    unsupported,
)

__all__ = [
    "ConverterRegistry",
    "ConverterSet",
    "Direction",
    "FieldRule",
    "field",
    "registry",
    "unsupported",
]
