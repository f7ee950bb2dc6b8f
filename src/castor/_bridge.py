"""Typed marshal bridge between domain models and untyped nodes.

Both directions go through JSON text so the custom field encodings in
:mod:`castor.types` behave exactly as they do on the network.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
import pydantic_core

from castor.errors import ConversionError

M = TypeVar("M", bound=BaseModel)


def to_node(value: Any) -> Any:
    """Flatten models (possibly nested in dicts and lists) into a JSON node."""
    try:
        text = pydantic_core.to_json(value, by_alias=True, exclude_none=True)
    except pydantic_core.PydanticSerializationError as exc:
        raise ConversionError(f"cannot serialize {type(value).__name__}: {exc}") from exc
    return json.loads(text)


def from_node(model: type[M], node: Any) -> M:
    """Rebuild a typed model from a node, naming the failing field on error."""
    if node is None:
        node = {}
    try:
        return model.model_validate_json(json.dumps(node))
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise ConversionError(
            f"invalid value for {model.__name__}.{location}: "
            f"{first.get('input')!r} ({first['msg']})"
        ) from exc
