"""Value transformers shared by field tables and resource methods.

Functions taking ``(converters, value)`` run inside converters and may look at
the client configuration; the ``coerce_*`` helpers run on the typed side
before marshalling.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from castor.config import Backend
from castor.errors import ConversionError
from castor.types import Content, Part

if TYPE_CHECKING:
    from castor.converters import ConverterSet

_FILE_NAME_RE = re.compile(r"files/([^/:?]+)")


def t_model(converters: ConverterSet, model: Any) -> str:
    """Qualify a bare model name for the active backend."""
    if not isinstance(model, str) or not model:
        raise ConversionError(f"model must be a non-empty string, got {model!r}")
    if converters.backend is Backend.GEMINI_API:
        if model.startswith(("models/", "tunedModels/")):
            return model
        return f"models/{model}"
    if model.startswith(("publishers/", "projects/", "models/")):
        return model
    if "/" in model:
        publisher, name = model.split("/", 1)
        return f"publishers/{publisher}/models/{name}"
    return f"publishers/google/models/{model}"


def t_model_full_name(converters: ConverterSet, model: Any) -> str:
    """Like :func:`t_model`, but Vertex names carry project and location."""
    name = t_model(converters, model)
    if converters.backend is Backend.VERTEX_AI and not name.startswith("projects/"):
        config = converters.config
        return f"projects/{config.project}/locations/{config.location}/{name}"
    return name


def t_models_url(converters: ConverterSet, query_base: Any) -> str:
    if converters.backend is Backend.GEMINI_API:
        return "models" if query_base else "tunedModels"
    return "publishers/google/models" if query_base else "models"


def t_extract_models(converters: ConverterSet, response: Any) -> list[Any]:
    """Pull the model list out of whichever key the endpoint used."""
    del converters
    if not isinstance(response, dict):
        return []
    for key in ("models", "tunedModels", "publisherModels"):
        if isinstance(response.get(key), list):
            return response[key]
    return []


def t_cached_content_name(converters: ConverterSet, name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise ConversionError(f"cached content name must be a non-empty string, got {name!r}")
    if converters.backend is Backend.GEMINI_API:
        return name if name.startswith("cachedContents/") else f"cachedContents/{name}"
    if name.startswith("projects/"):
        return name
    config = converters.config
    prefix = f"projects/{config.project}/locations/{config.location}"
    if name.startswith("cachedContents/"):
        return f"{prefix}/{name}"
    return f"{prefix}/cachedContents/{name}"


def t_file_name(converters: ConverterSet, name: Any) -> str:
    """Reduce ``files/abc``, a file URI or a download URI to ``abc``."""
    del converters
    if not isinstance(name, str) or not name:
        raise ConversionError(f"file name must be a non-empty string, got {name!r}")
    match = _FILE_NAME_RE.search(name)
    return match.group(1) if match else name


def coerce_contents(value: Any) -> list[Content]:
    """Normalize text, parts, contents or a mix of them into turns.

    Consecutive strings and parts are grouped into one user turn.
    """
    if value is None:
        raise ConversionError("contents are required")
    items = value if isinstance(value, list) else [value]
    contents: list[Content] = []
    pending: list[Part] = []

    def flush() -> None:
        if pending:
            contents.append(Content(parts=list(pending), role="user"))
            pending.clear()

    for item in items:
        if isinstance(item, str):
            pending.append(Part(text=item))
        elif isinstance(item, Part):
            pending.append(item)
        elif isinstance(item, Content):
            flush()
            contents.append(item)
        elif isinstance(item, dict):
            flush()
            contents.append(Content.model_validate(item))
        else:
            raise ConversionError(f"unsupported content item of type {type(item).__name__}")
    flush()
    return contents


def coerce_embed_contents(value: Any) -> list[Content]:
    """Each string or part becomes its own content to embed."""
    items = value if isinstance(value, list) else [value]
    contents: list[Content] = []
    for item in items:
        if isinstance(item, str):
            contents.append(Content(parts=[Part(text=item)]))
        elif isinstance(item, Part):
            contents.append(Content(parts=[item]))
        elif isinstance(item, Content):
            contents.append(item)
        else:
            raise ConversionError(f"unsupported embed item of type {type(item).__name__}")
    return contents
