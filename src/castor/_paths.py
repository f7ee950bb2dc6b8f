"""Path-addressed access to nested untyped nodes.

A node is built from ``dict`` (string keys), ``list`` and JSON scalars. Paths
are sequences of segments; ``"a.b[].c"`` is accepted as shorthand for
``("a", "b[]", "c")``. A segment ending in ``[]`` distributes the rest of the
path over every element of the list found at that key.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

from castor.errors import ConversionError

SELF = "_self"
_DISTRIBUTE = "[]"

PathLike = str | tuple[str, ...] | list[str]


def split_path(path: PathLike) -> tuple[str, ...]:
    """Normalize a dotted string or a segment sequence into a tuple."""
    if isinstance(path, str):
        return tuple(segment for segment in path.split(".") if segment)
    return tuple(path)


def is_zero(value: Any) -> bool:
    """Return True for the zero value of a node leaf or container.

    ``None``, ``False``, numeric zero, the empty string and empty containers
    are zero; :func:`set_value_by_path` never writes them.
    """
    if value is None:
        return True
    if isinstance(value, (bool, int, float)):
        return not value
    if isinstance(value, (str, bytes, list, tuple, dict)):
        return len(value) == 0
    return False


def get_value_by_path(data: Any, path: PathLike) -> Any:
    """Return the value at ``path`` or None when any segment is missing.

    ``("_self",)`` returns ``data`` unchanged. A ``[]`` segment maps the
    remaining path over each element and returns the resulting list.
    """
    keys = split_path(path)
    if not keys:
        return None
    if keys == (SELF,):
        return data

    current = data
    for index, key in enumerate(keys):
        if not isinstance(current, dict):
            return None
        if key.endswith(_DISTRIBUTE):
            items = current.get(key[: -len(_DISTRIBUTE)])
            if not isinstance(items, list):
                return None
            rest = keys[index + 1 :]
            if not rest:
                return items
            return [get_value_by_path(item, rest) for item in items]
        current = current.get(key)
        if current is None:
            return None
    return current


def set_value_by_path(data: dict[str, Any], path: PathLike, value: Any) -> None:
    """Write ``value`` at ``path`` in place, creating maps along the way.

    Zero values (see :func:`is_zero`) are ignored and leave ``data``
    untouched. Non-map values found at intermediate positions are replaced.

    A ``[]`` segment applies the rest of the path to every element of the
    list at that key. A list ``value`` is paired element-for-element when the
    target list is missing, empty or of the same length; the target is
    created with one map per element if needed. Any other value, including a
    list of a different length, is broadcast to every existing element.
    """
    if is_zero(value):
        return
    keys = split_path(path)
    if not keys:
        raise ConversionError("cannot set a value at an empty path")

    current = data
    for index, key in enumerate(keys[:-1]):
        if key.endswith(_DISTRIBUTE):
            _set_distributed(current, key[: -len(_DISTRIBUTE)], keys[index + 1 :], value)
            return
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child

    last = keys[-1]
    if last.endswith(_DISTRIBUTE):
        # Trailing distribute segment: the value is the sequence itself.
        current[last[: -len(_DISTRIBUTE)]] = value
        return
    current[last] = value


def _set_distributed(
    container: dict[str, Any], key: str, rest: tuple[str, ...], value: Any
) -> None:
    items = container.get(key)
    if not isinstance(items, list):
        items = []

    if isinstance(value, list) and (not items or len(items) == len(value)):
        if not items:
            items = [{} for _ in value]
            container[key] = items
        for index, element_value in enumerate(value):
            if not isinstance(items[index], dict):
                items[index] = {}
            set_value_by_path(items[index], rest, element_value)
        return

    if key in container:
        container[key] = items
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            items[index] = item = {}
        set_value_by_path(item, rest, value)


def format_map(template: str, values: dict[str, Any] | None) -> str:
    """Fill ``{name}`` placeholders, keeping slashes in values unescaped."""
    values = values or {}
    try:
        return template.format_map({key: str(value) for key, value in values.items()})
    except KeyError as exc:
        raise ConversionError(
            f"missing path parameter {exc.args[0]!r} for {template!r}"
        ) from exc


def encode_query(query: dict[str, Any] | None) -> str:
    """Encode query parameters in a stable (sorted) order."""
    if not query:
        return ""
    pairs = sorted(
        (key, _query_value(value))
        for key, value in query.items()
        if not is_zero(value)
    )
    return urlencode(pairs, quote_via=quote)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
