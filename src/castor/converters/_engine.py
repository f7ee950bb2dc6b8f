"""Table-driven structural converters.

Each logical type registers, per backend and direction, an ordered tuple of
:class:`FieldRule`. A rule reads one source path and writes one destination
path, optionally through a nested converter, a value transformer, or into the
caller's output (``parent=True``) for fields a backend hoists up a level.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from castor._paths import (
    PathLike,
    get_value_by_path,
    is_zero,
    set_value_by_path,
    split_path,
)
from castor.config import Backend
from castor.errors import ConversionError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from castor.config import ClientConfig

Node = dict[str, Any]


class Direction(str, Enum):
    TO_WIRE = "to_wire"
    FROM_WIRE = "from_wire"


@dataclass(frozen=True)
class FieldRule:
    """How one field moves from the source node to the destination node."""

    source: tuple[str, ...]
    target: tuple[str, ...]
    nested: str | None = None
    each: bool = False
    mapping: bool = False
    transform: Callable[[ConverterSet, Any], Any] | None = None
    parent: bool = False
    keep_zero: bool = False
    unsupported: bool = False


def field(
    source: PathLike,
    target: PathLike | None = None,
    *,
    nested: str | None = None,
    each: bool = False,
    mapping: bool = False,
    transform: Callable[[ConverterSet, Any], Any] | None = None,
    parent: bool = False,
    keep_zero: bool = False,
) -> FieldRule:
    """Declare a copied field; ``target`` defaults to ``source``.

    ``keep_zero`` writes zero values (``0``, ``False``, ``{}``) that the path
    primitive would otherwise drop, for fields where zero differs from unset.
    """
    source_path = split_path(source)
    return FieldRule(
        source=source_path,
        target=split_path(target) if target is not None else source_path,
        nested=nested,
        each=each,
        mapping=mapping,
        transform=transform,
        parent=parent,
        keep_zero=keep_zero,
    )


def unsupported(source: PathLike) -> FieldRule:
    """Declare a field the backend rejects when present."""
    path = split_path(source)
    return FieldRule(source=path, target=path, unsupported=True)


class ConverterFunc(Protocol):
    def __call__(
        self, converters: ConverterSet, from_object: Any, parent_object: Node | None
    ) -> Node: ...


def _table_converter(type_name: str, rules: tuple[FieldRule, ...], direction: Direction) -> ConverterFunc:
    def convert(converters: ConverterSet, from_object: Any, parent_object: Node | None) -> Node:
        if not isinstance(from_object, dict):
            raise ConversionError(
                f"{type_name} expects an object, got {type(from_object).__name__}"
            )
        to_object: Node = {}
        for rule in rules:
            value = get_value_by_path(from_object, rule.source)
            if value is None:
                continue
            field_name = ".".join(rule.source)
            if rule.unsupported:
                raise ConversionError(
                    f"{field_name} parameter is not supported in {converters.backend.label}."
                )
            if rule.transform is not None:
                value = rule.transform(converters, value)
            if rule.nested is not None:
                value = _convert_nested(converters, rule, value, direction, to_object, field_name)
            elif isinstance(value, (dict, list)):
                # Leaves are copied so later writes never reach the source node.
                value = copy.deepcopy(value)
            if rule.parent:
                if parent_object is None:
                    raise ConversionError(
                        f"{type_name}.{field_name} must be converted inside a parent object"
                    )
                _write(parent_object, rule, value)
            else:
                _write(to_object, rule, value)
        return to_object

    convert.__name__ = f"convert_{type_name}_{direction.value}"
    return convert


def _write(node: Node, rule: FieldRule, value: Any) -> None:
    if not (rule.keep_zero and is_zero(value)):
        set_value_by_path(node, rule.target, value)
        return
    *parents, leaf = rule.target
    container = get_value_by_path(node, parents) if parents else node
    if isinstance(container, dict):
        container[leaf] = value
    else:
        set_value_by_path(node, parents, {leaf: value})


def _convert_nested(
    converters: ConverterSet,
    rule: FieldRule,
    value: Any,
    direction: Direction,
    to_object: Node,
    field_name: str,
) -> Any:
    assert rule.nested is not None
    if rule.each:
        if not isinstance(value, list):
            raise ConversionError(f"{field_name} expects a list, got {type(value).__name__}")
        return [
            converters.convert(rule.nested, item, direction, to_object)
            for item in value
            if item is not None
        ]
    if rule.mapping:
        if not isinstance(value, dict):
            raise ConversionError(f"{field_name} expects a map, got {type(value).__name__}")
        return {
            key: converters.convert(rule.nested, item, direction, to_object)
            for key, item in value.items()
        }
    return converters.convert(rule.nested, value, direction, to_object)


class ConverterRegistry:
    """Maps (type name, backend, direction) to a converter function."""

    def __init__(self) -> None:
        self._converters: dict[tuple[str, Backend, Direction], ConverterFunc] = {}

    def register(
        self,
        type_name: str,
        backend: Backend,
        direction: Direction,
        converter: ConverterFunc,
    ) -> None:
        key = (type_name, backend, direction)
        if key in self._converters:
            raise ValueError(f"converter already registered for {key}")
        self._converters[key] = converter

    def define(
        self,
        type_name: str,
        direction: Direction,
        *,
        common: Iterable[FieldRule] = (),
        gemini: Iterable[FieldRule] | None = (),
        vertex: Iterable[FieldRule] | None = (),
    ) -> None:
        """Register table converters for both backends.

        Backend-specific rules run before the shared ones. Passing ``None``
        for a backend leaves the type unregistered there.
        """
        shared = tuple(common)
        for backend, specific in ((Backend.GEMINI_API, gemini), (Backend.VERTEX_AI, vertex)):
            if specific is None:
                continue
            rules = (*tuple(specific), *shared)
            self.register(type_name, backend, direction, _table_converter(type_name, rules, direction))

    def get(self, type_name: str, backend: Backend, direction: Direction) -> ConverterFunc | None:
        return self._converters.get((type_name, backend, direction))

    def registered_types(self, backend: Backend, direction: Direction) -> list[str]:
        return sorted(
            name for name, key_backend, key_direction in self._converters
            if key_backend is backend and key_direction is direction
        )


# Global registry instance, populated by the table modules on import.
registry = ConverterRegistry()


class ConverterSet:
    """The ``{to_wire, from_wire}`` capability bound to one client.

    Selected once from the client's backend; callers never branch on the
    backend themselves.
    """

    def __init__(self, config: ClientConfig, converter_registry: ConverterRegistry | None = None) -> None:
        self.config = config
        self.backend = config.backend
        self._registry = converter_registry or registry

    def convert(
        self,
        type_name: str,
        node: Any,
        direction: Direction,
        parent: Node | None = None,
    ) -> Node:
        converter = self._registry.get(type_name, self.backend, direction)
        if converter is None:
            raise ConversionError(f"{type_name} is not supported in {self.backend.label}.")
        return converter(self, node, parent)

    def to_wire(self, type_name: str, node: Any, parent: Node | None = None) -> Node:
        """Rewrite a unified node into the backend's request shape."""
        return self.convert(type_name, node, Direction.TO_WIRE, parent)

    def from_wire(self, type_name: str, node: Any, parent: Node | None = None) -> Node:
        """Rewrite a backend response node into the unified shape."""
        return self.convert(type_name, node, Direction.FROM_WIRE, parent)
