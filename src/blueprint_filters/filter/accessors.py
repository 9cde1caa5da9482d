"""
Typed field accessors.

Conditions name fields by string. Before evaluation each name is resolved,
case-insensitively, to a ``FieldAccessor``: a typed getter plus the value
kind and nullability the backends need. Accessor tables are built once per
entity type, either derived from the type's declared members (dataclass
fields, pydantic model fields, class annotations, annotated properties) or
registered explicitly, and cached in an ``AccessorRegistry``.

Mapping rows (dicts, JSON records, database rows) have no declared
members; ``catalog_accessors`` derives key-based accessors from the field
catalog instead.

Example:
    >>> from dataclasses import dataclass
    >>> from blueprint_filters.filter.accessors import default_registry
    >>>
    >>> @dataclass
    ... class Order:
    ...     customer: str
    ...     total: float | None = None
    >>>
    >>> accessor = default_registry.resolve(Order, "TOTAL")
    >>> accessor.kind, accessor.nullable
    (<ValueKind.NUMBER: 'Number'>, True)
"""

from __future__ import annotations

import threading
import types
import typing
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Union

import structlog

from blueprint_filters.models.fields import FilterField, FilterFieldType
from blueprint_filters.utils.enums import SymbolicEnum

logger = structlog.get_logger(__name__)


class ValueKind(SymbolicEnum):
    """Runtime kind of a field's values."""

    TEXT = "Text"
    NUMBER = "Number"
    DATE = "Date"
    DATETIME = "DateTime"
    BOOLEAN = "Boolean"
    ENUM = "Enum"
    OTHER = "Other"

    @property
    def field_type(self) -> FilterFieldType:
        """Field type assumed when the catalog does not describe the field."""
        if self is ValueKind.OTHER:
            return FilterFieldType.TEXT
        return FilterFieldType(self.value)

    @classmethod
    def for_field_type(cls, field_type: FilterFieldType) -> ValueKind:
        return cls(field_type.value)


def format_number(number: float) -> str:
    """Render a number the way users type it (``10`` rather than ``10.0``)."""
    if isinstance(number, float) and number.is_integer() and abs(number) < 1e16:
        return str(int(number))
    return str(number)


def to_text(value: Any) -> str:
    """Default string conversion of a field value."""
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return format_number(float(value)) if isinstance(value, float) else str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class FieldAccessor:
    """Typed getter for one field of an entity type.

    Attributes:
        name: Member (or key) name as declared on the entity
        getter: Reads the field from an item; returns None when missing
        kind: Runtime value kind
        nullable: True if the field may hold None
        to_text: The field's own string conversion
    """

    name: str
    getter: Callable[[Any], Any]
    kind: ValueKind = ValueKind.OTHER
    nullable: bool = False
    to_text: Callable[[Any], str] = to_text

    @classmethod
    def attribute(cls, name: str, kind: ValueKind, *, nullable: bool = False) -> FieldAccessor:
        """Accessor reading an attribute."""
        return cls(name, _attribute_getter(name), kind, nullable)

    @classmethod
    def key(cls, name: str, kind: ValueKind, *, nullable: bool = True) -> FieldAccessor:
        """Accessor reading a mapping key."""
        return cls(name, _key_getter(name), kind, nullable)


AccessorTable = Mapping[str, FieldAccessor]


def _attribute_getter(name: str) -> Callable[[Any], Any]:
    def getter(item: Any) -> Any:
        return getattr(item, name, None)

    return getter


def _key_getter(name: str) -> Callable[[Any], Any]:
    def getter(row: Any) -> Any:
        try:
            return row[name]
        except (KeyError, IndexError, TypeError):
            return None

    return getter


def kind_of(annotation: Any) -> tuple[ValueKind, bool]:
    """Infer (kind, nullable) from a type annotation."""
    if typing.get_origin(annotation) is typing.Annotated:
        annotation = typing.get_args(annotation)[0]

    nullable = False
    if typing.get_origin(annotation) in (Union, types.UnionType):
        args = typing.get_args(annotation)
        remaining = [a for a in args if a is not type(None)]
        nullable = len(remaining) != len(args)
        if len(remaining) != 1:
            return ValueKind.OTHER, True
        annotation = remaining[0]

    if (
        annotation is Any
        or typing.get_origin(annotation) is not None
        or not isinstance(annotation, type)
    ):
        return ValueKind.OTHER, True
    # Order matters: bool subclasses int, datetime subclasses date,
    # and str-valued enums subclass str.
    if issubclass(annotation, bool):
        return ValueKind.BOOLEAN, nullable
    if issubclass(annotation, Enum):
        return ValueKind.ENUM, nullable
    if issubclass(annotation, str):
        return ValueKind.TEXT, nullable
    if issubclass(annotation, (int, float, Decimal)):
        return ValueKind.NUMBER, nullable
    if issubclass(annotation, datetime):
        return ValueKind.DATETIME, nullable
    if issubclass(annotation, date):
        return ValueKind.DATE, nullable
    return ValueKind.OTHER, True


def _declared_members(entity_type: type) -> dict[str, Any]:
    """Public readable members of a type mapped to their annotations."""
    model_fields = getattr(entity_type, "model_fields", None)
    if isinstance(model_fields, dict):
        members = {name: info.annotation for name, info in model_fields.items()}
    else:
        try:
            members = typing.get_type_hints(entity_type)
        except (NameError, TypeError):
            members = {}
            for klass in reversed(entity_type.__mro__):
                members.update(getattr(klass, "__annotations__", {}))

    for klass in reversed(entity_type.__mro__):
        if klass is object or klass.__module__.startswith("pydantic"):
            continue
        for name, prop in vars(klass).items():
            if not isinstance(prop, property) or prop.fget is None:
                continue
            try:
                members[name] = typing.get_type_hints(prop.fget).get("return", Any)
            except (NameError, TypeError):
                members[name] = Any

    return {
        name: hint
        for name, hint in members.items()
        if not name.startswith("_") and typing.get_origin(hint) is not typing.ClassVar
    }


def derive_accessors(entity_type: type) -> list[FieldAccessor]:
    """Build accessors from an entity type's declared members."""
    accessors = []
    for name, hint in _declared_members(entity_type).items():
        kind, nullable = kind_of(hint)
        accessors.append(FieldAccessor.attribute(name, kind, nullable=nullable))
    return accessors


def _index(accessors: Iterable[FieldAccessor]) -> AccessorTable:
    return MappingProxyType({a.name.casefold(): a for a in accessors})


def catalog_accessors(fields: Iterable[FilterField]) -> AccessorTable:
    """Key-based accessors for mapping rows, typed by the field catalog."""
    return _index(
        FieldAccessor.key(f.name, ValueKind.for_field_type(f.type), nullable=True) for f in fields
    )


class AccessorRegistry:
    """Thread-safe cache of accessor tables keyed by entity type.

    Reads never take the lock. The first lookup of a type builds its table
    under the lock; tables are immutable once published.
    """

    def __init__(self) -> None:
        self._tables: dict[type, AccessorTable] = {}
        self._lock = threading.Lock()

    def register(
        self,
        entity_type: type,
        accessors: Iterable[FieldAccessor] | None = None,
    ) -> AccessorTable:
        """Register (or replace) the accessor table of an entity type.

        Args:
            entity_type: Type of the items to be filtered
            accessors: Explicit accessors; derived from the type's declared
                members when omitted

        Returns:
            The published table
        """
        if accessors is None:
            accessors = derive_accessors(entity_type)
        table = _index(accessors)
        with self._lock:
            self._tables[entity_type] = table
        logger.debug("accessors_registered", entity=entity_type.__name__, fields=len(table))
        return table

    def table_for(self, entity_type: type) -> AccessorTable:
        table = self._tables.get(entity_type)
        if table is not None:
            return table
        with self._lock:
            table = self._tables.get(entity_type)
            if table is None:
                table = _index(derive_accessors(entity_type))
                self._tables[entity_type] = table
                logger.debug("accessors_derived", entity=entity_type.__name__, fields=len(table))
        return table

    def resolve(self, entity_type: type, name: str) -> FieldAccessor | None:
        """Accessor for ``name`` on ``entity_type`` (case-insensitive), or None."""
        return self.table_for(entity_type).get(name.casefold())

    def __contains__(self, entity_type: type) -> bool:
        return entity_type in self._tables

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()


default_registry = AccessorRegistry()


def register_entity(
    entity_type: type | None = None,
    *,
    registry: AccessorRegistry | None = None,
) -> Any:
    """Class decorator publishing a type's accessor table at import time.

    Usage:
        @register_entity
        @dataclass
        class Order:
            ...
    """

    def decorator(cls: type) -> type:
        (registry or default_registry).register(cls)
        return cls

    if entity_type is not None:
        return decorator(entity_type)
    return decorator


def resolve_table(
    entity_type: type | None,
    fields: Iterable[FilterField],
    registry: AccessorRegistry | None = None,
) -> AccessorTable:
    """Accessor table for an entity type.

    Mapping types without an explicit registration, and a missing entity
    type, fall back to the key-based accessors of the field catalog.
    """
    registry = registry or default_registry
    if entity_type is None:
        return catalog_accessors(fields)
    if issubclass(entity_type, Mapping) and entity_type not in registry:
        return catalog_accessors(fields)
    return registry.table_for(entity_type)
