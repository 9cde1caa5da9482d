"""
Base class for enumerations that travel over the wire by symbolic name.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class SymbolicEnum(str, Enum):
    """String enum whose value is its wire name.

    Lookup by value is case-insensitive and also accepts the Python member
    name, so ``FilterOperator("notequals")`` and
    ``FilterOperator("NOT_EQUALS")`` both resolve to ``NotEquals``.
    """

    @classmethod
    def _missing_(cls, value: Any) -> SymbolicEnum | None:
        if not isinstance(value, str):
            return None
        folded = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == folded or member.name.casefold() == folded:
                return member
        return None

    @classmethod
    def parse(cls, name: str) -> Any:
        """Resolve a symbolic name, raising ``ValueError`` when unknown."""
        return cls(name)

    def __str__(self) -> str:
        return self.value
