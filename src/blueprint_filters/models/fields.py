"""
Field catalog models.

The host application describes each filterable field with a
``FilterField``: the member name on the entity, a display label, the field
type (which decides the legal operators) and, for enumerations, the list of
options.

Example:
    >>> from blueprint_filters.models import FilterField, FilterFieldType
    >>>
    >>> fields = [
    ...     FilterField(name="name", label="Name", type=FilterFieldType.TEXT),
    ...     FilterField(
    ...         name="status",
    ...         label="Status",
    ...         type="Enum",
    ...         options=[{"value": "open", "label": "Open"}],
    ...     ),
    ... ]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from blueprint_filters.errors import FilterFormatError
from blueprint_filters.utils.enums import SymbolicEnum


class FilterFieldType(SymbolicEnum):
    """Data type of a filter field."""

    TEXT = "Text"
    NUMBER = "Number"
    DATE = "Date"
    DATETIME = "DateTime"
    BOOLEAN = "Boolean"
    ENUM = "Enum"

    @classmethod
    def _missing_(cls, value: Any) -> FilterFieldType | None:
        if isinstance(value, str) and value.strip().casefold() == "string":
            return cls.TEXT
        return super()._missing_(value)  # type: ignore[return-value]

    @property
    def is_temporal(self) -> bool:
        return self in (FilterFieldType.DATE, FilterFieldType.DATETIME)

    @property
    def is_textual(self) -> bool:
        return self in (FilterFieldType.TEXT, FilterFieldType.ENUM)


class FieldOption(BaseModel):
    """One choice of an enumeration field."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class FilterField(BaseModel):
    """Metadata for a field available to the filter builder.

    Attributes:
        name: Member name on the entity (matched case-insensitively)
        label: Display label
        type: Field type, determines the available operators
        options: Choices for ``Enum`` fields
        placeholder: Hint shown in the value input
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., min_length=1)
    label: str = Field(default="", validate_default=True)
    type: FilterFieldType = FilterFieldType.TEXT
    options: tuple[FieldOption, ...] | None = None
    placeholder: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return FilterFieldType(value)
        return value

    @field_validator("label", mode="after")
    @classmethod
    def _default_label(cls, value: str, info: ValidationInfo) -> str:
        return value or info.data.get("name", "")

    def option_label(self, value: str) -> str:
        """Display label for an enumeration value (the value itself when unknown)."""
        for option in self.options or ():
            if option.value.casefold() == value.casefold():
                return option.label
        return value


_FIELD_LIST = TypeAdapter(list[FilterField])


def parse_fields(text: str | bytes) -> list[FilterField]:
    """Parse a JSON list of field definitions.

    Raises:
        FilterFormatError: If the document is not a valid field list
    """
    try:
        return _FIELD_LIST.validate_json(text)
    except ValidationError as exc:
        raise FilterFormatError(f"Invalid field catalog: {exc.error_count()} error(s)\n{exc}") from exc


def load_fields(path: str | Path) -> list[FilterField]:
    """Load a field catalog from a JSON file."""
    return parse_fields(Path(path).read_bytes())
