"""
Data models for blueprint-filters.

- FilterField / FilterFieldType / FieldOption: host-supplied field catalog
- FilterValue union: operand values of a condition
- DatePreset / InLastPeriod: symbolic date tags
"""

from blueprint_filters.models.fields import (
    FieldOption,
    FilterField,
    FilterFieldType,
    load_fields,
    parse_fields,
)
from blueprint_filters.models.values import (
    ABSENT,
    Absent,
    Boolean,
    DatePreset,
    FilterValue,
    InLastPeriod,
    Instant,
    Number,
    PeriodTag,
    PresetTag,
    Text,
    TextList,
    as_value,
    clone_value,
)

__all__ = [
    "ABSENT",
    "Absent",
    "Boolean",
    "DatePreset",
    "FieldOption",
    "FilterField",
    "FilterFieldType",
    "FilterValue",
    "InLastPeriod",
    "Instant",
    "Number",
    "PeriodTag",
    "PresetTag",
    "Text",
    "TextList",
    "as_value",
    "clone_value",
    "load_fields",
    "parse_fields",
]
