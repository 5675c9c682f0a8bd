"""
Recursive field schema used by custom analyzers.

Each field type is its own model and ``FieldDefinition`` is the union of all
of them, discriminated on ``type``.  An ``array`` always carries ``items`` and
an ``object`` always carries ``properties``; primitive leaves carry neither.
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter, model_validator

from .serialization import FrozenWireModel

FieldMethod = Literal["extract", "classify", "generate"]


class _FieldBase(FrozenWireModel):
    description: Optional[str] = None
    method: Optional[FieldMethod] = None

    @model_validator(mode="after")
    def _check_classify(self):
        if self.method == "classify" and not getattr(self, "enum", None):
            raise ValueError(f"'{self.type}' field with method 'classify' requires a non-empty 'enum'")
        return self


class StringField(_FieldBase):
    type: Literal["string"] = "string"
    enum: Optional[List[str]] = None

    @model_validator(mode="after")
    def _check_enum(self) -> "StringField":
        if self.enum is not None and len(set(self.enum)) != len(self.enum):
            raise ValueError("'enum' values must be unique")
        return self


class NumberField(_FieldBase):
    type: Literal["number"] = "number"


class IntegerField(_FieldBase):
    type: Literal["integer"] = "integer"


class BooleanField(_FieldBase):
    type: Literal["boolean"] = "boolean"


class DateField(_FieldBase):
    type: Literal["date"] = "date"


class TimeField(_FieldBase):
    type: Literal["time"] = "time"


class ArrayField(_FieldBase):
    type: Literal["array"] = "array"
    items: FieldDefinition


class ObjectField(_FieldBase):
    type: Literal["object"] = "object"
    properties: Dict[str, FieldDefinition]


FieldDefinition = Annotated[
    Union[
        StringField,
        NumberField,
        IntegerField,
        BooleanField,
        DateField,
        TimeField,
        ArrayField,
        ObjectField,
    ],
    Field(discriminator="type"),
]

ArrayField.model_rebuild()
ObjectField.model_rebuild()

_field_adapter: TypeAdapter = TypeAdapter(FieldDefinition)


def parse_field(data) -> FieldDefinition:
    """Validate a raw camelCase mapping into the matching field model."""
    return _field_adapter.validate_python(data)


class FieldSchema(FrozenWireModel):
    name: Optional[str] = None
    description: Optional[str] = None
    fields: Dict[str, FieldDefinition] = Field(default_factory=dict)
