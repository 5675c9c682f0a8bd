from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, model_validator

from .serialization import FrozenWireModel, WireModel


class OperationStatus:
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELED = "Canceled"


TERMINAL_STATUSES = frozenset({OperationStatus.SUCCEEDED, OperationStatus.FAILED, OperationStatus.CANCELED})


class AnalyzeRequest(WireModel):
    """
    Body of ``:analyze``. Either ``url`` (remote content) or ``data`` + ``mime_type``
    (base64 inline content), never both.
    """

    url: Optional[str] = None
    data: Optional[str] = None
    mime_type: Optional[str] = None

    @model_validator(mode="after")
    def _ensure_one_source(self) -> "AnalyzeRequest":
        has_url = bool(self.url and self.url.strip())
        has_data = self.data is not None
        if has_url == has_data:
            raise ValueError("Exactly one of 'url' or 'data' must be provided")
        if has_data and not (self.mime_type and self.mime_type.strip()):
            raise ValueError("'mime_type' is required when 'data' is provided")
        if has_url and self.mime_type is not None:
            raise ValueError("'mime_type' is only valid together with 'data'")
        return self


# -------------------------
# Field values (result side)
# -------------------------
class _ValueBase(FrozenWireModel):
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    source: Optional[str] = None
    spans: Optional[List[Dict[str, Any]]] = None


class StringValue(_ValueBase):
    type: Literal["string"] = "string"
    value_string: Optional[str] = None

    @property
    def value(self) -> Optional[str]:
        return self.value_string


class NumberValue(_ValueBase):
    type: Literal["number"] = "number"
    value_number: Optional[float] = None

    @property
    def value(self) -> Optional[float]:
        return self.value_number


class IntegerValue(_ValueBase):
    type: Literal["integer"] = "integer"
    value_integer: Optional[int] = None

    @property
    def value(self) -> Optional[int]:
        return self.value_integer


class BooleanValue(_ValueBase):
    type: Literal["boolean"] = "boolean"
    value_boolean: Optional[bool] = None

    @property
    def value(self) -> Optional[bool]:
        return self.value_boolean


class DateValue(_ValueBase):
    type: Literal["date"] = "date"
    value_date: Optional[str] = None

    @property
    def value(self) -> Optional[str]:
        return self.value_date


class TimeValue(_ValueBase):
    type: Literal["time"] = "time"
    value_time: Optional[str] = None

    @property
    def value(self) -> Optional[str]:
        return self.value_time


class ArrayValue(_ValueBase):
    type: Literal["array"] = "array"
    value_array: Optional[List[FieldValue]] = None

    @property
    def value(self) -> Optional[List[Any]]:
        if self.value_array is None:
            return None
        return [item.value for item in self.value_array]


class ObjectValue(_ValueBase):
    type: Literal["object"] = "object"
    value_object: Optional[Dict[str, FieldValue]] = None

    @property
    def value(self) -> Optional[Dict[str, Any]]:
        if self.value_object is None:
            return None
        return {name: item.value for name, item in self.value_object.items()}


FieldValue = Annotated[
    Union[
        StringValue,
        NumberValue,
        IntegerValue,
        BooleanValue,
        DateValue,
        TimeValue,
        ArrayValue,
        ObjectValue,
    ],
    Field(discriminator="type"),
]

ArrayValue.model_rebuild()
ObjectValue.model_rebuild()


class ContentItem(FrozenWireModel):
    markdown: Optional[str] = None
    kind: Optional[str] = None
    mime_type: Optional[str] = None
    start_page_number: Optional[int] = None
    end_page_number: Optional[int] = None
    fields: Optional[Dict[str, FieldValue]] = None


class AnalyzeResultContent(FrozenWireModel):
    analyzer_id: Optional[str] = None
    api_version: Optional[str] = None
    created_at: Optional[str] = None
    warnings: Optional[List[Any]] = None
    contents: List[ContentItem] = Field(default_factory=list)


class AnalyzeError(FrozenWireModel):
    code: Optional[str] = None
    message: Optional[str] = None
    target: Optional[str] = None
    details: Optional[List[AnalyzeError]] = None


class AnalyzeResult(FrozenWireModel):
    id: Optional[str] = None
    status: Optional[str] = None
    result: Optional[AnalyzeResultContent] = None
    error: Optional[AnalyzeError] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED
