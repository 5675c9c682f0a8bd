from __future__ import annotations

from typing import Optional

from .field_schema import FieldSchema
from .serialization import FrozenWireModel


class AnalyzerConfig(FrozenWireModel):
    return_details: Optional[bool] = None
    enable_face: Optional[bool] = None
    enable_ocr: Optional[bool] = None


class AnalyzerDefinition(FrozenWireModel):
    description: Optional[str] = None
    scenario: Optional[str] = None
    base_analyzer_id: Optional[str] = None
    field_schema: Optional[FieldSchema] = None
    config: Optional[AnalyzerConfig] = None


class AnalyzerResponse(FrozenWireModel):
    analyzer_id: Optional[str] = None
    description: Optional[str] = None
    scenario: Optional[str] = None
    base_analyzer_id: Optional[str] = None
    status: Optional[str] = None
    field_schema: Optional[FieldSchema] = None
    config: Optional[AnalyzerConfig] = None
    created_date_time: Optional[str] = None
    last_updated_date_time: Optional[str] = None
