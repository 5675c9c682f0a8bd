from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

from ..schemas.analyze import AnalyzeRequest


class StdResp(BaseModel):
    code: int = 0
    message: str = "ok"
    data: dict | list | None = None


class AnalyzeJobReq(BaseModel):
    request_id: Optional[str] = Field(None, description="Idempotency key. If absent, server will generate one.")
    url: Optional[str] = Field(None, description="Remote content url")
    data: Optional[str] = Field(None, description="Base64 encoded file content")
    mime_type: Optional[str] = Field(None, description="Required together with 'data'")
    polling_interval: Optional[float] = Field(None, ge=0, description="Seconds between status polls")

    @model_validator(mode="after")
    def _ensure_source(self) -> "AnalyzeJobReq":
        self.to_analyze_request()
        return self

    def to_analyze_request(self) -> AnalyzeRequest:
        return AnalyzeRequest(url=self.url, data=self.data, mime_type=self.mime_type)


class AnalyzeJobResp(BaseModel):
    request_id: str
    status: str
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
