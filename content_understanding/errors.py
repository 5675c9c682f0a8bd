from __future__ import annotations

import json
from http import HTTPStatus
from typing import Optional, Union

import httpx


class ContentUnderstandingError(Exception):
    """Non-success HTTP response from the Content Understanding service."""

    def __init__(self, message: str, status_code: Union[HTTPStatus, int], response_body: Optional[str]):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body

    @property
    def error_code(self) -> Optional[str]:
        """Service error code from a ``{"error": {"code": ...}}`` body, if any."""
        if not self.response_body:
            return None
        try:
            payload = json.loads(self.response_body)
        except ValueError:
            return None
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict) and isinstance(error.get("code"), str):
            return error["code"]
        return None


def _status(code: int) -> Union[HTTPStatus, int]:
    try:
        return HTTPStatus(code)
    except ValueError:
        return code


async def ensure_success(response: httpx.Response) -> None:
    if response.is_success:
        return
    await response.aread()
    body = response.text
    status = _status(response.status_code)
    phrase = status.phrase if isinstance(status, HTTPStatus) else "Unknown"
    raise ContentUnderstandingError(
        f"API request failed with status {response.status_code} ({phrase}): {body}",
        status,
        body,
    )
