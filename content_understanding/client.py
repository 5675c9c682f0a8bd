from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

import httpx

from .auth import AsyncTokenCredential, select_auth
from .config import DEFAULT_API_VERSION, Settings, settings
from .errors import ensure_success
from .mime_types import get_mime_type
from .prebuilt import PrebuiltAnalyzeMixin
from .schemas.analyze import AnalyzeRequest, AnalyzeResult
from .schemas.analyzer import AnalyzerDefinition, AnalyzerResponse
from .schemas.serialization import WIRE, SerializerOptions, decode, encode_json

logger = logging.getLogger("content_understanding.client")

DEFAULT_POLLING_INTERVAL_SEC = 2.0
OPERATION_LOCATION_HEADER = "Operation-Location"


def _require(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"'{name}' must not be blank")
    return value


def _raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError("operation cancelled by caller")


async def _wait(interval: float, cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is None:
        await asyncio.sleep(interval)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=interval)
    except asyncio.TimeoutError:
        pass


class DirectoryResults(Mapping):
    """``path -> AnalyzeResult`` for a directory batch; failed files (when collected) sit in ``errors``."""

    def __init__(self, results: Dict[str, AnalyzeResult], errors: Optional[Dict[str, Exception]] = None):
        self._results = results
        self.errors: Dict[str, Exception] = errors or {}

    def __getitem__(self, key: str) -> AnalyzeResult:
        return self._results[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __repr__(self) -> str:
        return f"DirectoryResults(results={len(self._results)}, errors={len(self.errors)})"


class ContentUnderstandingClient(PrebuiltAnalyzeMixin):
    """
    Async client for the Content Understanding REST API.

    Exactly one of ``api_key`` (static ``Ocp-Apim-Subscription-Key``) or
    ``credential`` (bearer token per request) must be given.  Analysis calls
    submit content and, when the service answers with ``Operation-Location``,
    poll that URL at a fixed interval until the operation is terminal.
    Polling has no attempt limit; pass ``timeout`` or ``cancel_event`` to bound it.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        credential: AsyncTokenCredential | None = None,
        api_version: str = DEFAULT_API_VERSION,
        polling_interval: float = DEFAULT_POLLING_INTERVAL_SEC,
        timeout: float | None = 120.0,
        http_client: httpx.AsyncClient | None = None,
        serializer_options: SerializerOptions = WIRE,
    ):
        _require(endpoint, "endpoint")
        _require(api_version, "api_version")
        if polling_interval < 0:
            raise ValueError("'polling_interval' must not be negative")

        self.endpoint = endpoint.strip().rstrip("/")
        self.api_version = api_version
        self.polling_interval = polling_interval
        self.serializer_options = serializer_options
        self.auth = select_auth(api_key=api_key, credential=credential)

        if http_client is not None:
            self._http = http_client
            self._owns_http_client = False
        else:
            self._http = httpx.AsyncClient(timeout=timeout)
            self._owns_http_client = True

    @classmethod
    def from_settings(cls, cfg: Settings | None = None, **kwargs: Any) -> "ContentUnderstandingClient":
        cfg = cfg or settings
        if "credential" not in kwargs:
            kwargs.setdefault("api_key", cfg.CONTENT_UNDERSTANDING_API_KEY)
        kwargs.setdefault("api_version", cfg.CONTENT_UNDERSTANDING_API_VERSION)
        kwargs.setdefault("polling_interval", cfg.POLLING_INTERVAL_SEC)
        kwargs.setdefault("timeout", cfg.REQUEST_TIMEOUT_SEC)
        return cls(cfg.CONTENT_UNDERSTANDING_ENDPOINT, **kwargs)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ContentUnderstandingClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -------------------------
    # transport
    # -------------------------
    def _analyzers_url(self, analyzer_id: str | None = None, action: str = "") -> str:
        url = f"{self.endpoint}/contentunderstanding/analyzers"
        if analyzer_id is not None:
            url += "/" + quote(analyzer_id, safe="") + action
        return url

    async def _send(
        self,
        method: str,
        url: str,
        *,
        body: bytes | None = None,
        with_api_version: bool = True,
        cancel_event: asyncio.Event | None = None,
    ) -> httpx.Response:
        _raise_if_cancelled(cancel_event)
        headers = {"Content-Type": "application/json"} if body is not None else None
        params = {"api-version": self.api_version} if with_api_version else None
        request = self._http.build_request(method, url, params=params, content=body, headers=headers)
        response = await self._http.send(request, auth=self.auth)
        await ensure_success(response)
        return response

    # -------------------------
    # analyzer lifecycle
    # -------------------------
    async def create_or_replace_analyzer(self, analyzer_id: str, definition: AnalyzerDefinition) -> AnalyzerResponse:
        _require(analyzer_id, "analyzer_id")
        if definition is None:
            raise ValueError("'definition' must not be None")

        body = encode_json(definition, self.serializer_options)
        response = await self._send("PUT", self._analyzers_url(analyzer_id), body=body)
        logger.info({"event": "analyzer.created", "analyzer_id": analyzer_id, "status": response.status_code})
        return decode(AnalyzerResponse, response.json(), self.serializer_options)

    async def get_analyzer(self, analyzer_id: str) -> AnalyzerResponse:
        _require(analyzer_id, "analyzer_id")
        response = await self._send("GET", self._analyzers_url(analyzer_id))
        return decode(AnalyzerResponse, response.json(), self.serializer_options)

    async def delete_analyzer(self, analyzer_id: str) -> None:
        _require(analyzer_id, "analyzer_id")
        await self._send("DELETE", self._analyzers_url(analyzer_id))
        logger.info({"event": "analyzer.deleted", "analyzer_id": analyzer_id})

    async def list_analyzers(self) -> List[AnalyzerResponse]:
        response = await self._send("GET", self._analyzers_url())
        payload = response.json()
        items = payload.get("value", []) if isinstance(payload, dict) else []
        return [decode(AnalyzerResponse, item, self.serializer_options) for item in items]

    # -------------------------
    # analyze (submit + poll)
    # -------------------------
    async def analyze(
        self,
        analyzer_id: str,
        request: AnalyzeRequest,
        *,
        polling_interval: float | None = None,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AnalyzeResult:
        """
        Submit ``request`` to ``analyzer_id`` and return the terminal result.

        Failed/Canceled operations come back as data (check ``result.status`` and
        ``result.error``); only non-success HTTP responses raise
        ``ContentUnderstandingError``.  ``timeout`` bounds the whole call
        (builtin ``TimeoutError``); a set ``cancel_event`` aborts with
        ``asyncio.CancelledError`` before the next wait or request.
        """
        _require(analyzer_id, "analyzer_id")
        if request is None:
            raise ValueError("'request' must not be None")
        interval = self.polling_interval if polling_interval is None else polling_interval
        if interval < 0:
            raise ValueError("'polling_interval' must not be negative")

        operation = self._run_operation(analyzer_id, request, interval, cancel_event)
        if timeout is None:
            return await operation
        try:
            return await asyncio.wait_for(operation, timeout=timeout)
        except asyncio.TimeoutError as e:
            # 3.10 的 asyncio.TimeoutError 不是内置 TimeoutError
            raise TimeoutError(f"analyze on '{analyzer_id}' did not finish within {timeout}s") from e

    async def _run_operation(
        self,
        analyzer_id: str,
        request: AnalyzeRequest,
        interval: float,
        cancel_event: asyncio.Event | None,
    ) -> AnalyzeResult:
        body = encode_json(request, self.serializer_options)
        response = await self._send(
            "POST",
            self._analyzers_url(analyzer_id, ":analyze"),
            body=body,
            cancel_event=cancel_event,
        )

        operation_location = response.headers.get(OPERATION_LOCATION_HEADER)
        if not operation_location:
            result = decode(AnalyzeResult, response.json(), self.serializer_options)
            logger.info({"event": "analyze.direct", "analyzer_id": analyzer_id, "status": result.status})
            return result

        logger.info({"event": "analyze.submitted", "analyzer_id": analyzer_id, "operation_location": operation_location})

        polls = 0
        while True:
            _raise_if_cancelled(cancel_event)
            await _wait(interval, cancel_event)
            _raise_if_cancelled(cancel_event)

            poll_response = await self._send(
                "GET",
                operation_location,
                with_api_version=False,
                cancel_event=cancel_event,
            )
            result = decode(AnalyzeResult, poll_response.json(), self.serializer_options)
            polls += 1

            if result.is_terminal:
                log = logger.info if result.succeeded else logger.warning
                log(
                    {
                        "event": "analyze.completed",
                        "analyzer_id": analyzer_id,
                        "operation_id": result.id,
                        "status": result.status,
                        "polls": polls,
                        "error_code": result.error.code if result.error else None,
                    }
                )
                return result

            logger.debug({"event": "analyze.polling", "analyzer_id": analyzer_id, "status": result.status, "polls": polls})

    async def analyze_url(self, analyzer_id: str, content_url: str, **kwargs: Any) -> AnalyzeResult:
        _require(analyzer_id, "analyzer_id")
        _require(content_url, "content_url")
        return await self.analyze(analyzer_id, AnalyzeRequest(url=content_url), **kwargs)

    async def analyze_bytes(self, analyzer_id: str, data: bytes, mime_type: str, **kwargs: Any) -> AnalyzeResult:
        _require(analyzer_id, "analyzer_id")
        request = AnalyzeRequest(data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)
        return await self.analyze(analyzer_id, request, **kwargs)

    async def analyze_file(self, analyzer_id: str, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        _require(analyzer_id, "analyzer_id")
        _require(str(file_path) if file_path is not None else None, "file_path")

        p = Path(file_path)
        if not p.is_file():
            raise FileNotFoundError(f"The file '{file_path}' was not found.")

        mime_type = get_mime_type(p)
        logger.info({"event": "analyze.file", "analyzer_id": analyzer_id, "path": str(p), "mime_type": mime_type})
        return await self.analyze_bytes(analyzer_id, p.read_bytes(), mime_type, **kwargs)

    # -------------------------
    # directory batch
    # -------------------------
    async def analyze_directory(
        self,
        analyzer_id: str,
        directory: str | Path,
        pattern: str = "*",
        recursive: bool = False,
        *,
        fail_fast: bool = True,
        max_concurrency: int = 1,
        **kwargs: Any,
    ) -> DirectoryResults:
        """
        Analyze every file in ``directory`` matching ``pattern``.

        Results are keyed by the file's full path.  With ``fail_fast`` (default)
        the first failing file aborts the batch; otherwise failures are collected
        in ``DirectoryResults.errors`` and the remaining files still run.
        ``max_concurrency`` bounds how many submissions are in flight.
        """
        _require(analyzer_id, "analyzer_id")
        _require(str(directory) if directory is not None else None, "directory")
        if max_concurrency < 1:
            raise ValueError("'max_concurrency' must be at least 1")

        base = Path(directory)
        if not base.exists():
            raise FileNotFoundError(f"The directory '{directory}' was not found.")
        if not base.is_dir():
            raise NotADirectoryError(f"'{directory}' is not a directory.")

        matches = base.rglob(pattern) if recursive else base.glob(pattern)
        files = sorted(p for p in matches if p.is_file())
        logger.info(
            {
                "event": "analyze.directory",
                "analyzer_id": analyzer_id,
                "directory": str(base),
                "file_count": len(files),
                "fail_fast": fail_fast,
            }
        )

        results: Dict[str, AnalyzeResult] = {}
        errors: Dict[str, Exception] = {}
        semaphore = asyncio.Semaphore(max_concurrency)

        async def _one(path: Path) -> None:
            key = str(path)
            async with semaphore:
                try:
                    results[key] = await self.analyze_file(analyzer_id, path, **kwargs)
                except Exception as e:
                    if fail_fast:
                        raise
                    logger.warning({"event": "analyze.directory.file_failed", "path": key, "error": str(e)})
                    errors[key] = e

        if max_concurrency == 1:
            for path in files:
                await _one(path)
        else:
            tasks = [asyncio.ensure_future(_one(path)) for path in files]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise

        ordered = {str(p): results[str(p)] for p in files if str(p) in results}
        return DirectoryResults(ordered, errors)
