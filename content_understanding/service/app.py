from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..client import ContentUnderstandingClient
from ..config import Settings, settings
from ..errors import ContentUnderstandingError
from ..logging_utils import mask_secret, setup_logging
from ..registry import load_analyzer_definitions, sync_analyzers
from .health import router as health_router
from .job_tracker import InMemoryJobTracker, JobTracker
from .middleware import TraceLogMiddleware
from .redis_client import create_redis_client
from .routers.analyze import router as analyze_router
from .routers.analyzers import router as analyzers_router
from .schemas import StdResp

logger = logging.getLogger("content_understanding.service")


def _init_tracker(app: FastAPI, cfg: Settings):
    r = create_redis_client(cfg)
    try:
        r.ping()
    except Exception as e:
        # REDIS_REQUIRED 时直接让服务启动失败，避免“跑起来了但状态丢失”
        if cfg.REDIS_REQUIRED:
            raise
        logger.warning({"event": "redis.unavailable", "error": str(e), "fallback": "in_memory"})
        return InMemoryJobTracker(cfg.REDIS_KEY_PREFIX)
    logger.info({"event": "redis.ping.ok"})
    app.state.redis = r
    return JobTracker(r, cfg.REDIS_KEY_PREFIX)


async def _sync_manifest(client: ContentUnderstandingClient, path: str) -> None:
    definitions = load_analyzer_definitions(path)
    if not definitions:
        return
    try:
        await sync_analyzers(client, definitions)
    except ContentUnderstandingError as e:
        logger.error({"event": "analyzers.sync.giveup", "path": path, "status_code": int(e.status_code), "error": str(e)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg: Settings = app.state.settings
    if app.state.configure_logging:
        setup_logging(
            service_name="content-understanding",
            log_dir=cfg.LOG_DIR,
            level=cfg.LOG_LEVEL,
            retention_days=cfg.LOG_RETENTION_DAYS,
        )

    if app.state.tracker is None:
        app.state.tracker = _init_tracker(app, cfg)

    owns_client = app.state.cu_client is None
    if owns_client:
        app.state.cu_client = ContentUnderstandingClient.from_settings(cfg)
        logger.info(
            {
                "event": "client.configured",
                "endpoint": cfg.CONTENT_UNDERSTANDING_ENDPOINT,
                "api_version": cfg.CONTENT_UNDERSTANDING_API_VERSION,
                "api_key": mask_secret(cfg.CONTENT_UNDERSTANDING_API_KEY),
            }
        )

    try:
        if cfg.SYNC_ANALYZERS_ON_STARTUP:
            await _sync_manifest(app.state.cu_client, cfg.ANALYZER_CONFIG_FILE)
        yield
    finally:
        if owns_client:
            await app.state.cu_client.aclose()
        r = getattr(app.state, "redis", None)
        if r is not None:
            r.close()


async def upstream_error_handler(request: Request, exc: ContentUnderstandingError):
    status = int(exc.status_code)
    try:
        data = json.loads(exc.response_body) if exc.response_body else None
    except ValueError:
        data = {"raw": exc.response_body}
    if not isinstance(data, (dict, list)):
        data = {"raw": exc.response_body}
    return JSONResponse(
        StdResp(code=status, message="upstream_error", data=data).model_dump(),
        status_code=status if 400 <= status < 500 else 502,
    )


async def transport_error_handler(request: Request, exc: httpx.HTTPError):
    # 对齐网关：超时 504，其余连接类错误 502
    if isinstance(exc, httpx.TimeoutException):
        code, message = 504, "upstream_timeout"
    else:
        code, message = 502, "bad_gateway"
    data = {"error": str(exc) or type(exc).__name__}
    return JSONResponse(StdResp(code=code, message=message, data=data).model_dump(), status_code=code)


async def validation_error_handler(request: Request, exc: ValueError):
    return JSONResponse(StdResp(code=422, message="invalid_request", data={"detail": str(exc)}).model_dump(), status_code=422)


def create_app(
    cfg: Settings | None = None,
    *,
    client: ContentUnderstandingClient | None = None,
    tracker=None,
    configure_logging: bool = True,
) -> FastAPI:
    app = FastAPI(
        title="Content Understanding Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg or settings
    app.state.cu_client = client
    app.state.tracker = tracker
    app.state.redis = None
    app.state.configure_logging = configure_logging

    app.add_middleware(TraceLogMiddleware)
    app.add_exception_handler(ContentUnderstandingError, upstream_error_handler)
    app.add_exception_handler(httpx.HTTPError, transport_error_handler)
    app.add_exception_handler(ValueError, validation_error_handler)

    app.include_router(health_router, tags=["health"])
    app.include_router(analyzers_router, tags=["analyzers"])
    app.include_router(analyze_router, tags=["analyze"])

    return app


app = create_app()
