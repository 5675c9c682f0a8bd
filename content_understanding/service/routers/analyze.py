from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request

from ...errors import ContentUnderstandingError
from ...schemas.serialization import encode
from ..schemas import AnalyzeJobReq, AnalyzeJobResp

router = APIRouter()
logger = logging.getLogger("content_understanding.service")


def _job_resp(request_id: str, job: dict) -> AnalyzeJobResp:
    return AnalyzeJobResp(
        request_id=request_id,
        status=job.get("status", "UNKNOWN"),
        result=job.get("result"),
        error=job.get("error"),
    )


@router.get("/analyze/jobs/{request_id}", response_model=AnalyzeJobResp)
def get_job(request_id: str, request: Request):
    tracker = request.app.state.tracker
    _, existing = tracker.get_job(request_id)
    if not existing:
        return AnalyzeJobResp(request_id=request_id, status="UNKNOWN")
    return _job_resp(request_id, existing)


@router.post("/analyze/{analyzer_id}", response_model=AnalyzeJobResp)
async def run_analyze(analyzer_id: str, req: AnalyzeJobReq, request: Request):
    """
    - 生成/使用 request_id（幂等）
    - tracker 记录 job 状态与结果
    - 提交分析并轮询到终态
    """
    cfg = request.app.state.settings
    tracker = request.app.state.tracker
    client = request.app.state.cu_client

    request_id = tracker.ensure_request_id(req.request_id)
    logger.info({"event": "analyze.received", "request_id": request_id, "analyzer_id": analyzer_id})

    # 1) 幂等：已有结果/状态直接返回
    _, existing = tracker.get_job(request_id)
    if existing:
        return _job_resp(request_id, existing)

    # 2) 锁：避免同一 request_id 并发重复执行
    token, _ = tracker.acquire_lock(request_id, ttl=cfg.IDEMPOTENCY_TTL_SEC)
    if not token:
        return AnalyzeJobResp(request_id=request_id, status="RUNNING")

    try:
        tracker.set_status(request_id, status="RUNNING", result=None, error=None, ttl=cfg.JOB_TTL_SEC)

        try:
            result = await client.analyze(
                analyzer_id,
                req.to_analyze_request(),
                polling_interval=req.polling_interval,
            )
        except (Exception, asyncio.CancelledError) as e:
            # 任何异常都要落 FAILED，否则 job 会一直停在 RUNNING 直到 TTL 过期
            tracker.set_status(request_id, status="FAILED", result=None, error=str(e) or type(e).__name__, ttl=cfg.JOB_TTL_SEC)
            event = {
                "event": "analyze.error",
                "request_id": request_id,
                "analyzer_id": analyzer_id,
                "error_type": type(e).__name__,
                "error": str(e),
            }
            if isinstance(e, ContentUnderstandingError):
                event.update(status_code=int(e.status_code), error_code=e.error_code)
            logger.error(event)
            raise

        payload = encode(result)
        status = "SUCCEEDED" if result.succeeded else "FAILED"
        error = None
        if not result.succeeded:
            error = (result.error.code if result.error else None) or result.status
        tracker.set_status(request_id, status=status, result=payload, error=error, ttl=cfg.JOB_TTL_SEC)
        logger.info({"event": "analyze.finished", "request_id": request_id, "status": status})

        return AnalyzeJobResp(request_id=request_id, status=status, result=payload, error=error)

    finally:
        tracker.release_lock(request_id, token)
