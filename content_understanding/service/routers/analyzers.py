from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from ...schemas.analyzer import AnalyzerDefinition
from ...schemas.serialization import encode
from ..schemas import StdResp

router = APIRouter()
logger = logging.getLogger("content_understanding.service")


@router.get("/analyzers")
async def list_analyzers(request: Request):
    client = request.app.state.cu_client
    analyzers = await client.list_analyzers()
    return StdResp(data=[encode(a) for a in analyzers]).model_dump()


@router.put("/analyzers/{analyzer_id}")
async def create_or_replace_analyzer(analyzer_id: str, definition: AnalyzerDefinition, request: Request):
    client = request.app.state.cu_client
    resp = await client.create_or_replace_analyzer(analyzer_id, definition)
    logger.info({"event": "analyzers.put", "analyzer_id": analyzer_id})
    return StdResp(data=encode(resp)).model_dump()


@router.get("/analyzers/{analyzer_id}")
async def get_analyzer(analyzer_id: str, request: Request):
    client = request.app.state.cu_client
    resp = await client.get_analyzer(analyzer_id)
    return StdResp(data=encode(resp)).model_dump()


@router.delete("/analyzers/{analyzer_id}")
async def delete_analyzer(analyzer_id: str, request: Request):
    client = request.app.state.cu_client
    await client.delete_analyzer(analyzer_id)
    logger.info({"event": "analyzers.delete", "analyzer_id": analyzer_id})
    return StdResp(message="analyzer_deleted", data={"analyzer_id": analyzer_id}).model_dump()
