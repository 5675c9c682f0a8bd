from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schemas.analyzer import AnalyzerDefinition, AnalyzerResponse
from .schemas.serialization import decode

logger = logging.getLogger("content_understanding.registry")


def load_analyzer_definitions(path: str | Path) -> dict[str, AnalyzerDefinition]:
    """
    读取 analyzers.yaml：

        analyzers:
          invoice-lite:
            description: ...
            baseAnalyzerId: prebuilt-document
            fieldSchema:
              fields:
                total: {type: number}
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.warning({"event": "analyzers.config_missing", "path": str(config_path)})
        return {}

    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    analyzers: Any = data.get("analyzers", {}) if isinstance(data, dict) else {}
    if not isinstance(analyzers, dict):
        logger.warning({"event": "analyzers.config_invalid", "path": str(config_path)})
        return {}

    definitions: dict[str, AnalyzerDefinition] = {}
    for analyzer_id, raw in analyzers.items():
        if not isinstance(raw, dict):
            logger.warning({"event": "analyzers.entry_invalid", "analyzer_id": str(analyzer_id), "reason": "not_dict"})
            continue
        try:
            definitions[str(analyzer_id)] = decode(AnalyzerDefinition, raw)
        except ValidationError as e:
            logger.warning({"event": "analyzers.entry_invalid", "analyzer_id": str(analyzer_id), "error": str(e)})
    return definitions


async def sync_analyzers(client, definitions: dict[str, AnalyzerDefinition]) -> dict[str, AnalyzerResponse]:
    synced: dict[str, AnalyzerResponse] = {}
    for analyzer_id, definition in definitions.items():
        synced[analyzer_id] = await client.create_or_replace_analyzer(analyzer_id, definition)
        logger.info({"event": "analyzers.synced", "analyzer_id": analyzer_id})
    return synced
