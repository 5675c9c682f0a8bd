from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .schemas.analyze import AnalyzeResult


class PrebuiltAnalyzers:
    """Built-in analyzer ids that can be used without creating a custom analyzer."""

    # Content extraction
    READ = "prebuilt-read"
    LAYOUT = "prebuilt-layout"

    # Base modality analyzers (can be extended by custom analyzers)
    DOCUMENT = "prebuilt-document"
    IMAGE = "prebuilt-image"
    AUDIO = "prebuilt-audio"
    VIDEO = "prebuilt-video"

    # Search / RAG
    DOCUMENT_SEARCH = "prebuilt-documentSearch"
    IMAGE_SEARCH = "prebuilt-imageSearch"
    AUDIO_SEARCH = "prebuilt-audioSearch"
    VIDEO_SEARCH = "prebuilt-videoSearch"

    # Domain specific
    INVOICE = "prebuilt-invoice"
    RECEIPT = "prebuilt-receipt"
    ID_DOCUMENT = "prebuilt-idDocument"


class PrebuiltAnalyzeMixin(ABC):
    """
    Per-modality shortcuts. Each one forwards to ``analyze_url`` / ``analyze_file``
    with the matching prebuilt analyzer id; keyword arguments pass through.
    """

    @abstractmethod
    async def analyze_url(self, analyzer_id: str, content_url: str, **kwargs: Any) -> AnalyzeResult: ...

    @abstractmethod
    async def analyze_file(self, analyzer_id: str, file_path: str | Path, **kwargs: Any) -> AnalyzeResult: ...

    async def analyze_read_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.READ, content_url, **kwargs)

    async def analyze_read_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.READ, file_path, **kwargs)

    async def analyze_layout_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.LAYOUT, content_url, **kwargs)

    async def analyze_layout_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.LAYOUT, file_path, **kwargs)

    async def analyze_document_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.DOCUMENT, content_url, **kwargs)

    async def analyze_document_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.DOCUMENT, file_path, **kwargs)

    async def analyze_image_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.IMAGE, content_url, **kwargs)

    async def analyze_image_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.IMAGE, file_path, **kwargs)

    async def analyze_audio_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.AUDIO, content_url, **kwargs)

    async def analyze_audio_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.AUDIO, file_path, **kwargs)

    async def analyze_video_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.VIDEO, content_url, **kwargs)

    async def analyze_video_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.VIDEO, file_path, **kwargs)

    async def analyze_invoice_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.INVOICE, content_url, **kwargs)

    async def analyze_invoice_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.INVOICE, file_path, **kwargs)

    async def analyze_receipt_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.RECEIPT, content_url, **kwargs)

    async def analyze_receipt_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.RECEIPT, file_path, **kwargs)

    async def analyze_id_document_from_url(self, content_url: str, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_url(PrebuiltAnalyzers.ID_DOCUMENT, content_url, **kwargs)

    async def analyze_id_document_from_file(self, file_path: str | Path, **kwargs: Any) -> AnalyzeResult:
        return await self.analyze_file(PrebuiltAnalyzers.ID_DOCUMENT, file_path, **kwargs)
