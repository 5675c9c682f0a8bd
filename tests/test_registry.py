import json
import textwrap

import httpx
import pytest

from content_understanding.errors import ContentUnderstandingError
from content_understanding.registry import load_analyzer_definitions, sync_analyzers
from content_understanding.schemas.field_schema import ArrayField, StringField

MANIFEST = textwrap.dedent(
    """
    analyzers:
      receipt-lite:
        description: Receipt totals
        scenario: document
        baseAnalyzerId: prebuilt-document
        fieldSchema:
          fields:
            merchant:
              type: string
            tags:
              type: array
              items:
                type: string
                method: classify
                enum: [food, travel]
      broken:
        fieldSchema:
          fields:
            x:
              type: array
      not-a-mapping: 42
    """
)


def test_load_definitions_skips_invalid_entries(tmp_path):
    path = tmp_path / "analyzers.yaml"
    path.write_text(MANIFEST, encoding="utf-8")

    definitions = load_analyzer_definitions(path)

    assert list(definitions) == ["receipt-lite"]
    receipt = definitions["receipt-lite"]
    assert receipt.base_analyzer_id == "prebuilt-document"
    assert isinstance(receipt.field_schema.fields["merchant"], StringField)
    tags = receipt.field_schema.fields["tags"]
    assert isinstance(tags, ArrayField)
    assert tags.items.enum == ["food", "travel"]


def test_missing_manifest_is_empty(tmp_path):
    assert load_analyzer_definitions(tmp_path / "nope.yaml") == {}


def test_manifest_without_mapping_is_empty(tmp_path):
    path = tmp_path / "analyzers.yaml"
    path.write_text("analyzers: [a, b]\n", encoding="utf-8")

    assert load_analyzer_definitions(path) == {}


async def test_sync_puts_every_definition(service, client, tmp_path):
    path = tmp_path / "analyzers.yaml"
    path.write_text(MANIFEST, encoding="utf-8")
    service.fallback = lambda request: httpx.Response(201, json={"analyzerId": request.url.path.rsplit("/", 1)[-1]})

    synced = await sync_analyzers(client, load_analyzer_definitions(path))

    assert list(synced) == ["receipt-lite"]
    assert synced["receipt-lite"].analyzer_id == "receipt-lite"
    assert json.loads(service.requests[0].content)["baseAnalyzerId"] == "prebuilt-document"


async def test_sync_failure_propagates(service, client, tmp_path):
    path = tmp_path / "analyzers.yaml"
    path.write_text(MANIFEST, encoding="utf-8")
    service.queue(httpx.Response(409, text="conflict"))

    with pytest.raises(ContentUnderstandingError):
        await sync_analyzers(client, load_analyzer_definitions(path))
