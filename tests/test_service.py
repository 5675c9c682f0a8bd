import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import ENDPOINT, accepted, operation
from content_understanding.config import Settings
from content_understanding.service.app import create_app
from content_understanding.service.job_tracker import InMemoryJobTracker

CONTENT_URL = "https://example.com/a.pdf"


@pytest.fixture
def api(client):
    cfg = Settings(CONTENT_UNDERSTANDING_ENDPOINT=ENDPOINT, CONTENT_UNDERSTANDING_API_KEY="k")
    app = create_app(cfg, client=client, tracker=InMemoryJobTracker("test"), configure_logging=False)
    with TestClient(app) as tc:
        yield tc


def test_health(api):
    resp = api.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "content-understanding", "redis": None}
    assert resp.headers["X-Trace-Id"]


def test_analyze_job_succeeds_and_is_stored(api, service):
    service.queue(accepted(), operation("Running"), operation("Succeeded", result={"contents": [{"markdown": "x"}]}))

    resp = api.post("/analyze/prebuilt-read", json={"request_id": "job-1", "url": CONTENT_URL})

    assert resp.status_code == 200
    body = resp.json()
    assert body["request_id"] == "job-1"
    assert body["status"] == "SUCCEEDED"
    assert body["result"]["result"]["contents"][0]["markdown"] == "x"

    stored = api.get("/analyze/jobs/job-1").json()
    assert stored["status"] == "SUCCEEDED"


def test_repeated_request_id_is_idempotent(api, service):
    service.queue(operation("Succeeded"))

    api.post("/analyze/prebuilt-read", json={"request_id": "job-2", "url": CONTENT_URL})
    again = api.post("/analyze/prebuilt-read", json={"request_id": "job-2", "url": CONTENT_URL})

    assert again.json()["status"] == "SUCCEEDED"
    assert len(service.requests) == 1


def test_failed_operation_is_recorded_as_failed(api, service):
    service.queue(accepted(), operation("Failed", error={"code": "ProcessingError"}))

    body = api.post("/analyze/prebuilt-read", json={"request_id": "job-3", "url": CONTENT_URL}).json()

    assert body["status"] == "FAILED"
    assert body["error"] == "ProcessingError"


def test_request_without_source_is_rejected(api, service):
    resp = api.post("/analyze/prebuilt-read", json={"request_id": "job-4"})

    assert resp.status_code == 422
    assert service.requests == []


def test_upstream_rejection_maps_to_std_resp(api, service):
    service.queue(httpx.Response(400, json={"error": {"code": "InvalidRequest", "message": "Bad request"}}))

    resp = api.post("/analyze/prebuilt-read", json={"request_id": "job-5", "url": CONTENT_URL})

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == 400
    assert body["message"] == "upstream_error"
    assert body["data"]["error"]["code"] == "InvalidRequest"
    assert api.get("/analyze/jobs/job-5").json()["status"] == "FAILED"


def test_upstream_server_error_maps_to_bad_gateway(api, service):
    service.queue(httpx.Response(500, text="boom"))

    resp = api.get("/analyzers/some-analyzer")

    assert resp.status_code == 502
    assert resp.json()["data"] == {"raw": "boom"}


def test_unknown_job(api):
    assert api.get("/analyze/jobs/nope").json()["status"] == "UNKNOWN"


def test_analyzer_lifecycle_routes(api, service):
    service.queue(
        httpx.Response(201, json={"analyzerId": "custom", "description": "d"}),
        httpx.Response(200, json={"analyzerId": "custom", "description": "d"}),
        httpx.Response(204),
    )

    put = api.put("/analyzers/custom", json={"description": "d", "fieldSchema": {"fields": {"total": {"type": "number"}}}})
    get = api.get("/analyzers/custom")
    delete = api.delete("/analyzers/custom")

    assert put.json()["data"] == {"analyzerId": "custom", "description": "d"}
    assert get.json()["data"]["analyzerId"] == "custom"
    assert delete.json()["message"] == "analyzer_deleted"
    assert [r.method for r in service.requests] == ["PUT", "GET", "DELETE"]


def test_invalid_analyzer_definition_is_rejected(api, service):
    resp = api.put("/analyzers/custom", json={"fieldSchema": {"fields": {"x": {"type": "array"}}}})

    assert resp.status_code == 422
    assert service.requests == []


def _refuse_connection(request):
    raise httpx.ConnectError("connection refused", request=request)


def test_transport_error_marks_job_failed_and_maps_to_bad_gateway(api, service):
    service.queue(accepted(), _refuse_connection)

    resp = api.post("/analyze/prebuilt-read", json={"request_id": "job-6", "url": CONTENT_URL})

    assert resp.status_code == 502
    assert resp.json()["message"] == "bad_gateway"
    job = api.get("/analyze/jobs/job-6").json()
    assert job["status"] == "FAILED"
    assert "connection refused" in job["error"]

    retry = api.post("/analyze/prebuilt-read", json={"request_id": "job-6", "url": CONTENT_URL})

    assert retry.json()["status"] == "FAILED"
    assert len(service.requests) == 2


def test_upstream_timeout_maps_to_gateway_timeout(api, service):
    def _slow(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    service.queue(_slow)

    resp = api.get("/analyzers/some-analyzer")

    assert resp.status_code == 504
    assert resp.json()["message"] == "upstream_timeout"


def test_trace_id_header_is_echoed(api):
    resp = api.get("/health", headers={"X-Trace-Id": "trace-abc"})

    assert resp.headers["X-Trace-Id"] == "trace-abc"
