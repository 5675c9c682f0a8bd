from types import SimpleNamespace

import pytest

from conftest import ENDPOINT, accepted, operation
from content_understanding.auth import (
    COGNITIVE_SERVICES_SCOPE,
    SubscriptionKeyAuth,
    TokenCredentialAuth,
    select_auth,
)
from content_understanding.client import ContentUnderstandingClient


class FakeCredential:
    def __init__(self, fail: Exception | None = None):
        self.scopes: list[tuple[str, ...]] = []
        self.fail = fail

    async def get_token(self, *scopes, **kwargs):
        self.scopes.append(scopes)
        if self.fail is not None:
            raise self.fail
        return SimpleNamespace(token=f"tok-{len(self.scopes)}", expires_on=0)


class NoIdentityError(Exception):
    pass


def test_select_auth_requires_exactly_one_mode():
    with pytest.raises(ValueError):
        select_auth()
    with pytest.raises(ValueError):
        select_auth(api_key="k", credential=FakeCredential())

    assert isinstance(select_auth(api_key="k"), SubscriptionKeyAuth)
    assert isinstance(select_auth(credential=FakeCredential()), TokenCredentialAuth)


def test_blank_key_is_rejected():
    with pytest.raises(ValueError):
        SubscriptionKeyAuth("  ")


@pytest.mark.parametrize("endpoint", ["", "   "])
def test_client_rejects_blank_endpoint(endpoint):
    with pytest.raises(ValueError):
        ContentUnderstandingClient(endpoint, api_key="k")


async def test_subscription_key_header_on_every_request(service, client):
    service.queue(accepted(), operation("Running"), operation("Succeeded"))

    await client.analyze_url("test-analyzer", "https://example.com/a.pdf")

    assert len(service.requests) == 3
    for request in service.requests:
        assert request.headers["Ocp-Apim-Subscription-Key"] == "test-api-key"
        assert "Authorization" not in request.headers


async def test_bearer_token_is_fetched_per_request(service, make_client):
    credential = FakeCredential()
    client = make_client(credential=credential)
    service.queue(accepted(), operation("Running"), operation("Succeeded"))

    await client.analyze_url("test-analyzer", "https://example.com/a.pdf")

    assert credential.scopes == [(COGNITIVE_SERVICES_SCOPE,)] * 3
    assert [r.headers["Authorization"] for r in service.requests] == [
        "Bearer tok-1",
        "Bearer tok-2",
        "Bearer tok-3",
    ]
    assert all("Ocp-Apim-Subscription-Key" not in r.headers for r in service.requests)


async def test_plain_string_tokens_are_accepted(service, make_client):
    class StringCredential:
        async def get_token(self, *scopes, **kwargs):
            return "raw-token"

    client = make_client(credential=StringCredential())
    service.queue(operation("Succeeded"))

    await client.analyze_url("test-analyzer", "https://example.com/a.pdf")

    assert service.requests[0].headers["Authorization"] == "Bearer raw-token"


async def test_credential_failure_propagates_unmodified(service, make_client):
    failure = NoIdentityError("no identity available")
    client = make_client(credential=FakeCredential(fail=failure))

    with pytest.raises(NoIdentityError) as exc_info:
        await client.analyze_url("test-analyzer", "https://example.com/a.pdf")

    assert exc_info.value is failure
    assert service.requests == []


async def test_from_settings_uses_key_auth(service):
    from content_understanding.config import Settings

    cfg = Settings(
        CONTENT_UNDERSTANDING_ENDPOINT=ENDPOINT + "/",
        CONTENT_UNDERSTANDING_API_KEY="settings-key",
        POLLING_INTERVAL_SEC=0.5,
    )

    client = ContentUnderstandingClient.from_settings(cfg)
    try:
        assert client.endpoint == ENDPOINT
        assert client.polling_interval == 0.5
        assert isinstance(client.auth, SubscriptionKeyAuth)
    finally:
        await client.aclose()
