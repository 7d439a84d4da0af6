import json

import httpx
import pytest

from caprep.infrastructure.email.sendgrid_adapter import SendGridEmailAdapter


def _adapter(handler, **kw) -> SendGridEmailAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kw.setdefault("api_key", "SG.key")
    return SendGridEmailAdapter(
        from_email="noreply@caprep.test",
        base_url="https://sendgrid.test",
        client=client,
        **kw,
    )


@pytest.mark.asyncio
async def test_send_posts_v3_payload_and_returns_message_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(202, headers={"x-message-id": "abc123"})

    adapter = _adapter(handler)
    result = await adapter.send(
        to="user@example.com", subject="Hi", html="<b>123456</b>", text="123456"
    )

    assert result.success is True
    assert result.message_id == "abc123"
    assert seen["url"] == "https://sendgrid.test/v3/mail/send"
    assert seen["auth"] == "Bearer SG.key"
    assert seen["body"]["personalizations"] == [{"to": [{"email": "user@example.com"}]}]
    assert seen["body"]["from"]["email"] == "noreply@caprep.test"


@pytest.mark.asyncio
async def test_invalid_recipient_is_rejected_before_any_request():
    def handler(request):
        raise AssertionError("should not be called")

    result = await _adapter(handler).send(to="not-an-email", subject="s", html="h")
    assert result.success is False
    assert result.error_kind == "INVALID_EMAIL"


@pytest.mark.asyncio
async def test_missing_api_key():
    def handler(request):
        raise AssertionError("should not be called")

    result = await _adapter(handler, api_key=None).send(
        to="user@example.com", subject="s", html="h"
    )
    assert result.error_kind == "NO_CREDENTIALS"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body, kind",
    [
        (401, {"errors": [{"message": "bad key"}]}, "EAUTH"),
        (403, {"errors": [{"message": "forbidden"}]}, "EAUTH"),
        (
            400,
            {"errors": [{"message": "bad to", "field": "personalizations.0.to"}]},
            "ERECIPIENT",
        ),
        (400, {"errors": [{"message": "bad subject", "field": "subject"}]}, "SEND_FAILED"),
        (500, {}, "SEND_FAILED"),
    ],
)
async def test_provider_errors_are_classified(status, body, kind):
    adapter = _adapter(lambda request: httpx.Response(status, json=body))
    result = await adapter.send(to="user@example.com", subject="s", html="h")

    assert result.success is False
    assert result.error_kind == kind


@pytest.mark.asyncio
async def test_timeout_is_reported_not_raised():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    result = await _adapter(handler).send(to="user@example.com", subject="s", html="h")
    assert result.error_kind == "TIMEOUT"


@pytest.mark.asyncio
async def test_aclose_leaves_shared_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(202)))
    adapter = SendGridEmailAdapter(api_key="k", from_email="a@b.co", client=client)
    await adapter.aclose()
    assert not client.is_closed
    await client.aclose()
