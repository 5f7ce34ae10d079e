"""Tests for the Twilio and Resend gateways against a mocked transport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from pickup.config import Settings
from pickup.gateways import ResendEmailGateway, TwilioSMSGateway
from pickup.gateways.base import MessageContent, SendOutcome

CONTENT = MessageContent(
    body="Z SMOKE SHOP: Order ZS-000001 is READY for pickup!",
    subject="Order ZS-000001 is ready for pickup",
    html="<p>Order ZS-000001 is READY for pickup!</p>",
)


@pytest.fixture
def provider_settings() -> Settings:
    return Settings(
        _env_file=None,
        twilio_account_sid="AC123",
        twilio_auth_token="secret",
        twilio_phone_number="+15125550000",
        resend_api_key="re_test",
    )


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_twilio_accepts(provider_settings: Settings) -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json={"sid": "SM0001", "status": "queued"})

    async with mock_client(handler) as client:
        gateway = TwilioSMSGateway(provider_settings, http_client=client)
        result = await gateway.send("512-555-0100", CONTENT)

    assert result.ok
    assert result.provider_reference == "SM0001"

    request = captured[0]
    assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    assert request.headers["authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form["To"] == ["+15125550100"]
    assert form["From"] == ["+15125550000"]
    assert form["Body"] == [CONTENT.body]


@pytest.mark.asyncio
async def test_twilio_rejection_is_failed_result(provider_settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

    async with mock_client(handler) as client:
        gateway = TwilioSMSGateway(provider_settings, http_client=client)
        result = await gateway.send("+15125550100", CONTENT)

    assert result.outcome == SendOutcome.FAILED
    assert result.reason == "HTTP 400: Invalid 'To' Phone Number"


@pytest.mark.asyncio
async def test_twilio_timeout_is_failed_result(provider_settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with mock_client(handler) as client:
        gateway = TwilioSMSGateway(provider_settings, http_client=client)
        result = await gateway.send("+15125550100", CONTENT)

    assert not result.ok
    assert "Timeout" in result.reason


@pytest.mark.asyncio
async def test_twilio_not_configured() -> None:
    gateway = TwilioSMSGateway(Settings(_env_file=None, twilio_account_sid=""))

    result = await gateway.send("+15125550100", CONTENT)

    assert not result.ok
    assert result.reason == "Twilio configuration missing"


@pytest.mark.asyncio
async def test_resend_accepts(provider_settings: Settings) -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    async with mock_client(handler) as client:
        gateway = ResendEmailGateway(provider_settings, http_client=client)
        result = await gateway.send("jane@example.com", CONTENT)

    assert result.ok
    assert result.provider_reference == "email_123"

    request = captured[0]
    assert str(request.url) == "https://api.resend.com/emails"
    assert request.headers["authorization"] == "Bearer re_test"
    payload = json.loads(request.content)
    assert payload["to"] == ["jane@example.com"]
    assert payload["from"] == "Z SMOKE SHOP <orders@zsmokeshop.com>"
    assert payload["subject"] == CONTENT.subject
    assert payload["html"] == CONTENT.html
    assert payload["text"] == CONTENT.body


@pytest.mark.asyncio
async def test_resend_error_is_failed_result(provider_settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"name": "validation_error", "message": "Invalid `to` field"})

    async with mock_client(handler) as client:
        gateway = ResendEmailGateway(provider_settings, http_client=client)
        result = await gateway.send("not-an-email", CONTENT)

    assert not result.ok
    assert result.reason == "HTTP 422: Invalid `to` field"


@pytest.mark.asyncio
async def test_resend_connection_error(provider_settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        gateway = ResendEmailGateway(provider_settings, http_client=client)
        result = await gateway.send("jane@example.com", CONTENT)

    assert not result.ok
    assert "connection refused" in result.reason
