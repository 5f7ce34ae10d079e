"""Resend email gateway."""

import httpx

from pickup.config import Settings, get_settings
from pickup.gateways.base import MessageContent, MessageGateway, SendResult
from pickup.models.communication import NotificationMethod
from pickup.utils.logging import get_logger

logger = get_logger(__name__)


class ResendEmailGateway(MessageGateway):
    """Sends email through the Resend REST API."""

    method = NotificationMethod.EMAIL

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.api_key = self.settings.resend_api_key
        self._http_client = http_client

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def send(self, to_address: str, content: MessageContent) -> SendResult:
        """Send an email via Resend."""
        if not self.api_key:
            logger.warning("resend_not_configured")
            return SendResult.failed("Resend API key missing")

        payload: dict[str, object] = {
            "from": f"{self.settings.store_name} <{self.settings.resend_from_email}>",
            "to": [to_address],
            "subject": content.subject or content.body[:78],
        }
        if content.html:
            payload["html"] = content.html
        payload["text"] = content.body

        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.settings.gateway_timeout) as client:
                    response = await self._post(client, payload)
        except httpx.TimeoutException:
            logger.warning("resend_timeout")
            return SendResult.failed("Timeout communicating with Resend")
        except httpx.HTTPError as e:
            logger.warning("resend_http_error", error=str(e))
            return SendResult.failed(f"Connection error with Resend: {e}")

        if response.status_code != 200:
            try:
                error_message = response.json().get("message", response.text)
            except ValueError:
                error_message = response.text
            logger.warning(
                "resend_rejected",
                status_code=response.status_code,
                error=error_message,
            )
            return SendResult.failed(f"HTTP {response.status_code}: {error_message}")

        email_id = response.json().get("id")
        logger.debug("resend_accepted", email_id=email_id)
        return SendResult.accepted(email_id)

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, object]) -> httpx.Response:
        return await client.post(
            f"{self.settings.resend_api_base}/emails",
            json=payload,
            headers=self._get_headers(),
        )
