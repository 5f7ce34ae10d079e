"""Twilio SMS gateway."""

import httpx

from pickup.config import Settings, get_settings
from pickup.gateways.base import MessageContent, MessageGateway, SendResult
from pickup.models.communication import NotificationMethod
from pickup.utils.contacts import format_phone_number
from pickup.utils.logging import get_logger

logger = get_logger(__name__)


class TwilioSMSGateway(MessageGateway):
    """Sends text messages through the Twilio Messages REST API."""

    method = NotificationMethod.SMS

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.account_sid = self.settings.twilio_account_sid
        self.auth_token = self.settings.twilio_auth_token
        self.from_number = self.settings.twilio_phone_number
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _get_message_url(self) -> str:
        return f"{self.settings.twilio_api_base}/Accounts/{self.account_sid}/Messages.json"

    async def send(self, to_address: str, content: MessageContent) -> SendResult:
        """Send an SMS via Twilio."""
        if not self.is_configured:
            logger.warning("twilio_not_configured")
            return SendResult.failed("Twilio configuration missing")

        payload = {
            "From": self.from_number,
            "To": format_phone_number(to_address),
            "Body": content.body,
        }

        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.settings.gateway_timeout) as client:
                    response = await self._post(client, payload)
        except httpx.TimeoutException:
            logger.warning("twilio_timeout")
            return SendResult.failed("Timeout communicating with Twilio")
        except httpx.HTTPError as e:
            logger.warning("twilio_http_error", error=str(e))
            return SendResult.failed(f"Connection error with Twilio: {e}")

        if response.status_code not in (200, 201):
            try:
                error_message = response.json().get("message", response.text)
            except ValueError:
                error_message = response.text
            logger.warning(
                "twilio_rejected",
                status_code=response.status_code,
                error=error_message,
            )
            return SendResult.failed(f"HTTP {response.status_code}: {error_message}")

        sid = response.json().get("sid")
        logger.debug("twilio_accepted", sid=sid)
        return SendResult.accepted(sid)

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, str]) -> httpx.Response:
        return await client.post(
            self._get_message_url(),
            data=payload,
            auth=(self.account_sid, self.auth_token),
        )
