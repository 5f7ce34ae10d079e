"""Outbound message gateways."""

from pickup.config import Settings, get_settings
from pickup.gateways.base import MessageContent, MessageGateway, SendOutcome, SendResult
from pickup.gateways.email import ResendEmailGateway
from pickup.gateways.sms import TwilioSMSGateway
from pickup.models.communication import NotificationMethod


def build_gateways(settings: Settings | None = None) -> dict[NotificationMethod, MessageGateway]:
    """Production gateway for each notification method."""
    settings = settings or get_settings()
    return {
        NotificationMethod.SMS: TwilioSMSGateway(settings),
        NotificationMethod.EMAIL: ResendEmailGateway(settings),
    }


__all__ = [
    "MessageContent",
    "MessageGateway",
    "SendOutcome",
    "SendResult",
    "ResendEmailGateway",
    "TwilioSMSGateway",
    "build_gateways",
]
