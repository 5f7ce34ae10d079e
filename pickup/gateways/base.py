"""Common contract for outbound message gateways."""

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel

from pickup.models.communication import NotificationMethod


class SendOutcome(str, Enum):
    """Channel-level acceptance of a message."""

    ACCEPTED = "accepted"
    FAILED = "failed"


class MessageContent(BaseModel):
    """What to send. SMS uses ``body`` only; email uses all fields."""

    body: str
    subject: str | None = None
    html: str | None = None

    @property
    def summary(self) -> str:
        """Text recorded in the communication log."""
        return self.subject or self.body


class SendResult(BaseModel):
    """Outcome of one send attempt."""

    outcome: SendOutcome
    provider_reference: str | None = None
    reason: str | None = None

    @classmethod
    def accepted(cls, provider_reference: str | None) -> "SendResult":
        return cls(outcome=SendOutcome.ACCEPTED, provider_reference=provider_reference)

    @classmethod
    def failed(cls, reason: str) -> "SendResult":
        return cls(outcome=SendOutcome.FAILED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.outcome == SendOutcome.ACCEPTED


class MessageGateway(ABC):
    """A channel that can deliver a message to an address.

    Implementations report provider errors as a failed ``SendResult`` rather
    than raising.
    """

    method: NotificationMethod

    @abstractmethod
    async def send(self, to_address: str, content: MessageContent) -> SendResult:
        """Send a message and report whether the provider accepted it."""
        pass
