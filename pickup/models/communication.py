"""Communication log models."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from pickup.utils.clock import utcnow


class Direction(str, Enum):
    """Who sent a message and to whom."""

    TO_CUSTOMER = "to-customer"
    FROM_CUSTOMER = "from-customer"
    TO_STORE = "to-store"
    FROM_STORE = "from-store"


class NotificationMethod(str, Enum):
    """Channel a message travels over."""

    SMS = "sms"
    EMAIL = "email"


class CommunicationStatus(str, Enum):
    """Channel-level outcome of a message."""

    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class Communication(BaseModel):
    """One attempted or received message on an order.

    Records are immutable; a correction is a new record.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utcnow)
    direction: Direction
    method: NotificationMethod
    message: str
    status: CommunicationStatus
    provider_reference: str | None = None
    error: str | None = None
