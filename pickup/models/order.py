"""Order-related data models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, EmailStr, Field, model_validator

from pickup.models.communication import Communication, NotificationMethod
from pickup.utils.clock import utcnow


class OrderStatus(str, Enum):
    """Order status progression."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    READY = "ready"
    PICKED_UP = "picked-up"
    NO_SHOW = "no-show"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.PICKED_UP, OrderStatus.NO_SHOW, OrderStatus.CANCELLED)


class ReplacementPreference(str, Enum):
    """Customer's fallback if an item turns out to be unavailable."""

    CALL = "call"
    REFUND = "refund"
    CANCEL = "cancel"


class StoreLocation(str, Enum):
    """Stores that fulfil pickup orders."""

    WILLIAM_CANNON = "william-cannon"
    CAMERON_RD = "cameron-rd"


class SubstitutionStatus(str, Enum):
    """State of a proposed item substitution."""

    AWAITING_REPLY = "awaiting-reply"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUPERSEDED = "superseded"


class OrderItem(BaseModel):
    """Individual product in an order."""

    product_id: str
    product_name: str
    category: str | None = None
    quantity: int = Field(ge=1)
    price_per_unit: Decimal = Field(ge=0)
    total_price: Decimal = Field(default=Decimal("0.00"), ge=0)
    replacement_preference: ReplacementPreference = ReplacementPreference.CALL

    # Set once the customer approves a substitution
    was_replaced: bool = False
    replacement_product_id: str | None = None
    replacement_product_name: str | None = None
    replacement_approved_at: datetime | None = None

    @model_validator(mode="after")
    def calculate_total_price(self) -> "OrderItem":
        """Keep total_price equal to quantity x price_per_unit."""
        self.total_price = self.price_per_unit * Decimal(self.quantity)
        return self

    @model_validator(mode="after")
    def check_replacement(self) -> "OrderItem":
        if self.was_replaced and (
            not self.replacement_product_name or self.replacement_approved_at is None
        ):
            raise ValueError("replaced items need a replacement name and approval time")
        return self


class OrderTimeline(BaseModel):
    """Timestamps of the states an order has passed through."""

    placed_at: datetime = Field(default_factory=utcnow)
    confirmed_at: datetime | None = None
    ready_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None


class SubstitutionRequest(BaseModel):
    """A replacement proposed by staff, awaiting or resolved by the customer."""

    id: UUID = Field(default_factory=uuid4)
    original_product_id: str
    replacement_product_id: str
    replacement_product_name: str
    note: str | None = None
    requested_at: datetime = Field(default_factory=utcnow)
    status: SubstitutionStatus = SubstitutionStatus.AWAITING_REPLY
    resolved_at: datetime | None = None
    fallback: ReplacementPreference | None = None


class Order(BaseModel):
    """Complete pickup order."""

    id: UUID = Field(default_factory=uuid4)
    order_number: str = ""
    status: OrderStatus = OrderStatus.PENDING

    # Customer
    customer_name: str
    customer_phone: str | None = None
    customer_email: EmailStr | None = None
    notification_method: NotificationMethod = NotificationMethod.SMS

    # Items
    items: list[OrderItem] = Field(default_factory=list)

    # Pricing
    subtotal: Decimal = Field(default=Decimal("0.00"), ge=0)
    tax: Decimal = Field(default=Decimal("0.00"), ge=0)
    total: Decimal = Field(default=Decimal("0.00"), ge=0)

    store_location: StoreLocation

    timeline: OrderTimeline = Field(default_factory=OrderTimeline)
    communications: list[Communication] = Field(default_factory=list)
    substitutions: list[SubstitutionRequest] = Field(default_factory=list)
    pickup_reminder_sent_at: datetime | None = None

    # Notes
    customer_notes: str | None = None
    store_notes: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def calculate_totals(self, tax_rate: Decimal) -> None:
        """Calculate all order totals."""
        self.subtotal = sum((item.total_price for item in self.items), Decimal("0.00"))
        self.tax = (self.subtotal * tax_rate).quantize(Decimal("0.01"))
        self.total = self.subtotal + self.tax

    def find_item(self, product_id: str) -> OrderItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def awaiting_substitution(self) -> SubstitutionRequest | None:
        """The open substitution request, if any."""
        for request in reversed(self.substitutions):
            if request.status == SubstitutionStatus.AWAITING_REPLY:
                return request
        return None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def add_note(self, note: str) -> None:
        self.store_notes = f"{self.store_notes}\n{note}" if self.store_notes else note

    def add_customer_note(self, note: str) -> None:
        self.customer_notes = f"{self.customer_notes}\n{note}" if self.customer_notes else note
