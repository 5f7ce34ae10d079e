"""Order lifecycle state machine."""

from datetime import datetime, timedelta
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from pickup.config import Settings, get_settings
from pickup.errors import InvalidContact, InvalidTransition, OrderNotFound
from pickup.gateways.base import MessageContent
from pickup.models.communication import NotificationMethod
from pickup.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderTimeline,
    ReplacementPreference,
    StoreLocation,
)
from pickup.services import timer
from pickup.services.messages import MessageTemplates
from pickup.services.notifications import NotificationDispatcher
from pickup.state.catalog import ProductCatalog
from pickup.state.orders import OrderRepository
from pickup.utils.clock import utcnow
from pickup.utils.contacts import contact_key, format_phone_number, is_valid_phone_number
from pickup.utils.logging import OrderLogger

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.PICKED_UP, OrderStatus.NO_SHOW}),
}

# Timeline field written when entering each status
TIMELINE_FIELDS: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.PICKED_UP: "completed_at",
    OrderStatus.NO_SHOW: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

NO_SHOW_NOTE = "Automatically marked as no-show - pickup window expired"


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    """Check if a status transition is valid."""
    return to_status in TRANSITIONS.get(from_status, frozenset())


class PlaceOrderItem(BaseModel):
    """A product requested at checkout."""

    product_id: str
    quantity: int = Field(ge=1)
    replacement_preference: ReplacementPreference = ReplacementPreference.CALL


class PlaceOrderRequest(BaseModel):
    """Checkout submission."""

    customer_name: str = Field(min_length=1)
    customer_phone: str | None = None
    customer_email: str | None = None
    notification_method: NotificationMethod
    items: list[PlaceOrderItem] = Field(min_length=1)
    store_location: StoreLocation
    customer_notes: str | None = None


class OrderLifecycle:
    """Owns every status change of an order.

    Each transition is committed with a conditional update (the status check
    and the write happen in one Redis transaction), then the matching
    customer notification is dispatched and logged. A failed notification is
    recorded on the order and never undoes the transition.
    """

    def __init__(
        self,
        repository: OrderRepository,
        dispatcher: NotificationDispatcher,
        catalog: ProductCatalog,
        templates: MessageTemplates | None = None,
        settings: Settings | None = None,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.catalog = catalog
        self.settings = settings or get_settings()
        self.templates = templates or MessageTemplates(self.settings)
        self.logger = OrderLogger("lifecycle")

    @property
    def pickup_window(self) -> timedelta:
        return timedelta(minutes=self.settings.pickup_window_minutes)

    async def place_order(self, request: PlaceOrderRequest, now: datetime | None = None) -> Order:
        """
        Create a pending order and notify the customer and the store.

        Args:
            request: Checkout submission
            now: Placement time, defaults to the current time

        Returns:
            The stored order including its initial communications
        """
        now = now or utcnow()
        phone, email = self._validate_contact(request)

        items = []
        for requested in request.items:
            product = await self.catalog.get_product(requested.product_id)
            items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    category=product.category,
                    quantity=requested.quantity,
                    price_per_unit=product.price,
                    replacement_preference=requested.replacement_preference,
                )
            )

        order = Order(
            customer_name=request.customer_name.strip(),
            customer_phone=phone,
            customer_email=email,
            notification_method=request.notification_method,
            items=items,
            store_location=request.store_location,
            timeline=OrderTimeline(placed_at=now),
            customer_notes=request.customer_notes.strip() if request.customer_notes else None,
            created_at=now,
            updated_at=now,
        )
        order.calculate_totals(self.settings.tax_rate)

        order = await self.repository.create(order)

        order = await self.dispatcher.notify_customer(order, self.templates.order_received(order))
        order = await self.dispatcher.notify_store(order, self.templates.store_new_order(order))
        return order

    def _validate_contact(self, request: PlaceOrderRequest) -> tuple[str | None, str | None]:
        phone = request.customer_phone.strip() if request.customer_phone else None
        email = request.customer_email.strip() if request.customer_email else None

        if phone:
            if not is_valid_phone_number(phone):
                raise InvalidContact("phone number must be a 10-digit US number")
            phone = format_phone_number(phone)
        if email:
            try:
                _, email = validate_email(email)
            except PydanticCustomError:
                raise InvalidContact("invalid email address") from None

        if request.notification_method == NotificationMethod.SMS and not phone:
            raise InvalidContact("a phone number is required for SMS notifications")
        if request.notification_method == NotificationMethod.EMAIL and not email:
            raise InvalidContact("an email address is required for email notifications")
        return phone, email

    async def get_order(self, order_id: UUID | str) -> Order:
        return await self.repository.get(order_id)

    async def track(self, order_number: str, contact: str) -> Order:
        """
        Customer-facing lookup by order number plus phone or email.

        A wrong order number and a wrong contact both raise the same
        OrderNotFound, so the response does not reveal which orders exist.
        """
        order = await self.repository.get_by_number(order_number.strip().upper())
        if order is None or not self._contact_matches(order, contact):
            raise OrderNotFound()
        return order

    def _contact_matches(self, order: Order, contact: str) -> bool:
        if not contact or not contact.strip():
            return False
        supplied = contact_key(contact)
        if not supplied:
            return False
        known = {contact_key(value) for value in (order.customer_phone, order.customer_email) if value}
        return supplied in known

    async def confirm(self, order_id: UUID | str, note: str | None = None, now: datetime | None = None) -> Order:
        return await self.transition(order_id, OrderStatus.CONFIRMED, note=note, now=now)

    async def mark_ready(self, order_id: UUID | str, note: str | None = None, now: datetime | None = None) -> Order:
        return await self.transition(order_id, OrderStatus.READY, note=note, now=now)

    async def mark_picked_up(
        self, order_id: UUID | str, note: str | None = None, now: datetime | None = None
    ) -> Order:
        return await self.transition(order_id, OrderStatus.PICKED_UP, note=note, now=now)

    async def mark_no_show(
        self,
        order_id: UUID | str,
        note: str | None = None,
        now: datetime | None = None,
        automatic: bool = False,
    ) -> Order:
        if automatic and note is None:
            note = NO_SHOW_NOTE
        return await self.transition(
            order_id, OrderStatus.NO_SHOW, note=note, now=now, automatic=automatic
        )

    async def cancel(self, order_id: UUID | str, reason: str | None = None, now: datetime | None = None) -> Order:
        return await self.transition(order_id, OrderStatus.CANCELLED, note=reason, now=now)

    async def transition(
        self,
        order_id: UUID | str,
        target: OrderStatus,
        note: str | None = None,
        now: datetime | None = None,
        automatic: bool = False,
    ) -> Order:
        """
        Move an order to a new status.

        Args:
            order_id: Order to transition
            target: Requested status
            note: Optional staff note (the cancellation reason for cancel)
            now: Transition time, defaults to the current time
            automatic: True when triggered by the expiry sweeper

        Returns:
            The updated order with the notification logged

        Raises:
            InvalidTransition: The order's current status does not allow it
            OrderNotFound: No such order
        """
        now = now or utcnow()
        previous: list[OrderStatus] = []

        def apply(order: Order) -> None:
            previous[:] = [order.status]
            if not can_transition(order.status, target):
                raise InvalidTransition(order.status.value, target.value)

            field = TIMELINE_FIELDS[target]
            if getattr(order.timeline, field) is not None:
                raise InvalidTransition(
                    order.status.value, target.value, reason=f"{field} already recorded"
                )
            setattr(order.timeline, field, now)
            order.status = target
            if note:
                order.add_note(note)

        try:
            order = await self.repository.update(order_id, apply)
        except InvalidTransition as e:
            self.logger.log_rejected_transition(str(order_id), e.current, e.requested)
            raise

        self.logger.log_transition(
            order_id=str(order.id),
            order_number=order.order_number,
            from_status=previous[0].value,
            to_status=target.value,
            automatic=automatic,
        )

        content = self._notification_for(order, target, note)
        if content is not None:
            order = await self.dispatcher.notify_customer(order, content)
        return order

    def _notification_for(
        self,
        order: Order,
        target: OrderStatus,
        note: str | None,
    ) -> MessageContent | None:
        if target == OrderStatus.CONFIRMED:
            return self.templates.order_confirmed(order)
        if target == OrderStatus.READY:
            deadline = timer.pickup_deadline(order.timeline.ready_at, self.pickup_window)
            return self.templates.order_ready(order, deadline)
        if target == OrderStatus.CANCELLED:
            return self.templates.order_cancelled(order, note)
        if target == OrderStatus.NO_SHOW:
            return self.templates.no_show(order)
        return None
