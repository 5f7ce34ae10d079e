"""Item substitution proposals and customer reply handling."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel

from pickup.errors import AlreadyReplaced, ItemNotFound, SubstitutionNotAllowed
from pickup.gateways.base import MessageContent
from pickup.models.communication import Direction, NotificationMethod
from pickup.models.order import Order, OrderStatus, SubstitutionRequest, SubstitutionStatus
from pickup.services.messages import MessageTemplates
from pickup.services.notifications import NotificationDispatcher
from pickup.state.catalog import ProductCatalog
from pickup.state.orders import OrderRepository
from pickup.utils.clock import utcnow
from pickup.utils.logging import get_logger

logger = get_logger(__name__)

APPROVAL_REPLIES = frozenset({"yes", "y", "approve", "ok"})
REJECTION_REPLIES = frozenset({"no", "n", "reject", "cancel"})

# Orders a customer reply can be attached to
OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


class ReplyIntent(str, Enum):
    """What a free-text reply means for a pending substitution."""

    APPROVE = "approve"
    REJECT = "reject"
    UNRECOGNIZED = "unrecognized"


def classify_reply(text: object) -> ReplyIntent:
    """Classify a customer's reply. Never raises; anything unclear is UNRECOGNIZED."""
    if not isinstance(text, str):
        return ReplyIntent.UNRECOGNIZED

    normalized = text.strip().casefold()
    if normalized in APPROVAL_REPLIES:
        return ReplyIntent.APPROVE
    if normalized in REJECTION_REPLIES:
        return ReplyIntent.REJECT
    return ReplyIntent.UNRECOGNIZED


class ReplyOutcome(BaseModel):
    """Result of processing an inbound message."""

    intent: ReplyIntent
    order: Order | None = None
    substitution: SubstitutionRequest | None = None
    applied: bool = False
    ambiguous: bool = False


class SubstitutionWorkflow:
    """Proposes replacement items and applies the customer's answer.

    A proposal is stored as a SubstitutionRequest on the order; the line
    item itself only changes once the customer approves.
    """

    def __init__(
        self,
        repository: OrderRepository,
        dispatcher: NotificationDispatcher,
        catalog: ProductCatalog,
        templates: MessageTemplates | None = None,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.catalog = catalog
        self.templates = templates or MessageTemplates()

    async def suggest_replacement(
        self,
        order_id: UUID | str,
        original_product_id: str,
        replacement_product_id: str,
        note: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """
        Ask the customer to approve a replacement for an unavailable item.

        Args:
            order_id: Confirmed order containing the item
            original_product_id: Product of the line item to replace
            replacement_product_id: Catalog product offered instead
            note: Optional staff note included in the message

        Returns:
            The order with the new request and the outbound message logged

        Raises:
            SubstitutionNotAllowed: The order is not confirmed
            ItemNotFound: The order has no line item for the product
            AlreadyReplaced: The line item was already replaced
            ProductNotFound: The replacement is not in the catalog
        """
        now = now or utcnow()
        replacement = await self.catalog.get_product(replacement_product_id)
        note = note.strip() if note and note.strip() else None

        def apply(order: Order) -> None:
            if order.status != OrderStatus.CONFIRMED:
                raise SubstitutionNotAllowed(order.status.value)

            item = order.find_item(original_product_id)
            if item is None:
                raise ItemNotFound(original_product_id)
            if item.was_replaced:
                raise AlreadyReplaced(original_product_id)

            for request in order.substitutions:
                if request.status == SubstitutionStatus.AWAITING_REPLY:
                    request.status = SubstitutionStatus.SUPERSEDED
                    request.resolved_at = now

            order.substitutions.append(
                SubstitutionRequest(
                    original_product_id=original_product_id,
                    replacement_product_id=replacement.id,
                    replacement_product_name=replacement.name,
                    note=note,
                    requested_at=now,
                )
            )

        order = await self.repository.update(order_id, apply)
        item = order.find_item(original_product_id)

        logger.info(
            "substitution_requested",
            order_id=str(order.id),
            original_product_id=original_product_id,
            replacement_product_id=replacement.id,
        )

        content = self.templates.replacement_request(
            order, item.product_name, replacement.name, note
        )
        # Replies are matched on the text channel; fall back to email without a phone
        method = NotificationMethod.SMS if order.customer_phone else NotificationMethod.EMAIL
        return await self.dispatcher.notify_customer(order, content, method=method)

    async def handle_reply(
        self,
        from_contact: str,
        body: str,
        method: NotificationMethod = NotificationMethod.SMS,
        provider_reference: str | None = None,
        now: datetime | None = None,
    ) -> ReplyOutcome:
        """
        Record an inbound message and apply it to a pending substitution.

        The message is attached to the customer's most recent open order. It
        only changes an item when exactly one of the customer's orders has a
        substitution awaiting reply and the text is a clear yes or no.

        Every reply is answered on the channel it arrived on: a confirmation
        for an applied yes or no, a thank-you for anything else (the text is
        also kept in the order's customer notes), and a "no pending orders"
        message when the sender has no open order.
        """
        now = now or utcnow()
        intent = classify_reply(body)

        orders = await self.repository.list_by_contact(from_contact)
        open_orders = [order for order in orders if order.status in OPEN_STATUSES]

        if not open_orders:
            logger.info("inbound_reply_unmatched", method=method.value, intent=intent.value)
            await self.dispatcher.send(
                method, from_contact, self.templates.no_open_order(), Direction.TO_CUSTOMER
            )
            return ReplyOutcome(intent=intent)

        awaiting = [
            order
            for order in open_orders
            if order.status == OrderStatus.CONFIRMED and order.awaiting_substitution()
        ]

        if len(awaiting) > 1:
            target = open_orders[0]
            logger.warning(
                "inbound_reply_ambiguous",
                order_id=str(target.id),
                candidate_orders=[order.order_number for order in awaiting],
            )
            order = await self._acknowledge_message(target.id, method, body, provider_reference)
            return ReplyOutcome(intent=intent, order=order, ambiguous=True)

        target = awaiting[0] if awaiting else open_orders[0]

        if not awaiting or intent == ReplyIntent.UNRECOGNIZED:
            order = await self._acknowledge_message(target.id, method, body, provider_reference)
            logger.info(
                "inbound_reply_recorded",
                order_id=str(order.id),
                intent=intent.value,
            )
            return ReplyOutcome(intent=intent, order=order)

        order = await self.dispatcher.record_inbound(target.id, method, body, provider_reference)
        outcome = await self._resolve(order.id, intent, now)
        outcome.order = await self.dispatcher.notify_customer(
            outcome.order, self._resolution_message(outcome), method=method
        )
        return outcome

    async def _acknowledge_message(
        self,
        order_id: UUID,
        method: NotificationMethod,
        body: str,
        provider_reference: str | None,
    ) -> Order:
        """Keep a free-form message on the order for staff and thank the customer."""
        order = await self.dispatcher.record_inbound(
            order_id, method, body, provider_reference, add_to_notes=True
        )
        return await self.dispatcher.notify_customer(
            order, self.templates.reply_received(order), method=method
        )

    def _resolution_message(self, outcome: ReplyOutcome) -> MessageContent:
        order = outcome.order
        request = outcome.substitution
        if request is None or not outcome.applied:
            return self.templates.reply_received(order)

        if request.status == SubstitutionStatus.APPROVED:
            return self.templates.replacement_approved(order, request.replacement_product_name)

        item = order.find_item(request.original_product_id)
        return self.templates.replacement_rejected(order, item.product_name, request.fallback)

    async def _resolve(self, order_id: UUID, intent: ReplyIntent, now: datetime) -> ReplyOutcome:
        resolved: list[SubstitutionRequest] = []

        def apply(order: Order) -> None:
            resolved.clear()
            request = order.awaiting_substitution()
            if order.status != OrderStatus.CONFIRMED or request is None:
                return

            item = order.find_item(request.original_product_id)
            request.resolved_at = now

            if item is None or item.was_replaced:
                request.status = SubstitutionStatus.SUPERSEDED
            elif intent == ReplyIntent.APPROVE:
                item.replacement_product_id = request.replacement_product_id
                item.replacement_product_name = request.replacement_product_name
                item.replacement_approved_at = now
                item.was_replaced = True
                request.status = SubstitutionStatus.APPROVED
            else:
                request.status = SubstitutionStatus.REJECTED
                request.fallback = item.replacement_preference
            resolved.append(request)

        order = await self.repository.update(order_id, apply)

        if not resolved:
            return ReplyOutcome(intent=intent, order=order)

        request = resolved[0]
        applied = request.status in (SubstitutionStatus.APPROVED, SubstitutionStatus.REJECTED)
        logger.info(
            "substitution_resolved",
            order_id=str(order.id),
            status=request.status.value,
            fallback=request.fallback.value if request.fallback else None,
        )
        return ReplyOutcome(intent=intent, order=order, substitution=request, applied=applied)
