"""Customer and store message templates."""

from datetime import datetime, timedelta
from html import escape
from zoneinfo import ZoneInfo

from pickup.config import Settings, get_settings
from pickup.gateways.base import MessageContent
from pickup.models.order import Order, ReplacementPreference, StoreLocation

STORE_ADDRESSES = {
    StoreLocation.WILLIAM_CANNON: "719 W William Cannon Dr #105, Austin, TX 78745",
    StoreLocation.CAMERON_RD: "5318 Cameron Rd, Austin, TX 78723",
}


class MessageTemplates:
    """Renders notification content for both SMS and email."""

    ORDER_RECEIVED = (
        "{store}: Order {order_number} received! We'll text you when it's ready for pickup. "
        "Orders must be picked up within {window} of being ready. {address}"
    )
    STORE_NEW_ORDER = (
        "NEW ORDER {order_number}: {customer_name} - {item_count} item(s) - ${total}. "
        "Check admin dashboard to confirm."
    )
    ORDER_CONFIRMED = (
        "{store}: Order {order_number} is confirmed. We're preparing your items and will "
        "let you know when it's ready. {address}"
    )
    ORDER_READY = (
        "{store}: Order {order_number} is READY for pickup! Please arrive by {deadline} "
        "(within {window}). {address}. Reply HELP if you need assistance."
    )
    ORDER_CANCELLED = "{store}: Order {order_number} has been cancelled.{reason} Call us if you have questions."
    PICKUP_REMINDER = (
        "{store}: Reminder - Order {order_number} must be picked up within {remaining} "
        "or it will be cancelled. {address}"
    )
    NO_SHOW = (
        "{store}: Order {order_number} was not picked up within the {window} window and has "
        "been cancelled. Please place a new order if still interested."
    )
    REPLACEMENT_REQUEST = (
        '{store} Order {order_number}: "{product}" is out of stock. Can we substitute with '
        '"{replacement}"?{note} Reply YES to approve or NO to decline.'
    )
    REPLACEMENT_APPROVED = (
        "{store}: Great! We've updated your order {order_number} with {replacement}. "
        "You'll receive a text when ready for pickup."
    )
    REPLACEMENT_REJECTED = (
        "{store}: Got it, we won't substitute {product} on order {order_number}. {fallback}"
    )
    REPLY_RECEIVED = (
        "{store}: Thanks for your message about order {order_number}. "
        "Our team will review and respond soon."
    )
    NO_OPEN_ORDER = (
        "Thank you for contacting {store}! We couldn't find any pending orders for this "
        "number. Please call us for assistance."
    )

    # What happens to an item whose substitution was declined
    FALLBACK_TEXT = {
        ReplacementPreference.CALL: "We'll call you to sort out the missing item.",
        ReplacementPreference.REFUND: "We'll remove it from your order and refund it.",
        ReplacementPreference.CANCEL: "We'll call you about cancelling the order.",
    }

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.tz = ZoneInfo(self.settings.store_timezone)

    @property
    def window_text(self) -> str:
        minutes = self.settings.pickup_window_minutes
        if minutes % 60 == 0:
            hours = minutes // 60
            return "1 hour" if hours == 1 else f"{hours} hours"
        return f"{minutes} minutes"

    def _format_time(self, value: datetime) -> str:
        """Format a time for display in the store's timezone (e.g. "3:30 PM")."""
        local = value.astimezone(self.tz)
        return local.strftime("%I:%M %p").lstrip("0")

    def _context(self, order: Order) -> dict[str, str]:
        return {
            "store": self.settings.store_name,
            "order_number": order.order_number,
            "address": STORE_ADDRESSES[order.store_location],
            "window": self.window_text,
            "customer_name": order.customer_name,
            "item_count": str(order.item_count),
            "total": f"{order.total:.2f}",
        }

    def _content(self, subject: str, body: str) -> MessageContent:
        return MessageContent(
            body=body,
            subject=subject,
            html=f"<p>{escape(body)}</p>",
        )

    def order_received(self, order: Order) -> MessageContent:
        body = self.ORDER_RECEIVED.format(**self._context(order))
        return self._content(f"Order {order.order_number} received", body)

    def store_new_order(self, order: Order) -> MessageContent:
        body = self.STORE_NEW_ORDER.format(**self._context(order))
        return self._content(f"New pickup order {order.order_number}", body)

    def order_confirmed(self, order: Order) -> MessageContent:
        body = self.ORDER_CONFIRMED.format(**self._context(order))
        return self._content(f"Order {order.order_number} confirmed", body)

    def order_ready(self, order: Order, deadline: datetime) -> MessageContent:
        body = self.ORDER_READY.format(
            deadline=self._format_time(deadline), **self._context(order)
        )
        return self._content(f"Order {order.order_number} is ready for pickup", body)

    def order_cancelled(self, order: Order, reason: str | None = None) -> MessageContent:
        body = self.ORDER_CANCELLED.format(
            reason=f" Reason: {reason}." if reason else "", **self._context(order)
        )
        return self._content(f"Order {order.order_number} cancelled", body)

    def pickup_reminder(self, order: Order, left: timedelta) -> MessageContent:
        minutes = max(1, int(left.total_seconds() // 60))
        body = self.PICKUP_REMINDER.format(
            remaining=f"{minutes} minutes", **self._context(order)
        )
        return self._content(f"Reminder: pick up order {order.order_number}", body)

    def no_show(self, order: Order) -> MessageContent:
        body = self.NO_SHOW.format(**self._context(order))
        return self._content(f"Order {order.order_number} pickup window expired", body)

    def replacement_request(
        self,
        order: Order,
        product_name: str,
        replacement_name: str,
        note: str | None = None,
    ) -> MessageContent:
        body = self.REPLACEMENT_REQUEST.format(
            product=product_name,
            replacement=replacement_name,
            note=f" {note}" if note else "",
            **self._context(order),
        )
        return self._content(f"Substitution for order {order.order_number}", body)

    def replacement_approved(self, order: Order, replacement_name: str) -> MessageContent:
        body = self.REPLACEMENT_APPROVED.format(
            replacement=replacement_name, **self._context(order)
        )
        return self._content(f"Order {order.order_number} updated", body)

    def replacement_rejected(
        self,
        order: Order,
        product_name: str,
        fallback: ReplacementPreference,
    ) -> MessageContent:
        body = self.REPLACEMENT_REJECTED.format(
            product=product_name,
            fallback=self.FALLBACK_TEXT[fallback],
            **self._context(order),
        )
        return self._content(f"Order {order.order_number}: substitution declined", body)

    def reply_received(self, order: Order) -> MessageContent:
        body = self.REPLY_RECEIVED.format(**self._context(order))
        return self._content(f"Message received for order {order.order_number}", body)

    def no_open_order(self) -> MessageContent:
        body = self.NO_OPEN_ORDER.format(store=self.settings.store_name)
        return self._content("We couldn't find your order", body)
