"""Tests for notification templates."""

from datetime import datetime, timedelta, timezone

import pytest

from pickup.config import Settings
from pickup.models.order import Order, ReplacementPreference, StoreLocation
from pickup.services.messages import MessageTemplates


@pytest.fixture
def order() -> Order:
    return Order(
        order_number="ZS-000042",
        customer_name="Jane <Doe>",
        customer_phone="+15125550100",
        store_location=StoreLocation.CAMERON_RD,
    )


@pytest.fixture
def templates(settings: Settings) -> MessageTemplates:
    return MessageTemplates(settings)


def test_ready_message_uses_store_time(templates: MessageTemplates, order: Order) -> None:
    # 10:05 PM UTC is 5:05 PM in Austin during daylight saving time
    deadline = datetime(2025, 6, 2, 22, 5, tzinfo=timezone.utc)

    content = templates.order_ready(order, deadline)

    assert "Order ZS-000042 is READY for pickup!" in content.body
    assert "Please arrive by 5:05 PM (within 1 hour)" in content.body
    assert "5318 Cameron Rd" in content.body
    assert content.subject == "Order ZS-000042 is ready for pickup"


def test_window_text_follows_settings(order: Order) -> None:
    settings = Settings(_env_file=None, pickup_window_minutes=90, expiring_soon_minutes=20)

    content = MessageTemplates(settings).no_show(order)

    assert "within the 90 minutes window" in content.body


def test_cancelled_with_and_without_reason(templates: MessageTemplates, order: Order) -> None:
    assert "Reason: Out of stock." in templates.order_cancelled(order, "Out of stock").body
    assert "Reason" not in templates.order_cancelled(order).body


def test_reminder_rounds_down_to_minutes(templates: MessageTemplates, order: Order) -> None:
    content = templates.pickup_reminder(order, timedelta(minutes=9, seconds=50))

    assert "within 9 minutes" in content.body


def test_replacement_request(templates: MessageTemplates, order: Order) -> None:
    content = templates.replacement_request(
        order, "Mint Disposable 5000", "Mango Disposable 5000", note="Same price."
    )

    assert '"Mint Disposable 5000" is out of stock' in content.body
    assert '"Mango Disposable 5000"? Same price.' in content.body
    assert content.body.endswith("Reply YES to approve or NO to decline.")


def test_html_is_escaped(templates: MessageTemplates, order: Order) -> None:
    content = templates.store_new_order(order)

    assert "Jane <Doe>" in content.body
    assert "Jane &lt;Doe&gt;" in content.html


def test_reply_acknowledgements(templates: MessageTemplates, order: Order) -> None:
    approved = templates.replacement_approved(order, "Mango Disposable 5000")
    assert "We've updated your order ZS-000042 with Mango Disposable 5000" in approved.body

    rejected = templates.replacement_rejected(
        order, "Mint Disposable 5000", ReplacementPreference.REFUND
    )
    assert "won't substitute Mint Disposable 5000 on order ZS-000042" in rejected.body
    assert "refund" in rejected.body

    assert "Thanks for your message about order ZS-000042" in templates.reply_received(order).body
    assert "couldn't find any pending orders" in templates.no_open_order().body
