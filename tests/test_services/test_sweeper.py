"""Tests for the expiry sweeper."""

import asyncio
from datetime import timedelta

import pytest

from conftest import NOW, FakeGateway
from pickup.models.communication import Direction
from pickup.models.order import OrderStatus
from pickup.services import OrderServices
from pickup.services.lifecycle import NO_SHOW_NOTE


@pytest.mark.asyncio
async def test_sweep_expires_overdue_orders(
    services: OrderServices, make_order, sms_gateway: FakeGateway
) -> None:
    """Ready at 3:00 PM, swept at 4:01 PM: no-show plus one notification."""
    order = await make_order(OrderStatus.READY)
    sms_gateway.sent.clear()

    result = await services.sweeper.sweep(now=NOW + timedelta(minutes=61))

    assert result.checked == 1
    assert result.expired == [str(order.id)]

    stored = await services.repository.get(order.id)
    assert stored.status == OrderStatus.NO_SHOW
    assert stored.timeline.completed_at == NOW + timedelta(minutes=61)
    assert stored.store_notes == NO_SHOW_NOTE
    assert len(sms_gateway.sent) == 1
    assert "was not picked up" in sms_gateway.bodies[0]


@pytest.mark.asyncio
async def test_sweep_is_idempotent(
    services: OrderServices, make_order, sms_gateway: FakeGateway
) -> None:
    order = await make_order(OrderStatus.READY)
    later = NOW + timedelta(hours=2)

    await services.sweeper.sweep(now=later)
    sent_after_first = len(sms_gateway.sent)
    first = await services.repository.get(order.id)

    result = await services.sweeper.sweep(now=later + timedelta(minutes=1))

    second = await services.repository.get(order.id)
    assert result.checked == 0
    assert result.expired == []
    assert second.timeline.completed_at == first.timeline.completed_at
    assert len(sms_gateway.sent) == sent_after_first


@pytest.mark.asyncio
async def test_sweep_leaves_orders_within_window(services: OrderServices, make_order) -> None:
    order = await make_order(OrderStatus.READY)

    result = await services.sweeper.sweep(now=NOW + timedelta(minutes=30))

    assert result.expired == []
    assert result.reminded == []
    stored = await services.repository.get(order.id)
    assert stored.status == OrderStatus.READY


@pytest.mark.asyncio
async def test_sweep_ignores_other_statuses(services: OrderServices, make_order) -> None:
    pending = await make_order(OrderStatus.PENDING)
    confirmed = await make_order(OrderStatus.CONFIRMED)
    picked_up = await make_order(OrderStatus.PICKED_UP)

    result = await services.sweeper.sweep(now=NOW + timedelta(days=1))

    assert result.checked == 0
    for order in (pending, confirmed, picked_up):
        stored = await services.repository.get(order.id)
        assert stored.status == order.status


@pytest.mark.asyncio
async def test_reminder_sent_once(
    services: OrderServices, make_order, sms_gateway: FakeGateway
) -> None:
    order = await make_order(OrderStatus.READY)
    sms_gateway.sent.clear()

    first = await services.sweeper.sweep(now=NOW + timedelta(minutes=46))
    second = await services.sweeper.sweep(now=NOW + timedelta(minutes=50))

    assert first.reminded == [str(order.id)]
    assert second.reminded == []
    assert len(sms_gateway.sent) == 1
    assert "must be picked up within 14 minutes" in sms_gateway.bodies[0]

    stored = await services.repository.get(order.id)
    assert stored.status == OrderStatus.READY
    assert stored.pickup_reminder_sent_at == NOW + timedelta(minutes=46)


@pytest.mark.asyncio
async def test_concurrent_sweeps_expire_once(
    services: OrderServices, make_order, sms_gateway: FakeGateway
) -> None:
    order = await make_order(OrderStatus.READY)
    sms_gateway.sent.clear()
    later = NOW + timedelta(minutes=90)

    results = await asyncio.gather(
        services.sweeper.sweep(now=later),
        services.sweeper.sweep(now=later),
    )

    expired = [order_id for result in results for order_id in result.expired]
    assert expired == [str(order.id)]
    assert len(sms_gateway.sent) == 1

    stored = await services.repository.get(order.id)
    assert stored.status == OrderStatus.NO_SHOW
    no_show_messages = [
        comm for comm in stored.communications if comm.direction == Direction.TO_CUSTOMER
    ]
    assert sum("was not picked up" in comm.message for comm in no_show_messages) == 1


@pytest.mark.asyncio
async def test_picked_up_before_sweep_is_untouched(services: OrderServices, make_order) -> None:
    order = await make_order(OrderStatus.READY)
    await services.lifecycle.mark_picked_up(order.id, now=NOW + timedelta(minutes=59))

    result = await services.sweeper.sweep(now=NOW + timedelta(minutes=61))

    assert result.expired == []
    stored = await services.repository.get(order.id)
    assert stored.status == OrderStatus.PICKED_UP


@pytest.mark.asyncio
async def test_scheduler_start_stop(services: OrderServices) -> None:
    sweeper = services.sweeper

    await sweeper.start()
    assert sweeper.is_running
    await sweeper.start()
    assert sweeper.is_running

    await sweeper.stop()
    assert not sweeper.is_running
