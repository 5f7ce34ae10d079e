"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from fakeredis import FakeServer, aioredis
from httpx import ASGITransport, AsyncClient

from pickup.api.dependencies import get_services
from pickup.config import Settings
from pickup.gateways.base import MessageContent, MessageGateway, SendResult
from pickup.models.catalog import CatalogProduct
from pickup.models.communication import NotificationMethod
from pickup.models.order import Order, OrderStatus, ReplacementPreference, StoreLocation
from pickup.services import OrderServices, build_services
from pickup.services.lifecycle import PlaceOrderItem, PlaceOrderRequest
from pickup.state.manager import StateManager

# 3:00 PM in Austin (CDT)
NOW = datetime(2025, 6, 2, 20, 0, tzinfo=timezone.utc)

CUSTOMER_PHONE = "+15125550100"
CUSTOMER_EMAIL = "jane@example.com"


class FakeGateway(MessageGateway):
    """Records sends instead of calling a provider."""

    def __init__(
        self,
        method: NotificationMethod,
        fail: bool = False,
        error: Exception | None = None,
        delay: float = 0,
    ):
        self.method = method
        self.fail = fail
        self.error = error
        self.delay = delay
        self.sent: list[tuple[str, MessageContent]] = []

    async def send(self, to_address: str, content: MessageContent) -> SendResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.sent.append((to_address, content))
        if self.fail:
            return SendResult.failed("HTTP 400: The 'To' number is not a valid phone number")
        return SendResult.accepted(f"{self.method.value}-{len(self.sent)}")

    @property
    def bodies(self) -> list[str]:
        return [content.body for _, content in self.sent]


@pytest.fixture
def settings() -> Settings:
    """Settings with both store contacts configured."""
    return Settings(
        _env_file=None,
        store_phone_william_cannon="+15125550001",
        store_phone_cameron_rd="+15125550002",
        gateway_timeout=0.5,
    )


@pytest_asyncio.fixture
async def state_manager() -> AsyncGenerator[StateManager, None]:
    """State manager backed by an in-memory Redis."""
    client = aioredis.FakeRedis(server=FakeServer(), decode_responses=True)
    manager = StateManager(redis_client=client)
    yield manager
    await manager.disconnect()


@pytest.fixture
def sms_gateway() -> FakeGateway:
    return FakeGateway(NotificationMethod.SMS)


@pytest.fixture
def email_gateway() -> FakeGateway:
    return FakeGateway(NotificationMethod.EMAIL)


@pytest_asyncio.fixture
async def services(
    state_manager: StateManager,
    sms_gateway: FakeGateway,
    email_gateway: FakeGateway,
    settings: Settings,
) -> OrderServices:
    """Service graph with fake gateways and a seeded catalog."""
    services = build_services(
        state_manager,
        gateways={
            NotificationMethod.SMS: sms_gateway,
            NotificationMethod.EMAIL: email_gateway,
        },
        settings=settings,
    )
    for product in sample_products():
        await services.catalog.save_product(product)
    return services


def sample_products() -> list[CatalogProduct]:
    return [
        CatalogProduct(
            id="vape-mint-5000",
            name="Mint Disposable 5000",
            price=Decimal("19.99"),
            category="vapes",
        ),
        CatalogProduct(
            id="vape-mango-5000",
            name="Mango Disposable 5000",
            price=Decimal("19.99"),
            category="vapes",
        ),
        CatalogProduct(
            id="lighter-classic",
            name="Classic Lighter",
            price=Decimal("2.99"),
            category="accessories",
        ),
    ]


@pytest.fixture
def order_request() -> PlaceOrderRequest:
    """Two mint vapes and a lighter, SMS notifications."""
    return PlaceOrderRequest(
        customer_name="Jane Doe",
        customer_phone="(512) 555-0100",
        customer_email=CUSTOMER_EMAIL,
        notification_method=NotificationMethod.SMS,
        items=[
            PlaceOrderItem(
                product_id="vape-mint-5000",
                quantity=2,
                replacement_preference=ReplacementPreference.REFUND,
            ),
            PlaceOrderItem(product_id="lighter-classic", quantity=1),
        ],
        store_location=StoreLocation.WILLIAM_CANNON,
    )


@pytest.fixture
def make_order(
    services: OrderServices,
    order_request: PlaceOrderRequest,
) -> Callable[..., Awaitable[Order]]:
    """Place an order and advance it to the requested status."""

    async def _make(
        status: OrderStatus = OrderStatus.PENDING,
        now: datetime = NOW,
        request: PlaceOrderRequest | None = None,
    ) -> Order:
        order = await services.lifecycle.place_order(request or order_request, now=now)
        if status == OrderStatus.CANCELLED:
            return await services.lifecycle.cancel(order.id, now=now)
        if status == OrderStatus.PENDING:
            return order

        order = await services.lifecycle.confirm(order.id, now=now)
        if status == OrderStatus.CONFIRMED:
            return order

        order = await services.lifecycle.mark_ready(order.id, now=now)
        if status == OrderStatus.PICKED_UP:
            return await services.lifecycle.mark_picked_up(order.id, now=now)
        if status == OrderStatus.NO_SHOW:
            return await services.lifecycle.mark_no_show(order.id, now=now)
        return order

    return _make


@pytest_asyncio.fixture
async def test_client(services: OrderServices) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test services."""
    from pickup.main import app

    app.dependency_overrides[get_services] = lambda: services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
