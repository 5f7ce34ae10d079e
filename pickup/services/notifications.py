"""Outbound message dispatch and communication logging."""

import asyncio
import time
from uuid import UUID

from pickup.config import Settings, get_settings
from pickup.gateways.base import MessageContent, MessageGateway, SendResult
from pickup.models.communication import (
    Communication,
    CommunicationStatus,
    Direction,
    NotificationMethod,
)
from pickup.models.order import Order, StoreLocation
from pickup.state.orders import OrderRepository
from pickup.utils.logging import OrderLogger


class NotificationDispatcher:
    """Sends messages through the right gateway and records every attempt.

    A send never raises: provider errors, timeouts and unexpected gateway
    exceptions all become a ``failed`` Communication on the order.
    """

    def __init__(
        self,
        repository: OrderRepository,
        gateways: dict[NotificationMethod, MessageGateway],
        settings: Settings | None = None,
    ):
        self.repository = repository
        self.gateways = gateways
        self.settings = settings or get_settings()
        self.logger = OrderLogger("notifications")

    def customer_address(self, order: Order, method: NotificationMethod) -> str | None:
        if method == NotificationMethod.SMS:
            return order.customer_phone
        return order.customer_email

    def store_address(self, location: StoreLocation, method: NotificationMethod) -> str | None:
        if method == NotificationMethod.SMS:
            phones = {
                StoreLocation.WILLIAM_CANNON: self.settings.store_phone_william_cannon,
                StoreLocation.CAMERON_RD: self.settings.store_phone_cameron_rd,
            }
            return phones[location] or None
        emails = {
            StoreLocation.WILLIAM_CANNON: self.settings.store_email_william_cannon,
            StoreLocation.CAMERON_RD: self.settings.store_email_cameron_rd,
        }
        return emails[location] or None

    async def send(
        self,
        method: NotificationMethod,
        to_address: str | None,
        content: MessageContent,
        direction: Direction = Direction.TO_CUSTOMER,
    ) -> Communication:
        """Send one message and describe the attempt as a Communication."""
        logged_text = content.body if method == NotificationMethod.SMS else content.summary

        if not to_address:
            result = SendResult.failed(f"No {method.value} address on file")
        elif method not in self.gateways:
            result = SendResult.failed(f"No gateway configured for {method.value}")
        else:
            result = await self._send_with_timeout(self.gateways[method], to_address, content)

        return Communication(
            direction=direction,
            method=method,
            message=logged_text,
            status=CommunicationStatus.SENT if result.ok else CommunicationStatus.FAILED,
            provider_reference=result.provider_reference,
            error=result.reason,
        )

    async def _send_with_timeout(
        self,
        gateway: MessageGateway,
        to_address: str,
        content: MessageContent,
    ) -> SendResult:
        try:
            return await asyncio.wait_for(
                gateway.send(to_address, content),
                timeout=self.settings.gateway_timeout,
            )
        except asyncio.TimeoutError:
            return SendResult.failed(
                f"Gateway timed out after {self.settings.gateway_timeout:g}s"
            )
        except Exception as e:
            # Any gateway bug is reported as a failed send
            self.logger.log_error(error=str(e), gateway=gateway.method.value)
            return SendResult.failed(f"Gateway error: {e}")

    async def notify_customer(
        self,
        order: Order,
        content: MessageContent,
        method: NotificationMethod | None = None,
    ) -> Order:
        """Send to the customer on their preferred channel and log the attempt."""
        method = method or order.notification_method
        return await self._dispatch(
            order.id,
            method,
            self.customer_address(order, method),
            content,
            Direction.TO_CUSTOMER,
        )

    async def notify_store(self, order: Order, content: MessageContent) -> Order:
        """Alert the order's store on the same channel the customer chose."""
        method = order.notification_method
        return await self._dispatch(
            order.id,
            method,
            self.store_address(order.store_location, method),
            content,
            Direction.TO_STORE,
        )

    async def _dispatch(
        self,
        order_id: UUID,
        method: NotificationMethod,
        to_address: str | None,
        content: MessageContent,
        direction: Direction,
    ) -> Order:
        start_time = time.time()
        communication = await self.send(method, to_address, content, direction)
        duration_ms = (time.time() - start_time) * 1000

        self.logger.log_notification(
            order_id=str(order_id),
            direction=direction.value,
            method=method.value,
            status=communication.status.value,
            duration_ms=duration_ms,
            provider_reference=communication.provider_reference,
            error=communication.error,
        )

        return await self.repository.append_communication(order_id, communication)

    async def record_inbound(
        self,
        order_id: UUID,
        method: NotificationMethod,
        body: str,
        provider_reference: str | None = None,
        add_to_notes: bool = False,
    ) -> Order:
        """Log a message received from the customer.

        With ``add_to_notes`` the text is also appended to the order's
        customer notes as ``[SMS]: ...`` so staff see it on the order.
        """
        communication = Communication(
            direction=Direction.FROM_CUSTOMER,
            method=method,
            message=body,
            status=CommunicationStatus.DELIVERED,
            provider_reference=provider_reference,
        )
        if not add_to_notes:
            return await self.repository.append_communication(order_id, communication)

        def record(order: Order) -> None:
            order.communications.append(communication)
            order.add_customer_note(f"[{method.value.upper()}]: {body}")

        return await self.repository.update(order_id, record)
