"""Order persistence: one JSON document per order plus secondary indices."""

from datetime import datetime, timedelta
from typing import Any, Callable
from uuid import UUID
from zoneinfo import ZoneInfo

from redis.asyncio.client import Pipeline

from pickup.config import get_settings
from pickup.errors import OrderNotFound
from pickup.models.communication import Communication
from pickup.models.order import Order, OrderStatus, StoreLocation
from pickup.state.manager import StateManager
from pickup.utils.clock import utcnow
from pickup.utils.contacts import contact_key
from pickup.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_PREFIX = "order:"
ORDER_LIST_KEY = "orders:list"
ORDER_COUNTER_KEY = "orders:counter"
ORDER_BY_NUMBER_PREFIX = "orders:number:"
ORDER_BY_CONTACT_PREFIX = "orders:contact:"
ORDER_BY_STATUS_PREFIX = "orders:status:"
ORDER_BY_LOCATION_PREFIX = "orders:location:"


class OrderRepository:
    """Stores orders in Redis and keeps the lookup indices consistent.

    Every write to an existing order goes through :meth:`update`, which runs
    the caller's mutation inside a WATCH/MULTI transaction. If another writer
    touches the order between the read and the commit, the mutation is
    re-applied to the fresh document, so a check such as "only if still
    ready" inside the mutation is atomic with the write.
    """

    def __init__(self, state_manager: StateManager):
        self.state = state_manager
        self.settings = get_settings()

    def _order_key(self, order_id: UUID | str) -> str:
        """Generate Redis key for an order."""
        return f"{ORDER_PREFIX}{order_id}"

    def _status_key(self, status: OrderStatus) -> str:
        return f"{ORDER_BY_STATUS_PREFIX}{status.value}"

    def _contact_keys(self, order: Order) -> list[str]:
        keys = []
        if order.customer_phone:
            keys.append(f"{ORDER_BY_CONTACT_PREFIX}{contact_key(order.customer_phone)}")
        if order.customer_email:
            keys.append(f"{ORDER_BY_CONTACT_PREFIX}{contact_key(order.customer_email)}")
        return keys

    async def next_order_number(self) -> str:
        """Generate a sequential human-facing order number (ZS-000001)."""
        counter = await self.state.increment(ORDER_COUNTER_KEY)
        return f"{self.settings.order_number_prefix}-{counter:06d}"

    async def create(self, order: Order) -> Order:
        """Persist a new order and index it."""
        if not order.order_number:
            order.order_number = await self.next_order_number()

        order_id = str(order.id)
        pipe = await self.state.pipeline()
        async with pipe:
            pipe.set(self._order_key(order_id), order.model_dump_json())
            pipe.set(f"{ORDER_BY_NUMBER_PREFIX}{order.order_number}", order_id)
            pipe.sadd(ORDER_LIST_KEY, order_id)
            pipe.sadd(self._status_key(order.status), order_id)
            pipe.sadd(f"{ORDER_BY_LOCATION_PREFIX}{order.store_location.value}", order_id)
            for key in self._contact_keys(order):
                pipe.sadd(key, order_id)
            await pipe.execute()

        logger.info(
            "order_created",
            order_id=order_id,
            order_number=order.order_number,
            store_location=order.store_location.value,
        )
        return order

    async def get(self, order_id: UUID | str) -> Order:
        """Retrieve an order by id, raising OrderNotFound if missing."""
        data = await self.state.get(self._order_key(order_id))

        if not data:
            raise OrderNotFound(str(order_id))

        return Order.model_validate(data)

    async def get_by_number(self, order_number: str) -> Order | None:
        order_id = await self.state.get(f"{ORDER_BY_NUMBER_PREFIX}{order_number}")
        if not order_id:
            return None
        try:
            return await self.get(str(order_id))
        except OrderNotFound:
            return None

    async def _load_many(self, order_ids: set[str]) -> list[Order]:
        keys = [self._order_key(order_id) for order_id in sorted(order_ids)]
        documents = await self.state.get_many(keys)
        orders = [Order.model_validate(doc) for doc in documents if doc]
        orders.sort(key=lambda order: order.created_at, reverse=True)
        return orders

    async def list_by_status(self, status: OrderStatus) -> list[Order]:
        """Orders currently indexed under a status, newest first."""
        order_ids = await self.state.smembers(self._status_key(status))
        orders = await self._load_many(order_ids)
        # The index is updated in the same transaction as the document, but
        # re-check in case of a stale read between SMEMBERS and MGET
        return [order for order in orders if order.status == status]

    async def list_by_contact(self, contact: str) -> list[Order]:
        """Orders placed with a phone number or email, newest first."""
        order_ids = await self.state.smembers(f"{ORDER_BY_CONTACT_PREFIX}{contact_key(contact)}")
        return await self._load_many(order_ids)

    async def list_orders(
        self,
        statuses: list[OrderStatus] | None = None,
        store_location: StoreLocation | None = None,
        search: str | None = None,
    ) -> list[Order]:
        """All orders matching the filters, newest first."""
        if statuses:
            order_ids: set[str] = set()
            for status in statuses:
                order_ids |= await self.state.smembers(self._status_key(status))
        else:
            order_ids = await self.state.smembers(ORDER_LIST_KEY)

        orders = await self._load_many(order_ids)

        if statuses:
            orders = [order for order in orders if order.status in statuses]
        if store_location:
            orders = [order for order in orders if order.store_location == store_location]
        if search:
            query = search.lower()
            orders = [
                order
                for order in orders
                if query in order.order_number.lower()
                or query in order.customer_name.lower()
                or (order.customer_phone and query in order.customer_phone)
                or (order.customer_email and query in order.customer_email.lower())
            ]

        return orders

    async def update(self, order_id: UUID | str, mutate: Callable[[Order], None]) -> Order:
        """Apply a mutation to an order atomically.

        ``mutate`` receives a freshly loaded order and may raise to abort; in
        that case nothing is written. It may be called more than once if the
        order changes concurrently.
        """
        key = self._order_key(order_id)

        async def apply(pipe: Pipeline) -> Order:
            raw = await pipe.get(key)
            if raw is None:
                raise OrderNotFound(str(order_id))

            order = Order.model_validate_json(raw)
            previous_status = order.status
            mutate(order)
            order.updated_at = utcnow()

            pipe.multi()
            pipe.set(key, order.model_dump_json())
            if order.status != previous_status:
                pipe.srem(self._status_key(previous_status), str(order.id))
                pipe.sadd(self._status_key(order.status), str(order.id))
            return order

        client = await self.state.client()
        return await client.transaction(apply, key, value_from_callable=True)

    async def append_communication(
        self,
        order_id: UUID | str,
        communication: Communication,
    ) -> Order:
        """Append a record to an order's communication log."""

        def append(order: Order) -> None:
            order.communications.append(communication)

        order = await self.update(order_id, append)

        logger.debug(
            "communication_appended",
            order_id=str(order_id),
            direction=communication.direction.value,
            status=communication.status.value,
        )
        return order

    async def stats(self, now: datetime | None = None) -> dict[str, Any]:
        """Order counts for today (in the store's timezone), the past week and per location."""
        now = now or utcnow()
        local_now = now.astimezone(ZoneInfo(self.settings.store_timezone))
        today_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = now - timedelta(days=7)

        orders = await self.list_orders()
        today = [order for order in orders if order.created_at >= today_start]
        week = [order for order in orders if order.created_at >= week_start]

        def count(subset: list[Order], status: OrderStatus) -> int:
            return sum(1 for order in subset if order.status == status)

        return {
            "today": {
                "total": len(today),
                "pending": count(today, OrderStatus.PENDING),
                "ready": count(today, OrderStatus.READY),
                "picked_up": count(today, OrderStatus.PICKED_UP),
                "no_show": count(today, OrderStatus.NO_SHOW),
            },
            "this_week": {
                "total": len(week),
                "picked_up": count(week, OrderStatus.PICKED_UP),
                "no_show": count(week, OrderStatus.NO_SHOW),
            },
            "by_location": {
                location.value: sum(1 for order in orders if order.store_location == location)
                for location in StoreLocation
            },
        }
