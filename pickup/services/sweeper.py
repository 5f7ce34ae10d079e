"""Expiry sweeper: forces ready orders to no-show once the pickup window closes.

APScheduler-based interval job. A sweep is safe to run from several
processes at once: each no-show goes through the state machine's
conditional update, so an order that another sweeper (or staff) already
moved out of ``ready`` is skipped rather than transitioned twice.
"""

import asyncio
from datetime import datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import BaseModel, Field

from pickup.config import Settings, get_settings
from pickup.errors import InvalidTransition, OrderNotFound
from pickup.models.order import Order, OrderStatus
from pickup.services import timer
from pickup.services.lifecycle import OrderLifecycle
from pickup.services.messages import MessageTemplates
from pickup.services.notifications import NotificationDispatcher
from pickup.state.orders import OrderRepository
from pickup.utils.clock import utcnow
from pickup.utils.logging import get_logger

logger = get_logger(__name__)


class SweepResult(BaseModel):
    """Summary of one sweep cycle."""

    ran_at: datetime
    checked: int = 0
    expired: list[str] = Field(default_factory=list)
    reminded: list[str] = Field(default_factory=list)


class ExpirySweeper:
    """Evaluates the pickup timer for every ready order."""

    JOB_ID = "expire_orders"

    def __init__(
        self,
        repository: OrderRepository,
        lifecycle: OrderLifecycle,
        dispatcher: NotificationDispatcher,
        templates: MessageTemplates | None = None,
        settings: Settings | None = None,
    ):
        self.repository = repository
        self.lifecycle = lifecycle
        self.dispatcher = dispatcher
        self.settings = settings or get_settings()
        self.templates = templates or MessageTemplates(self.settings)
        self.window = timedelta(minutes=self.settings.pickup_window_minutes)
        self.threshold = timedelta(minutes=self.settings.expiring_soon_minutes)

        self._scheduler: AsyncIOScheduler | None = None
        self._is_running = False

    async def sweep(self, now: datetime | None = None) -> SweepResult:
        """Run one cycle: expire overdue orders and remind those close to expiry."""
        now = now or utcnow()
        orders = await self.repository.list_by_status(OrderStatus.READY)
        result = SweepResult(ran_at=now, checked=len(orders))

        outcomes = await asyncio.gather(
            *(self._process(order, now) for order in orders),
            return_exceptions=True,
        )

        for order, outcome in zip(orders, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "sweep_order_failed",
                    order_id=str(order.id),
                    error=str(outcome),
                )
            elif outcome == "expired":
                result.expired.append(str(order.id))
            elif outcome == "reminded":
                result.reminded.append(str(order.id))

        logger.info(
            "sweep_completed",
            checked=result.checked,
            expired=len(result.expired),
            reminded=len(result.reminded),
        )
        return result

    async def _process(self, order: Order, now: datetime) -> str | None:
        ready_at = order.timeline.ready_at
        if ready_at is None:
            logger.warning("ready_order_without_ready_at", order_id=str(order.id))
            return None

        if timer.is_expired(ready_at, now, self.window):
            try:
                await self.lifecycle.mark_no_show(order.id, now=now, automatic=True)
            except (InvalidTransition, OrderNotFound):
                # Picked up or expired by someone else since the listing
                return None
            return "expired"

        if order.pickup_reminder_sent_at is None and timer.is_expiring_soon(
            ready_at, now, self.window, self.threshold
        ):
            if await self._send_reminder(order, now):
                return "reminded"
        return None

    async def _send_reminder(self, order: Order, now: datetime) -> bool:
        claimed: list[bool] = []

        def claim(current: Order) -> None:
            claimed.clear()
            if current.status == OrderStatus.READY and current.pickup_reminder_sent_at is None:
                current.pickup_reminder_sent_at = now
                claimed.append(True)

        updated = await self.repository.update(order.id, claim)
        if not claimed:
            return False

        left = timer.remaining(updated.timeline.ready_at, now, self.window)
        await self.dispatcher.notify_customer(
            updated, self.templates.pickup_reminder(updated, left or timedelta(0))
        )
        return True

    async def _run_scheduled(self) -> None:
        try:
            await self.sweep()
        except Exception as e:
            logger.error("sweep_failed", error=str(e), exc_info=True)

    async def start(self) -> None:
        """Start the interval job."""
        if self._is_running:
            logger.warning("sweeper_already_running")
            return

        scheduler = AsyncIOScheduler()
        self._scheduler = scheduler

        scheduler.add_job(
            self._run_scheduled,
            IntervalTrigger(seconds=self.settings.sweep_interval_seconds),
            id=self.JOB_ID,
            replace_existing=True,
            name="Expire Ready Orders",
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        self._is_running = True
        logger.info("sweeper_started", interval_seconds=self.settings.sweep_interval_seconds)

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler and self._is_running:
            self._scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("sweeper_stopped")

    @property
    def is_running(self) -> bool:
        return self._is_running
