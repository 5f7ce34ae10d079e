"""Order lifecycle services."""

from dataclasses import dataclass

from pickup.config import Settings, get_settings
from pickup.gateways import MessageGateway, build_gateways
from pickup.models.communication import NotificationMethod
from pickup.services.lifecycle import OrderLifecycle
from pickup.services.messages import MessageTemplates
from pickup.services.notifications import NotificationDispatcher
from pickup.services.substitution import SubstitutionWorkflow
from pickup.services.sweeper import ExpirySweeper
from pickup.state.catalog import ProductCatalog
from pickup.state.manager import StateManager
from pickup.state.orders import OrderRepository


@dataclass
class OrderServices:
    """Wired-together components sharing one state manager."""

    repository: OrderRepository
    catalog: ProductCatalog
    dispatcher: NotificationDispatcher
    lifecycle: OrderLifecycle
    substitutions: SubstitutionWorkflow
    sweeper: ExpirySweeper


def build_services(
    state_manager: StateManager,
    gateways: dict[NotificationMethod, MessageGateway] | None = None,
    settings: Settings | None = None,
) -> OrderServices:
    """Build the service graph, using the production gateways unless given others."""
    settings = settings or get_settings()
    gateways = gateways if gateways is not None else build_gateways(settings)
    templates = MessageTemplates(settings)

    repository = OrderRepository(state_manager)
    catalog = ProductCatalog(state_manager)
    dispatcher = NotificationDispatcher(repository, gateways, settings)
    lifecycle = OrderLifecycle(repository, dispatcher, catalog, templates, settings)
    substitutions = SubstitutionWorkflow(repository, dispatcher, catalog, templates)
    sweeper = ExpirySweeper(repository, lifecycle, dispatcher, templates, settings)

    return OrderServices(
        repository=repository,
        catalog=catalog,
        dispatcher=dispatcher,
        lifecycle=lifecycle,
        substitutions=substitutions,
        sweeper=sweeper,
    )


__all__ = [
    "ExpirySweeper",
    "MessageTemplates",
    "NotificationDispatcher",
    "OrderLifecycle",
    "OrderServices",
    "SubstitutionWorkflow",
    "build_services",
]
