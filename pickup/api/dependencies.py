"""FastAPI dependencies."""

from pickup.services import OrderServices, build_services
from pickup.state.manager import get_state_manager

# Global services instance
_services: OrderServices | None = None


async def get_services() -> OrderServices:
    """Get the shared service graph, building it on first use."""
    global _services
    if _services is None:
        state_manager = await get_state_manager()
        _services = build_services(state_manager)
    return _services
