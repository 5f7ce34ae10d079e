"""State management modules."""

from pickup.state.catalog import ProductCatalog
from pickup.state.manager import StateManager
from pickup.state.orders import OrderRepository

__all__ = ["StateManager", "OrderRepository", "ProductCatalog"]
