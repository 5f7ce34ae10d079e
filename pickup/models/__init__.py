"""Data models for the pickup order service."""

from pickup.models.catalog import CatalogProduct
from pickup.models.communication import (
    Communication,
    CommunicationStatus,
    Direction,
    NotificationMethod,
)
from pickup.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderTimeline,
    ReplacementPreference,
    StoreLocation,
    SubstitutionRequest,
    SubstitutionStatus,
)

__all__ = [
    # Catalog
    "CatalogProduct",
    # Communication
    "Communication",
    "CommunicationStatus",
    "Direction",
    "NotificationMethod",
    # Order
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderTimeline",
    "ReplacementPreference",
    "StoreLocation",
    "SubstitutionRequest",
    "SubstitutionStatus",
]
