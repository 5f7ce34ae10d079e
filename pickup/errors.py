"""Exceptions raised by the order lifecycle and substitution workflow."""


class PickupOrderError(Exception):
    """Base exception for all pickup order errors."""

    pass


class OrderNotFound(PickupOrderError):
    """Raised when an order cannot be found.

    Tracking lookups raise this with no detail so that a wrong contact and a
    wrong order number are indistinguishable to the caller.
    """

    def __init__(self, order_id: str | None = None):
        self.order_id = order_id
        super().__init__("Order not found")


class InvalidTransition(PickupOrderError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, current: str, requested: str, reason: str | None = None):
        self.current = current
        self.requested = requested
        msg = f"Cannot move order from '{current}' to '{requested}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class SubstitutionNotAllowed(InvalidTransition):
    """Raised when a substitution is proposed on an order that is not confirmed."""

    def __init__(self, current: str):
        super().__init__(
            current,
            "substitution",
            reason="substitutions can only be proposed on confirmed orders",
        )


class ItemNotFound(PickupOrderError):
    """Raised when an order has no line item for a product."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Order has no item for product: {product_id}")


class AlreadyReplaced(PickupOrderError):
    """Raised when a line item has already been replaced once."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Item has already been replaced: {product_id}")


class ProductNotFound(PickupOrderError):
    """Raised when the catalog has no product with the given id."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InvalidContact(PickupOrderError):
    """Raised when an order's contact details do not fit its notification method."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid contact details: {reason}")
