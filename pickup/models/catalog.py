"""Product catalog models."""

from decimal import Decimal

from pydantic import BaseModel, Field


class CatalogProduct(BaseModel):
    """A product as exposed by the storefront catalog."""

    id: str
    name: str
    price: Decimal = Field(ge=0)
    category: str | None = None
    in_stock: bool = True
