"""Read access to the storefront product catalog."""

from pickup.errors import ProductNotFound
from pickup.models.catalog import CatalogProduct
from pickup.state.manager import StateManager

PRODUCT_PREFIX = "product:"


class ProductCatalog:
    """Looks up catalog products stored as JSON documents in Redis."""

    def __init__(self, state_manager: StateManager):
        self.state = state_manager

    def _product_key(self, product_id: str) -> str:
        return f"{PRODUCT_PREFIX}{product_id}"

    async def get_product(self, product_id: str) -> CatalogProduct:
        data = await self.state.get(self._product_key(product_id))

        if not data:
            raise ProductNotFound(product_id)

        return CatalogProduct.model_validate(data)

    async def save_product(self, product: CatalogProduct) -> None:
        """Store a product; used by seeding scripts and tests."""
        await self.state.set(self._product_key(product.id), product.model_dump(mode="json"))
