import logging
from typing import Any

from shopadmin.schemas.catalog import Product, ProductCreate, ProductUpdate
from shopadmin.schemas.queries import ProductQuery
from shopadmin.services.api.base import CrudResourceClient
from shopadmin.services.api.cache import ViewCache

logger = logging.getLogger(__name__)


class ProductClient(CrudResourceClient[Product]):
    resource = "products"
    path = "/products"
    model = Product
    list_key = "products"
    item_key = "product"
    query_model = ProductQuery
    create_model = ProductCreate
    update_model = ProductUpdate

    def _prepare_update(self, entity_id: str, draft: ProductUpdate, cache: ViewCache[Product] | None) -> dict[str, Any]:
        # Turning a product on without sending new content: the cached copy tells us if it has stock
        if draft.is_available and draft.digital_content is None and cache is not None:
            cached = cache.get(entity_id)
            if cached is not None and not cached.digital_content:
                logger.info(
                    "product_forced_unavailable",
                    extra={"resource": self.resource, "entity_id": entity_id},
                )
                draft = draft.model_copy(update={"is_available": False})
        return draft.to_payload(partial=True)
