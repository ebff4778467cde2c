from shopadmin.schemas.catalog import Category, CategoryCreate, CategoryUpdate
from shopadmin.schemas.queries import CategoryQuery
from shopadmin.services.api.base import CrudResourceClient


class CategoryClient(CrudResourceClient[Category]):
    resource = "categories"
    path = "/categories"
    model = Category
    list_key = "categories"
    item_key = "category"
    query_model = CategoryQuery
    create_model = CategoryCreate
    update_model = CategoryUpdate

    @staticmethod
    def sorted_for_display(categories: list[Category]) -> list[Category]:
        """Display order: sort_order ascending, then name."""
        return sorted(categories, key=lambda c: (c.sort_order, c.name.lower()))
