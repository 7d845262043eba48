"""Menu catalog: categories and products loaded once per session."""

import logging
from typing import Union

from pydantic import ValidationError

from .errors import BackendError, CatalogLoadError, ProductNotFoundError
from .models import Category, Product
from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"

CategorySelection = Union[int, str]


def filter_products(products: list[Product], selected: CategorySelection) -> list[Product]:
    """Return the products shown for a category selection ("all" shows everything)."""
    if selected == ALL_CATEGORIES:
        return list(products)
    return [product for product in products if product.category_id == selected]


class CatalogStore:
    """Holds the categories and products fetched at startup."""

    def __init__(self) -> None:
        self.categories: list[Category] = []
        self.products: list[Product] = []
        self.is_loading = True
        self.loaded = False

    async def load(self, backend: SupabaseClient) -> None:
        """
        Fetch categories and products from the backend.

        On failure both lists are left empty so the menu can still render.

        Raises:
            CatalogLoadError: If either read fails
        """
        self.is_loading = True
        try:
            categories = await backend.fetch_categories()
            products = await backend.fetch_products()
        except (BackendError, ValidationError) as e:
            self.categories = []
            self.products = []
            logger.error(f"Error fetching menu: {e}", exc_info=True)
            raise CatalogLoadError(str(e)) from e
        finally:
            self.is_loading = False

        self.categories = categories
        self.products = products
        self.loaded = True
        logger.info(f"Menu loaded: {len(categories)} categories, {len(products)} products")

    def filtered(self, selected: CategorySelection) -> list[Product]:
        return filter_products(self.products, selected)

    def get_product(self, product_id: int) -> Product:
        """
        Look up a product by ID.

        Raises:
            ProductNotFoundError: If the product is not on the menu
        """
        for product in self.products:
            if product.id == product_id:
                return product
        raise ProductNotFoundError(product_id)

    def has_category(self, category_id: int) -> bool:
        return any(category.id == category_id for category in self.categories)
