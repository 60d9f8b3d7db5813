"""
Menu Service
Customer-facing menu, cached briefly since every visitor loads it.
"""
from typing import List

from app.core.cache import query_cache
from app.core.exceptions import ValidationError
from app.domain.menu import Category, MenuCategory
from app.repositories import MenuRepository
from app.repositories.menu_repository import CATALOG_TABLES


class MenuService:

    def __init__(self):
        self.menu_repo = MenuRepository()

    def _check_catalog(self, catalog: str) -> None:
        if catalog not in CATALOG_TABLES:
            raise ValidationError(f"Unknown catalog: {catalog}")

    def get_menu(self, catalog: str = 'menu') -> List[MenuCategory]:
        """Active categories with available products (menu or ready products)"""
        self._check_catalog(catalog)
        return query_cache.get_or_load(('menu', catalog), lambda: self.menu_repo.find_menu(catalog))

    def get_categories(self, catalog: str = 'menu') -> List[Category]:
        self._check_catalog(catalog)
        return self.menu_repo.find_categories(catalog)
