"""
Menu Repository - Data Access Layer for categories and products

Serves both the regular menu (categories / products) and the "ready
products" catalog (ready_categories / ready_products), which share a shape.
"""
from typing import Dict, List, Tuple

from app.domain.menu import Category, Product, MenuCategory
from app.core.database import get_db_connection_dict


# catalog name -> (category table, product table)
CATALOG_TABLES: Dict[str, Tuple[str, str]] = {
    'menu': ('categories', 'products'),
    'ready': ('ready_categories', 'ready_products'),
}


class MenuRepository:
    """Read-only access to the customer menu"""

    def find_menu(self, catalog: str = 'menu') -> List[MenuCategory]:
        """
        Active categories with their available products

        Args:
            catalog: 'menu' or 'ready'

        Returns:
            Categories ordered by sort_order, products by name
        """
        if catalog not in CATALOG_TABLES:
            raise ValueError(f"Unknown catalog: {catalog}")
        category_table, product_table = CATALOG_TABLES[catalog]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT id, name, sort_order, is_active
                FROM {category_table}
                WHERE is_active = true
                ORDER BY sort_order, name
            """)
            category_rows = cursor.fetchall()

            cursor.execute(f"""
                SELECT id, category_id, name, description, price, image_url,
                       is_available, created_at
                FROM {product_table}
                WHERE is_available = true
                ORDER BY name
            """)
            product_rows = cursor.fetchall()

            products_by_category: Dict[str, List[Product]] = {}
            for row in product_rows:
                products_by_category.setdefault(row['category_id'], []).append(Product(**dict(row)))

            return [
                MenuCategory(**dict(row), products=products_by_category.get(row['id'], []))
                for row in category_rows
            ]

        finally:
            cursor.close()
            conn.close()

    def find_categories(self, catalog: str = 'menu') -> List[Category]:
        if catalog not in CATALOG_TABLES:
            raise ValueError(f"Unknown catalog: {catalog}")
        category_table, _ = CATALOG_TABLES[catalog]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT id, name, sort_order, is_active
                FROM {category_table}
                ORDER BY sort_order, name
            """)
            return [Category(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()
