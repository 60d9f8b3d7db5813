"""
Order Repository - Data Access Layer for delivery orders

Handles all database queries for delivery orders (orders / order_items)
and returns Order domain models.
"""
from typing import Any, Dict, List, Optional, Sequence

from app.domain.order import Order, OrderItem
from app.core.database import get_db_connection_dict


ORDER_COLUMNS = """
    o.id, o.customer_name, o.customer_phone,
    o.address_street, o.address_number, o.address_neighborhood,
    o.address_complement, o.address_reference,
    o.total_amount, o.status, o.payment_method, o.change_for,
    o.driver_id, o.driver_name, o.latitude, o.longitude,
    o.created_at, o.updated_at
"""


class OrderRepository:
    """
    Repository for delivery Order data access

    All SQL queries for delivery orders are centralized here.
    """

    @staticmethod
    def _attach_items(cursor, order_rows: Sequence[dict]) -> List[Order]:
        """Load items for every order in ONE query and build Order models"""
        if not order_rows:
            return []

        order_ids = [row['id'] for row in order_rows]
        cursor.execute("""
            SELECT id, order_id, product_name, quantity, unit_price, observation, created_at
            FROM order_items
            WHERE order_id = ANY(%s)
            ORDER BY order_id, created_at
        """, (order_ids,))

        items_by_order: Dict[int, List[OrderItem]] = {}
        for item in cursor.fetchall():
            items_by_order.setdefault(item['order_id'], []).append(OrderItem(**dict(item)))

        return [
            Order(**{**dict(row), 'items': items_by_order.get(row['id'], [])})
            for row in order_rows
        ]

    def create(self, order: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """
        Insert a delivery order and its items in one transaction

        Args:
            order: Column values for the orders row (status defaults to pending)
            items: Column values for each order_items row

        Returns:
            The created Order with items
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO orders (
                    customer_name, customer_phone,
                    address_street, address_number, address_neighborhood,
                    address_complement, address_reference,
                    total_amount, status, payment_method, change_for,
                    latitude, longitude
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 'pending', %s, %s, %s, %s)
                RETURNING {ORDER_COLUMNS.replace('o.', '')}
            """, (
                order['customer_name'], order['customer_phone'],
                order['address_street'], order['address_number'], order['address_neighborhood'],
                order.get('address_complement'), order.get('address_reference'),
                order['total_amount'], order['payment_method'], order.get('change_for'),
                order.get('latitude'), order.get('longitude')
            ))
            order_row = dict(cursor.fetchone())

            created_items = []
            for item in items:
                cursor.execute("""
                    INSERT INTO order_items (order_id, product_name, quantity, unit_price, observation)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING id, order_id, product_name, quantity, unit_price, observation, created_at
                """, (
                    order_row['id'], item['product_name'], item['quantity'],
                    item['unit_price'], item.get('observation')
                ))
                created_items.append(OrderItem(**dict(cursor.fetchone())))

            conn.commit()
            return Order(**order_row, items=created_items)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, order_id: int) -> Optional[Order]:
        """
        Find delivery order by ID with items

        Returns:
            Order or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {ORDER_COLUMNS} FROM orders o WHERE o.id = %s", (order_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._attach_items(cursor, [row])[0]

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        statuses: Optional[Sequence[str]] = None,
        limit: int = 200
    ) -> List[Order]:
        """
        Find delivery orders, newest first

        Args:
            statuses: Only orders in these statuses
            limit: Maximum results to return
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params: List[Any] = []

            if statuses:
                conditions.append("o.status = ANY(%s)")
                params.append(list(statuses))

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                WHERE {where_clause}
                ORDER BY o.created_at DESC
                LIMIT %s
            """, params + [limit])

            return self._attach_items(cursor, cursor.fetchall())

        finally:
            cursor.close()
            conn.close()

    def find_by_driver(self, driver_id: str, statuses: Sequence[str]) -> List[Order]:
        """Orders assigned to a driver in the given statuses, oldest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                WHERE o.driver_id = %s AND o.status = ANY(%s)
                ORDER BY o.created_at ASC
            """, (driver_id, list(statuses)))

            return self._attach_items(cursor, cursor.fetchall())

        finally:
            cursor.close()
            conn.close()

    def update(self, order_id: int, changes: Dict[str, Any]) -> Optional[Order]:
        """
        Update columns of a delivery order (status, driver...)

        Returns:
            Updated Order without items, or None if not found
        """
        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [order_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE orders
                SET {assignments}, updated_at = NOW()
                WHERE id = %s
                RETURNING {ORDER_COLUMNS.replace('o.', '')}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return Order(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_finished_in_range(
        self,
        start_date: str,
        end_date: str,
        driver_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Completed or delivered orders with a driver, for the driver report

        Returns:
            Rows with id, driver_id, driver_name, total_amount, created_at, updated_at
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = [
                "status IN ('completed', 'delivered')",
                "driver_id IS NOT NULL",
                "created_at >= %s",
                "created_at <= %s",
            ]
            params: List[Any] = [start_date, end_date]

            if driver_id:
                conditions.append("driver_id = %s")
                params.append(driver_id)

            cursor.execute(f"""
                SELECT id, driver_id, driver_name, total_amount, created_at, updated_at
                FROM orders
                WHERE {" AND ".join(conditions)}
                ORDER BY created_at
            """, params)
            return [dict(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()
