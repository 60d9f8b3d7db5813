"""
Kitchen Repository - the flat item feed behind the kitchen display

Table items (from open table orders) and delivery items (from delivery
orders still in the kitchen) come back from one UNION query as KitchenItem
models. Delivery items carry their order's status.
"""
from typing import List, Optional, Sequence

from app.domain.kitchen import KitchenItem
from app.core.database import get_db_connection_dict


DEFAULT_KITCHEN_STATUSES = ('pending', 'preparing', 'ready')


class KitchenRepository:

    def find_items(self, statuses: Optional[Sequence[str]] = None) -> List[KitchenItem]:
        """
        Kitchen items for both order types, oldest first

        Args:
            statuses: Item statuses to include (default: pending, preparing, ready)

        Returns:
            List of KitchenItem
        """
        statuses = list(statuses or DEFAULT_KITCHEN_STATUSES)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    i.id::text AS id,
                    i.table_order_id,
                    NULL::integer AS order_id,
                    i.product_id::text AS product_id,
                    i.product_name,
                    i.quantity,
                    i.observation,
                    i.unit_price,
                    COALESCE(i.status, 'pending') AS status,
                    COALESCE(i.ordered_at, now()) AS ordered_at,
                    i.delivered_at,
                    t.number AS table_number,
                    t.name AS table_name,
                    o.waiter_name,
                    'table' AS order_type,
                    NULL AS customer_name
                FROM table_order_items i
                JOIN table_orders o ON i.table_order_id = o.id
                LEFT JOIN tables t ON o.table_id = t.id
                WHERE o.status IN ('open', 'requesting_bill')
                  AND COALESCE(i.status, 'pending') = ANY(%s)

                UNION ALL

                SELECT
                    oi.id::text AS id,
                    NULL::integer AS table_order_id,
                    d.id AS order_id,
                    NULL AS product_id,
                    oi.product_name,
                    oi.quantity,
                    oi.observation,
                    oi.unit_price,
                    d.status,
                    d.created_at AS ordered_at,
                    NULL::timestamptz AS delivered_at,
                    NULL::integer AS table_number,
                    NULL AS table_name,
                    NULL AS waiter_name,
                    'delivery' AS order_type,
                    d.customer_name
                FROM order_items oi
                JOIN orders d ON oi.order_id = d.id
                WHERE d.status = ANY(%s)

                ORDER BY ordered_at ASC
            """, (statuses, statuses))

            return [KitchenItem(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_ready_table_items(self, waiter_name: Optional[str] = None) -> List[KitchenItem]:
        """
        Table items the kitchen marked ready, waiting for a waiter to serve

        Args:
            waiter_name: Only items of this waiter's orders
        """
        conditions = ["o.status IN ('open', 'requesting_bill')", "i.status = 'ready'"]
        params = []

        if waiter_name:
            conditions.append("o.waiter_name = %s")
            params.append(waiter_name)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT
                    i.id::text AS id,
                    i.table_order_id,
                    i.product_id::text AS product_id,
                    i.product_name,
                    i.quantity,
                    i.observation,
                    i.unit_price,
                    i.status,
                    COALESCE(i.ordered_at, now()) AS ordered_at,
                    i.delivered_at,
                    t.number AS table_number,
                    t.name AS table_name,
                    o.waiter_name,
                    'table' AS order_type
                FROM table_order_items i
                JOIN table_orders o ON i.table_order_id = o.id
                LEFT JOIN tables t ON o.table_id = t.id
                WHERE {" AND ".join(conditions)}
                ORDER BY ordered_at ASC
            """, params)

            return [KitchenItem(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()
