"""
Table Order Repository - table_orders and table_order_items

Table orders ("comandas") are opened on a table, collect items that the
kitchen tracks one by one, and are closed as paid or cancelled.
"""
from typing import Any, Dict, List, Optional, Sequence

from app.domain.table import TableOrder, TableOrderItem
from app.core.database import get_db_connection_dict


TABLE_ORDER_COLUMNS = """
    o.id, o.table_id, o.status, o.customer_count, o.waiter_id, o.waiter_name,
    o.subtotal, o.discount, o.discount_type, o.service_fee_enabled,
    o.service_fee_percentage, o.total_amount, o.payment_method, o.notes,
    o.opened_at, o.closed_at, o.created_at, o.updated_at
"""

ITEM_COLUMNS = """
    id, table_order_id, product_id, product_name, quantity, unit_price,
    observation, status, ordered_at, delivered_at, created_at
"""


class TableOrderRepository:
    """
    Repository for table orders and their items

    Orders are returned with items loaded in one extra query per call.
    """

    @staticmethod
    def _attach_items(cursor, order_rows: Sequence[dict]) -> List[TableOrder]:
        if not order_rows:
            return []

        order_ids = [row['id'] for row in order_rows]
        cursor.execute(f"""
            SELECT {ITEM_COLUMNS}
            FROM table_order_items
            WHERE table_order_id = ANY(%s)
            ORDER BY ordered_at
        """, (order_ids,))

        items_by_order: Dict[int, List[TableOrderItem]] = {}
        for item in cursor.fetchall():
            items_by_order.setdefault(item['table_order_id'], []).append(TableOrderItem(**dict(item)))

        return [
            TableOrder(**{**dict(row), 'items': items_by_order.get(row['id'], [])})
            for row in order_rows
        ]

    # ============================================
    # Orders
    # ============================================

    def find_by_id(self, order_id: int) -> Optional[TableOrder]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TABLE_ORDER_COLUMNS}, t.number AS table_number, t.name AS table_name
                FROM table_orders o
                LEFT JOIN tables t ON o.table_id = t.id
                WHERE o.id = %s
            """, (order_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._attach_items(cursor, [row])[0]

        finally:
            cursor.close()
            conn.close()

    def find_open_by_table(self, table_id: str) -> List[TableOrder]:
        """
        Open and bill-requested orders of one table, newest first

        A table accumulates one order per round sent to the kitchen.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TABLE_ORDER_COLUMNS}, t.number AS table_number, t.name AS table_name
                FROM table_orders o
                LEFT JOIN tables t ON o.table_id = t.id
                WHERE o.table_id = %s AND o.status IN ('open', 'requesting_bill')
                ORDER BY o.opened_at DESC
            """, (table_id,))
            return self._attach_items(cursor, cursor.fetchall())

        finally:
            cursor.close()
            conn.close()

    def find_all(self, statuses: Optional[Sequence[str]] = None, limit: int = 200) -> List[TableOrder]:
        """Table orders with table info and items, newest first"""
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
                SELECT {TABLE_ORDER_COLUMNS}, t.number AS table_number, t.name AS table_name
                FROM table_orders o
                LEFT JOIN tables t ON o.table_id = t.id
                WHERE {where_clause}
                ORDER BY COALESCE(o.opened_at, o.created_at) DESC
                LIMIT %s
            """, params + [limit])
            return self._attach_items(cursor, cursor.fetchall())

        finally:
            cursor.close()
            conn.close()

    def find_closed(self, start_date: str, end_date: str) -> List[TableOrder]:
        """
        Paid or cancelled orders closed in [start_date, end_date], newest first
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TABLE_ORDER_COLUMNS}, t.number AS table_number, t.name AS table_name
                FROM table_orders o
                LEFT JOIN tables t ON o.table_id = t.id
                WHERE o.status IN ('paid', 'cancelled')
                  AND o.closed_at >= %s
                  AND o.closed_at <= %s
                ORDER BY o.closed_at DESC
            """, (start_date, end_date))
            return self._attach_items(cursor, cursor.fetchall())

        finally:
            cursor.close()
            conn.close()

    def find_closed_for_report(self, waiter_id: str, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        """
        Closed or paid orders of one waiter created in [start_date, end_date]

        Returns:
            Rows with id, waiter_id, waiter_name, total_amount, opened_at, closed_at, updated_at
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, waiter_id, waiter_name, total_amount, opened_at, closed_at, updated_at
                FROM table_orders
                WHERE waiter_id = %s
                  AND status IN ('closed', 'paid')
                  AND created_at >= %s
                  AND created_at <= %s
                ORDER BY created_at DESC
            """, (waiter_id, start_date, end_date))
            return [dict(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def create(self, data: Dict[str, Any]) -> TableOrder:
        """
        Insert an open table order

        Args:
            data: table_id plus optional customer_count, waiter_id, waiter_name,
                  discount, discount_type, service_fee_enabled, service_fee_percentage
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO table_orders AS o (
                    table_id, status, customer_count, waiter_id, waiter_name,
                    subtotal, discount, discount_type,
                    service_fee_enabled, service_fee_percentage, total_amount, opened_at
                )
                VALUES (%s, 'open', %s, %s, %s, 0, %s, %s, %s, %s, 0, NOW())
                RETURNING {TABLE_ORDER_COLUMNS}
            """, (
                data['table_id'],
                data.get('customer_count', 1),
                data.get('waiter_id'),
                data.get('waiter_name'),
                data.get('discount', 0),
                data.get('discount_type', 'value'),
                data.get('service_fee_enabled', True),
                data.get('service_fee_percentage', 10),
            ))
            row = cursor.fetchone()
            conn.commit()
            return TableOrder(**dict(row))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, order_id: int, changes: Dict[str, Any]) -> Optional[TableOrder]:
        """
        Update table order columns

        Returns:
            Updated TableOrder (without items) or None if not found
        """
        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [order_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE table_orders AS o
                SET {assignments}, updated_at = NOW()
                WHERE o.id = %s
                RETURNING {TABLE_ORDER_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return TableOrder(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    # ============================================
    # Items
    # ============================================

    def find_items(self, order_id: int) -> List[TableOrderItem]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ITEM_COLUMNS}
                FROM table_order_items
                WHERE table_order_id = %s
                ORDER BY ordered_at
            """, (order_id,))
            return [TableOrderItem(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def add_item(self, order_id: int, data: Dict[str, Any]) -> TableOrderItem:
        """Insert a pending item, stamped with ordered_at = NOW()"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO table_order_items (
                    table_order_id, product_id, product_name, quantity,
                    unit_price, observation, status, ordered_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, 'pending', NOW())
                RETURNING {ITEM_COLUMNS}
            """, (
                order_id, data.get('product_id'), data['product_name'],
                data['quantity'], data['unit_price'], data.get('observation')
            ))
            row = cursor.fetchone()
            conn.commit()
            return TableOrderItem(**dict(row))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update_item(self, item_id: str, changes: Dict[str, Any]) -> Optional[TableOrderItem]:
        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [item_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE table_order_items
                SET {assignments}
                WHERE id = %s
                RETURNING {ITEM_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return TableOrderItem(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update_items_status(self, item_ids: Sequence[str], status: str) -> int:
        """
        Set the status of several items at once (delivered_at on delivery)

        Returns:
            Number of rows updated
        """
        if not item_ids:
            return 0

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if status == 'delivered':
                cursor.execute("""
                    UPDATE table_order_items
                    SET status = %s, delivered_at = NOW()
                    WHERE id = ANY(%s)
                """, (status, list(item_ids)))
            else:
                cursor.execute("""
                    UPDATE table_order_items
                    SET status = %s
                    WHERE id = ANY(%s)
                """, (status, list(item_ids)))
            updated = cursor.rowcount
            conn.commit()
            return updated

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete_item(self, item_id: str) -> Optional[int]:
        """
        Remove an item

        Returns:
            The parent table_order_id, or None if the item did not exist
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM table_order_items
                WHERE id = %s
                RETURNING table_order_id
            """, (item_id,))
            row = cursor.fetchone()
            conn.commit()
            return row['table_order_id'] if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
