"""
Table Repository - Data Access Layer for dining room tables
"""
from typing import Any, Dict, List, Optional

from app.domain.table import Table, TableOrder, TableOrderItem, TableWithOrder
from app.core.database import get_db_connection_dict


TABLE_COLUMNS = "id, number, name, capacity, status, current_order_id, created_at, updated_at"


class TableRepository:
    """Tables CRUD and the PDV overview"""

    def find_all(self) -> List[Table]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {TABLE_COLUMNS} FROM tables ORDER BY number")
            return [Table(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, table_id: str) -> Optional[Table]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {TABLE_COLUMNS} FROM tables WHERE id = %s", (table_id,))
            row = cursor.fetchone()
            return Table(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all_with_current_order(self) -> List[TableWithOrder]:
        """
        Every table with its current open order and that order's items

        Orders that are no longer open (paid / cancelled) are not attached even
        if current_order_id still points at them.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {TABLE_COLUMNS} FROM tables ORDER BY number")
            table_rows = cursor.fetchall()

            order_ids = [row['current_order_id'] for row in table_rows if row['current_order_id']]
            orders_by_id: Dict[int, TableOrder] = {}

            if order_ids:
                cursor.execute("""
                    SELECT *
                    FROM table_orders
                    WHERE id = ANY(%s) AND status IN ('open', 'requesting_bill')
                """, (order_ids,))
                order_rows = cursor.fetchall()

                cursor.execute("""
                    SELECT *
                    FROM table_order_items
                    WHERE table_order_id = ANY(%s)
                    ORDER BY ordered_at
                """, (order_ids,))
                items_by_order: Dict[int, List[TableOrderItem]] = {}
                for item in cursor.fetchall():
                    items_by_order.setdefault(item['table_order_id'], []).append(TableOrderItem(**dict(item)))

                for row in order_rows:
                    orders_by_id[row['id']] = TableOrder(**{**dict(row), 'items': items_by_order.get(row['id'], [])})

            return [
                TableWithOrder(**dict(row), current_order=orders_by_id.get(row['current_order_id']))
                for row in table_rows
            ]

        finally:
            cursor.close()
            conn.close()

    def create(self, number: int, name: Optional[str] = None, capacity: int = 4) -> Table:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO tables (number, name, capacity, status)
                VALUES (%s, %s, %s, 'available')
                RETURNING {TABLE_COLUMNS}
            """, (number, name, capacity))
            row = cursor.fetchone()
            conn.commit()
            return Table(**dict(row))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, table_id: str, changes: Dict[str, Any]) -> Optional[Table]:
        """
        Update table columns (status, current_order_id, name...)

        Returns:
            Updated Table or None if not found
        """
        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [table_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE tables
                SET {assignments}, updated_at = NOW()
                WHERE id = %s
                RETURNING {TABLE_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return Table(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, table_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM tables WHERE id = %s RETURNING id", (table_id,))
            deleted = cursor.fetchone() is not None
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
