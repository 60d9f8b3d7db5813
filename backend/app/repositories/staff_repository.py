"""
Staff Repository - drivers and waiters

Both tables share the same shape (name, phone, is_active).
"""
from typing import Any, Dict, List, Optional, Type, Union

from app.domain.staff import Driver, Waiter
from app.core.database import get_db_connection_dict


StaffModel = Union[Driver, Waiter]

STAFF_TABLES: Dict[str, Type[StaffModel]] = {
    'drivers': Driver,
    'waiters': Waiter,
}


class StaffRepository:
    """
    Repository for one staff table

    Usage:
        drivers = StaffRepository('drivers')
        waiters = StaffRepository('waiters')
    """

    def __init__(self, table: str):
        if table not in STAFF_TABLES:
            raise ValueError(f"Unknown staff table: {table}")
        self.table = table
        self.model = STAFF_TABLES[table]

    def find_all(self, active_only: bool = False) -> List[StaffModel]:
        where_clause = "WHERE is_active = true" if active_only else ""

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT id, name, phone, is_active, created_at
                FROM {self.table}
                {where_clause}
                ORDER BY name
            """)
            return [self.model(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, staff_id: str) -> Optional[StaffModel]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT id, name, phone, is_active, created_at
                FROM {self.table}
                WHERE id = %s
            """, (staff_id,))
            row = cursor.fetchone()
            return self.model(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: Dict[str, Any]) -> StaffModel:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO {self.table} (name, phone, is_active)
                VALUES (%s, %s, %s)
                RETURNING id, name, phone, is_active, created_at
            """, (data['name'], data.get('phone'), data.get('is_active', True)))
            row = cursor.fetchone()
            conn.commit()
            return self.model(**dict(row))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
