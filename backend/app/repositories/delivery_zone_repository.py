"""
Delivery Zone Repository - neighbourhood-based delivery fees
"""
from typing import Any, Dict, List, Optional

from app.domain.store import DeliveryZone
from app.core.database import get_db_connection_dict


ZONE_COLUMNS = "id, name, fee, min_order_value, is_active, sort_order, created_at, updated_at"


class DeliveryZoneRepository:

    def find_all(self, active_only: bool = False) -> List[DeliveryZone]:
        """
        Delivery zones ordered by sort_order

        Args:
            active_only: Only zones customers can pick at checkout
        """
        where_clause = "WHERE is_active = true" if active_only else ""

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ZONE_COLUMNS}
                FROM delivery_zones
                {where_clause}
                ORDER BY sort_order, name
            """)
            return [DeliveryZone(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, zone_id: str) -> Optional[DeliveryZone]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {ZONE_COLUMNS} FROM delivery_zones WHERE id = %s", (zone_id,))
            row = cursor.fetchone()
            return DeliveryZone(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: Dict[str, Any]) -> DeliveryZone:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO delivery_zones (name, fee, min_order_value, is_active, sort_order)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {ZONE_COLUMNS}
            """, (
                data['name'], data['fee'], data.get('min_order_value'),
                data.get('is_active', True), data.get('sort_order', 0)
            ))
            row = cursor.fetchone()
            conn.commit()
            return DeliveryZone(**dict(row))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, zone_id: str, changes: Dict[str, Any]) -> Optional[DeliveryZone]:
        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [zone_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE delivery_zones
                SET {assignments}, updated_at = NOW()
                WHERE id = %s
                RETURNING {ZONE_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return DeliveryZone(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, zone_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM delivery_zones WHERE id = %s RETURNING id", (zone_id,))
            deleted = cursor.fetchone() is not None
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
