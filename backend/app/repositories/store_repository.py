"""
Store Repository - store_config and business_hours

There is one store_config row per deployment.
"""
from typing import Any, Dict, List, Optional

from app.domain.store import StoreConfig, BusinessHour
from app.core.database import get_db_connection_dict


STORE_CONFIG_COLUMNS = """
    id, name, is_open, address, phone_whatsapp, delivery_fee, delivery_fee_mode,
    min_order_value, delivery_time_min, delivery_time_max, pix_key, pix_key_type,
    logo_url, cover_url, primary_color, updated_at
"""


class StoreRepository:
    """Repository for store settings and opening hours"""

    def get_config(self) -> Optional[StoreConfig]:
        """Return the store configuration, or None when not set up yet"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {STORE_CONFIG_COLUMNS} FROM store_config LIMIT 1")
            row = cursor.fetchone()
            return StoreConfig(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def update_config(self, config_id: str, changes: Dict[str, Any]) -> Optional[StoreConfig]:
        """
        Update the given store_config columns

        Args:
            config_id: store_config.id
            changes: column -> new value (only set fields)

        Returns:
            Updated StoreConfig or None if the row does not exist
        """
        if not changes:
            return self.get_config()

        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [config_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE store_config
                SET {assignments}, updated_at = NOW()
                WHERE id = %s
                RETURNING {STORE_CONFIG_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return StoreConfig(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_business_hours(self) -> List[BusinessHour]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, day_of_week, open_time, close_time, is_active
                FROM business_hours
                ORDER BY day_of_week
            """)
            return [BusinessHour(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def update_business_hour(self, hour_id: str, changes: Dict[str, Any]) -> Optional[BusinessHour]:
        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [hour_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE business_hours
                SET {assignments}
                WHERE id = %s
                RETURNING id, day_of_week, open_time, close_time, is_active
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return BusinessHour(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def insert_business_hours(self, rows: List[Dict[str, Any]]) -> List[BusinessHour]:
        """Insert several business_hours rows in one transaction"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            created = []
            for row in rows:
                cursor.execute("""
                    INSERT INTO business_hours (day_of_week, open_time, close_time, is_active)
                    VALUES (%s, %s, %s, %s)
                    RETURNING id, day_of_week, open_time, close_time, is_active
                """, (row['day_of_week'], row['open_time'], row['close_time'], row['is_active']))
                created.append(BusinessHour(**dict(cursor.fetchone())))

            conn.commit()
            return created

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
