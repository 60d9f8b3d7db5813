"""
Coupon Repository - Data Access Layer for discount coupons
"""
from typing import Any, Dict, List, Optional

from app.domain.store import Coupon
from app.core.database import get_db_connection_dict


COUPON_COLUMNS = """
    id, code, discount_type, discount_value, min_order_value, max_uses,
    current_uses, is_active, expires_at, created_at
"""


class CouponRepository:

    def find_all(self) -> List[Coupon]:
        """All coupons, newest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {COUPON_COLUMNS} FROM coupons ORDER BY created_at DESC")
            return [Coupon(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_code(self, code: str) -> Optional[Coupon]:
        """
        Find a coupon by code (case-insensitive, codes are stored upper-cased)

        Args:
            code: Code typed by the customer

        Returns:
            Coupon or None
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {COUPON_COLUMNS}
                FROM coupons
                WHERE code = %s
            """, (code.strip().upper(),))
            row = cursor.fetchone()
            return Coupon(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: Dict[str, Any]) -> Coupon:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO coupons (
                    code, discount_type, discount_value, min_order_value,
                    max_uses, current_uses, is_active, expires_at
                )
                VALUES (%s, %s, %s, %s, %s, 0, %s, %s)
                RETURNING {COUPON_COLUMNS}
            """, (
                data['code'], data['discount_type'], data['discount_value'],
                data.get('min_order_value', 0), data.get('max_uses'),
                data.get('is_active', True), data.get('expires_at')
            ))
            row = cursor.fetchone()
            conn.commit()
            return Coupon(**dict(row))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, coupon_id: str, changes: Dict[str, Any]) -> Optional[Coupon]:
        assignments = ", ".join(f"{column} = %s" for column in changes)
        params = list(changes.values()) + [coupon_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE coupons SET {assignments}
                WHERE id = %s
                RETURNING {COUPON_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return Coupon(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, coupon_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM coupons WHERE id = %s RETURNING id", (coupon_id,))
            deleted = cursor.fetchone() is not None
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def increment_uses(self, coupon_id: str) -> None:
        """Count one more redemption"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE coupons SET current_uses = current_uses + 1
                WHERE id = %s
            """, (coupon_id,))
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
