"""
Domain exceptions raised by the service layer

Routers translate these into HTTP status codes; anything else bubbles up
as a 500.
"""
from typing import List, Optional


class ComandaError(Exception):
    """Base error for the service layer"""


class NotFoundError(ComandaError):
    """Requested record does not exist"""


class ValidationError(ComandaError):
    """Request is well formed but breaks a business rule"""


class CouponError(ValidationError):
    """Coupon missing, expired, exhausted or below its minimum order"""


class PartialUpdateError(ComandaError):
    """
    A multi-step write failed after some steps were already applied.

    Nothing is rolled back; `completed_steps` tells the caller what stuck.
    """

    def __init__(self, message: str, completed_steps: Optional[List[str]] = None):
        super().__init__(message)
        self.completed_steps = completed_steps or []
