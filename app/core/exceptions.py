# app/core/exceptions.py
from typing import Iterable, Optional


class OrderError(Exception):
    """
    Base class for order workflow failures.
    `reason` is a stable machine-readable code, `message` is shown to the user.
    """
    status_code = 400
    draft = None  # set by submit_order to the FAILED draft

    def __init__(self, reason: str, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"reason": self.reason, "message": self.message}


class OrderValidationError(OrderError):
    """Raised before any database work when a draft breaks a business rule."""


class DuplicateProductError(OrderValidationError):
    def __init__(self, ads_id: str):
        self.ads_id = ads_id
        super().__init__("DUPLICATE_PRODUCT", f"Product {ads_id} is already in the order")


class OrderConflictError(OrderError):
    """Raised from inside the order transaction; the transaction is rolled back."""
    status_code = 409

    def __init__(self, reason: str, message: str, ads_ids: Optional[Iterable[str]] = None):
        super().__init__(reason, message)
        self.ads_ids = list(ads_ids or [])

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.ads_ids:
            data["ads_ids"] = self.ads_ids
        return data
