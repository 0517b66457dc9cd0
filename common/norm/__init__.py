from pydantic import BaseModel
from typing import Any, Optional

ORDER_STATUSES: tuple[str, ...] = (
    "PROCESSING",
    "SHIPPED",
    "DELIVERED",
    "CANCELED",
    "RETURNED",
    "ON_HOLD",
)


class InvalidOrderRecord(ValueError):
    """A row came back from the data source but cannot be normalized."""


class CanonicalOrder(BaseModel):
    order_id: str
    # usually one of ORDER_STATUSES; unknown source statuses pass through upper-cased
    status: str
    eta: Optional[str] = None
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    last_update: str
    issue_flag: Optional[str] = None
    notes: Optional[str] = None

    order_status: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    category: Optional[str] = None
    estimated_delivery_date: Optional[str] = None
    delivery_partner: Optional[str] = None
    delivery_address: Optional[str] = None
    payment_method: Optional[str] = None
    order_date: Optional[str] = None
    created_at: Optional[str] = None
    issue_type: Optional[str] = None
    return_eligible: Optional[bool] = None
    refund_amount: Optional[float] = None

    def core_fields(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "order_id": self.order_id,
            "status": self.status,
            "eta": self.eta,
            "carrier": self.carrier,
            "tracking_number": self.tracking_number,
            "last_update": self.last_update,
        }
        if self.issue_flag:
            out["issue_flag"] = self.issue_flag
        if self.notes:
            out["notes"] = self.notes
        return out
