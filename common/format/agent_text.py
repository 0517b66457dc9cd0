from datetime import datetime
from typing import Optional

from common.norm import CanonicalOrder
from common.norm.dates import parse_timestamp


def _parse(value: str) -> datetime:
    dt = parse_timestamp(value)
    if dt is None:
        raise ValueError(f"unparsable date: {value!r}")
    return dt


def long_date(value: str) -> str:
    """``2025-12-28`` -> ``December 28, 2025``; the raw value if it cannot be parsed."""
    try:
        dt = _parse(value)
    except ValueError:
        return value
    return f"{dt:%B} {dt.day}, {dt.year}"


def long_datetime(value: str) -> str:
    """``2025-12-23T10:30:00Z`` -> ``December 23, 2025 at 10:30 AM`` (UTC)."""
    try:
        dt = _parse(value)
    except ValueError:
        return value
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%B} {dt.day}, {dt.year} at {hour}:{dt:%M} {meridiem}"


def _tracking_clause(order: CanonicalOrder) -> Optional[str]:
    carrier = order.carrier or order.delivery_partner
    if order.tracking_number:
        if carrier:
            return f"Tracking: {order.tracking_number} via {carrier}"
        return f"Tracking number: {order.tracking_number}"
    if carrier:
        return f"Carrier: {carrier}"
    return None


def format_order_for_agent(order: CanonicalOrder) -> str:
    parts: list[str] = [f"Order {order.order_id} is {order.status}"]

    if order.customer_name:
        parts.append(f"Customer: {order.customer_name}")
    if order.customer_phone:
        parts.append(f"Phone: {order.customer_phone}")

    if order.product_name:
        parts.append(f"Product: {order.product_name}")
    if order.product_id:
        parts.append(f"Product ID: {order.product_id}")
    if order.category:
        parts.append(f"Category: {order.category}")

    eta = order.eta or order.estimated_delivery_date
    if eta:
        parts.append(f"Estimated delivery: {long_date(eta)}")

    tracking = _tracking_clause(order)
    if tracking:
        parts.append(tracking)

    if order.delivery_address:
        parts.append(f"Delivery address: {order.delivery_address}")

    if order.payment_method:
        parts.append(f"Payment method: {order.payment_method}")

    if order.order_date:
        parts.append(f"Order date: {long_date(order.order_date)}")

    issue = order.issue_flag or order.issue_type
    if issue:
        parts.append(f"Issue: {issue}")

    if order.return_eligible is not None:
        parts.append(f"Return eligible: {'Yes' if order.return_eligible else 'No'}")

    if order.refund_amount is not None:
        parts.append(f"Refund amount: ${order.refund_amount:.2f}")

    if order.notes:
        parts.append(f"Notes: {order.notes}")

    parts.append(f"Last updated: {long_datetime(order.last_update)}")

    return ". ".join(parts) + "."
