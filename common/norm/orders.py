"""Normalization of raw ``orders`` rows into :class:`CanonicalOrder`.

Deployments carry two overlapping column generations (``status`` vs
``order_status``, ``eta`` vs ``estimated_delivery_date`` and so on), sometimes
both on the same row. The precedence tables below list the newer column first.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from .amounts import to_float
from .dates import isoformat_utc, to_date_str, to_timestamp_str, utcnow
from . import CanonicalOrder, InvalidOrderRecord

LOG = logging.getLogger(__name__)

DEFAULT_STATUS = "PROCESSING"

STATUS_KEYS: tuple[str, ...] = ("status", "order_status")

# checked in order, first family with a substring hit wins
STATUS_FAMILIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("SHIPPED", ("SHIPPED", "SHIPPING")),
    ("DELIVERED", ("DELIVERED", "DELIVERY")),
    ("PROCESSING", ("PROCESSING", "PROCESS")),
    ("CANCELED", ("CANCELED", "CANCELLED")),
    ("RETURNED", ("RETURNED", "RETURN")),
    ("ON_HOLD", ("HOLD", "ON_HOLD")),
)

ETA_KEYS: tuple[str, ...] = ("eta", "estimated_delivery_date")
CARRIER_KEYS: tuple[str, ...] = ("carrier", "delivery_partner")
TRACKING_KEYS: tuple[str, ...] = ("tracking_number", "tracking_id", "tracking")
LAST_UPDATE_KEYS: tuple[str, ...] = ("last_update", "updated_at", "order_date", "created_at")
ISSUE_KEYS: tuple[str, ...] = ("issue_flag", "issue_type")
NOTES_KEYS: tuple[str, ...] = ("notes", "order_notes")

DESCRIPTIVE_KEYS: tuple[str, ...] = (
    "order_status",
    "customer_name",
    "customer_phone",
    "product_id",
    "product_name",
    "category",
    "delivery_partner",
    "delivery_address",
    "payment_method",
    "issue_type",
)

_TRUE_WORDS = {"true", "t", "yes", "y", "1"}
_FALSE_WORDS = {"false", "f", "no", "n", "0"}


def _is_absent(value: Any) -> bool:
    """``None``, blank strings, ``False`` and numeric zero all fall through to the next column."""
    if value is None or value is False:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (int, float, Decimal)) and value == 0:
        return True
    return False


def _text(value: Any) -> Optional[str]:
    if _is_absent(value):
        return None
    if value is True:
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class RawOrderRecord:
    """Read-only view over one raw row with typed, tolerant accessors.

    The text, date and timestamp accessors take one or more column names and
    use the first one whose value is present (see ``_is_absent``). ``flag`` and
    ``number`` read a single column where ``False`` and ``0`` are real values.
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = data

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def first(self, *keys: str) -> Any:
        for key in keys:
            value = self._data.get(key)
            if not _is_absent(value):
                return value
        return None

    def text(self, *keys: str) -> Optional[str]:
        return _text(self.first(*keys))

    def date(self, *keys: str) -> Optional[str]:
        return to_date_str(self.first(*keys))

    def timestamp(self, *keys: str) -> Optional[str]:
        return to_timestamp_str(self.first(*keys))

    def flag(self, key: str) -> Optional[bool]:
        value = self._data.get(key)
        if value is None:
            return None
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return bool(value)
        word = str(value).strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return None

    def number(self, key: str) -> Optional[float]:
        return to_float(self._data.get(key))


def classify_status(raw: Any) -> str:
    upper = str(raw).strip().upper()
    for status, needles in STATUS_FAMILIES:
        if any(needle in upper for needle in needles):
            return status
    return upper


def resolve_status(record: RawOrderRecord) -> tuple[str, bool]:
    """Return ``(status, defaulted)``; ``defaulted`` is set when no status column is present."""
    raw = record.first(*STATUS_KEYS)
    if raw is None:
        return DEFAULT_STATUS, True
    return classify_status(raw), False


def normalize_order(raw: Mapping[str, Any], now: Optional[datetime] = None) -> CanonicalOrder:
    record = RawOrderRecord(raw)

    order_id = record.text("order_id")
    if order_id is None:
        LOG.error("order row missing order_id", extra={"columns": record.keys()})
        raise InvalidOrderRecord("Invalid order data: missing order_id")

    status, defaulted = resolve_status(record)
    if defaulted:
        LOG.warning("no status column set, defaulting to %s", DEFAULT_STATUS, extra={"order_id": order_id})

    descriptive = {key: record.text(key) for key in DESCRIPTIVE_KEYS}

    last_update = record.timestamp(*LAST_UPDATE_KEYS)
    if last_update is None:
        last_update = isoformat_utc(now or utcnow())

    return CanonicalOrder(
        order_id=order_id,
        status=status,
        eta=record.date(*ETA_KEYS),
        carrier=record.text(*CARRIER_KEYS),
        tracking_number=record.text(*TRACKING_KEYS),
        last_update=last_update,
        issue_flag=record.text(*ISSUE_KEYS),
        notes=record.text(*NOTES_KEYS),
        estimated_delivery_date=record.date("estimated_delivery_date"),
        order_date=record.timestamp("order_date"),
        created_at=record.timestamp("created_at"),
        return_eligible=record.flag("return_eligible"),
        refund_amount=record.number("refund_amount"),
        **descriptive,
    )
