import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

def normalize_amount(raw: str) -> Optional[Decimal]:
    if not raw:
        return None
    s = raw.strip().lstrip("$").strip()
    if s.count(",") == 1 and "." not in s:
        s = s.replace(" ", "").replace(",", ".")
    else:
        s = s.replace(",", "")
    lower = s.lower()
    for word in ("dollars", "usd"):
        if lower.endswith(word):
            s = s[: -len(word)].strip()
            lower = s.lower()
    try:
        return Decimal(s)
    except InvalidOperation:
        return None


def to_float(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        value = float(raw)
        return value if math.isfinite(value) else None
    if isinstance(raw, str):
        amount = normalize_amount(raw)
        if amount is None or not amount.is_finite():
            return None
        return float(amount)
    return None
