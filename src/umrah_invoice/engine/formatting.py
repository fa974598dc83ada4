"""Display helpers: currency strings and invoice numbers."""
import math
from datetime import datetime
from typing import Any, Optional


def format_currency(amount: Any, currency: str = 'SAR') -> str:
    """
    Render ``amount`` with thousands separators and exactly two decimals.

    Anything that is not a finite number renders as ``"0.00 <currency>"``.
    """
    if amount is None or amount == '' or isinstance(amount, bool):
        return f"0.00 {currency}"
    try:
        value = float(amount)
    except (TypeError, ValueError, OverflowError):
        return f"0.00 {currency}"
    if not math.isfinite(value):
        value = 0.0
    return f"{value:,.2f} {currency}"


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """
    Human-readable invoice number: ``INV-YYYYMMDD-xxxxxx``.

    The suffix is the last six digits of the millisecond timestamp, so two
    numbers generated within the same millisecond collide.
    """
    now = now or datetime.now()
    timestamp = str(int(now.timestamp() * 1000))[-6:]
    return f"INV-{now.strftime('%Y%m%d')}-{timestamp}"
