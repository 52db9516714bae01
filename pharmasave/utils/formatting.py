import random
import string
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from pharmasave.core.config import settings
from pharmasave.utils.timezone import epoch_millis

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")


def to_money(value: Optional[Number]) -> Decimal:
    """Round to cents, half up."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Optional[Number], currency: Optional[str] = None) -> str:
    """``EGP 1,234.50`` style rendering used in summaries and notifications."""
    currency = currency or settings.CURRENCY
    return f"{currency} {to_money(amount):,.2f}"


def format_percentage(value: Optional[Number]) -> str:
    """Signed, one decimal: ``+4.0%``, ``-15.0%``."""
    value = float(value or 0)
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"


def generate_transaction_reference(transaction_type: str) -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"MKT-{transaction_type.upper()}-{epoch_millis()}-{suffix}"


def short_timestamp() -> str:
    """Last six digits of the current epoch milliseconds, used in human references."""
    return str(epoch_millis())[-6:]


def mask_account_number(account_number: Optional[str]) -> str:
    if not account_number:
        return ""
    return f"*****{account_number[-4:]}"
