from typing import Optional

from pharmasave.schemas.admin import IdDisplay

ADMIN_PREFIX = "AD"
PHARMACY_PREFIX = "PH"


def is_admin_id(value: Optional[str]) -> bool:
    return bool(value) and value.upper().startswith(ADMIN_PREFIX)


def is_pharmacy_id(value: Optional[str]) -> bool:
    return bool(value) and value.upper().startswith(PHARMACY_PREFIX)


def format_id_display(value: Optional[str]) -> IdDisplay:
    """Label a display id for the admin tables, e.g. ``AD0001`` -> ``Admin AD0001``."""
    if is_admin_id(value):
        return IdDisplay(text=f"Admin {value}", type="admin")
    if is_pharmacy_id(value):
        return IdDisplay(text=f"Pharmacy {value}", type="pharmacy")
    return IdDisplay(text=value or "N/A", type="unknown")
