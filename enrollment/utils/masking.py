"""
Irreversible masking helpers for log lines and admin views.
Never use these for storage.
"""
import re
from typing import Optional


def mask_email(email: Optional[str]) -> str:
    """j***@example.com"""
    if not email or "@" not in email:
        return "***"
    at = email.index("@")
    if at <= 1:
        return "***" + email[at:]
    return email[0] + "***" + email[at:]


def mask_phone(phone: Optional[str]) -> str:
    """+971****4567"""
    if not phone or len(phone) < 6:
        return "***"
    return phone[:4] + "****" + phone[-4:]


def mask_emirates_id(eid: Optional[str]) -> str:
    """784-****-*******-1"""
    if not eid or len(eid) < 5:
        return "***"
    return eid[:4] + "****-*******-" + eid[-1]


def mask_name(name: Optional[str]) -> str:
    """Ali K***"""
    if not name or len(name.strip()) < 2:
        return "***"
    parts = re.split(r"\s+", name.strip())
    if len(parts) == 1:
        return parts[0][0] + "***"
    return f"{parts[0]} {parts[1][0]}***"


def mask_id(value: Optional[str]) -> str:
    # opaque backend identifiers: keep a short prefix for correlation
    if not value or len(value) < 8:
        return "***"
    return value[:8] + "-****"
