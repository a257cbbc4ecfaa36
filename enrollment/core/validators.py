"""
Pure input validators and formatters for the enrollment wizard.

Nothing here raises: predicates return bool, aggregate validators return a
{field: message} mapping that is empty when the input is acceptable.
"""
import re
from typing import Dict, List, Optional, Tuple

from enrollment.core import messages as msg
from enrollment.settings import settings

OTP_LENGTH = settings.OTP_LENGTH
PIN_LENGTH = settings.PIN_LENGTH

EMIRATES_ID_RE = re.compile(r"784-[0-9]{4}-[0-9]{7}-[0-9]")
PHONE_RE = re.compile(r"\+971[0-9]{8,9}")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
DIGITS_RE = re.compile(r"[0-9]+")

# Separator positions (digit offsets) in 784-YYYY-NNNNNNN-C
EMIRATES_ID_GROUPS = (3, 7, 14, 15)

FULL_NAME_MIN = 2
FULL_NAME_MAX = 200
EMAIL_MAX = 254

GENDERS = ("MALE", "FEMALE")


def digits_only(raw: Optional[str]) -> str:
    """ASCII digits only; any other character, Arabic-Indic digits included, is dropped."""
    return re.sub(r"[^0-9]", "", raw or "")


def validate_emirates_id(value: Optional[str]) -> bool:
    return bool(value) and bool(EMIRATES_ID_RE.fullmatch(value))


def format_emirates_id(raw: Optional[str]) -> str:
    """
    Canonical display form as the user types: digits only, separators after
    offsets 3, 7 and 14, capped at 15 digits.

        "784199012345671"    -> "784-1990-1234567-1"
        "7841990"            -> "784-1990"
        "784-1990-1234567-1" -> "784-1990-1234567-1"
    """
    digits = digits_only(raw)
    parts = []
    start = 0
    for end in EMIRATES_ID_GROUPS:
        if len(digits) <= start:
            break
        parts.append(digits[start:end])
        start = end
    return "-".join(parts)


def validate_full_name(value: Optional[str]) -> bool:
    name = (value or "").strip()
    return FULL_NAME_MIN <= len(name) <= FULL_NAME_MAX


def normalize_phone(raw: Optional[str]) -> str:
    """
    Best-effort cleanup of a UAE phone number typed in common local shapes.

        "+971 50 123 4567" -> "+971501234567"
        "00971501234567"   -> "+971501234567"
        "0501234567"       -> "+971501234567"

    Anything it does not recognise is returned stripped of spacing only, so
    validate_phone() still rejects it.
    """
    text = re.sub(r"[\s\-().]", "", raw or "")
    if text.startswith("+"):
        return text
    if text.startswith("00971"):
        return "+" + text[2:]
    if text.startswith("971") and len(text) in (11, 12):
        return "+" + text
    if text.startswith("0") and len(text) in (9, 10):
        return "+971" + text[1:]
    return text


def validate_phone(value: Optional[str]) -> bool:
    return bool(value) and bool(PHONE_RE.fullmatch(value))


def validate_email(value: Optional[str]) -> bool:
    if not value or len(value) > EMAIL_MAX:
        return False
    return bool(EMAIL_RE.fullmatch(value))


def validate_gender(value: Optional[str]) -> bool:
    return (value or "") in GENDERS


def validate_pin_shape(digits: Optional[str]) -> bool:
    return bool(digits) and len(digits) == PIN_LENGTH and bool(DIGITS_RE.fullmatch(digits))


def _is_all_same(digits: str) -> bool:
    return len(set(digits)) == 1


def is_sequential_pin(digits: Optional[str]) -> bool:
    """
    Strictly ascending (123456) or strictly descending (654321) by one.
    Advisory only: the backend owns this rule and rejects such PINs itself.
    """
    digits = digits or ""
    if len(digits) < 2:
        return False
    steps = {ord(b) - ord(a) for a, b in zip(digits, digits[1:])}
    return steps == {1} or steps == {-1}


def validate_pin_strength(digits: Optional[str]) -> Optional[str]:
    """
    Returns the message of the first strength rule the PIN breaks, or None.
    Only shape and all-same are enforced locally; sequential patterns are
    reported by pin_rules() and rejected by the backend.
    """
    if not validate_pin_shape(digits):
        return msg.PIN_SHAPE_INVALID
    if _is_all_same(digits):
        return msg.PIN_ALL_SAME
    return None


def pin_rules(digits: Optional[str]) -> List[Tuple[str, str, bool]]:
    """
    Rule checklist for the create-PIN screen. Every rule is evaluated here;
    a rule is only reported satisfied when the entered digits satisfy it.
    """
    digits = digits or ""
    complete = validate_pin_shape(digits)
    return [
        ("length", f"Exactly {PIN_LENGTH} digits", complete),
        ("not_same", "Not all same digit", complete and not _is_all_same(digits)),
        ("not_sequential", "Not sequential (e.g., 123456)", complete and not is_sequential_pin(digits)),
    ]


def validate_otp_code(code: Optional[str]) -> bool:
    return bool(code) and len(code) == OTP_LENGTH and bool(DIGITS_RE.fullmatch(code))


def validate_identity(emirates_id: Optional[str], full_name: Optional[str]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not validate_emirates_id(emirates_id):
        errors["emiratesId"] = msg.EMIRATES_ID_INVALID
    if not validate_full_name(full_name):
        too_long = len((full_name or "").strip()) > FULL_NAME_MAX
        errors["fullName"] = msg.FULL_NAME_TOO_LONG if too_long else msg.FULL_NAME_INVALID
    return errors


def validate_contact(phone: Optional[str], email: Optional[str], gender: Optional[str]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not validate_phone(phone):
        errors["phone"] = msg.PHONE_INVALID
    if not validate_email(email):
        errors["email"] = msg.EMAIL_INVALID
    if not validate_gender(gender):
        errors["gender"] = msg.GENDER_REQUIRED
    return errors


def validate_pin(pin: Optional[str]) -> Dict[str, str]:
    reason = validate_pin_strength(pin)
    return {"pin": reason} if reason else {}
