import pytest
from enrollment.core import messages as msg
from enrollment.core.validators import (
    digits_only,
    format_emirates_id,
    is_sequential_pin,
    normalize_phone,
    pin_rules,
    validate_contact,
    validate_email,
    validate_emirates_id,
    validate_full_name,
    validate_gender,
    validate_identity,
    validate_otp_code,
    validate_phone,
    validate_pin,
    validate_pin_shape,
    validate_pin_strength,
)


@pytest.mark.parametrize("raw,expected", [
    ("784199012345671", "784-1990-1234567-1"),
    ("784-1990-1234567-1", "784-1990-1234567-1"),
    ("784 1990 1234567 1", "784-1990-1234567-1"),
    ("7841990", "784-1990"),
    ("784", "784"),
    ("78419901234567199", "784-1990-1234567-1"),  # capped at 15 digits
    ("", ""),
    (None, ""),
])
def test_format_emirates_id(raw, expected):
    assert format_emirates_id(raw) == expected


def test_formatted_emirates_id_validates():
    assert validate_emirates_id(format_emirates_id("784199012345671")) is True


@pytest.mark.parametrize("value", [
    "784199012345671",      # unformatted
    "785-1990-1234567-1",   # wrong prefix
    "784-1990-123456-1",    # short middle group
    "784-1990-1234567",
    "784-1990-1234567-1\n",   # trailing newline
    "784-١٩٩٠-١٢٣٤٥٦٧-١",   # Arabic-Indic digits
    "",
    None,
])
def test_validate_emirates_id_rejects(value):
    assert validate_emirates_id(value) is False


def test_validate_full_name_bounds():
    assert validate_full_name("Ali Khan") is True
    assert validate_full_name(" A ") is False
    assert validate_full_name("A" * 200) is True
    assert validate_full_name("A" * 201) is False


@pytest.mark.parametrize("raw,expected", [
    ("+971 50 123 4567", "+971501234567"),
    ("00971501234567", "+971501234567"),
    ("971501234567", "+971501234567"),
    ("0501234567", "+971501234567"),
    ("050-123-4567", "+971501234567"),
    ("12345", "12345"),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_validate_phone():
    assert validate_phone("+971501234567") is True
    assert validate_phone("+97141234567") is True   # 8-digit landline
    assert validate_phone("+97150123") is False
    assert validate_phone("+9715012345678") is False
    assert validate_phone("0501234567") is False    # must be normalized first
    assert validate_phone("") is False


def test_validate_email():
    assert validate_email("ali@example.com") is True
    assert validate_email("ali@example") is False
    assert validate_email("ali example@x.com") is False
    assert validate_email("a" * 250 + "@x.com") is False
    assert validate_email(None) is False


def test_validate_gender():
    assert validate_gender("MALE") is True
    assert validate_gender("FEMALE") is True
    assert validate_gender("male") is False
    assert validate_gender("") is False


def test_pin_shape_and_strength():
    assert validate_pin_shape("113355") is True
    assert validate_pin_shape("11335") is False
    assert validate_pin_shape("11335a") is False

    assert validate_pin_strength("113355") is None
    assert validate_pin_strength("111111") == msg.PIN_ALL_SAME
    # Sequential patterns are left to the backend
    assert validate_pin_strength("123456") is None
    assert validate_pin_strength("12345") == msg.PIN_SHAPE_INVALID


def test_is_sequential_pin():
    assert is_sequential_pin("123456") is True
    assert is_sequential_pin("654321") is True
    assert is_sequential_pin("123457") is False
    assert is_sequential_pin("") is False


def test_validate_pin_mapping():
    assert validate_pin("482913") == {}
    assert validate_pin("000000") == {"pin": msg.PIN_ALL_SAME}


def test_pin_rules_report_only_when_satisfied():
    rules = {key: ok for key, _, ok in pin_rules("")}
    assert rules == {"length": False, "not_same": False, "not_sequential": False}

    rules = {key: ok for key, _, ok in pin_rules("123456")}
    assert rules == {"length": True, "not_same": True, "not_sequential": False}

    rules = {key: ok for key, _, ok in pin_rules("113355")}
    assert all(rules.values())


def test_validate_otp_code():
    assert validate_otp_code("482913") is True
    assert validate_otp_code("48291") is False
    assert validate_otp_code("48291a") is False


def test_aggregate_validators():
    assert validate_identity("784-1990-1234567-1", "Ali Khan") == {}
    errors = validate_identity("784", "A")
    assert errors == {"emiratesId": msg.EMIRATES_ID_INVALID, "fullName": msg.FULL_NAME_INVALID}
    assert validate_identity("784-1990-1234567-1", "A" * 201) == {"fullName": msg.FULL_NAME_TOO_LONG}

    assert validate_contact("+971501234567", "ali@example.com", "MALE") == {}
    errors = validate_contact("+97150123", "bad", "")
    assert set(errors) == {"phone", "email", "gender"}


@pytest.mark.parametrize("raw,expected", [
    ("Your code is 482-913", "482913"),
    ("٤٨٢٩١٣", ""),
    ("48٢9۱3", "4893"),
    ("113355\n", "113355"),
    (None, ""),
])
def test_digits_only_keeps_ascii_digits(raw, expected):
    assert digits_only(raw) == expected


def test_format_emirates_id_drops_arabic_indic_digits():
    formatted = format_emirates_id("784-١٩٩٠-١٢٣٤٥٦٧-١")
    assert formatted == "784"
    assert validate_emirates_id(formatted) is False


def test_trailing_newline_is_never_accepted():
    assert validate_pin_shape("11335\n") is False
    assert validate_pin_shape("113355\n") is False
    assert validate_otp_code("48291\n") is False
    assert validate_otp_code("482913\n") is False
    assert validate_phone("+971501234567\n") is False
    assert validate_email("ali@example.com\n") is False
    assert validate_pin("11335\n") == {"pin": msg.PIN_SHAPE_INVALID}


def test_non_ascii_digits_are_rejected():
    assert validate_pin_shape("١١٣٣٥٥") is False
    assert validate_otp_code("٤٨٢٩١٣") is False
    assert validate_otp_code("۴۸۲۹۱۳") is False
    assert validate_phone("+971٥٠١٢٣٤٥٦٧") is False


def test_identity_name_checks_follow_full_name_bounds():
    assert validate_identity("784-1990-1234567-1", "  A  ") == {"fullName": msg.FULL_NAME_INVALID}
    assert validate_identity("784-1990-1234567-1", "  " + "A" * 200 + "  ") == {}
    assert validate_identity("784-1990-1234567-1", None) == {"fullName": msg.FULL_NAME_INVALID}
