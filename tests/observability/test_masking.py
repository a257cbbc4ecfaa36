from enrollment.utils.masking import mask_email, mask_emirates_id, mask_id, mask_name, mask_phone


def test_masking_helpers():
    assert mask_email("ali@example.com") == "a***@example.com"
    assert mask_email("a@example.com") == "***@example.com"
    assert mask_email("nope") == "***"
    assert mask_phone("+971501234567") == "+971****4567"
    assert mask_phone("123") == "***"
    assert mask_emirates_id("784-1990-1234567-1") == "784-****-*******-1"
    assert mask_name("Ali Khan") == "Ali K***"
    assert mask_name("Ali") == "A***"
    assert mask_id("0123456789abcdef") == "01234567-****"
    assert mask_id("u1") == "***"
    assert mask_name(None) == "***"
