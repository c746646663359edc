"""Tests for private key normalisation."""

from parlor.credentials import PEM_FOOTER, PEM_HEADER, describe_key, format_private_key

BODY = "MIIEvQIBADANBgkqhkiG9w0BAQEFAASC"


def test_none_and_blank_return_none():
    assert format_private_key(None) is None
    assert format_private_key("") is None
    assert format_private_key("   ") is None


def test_escaped_newlines_unescaped():
    raw = f"{PEM_HEADER}\\n{BODY}\\n{PEM_FOOTER}\\n"
    assert format_private_key(raw) == f"{PEM_HEADER}\n{BODY}\n{PEM_FOOTER}\n"


def test_double_escaped_newlines_unescaped():
    raw = f"{PEM_HEADER}\\\\n{BODY}\\\\n{PEM_FOOTER}"
    assert format_private_key(raw) == f"{PEM_HEADER}\n{BODY}\n{PEM_FOOTER}"


def test_surrounding_quotes_stripped():
    raw = f'"{PEM_HEADER}\\n{BODY}\\n{PEM_FOOTER}"'
    assert format_private_key(raw) == f"{PEM_HEADER}\n{BODY}\n{PEM_FOOTER}"


def test_single_quotes_stripped():
    raw = f"'{PEM_HEADER}\\n{BODY}\\n{PEM_FOOTER}'"
    assert format_private_key(raw) == f"{PEM_HEADER}\n{BODY}\n{PEM_FOOTER}"


def test_missing_armour_added():
    assert format_private_key(BODY) == f"{PEM_HEADER}\n{BODY}\n{PEM_FOOTER}"


def test_already_formatted_key_unchanged():
    key = f"{PEM_HEADER}\n{BODY}\n{PEM_FOOTER}"
    assert format_private_key(key) == key


def test_describe_key_never_contains_key_material():
    key = format_private_key(BODY)
    summary = describe_key(key)
    assert BODY not in summary
    assert "3-line" in summary
    assert "armoured=True" in summary


def test_describe_missing_and_single_line():
    assert describe_key(None) == "missing"
    assert describe_key("abc") == "single-line key, length 3"
