"""
Unit tests for cookie-based identity (auth package).
"""

from auth.service import parse_signed_value, resolve_user
from auth.utils import make_signed_value, new_user_id

SECRET = "test-secret"


def test_signed_value_round_trip():
    value = make_signed_value("U123", SECRET)
    assert value.startswith("U123:")
    assert parse_signed_value(value, SECRET) == "U123"


def test_tampered_or_malformed_values_rejected():
    value = make_signed_value("U123", SECRET)
    assert parse_signed_value(value.replace("U123", "U999"), SECRET) is None
    assert parse_signed_value(value, "other-secret") is None
    assert parse_signed_value("no-separator", SECRET) is None
    assert parse_signed_value(":sig", SECRET) is None


def test_resolve_user_keeps_valid_cookie():
    assert resolve_user(make_signed_value("U123", SECRET), SECRET) == ("U123", False)


def test_resolve_user_issues_new_id():
    user_id, issued = resolve_user(None, SECRET)
    assert issued is True and user_id
    other, issued = resolve_user("U123:forged", SECRET)
    assert issued is True and other != "U123"


def test_new_user_ids_are_unique():
    assert len({new_user_id() for _ in range(100)}) == 100
