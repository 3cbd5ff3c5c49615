"""
Utility functions for the auth module.
"""

import hashlib
import hmac
import secrets


def sign(user_id: str, secret: str) -> str:
    """Return the hex HMAC-SHA256 signature of `user_id` under `secret`."""
    return hmac.new(secret.encode("utf-8"), user_id.encode("utf-8"), hashlib.sha256).hexdigest()


def make_signed_value(user_id: str, secret: str) -> str:
    """Cookie value in the form `<user_id>:<signature>`."""
    return f"{user_id}:{sign(user_id, secret)}"


def new_user_id() -> str:
    """Random opaque user identifier."""
    return "U" + secrets.token_hex(12)
