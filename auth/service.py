"""
Core identity logic.

This module turns an incoming cookie value into a user id. Currently the id is
carried in an HMAC-signed cookie; it can be extended to check a session store
or an external identity provider.
"""

import hmac
import logging
from typing import Optional, Tuple

from .utils import new_user_id, sign

logger = logging.getLogger(__name__)


def parse_signed_value(value: str, secret: str) -> Optional[str]:
    """
    Validate a `<user_id>:<signature>` cookie value.

    Returns:
        Optional[str]: The user id, or None if the format or signature is wrong.
    """
    user_id, sep, signature = value.partition(":")
    if not sep or not user_id:
        return None
    if not hmac.compare_digest(signature, sign(user_id, secret)):
        return None
    return user_id


def resolve_user(cookie_value: Optional[str], secret: str) -> Tuple[str, bool]:
    """
    Resolve the user for a request.

    Args:
        cookie_value (Optional[str]): Raw `UserID` cookie, if any.
        secret (str): Signing key.

    Returns:
        Tuple[str, bool]: (user_id, issued). `issued` is True when a new id was
        generated because the cookie was missing or failed verification.
    """
    if cookie_value:
        user_id = parse_signed_value(cookie_value, secret)
        if user_id is not None:
            return user_id, False
        logger.info("Rejected UserID cookie with invalid signature, issuing a new id")
    return new_user_id(), True
