"""
FastAPI dependency functions for identity.

These can be used in routes with Depends() to obtain the current user id.
"""

from fastapi import HTTPException, Request, status


def get_user_id(request: Request) -> str:
    """
    Return the user id resolved by IdentityMiddleware, or "" if there is none.

    Anonymous use is allowed for creating links.
    """
    return getattr(request.state, "user_id", "") or ""


def require_user_id(request: Request) -> str:
    """
    Dependency for owner-scoped routes (listing, deletion).

    Raises:
        HTTPException: 401 if no user id could be resolved.
    """
    user_id = get_user_id(request)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    return user_id
