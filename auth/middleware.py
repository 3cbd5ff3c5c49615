"""
Identity middleware.

Resolves the user of every request from the signed cookie, exposes it as
`request.state.user_id`, and sets the cookie on the response when a new id
had to be issued.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .config import COOKIE_MAX_AGE, COOKIE_NAME
from .service import resolve_user
from .utils import make_signed_value


class IdentityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, secret: str) -> None:
        super().__init__(app)
        self.secret = secret

    async def dispatch(self, request: Request, call_next):
        user_id, issued = resolve_user(request.cookies.get(COOKIE_NAME), self.secret)
        request.state.user_id = user_id
        response = await call_next(request)
        if issued:
            response.set_cookie(
                COOKIE_NAME,
                make_signed_value(user_id, self.secret),
                max_age=COOKIE_MAX_AGE,
                path="/",
                httponly=True,
            )
        return response
