from __future__ import annotations
from functools import wraps
from flask import request, g, current_app
from models import storage
from models.user import User
from utils.errors import UnauthorizedError
from utils.tokens import INVALID_ACCESS_TOKEN

ACCESS_COOKIE = "accessToken"


def _presented_access_token() -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip()
    return None


def jwt_required():
    """
    Resolve the caller from the accessToken cookie or a Bearer header and
    expose it as g.current_user.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _presented_access_token()
            if not token:
                raise UnauthorizedError("Unauthorized request")
            user_id = current_app.extensions["token_manager"].verify_access(token)

            user = storage.get(User, user_id)
            if not user:
                raise UnauthorizedError(INVALID_ACCESS_TOKEN)
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
