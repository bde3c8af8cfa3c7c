import logging
from functools import wraps

import jwt
from flask import g, request

from models import db, User
from .config import Settings, get_services
from .errors import AuthError
from .security import decode_token

logger = logging.getLogger(__name__)


class AccessGuard:
    """Resolves a bearer token to a stored user. Read-only."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def authenticate(self, raw_token: str | None) -> User:
        if not raw_token:
            raise AuthError("Missing token")
        try:
            payload = decode_token(raw_token, self.settings.jwt_secret, self.settings.jwt_algorithm)
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected token: {e}")
            raise AuthError("Invalid or expired token")

        user = db.session.get(User, payload["sub"])
        if user is None:
            raise AuthError("User not found")
        return user


def bearer_token(header: str | None) -> str | None:
    parts = (header or "").split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def require_auth(fn):
    """
    Require `Authorization: Bearer <token>` and expose the resolved user
    through current_user() for the wrapped view.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = bearer_token(request.headers.get("Authorization"))
        g.current_user = get_services().guard.authenticate(token)
        return fn(*args, **kwargs)
    return wrapper


def current_user() -> User:
    user = g.get("current_user")
    if user is None:
        raise AuthError("Authentication required")
    return user
