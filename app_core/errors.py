import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable

from flask import request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


# -----------------------------
# Error taxonomy
# -----------------------------

@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self):
        return {"field": self.field, "message": self.message}


class AppError(Exception):
    status = 500
    code = "INTERNAL_SERVER_ERROR"
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code}


class ValidationError(AppError):
    """Malformed, missing or out-of-range input. Carries one entry per bad field."""
    status = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, errors: Iterable[FieldError] = (), message: str | None = None):
        self.errors = list(errors)
        if message is None and len(self.errors) == 1:
            message = self.errors[0].message
        super().__init__(message)

    def to_dict(self):
        body = super().to_dict()
        body["errors"] = [e.to_dict() for e in self.errors]
        return body


class AuthError(AppError):
    status = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status = 403
    code = "FORBIDDEN"
    default_message = "Not authorized"


class NotFoundError(AppError):
    status = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(AppError):
    status = 400
    code = "DUPLICATE"
    default_message = "Duplicate record"


class ServerError(AppError):
    # message is shown to clients, keep internals in the log
    status = 500
    code = "INTERNAL_SERVER_ERROR"
    default_message = "Internal Server Error"


class FieldErrors:
    """Collects per-field problems so a request reports all of them at once."""

    def __init__(self):
        self.items: list[FieldError] = []

    def add(self, field: str, message: str):
        self.items.append(FieldError(field, message))

    def __bool__(self):
        return bool(self.items)

    def raise_if_any(self):
        if self.items:
            raise ValidationError(self.items)


# -----------------------------
# JSON error handlers
# -----------------------------

def install_json_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        return e.to_dict(), e.status

    @app.errorhandler(HTTPException)
    def handle_http(e: HTTPException):
        return {
            "message": e.description,
            "code": e.name.replace(" ", "_").upper(),
        }, e.code

    @app.errorhandler(Exception)
    def handle_generic(e: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return ServerError().to_dict(), 500


# -----------------------------
# Request helpers
# -----------------------------

def read_json() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError(message="Invalid or missing JSON body")
    if not isinstance(data, dict):
        raise ValidationError(message="JSON body must be an object")
    return data
