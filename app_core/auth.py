from flask import Blueprint

from .config import get_services
from .errors import read_json
from .schemas import Credentials, Registration
from .session_utils import current_user, require_auth

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register():
    registration = Registration.from_json(read_json())
    result = get_services().issuer.register(registration)
    return result.to_dict("User registered successfully"), 201


@auth_bp.post("/login")
def login():
    credentials = Credentials.from_json(read_json())
    result = get_services().issuer.login(credentials)
    return result.to_dict("Login successful")


@auth_bp.get("/me")
@require_auth
def me():
    return current_user().to_public()
