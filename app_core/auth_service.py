import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db, User
from .config import Settings
from .errors import AuthError, FieldErrors, ServerError, ValidationError
from .schemas import Credentials, Registration
from .security import check_password, dummy_hash, encode_token, hash_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User

    def to_dict(self, message: str):
        return {"message": message, "token": self.token, "user": self.user.to_public()}


class SessionIssuer:
    """Registers users, checks credentials and hands out signed bearer tokens."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def issue_token(self, user: User) -> str:
        return encode_token(
            user.id,
            self.settings.jwt_secret,
            self.settings.token_ttl,
            algorithm=self.settings.jwt_algorithm,
        )

    def register(self, registration: Registration) -> AuthResult:
        errors = FieldErrors()
        if User.query.filter_by(username=registration.username).first():
            errors.add("username", "Username is already taken")
        if User.query.filter_by(email=registration.email).first():
            errors.add("email", "Email is already registered")
        errors.raise_if_any()

        user = User(
            username=registration.username,
            email=registration.email,
            password_hash=hash_password(registration.password, self.settings.bcrypt_rounds),
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            db.session.rollback()
            raise ValidationError(message="Username or email is already taken")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Register error")
            raise ServerError("Server error during registration") from e

        logger.info(f"New user registered: {user.username} ({user.id})")
        return AuthResult(token=self.issue_token(user), user=user)

    def login(self, credentials: Credentials) -> AuthResult:
        user = User.query.filter_by(email=credentials.email).first()
        hashed = user.password_hash if user else dummy_hash(self.settings.bcrypt_rounds)
        password_ok = check_password(credentials.password, hashed)
        if user is None or not password_ok:
            logger.info(f"Failed login for {credentials.email}")
            raise AuthError("Invalid credentials")

        logger.info(f"User logged in: {user.username} ({user.id})")
        return AuthResult(token=self.issue_token(user), user=user)
