from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt
import jwt

MAX_PASSWORD_BYTES = 72  # bcrypt ignores/rejects anything longer


def hash_password(password: str, rounds: int) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def check_password(password: str, hashed: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, hashed.encode("ascii"))
    except ValueError:
        # corrupt stored hash
        return False


@lru_cache(maxsize=8)
def dummy_hash(rounds: int) -> str:
    """Hash compared against when the email is unknown, so both login paths cost the same."""
    return hash_password("not-a-real-password", rounds)


def encode_token(subject: str, secret: str, ttl: timedelta, algorithm: str = "HS256", now: datetime | None = None) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": int(issued.timestamp()),
        "exp": int((issued + ttl).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> dict:
    # raises jwt.InvalidTokenError (incl. ExpiredSignatureError) on any failure
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"require": ["sub", "exp", "iat"]},
    )
