"""Typed records built from request bodies and query strings.

Everything that reaches a component has gone through one of these, so the
components never see raw JSON. Field names in error messages are the API
(camelCase) names the client sends.
"""
import re
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Dict, Mapping, Union

from .errors import FieldErrors
from .security import MAX_PASSWORD_BYTES

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
GENRE_MAX = 50
MIN_RELEASE_YEAR = 1900
RATING_MIN, RATING_MAX = 0.0, 10.0

# API name -> Movie column
MOVIE_FIELDS = {
    "title": "title",
    "description": "description",
    "genre": "genre",
    "releaseYear": "release_year",
    "rating": "rating",
    "posterUrl": "poster_url",
}


class _Unset:
    """Marks a field that was absent from the request body."""

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()


def max_release_year() -> int:
    return date.today().year + 5


# -----------------------------
# Field validators
# -----------------------------

def _reject_unknown(data: Mapping[str, Any], allowed, errors: FieldErrors):
    for key in data:
        if key not in allowed:
            errors.add(key, f"Unknown field '{key}'")


def _text(value: Any, field: str, max_len: int | None, errors: FieldErrors, label: str, required: bool):
    if value is None:
        if required:
            errors.add(field, f"{label} is required")
        return None
    if not isinstance(value, str):
        errors.add(field, f"{label} must be a string")
        return None
    value = value.strip()
    if required and not value:
        errors.add(field, f"{label} is required")
        return None
    if max_len is not None and len(value) > max_len:
        errors.add(field, f"{label} must be less than {max_len} characters")
        return None
    return value


def _release_year(value: Any, errors: FieldErrors):
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        errors.add("releaseYear", "Release year must be an integer")
        return None
    top = max_release_year()
    if not (MIN_RELEASE_YEAR <= value <= top):
        errors.add("releaseYear", f"Release year must be between {MIN_RELEASE_YEAR} and {top}")
        return None
    return value


def _rating(value: Any, errors: FieldErrors):
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            errors.add("rating", "Rating must be a number")
            return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.add("rating", "Rating must be a number")
        return None
    if not (RATING_MIN <= value <= RATING_MAX):
        errors.add("rating", "Rating must be between 0 and 10")
        return None
    return float(value)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# -----------------------------
# Movies
# -----------------------------

@dataclass(frozen=True)
class MovieInput:
    title: str
    description: str
    genre: str | None = None
    release_year: int | None = None
    rating: float = 0.0
    poster_url: str | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "MovieInput":
        errors = FieldErrors()
        _reject_unknown(data, MOVIE_FIELDS, errors)

        title = _text(data.get("title"), "title", TITLE_MAX, errors, "Title", required=True)
        description = _text(data.get("description"), "description", DESCRIPTION_MAX, errors, "Description", required=True)

        # blank optionals are simply not stored on create
        genre = None
        if not _blank(data.get("genre")):
            genre = _text(data["genre"], "genre", GENRE_MAX, errors, "Genre", required=False)
        release_year = None
        if not _blank(data.get("releaseYear")):
            release_year = _release_year(data["releaseYear"], errors)
        rating = 0.0
        if not _blank(data.get("rating")):
            rating = _rating(data["rating"], errors)
        poster_url = None
        if not _blank(data.get("posterUrl")):
            poster_url = _text(data["posterUrl"], "posterUrl", None, errors, "Poster URL", required=False)

        errors.raise_if_any()
        return cls(
            title=title,
            description=description,
            genre=genre,
            release_year=release_year,
            rating=rating,
            poster_url=poster_url,
        )

    def columns(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class MoviePatch:
    """Partial update. UNSET means the field was not in the body and stays untouched."""

    title: Union[str, _Unset] = UNSET
    description: Union[str, _Unset] = UNSET
    genre: Union[str, None, _Unset] = UNSET
    release_year: Union[int, None, _Unset] = UNSET
    rating: Union[float, _Unset] = UNSET
    poster_url: Union[str, None, _Unset] = UNSET

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "MoviePatch":
        errors = FieldErrors()
        _reject_unknown(data, MOVIE_FIELDS, errors)
        values = {}

        if "title" in data:
            values["title"] = _text(data["title"], "title", TITLE_MAX, errors, "Title", required=True)
        if "description" in data:
            values["description"] = _text(data["description"], "description", DESCRIPTION_MAX, errors, "Description", required=True)
        if "genre" in data:
            values["genre"] = _text(data["genre"], "genre", GENRE_MAX, errors, "Genre", required=False)
        if "releaseYear" in data:
            raw = data["releaseYear"]
            values["release_year"] = None if raw is None else _release_year(raw, errors)
        if "rating" in data:
            raw = data["rating"]
            values["rating"] = 0.0 if raw is None else _rating(raw, errors)
        if "posterUrl" in data:
            values["poster_url"] = _text(data["posterUrl"], "posterUrl", None, errors, "Poster URL", required=False)

        errors.raise_if_any()
        return cls(**values)

    def changes(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


# -----------------------------
# Accounts
# -----------------------------

@dataclass(frozen=True)
class Registration:
    username: str
    email: str
    password: str

    def __repr__(self):
        return f"Registration(username={self.username!r}, email={self.email!r}, password=***)"

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Registration":
        errors = FieldErrors()
        _reject_unknown(data, {"username", "email", "password"}, errors)

        username = data.get("username")
        if not isinstance(username, str) or not username.strip():
            errors.add("username", "Username is required")
        elif not USERNAME_RE.match(username.strip()):
            errors.add("username", "Username must be 3-30 letters, digits, '_', '.' or '-'")

        email = data.get("email")
        if not isinstance(email, str) or not email.strip():
            errors.add("email", "Email is required")
        elif len(email.strip()) > 254 or not EMAIL_RE.match(email.strip()):
            errors.add("email", "Please enter a valid email")

        password = data.get("password")
        if not isinstance(password, str) or not password:
            errors.add("password", "Password is required")
        elif len(password) < 6:
            errors.add("password", "Password must be at least 6 characters")
        elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            errors.add("password", f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        errors.raise_if_any()
        return cls(username=username.strip(), email=email.strip().lower(), password=password)


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str

    def __repr__(self):
        return f"Credentials(email={self.email!r}, password=***)"

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Credentials":
        errors = FieldErrors()
        email = data.get("email")
        if not isinstance(email, str) or not email.strip():
            errors.add("email", "Email is required")
        password = data.get("password")
        # an empty password is a failed login, not malformed input
        if not isinstance(password, str):
            errors.add("password", "Password is required")
        errors.raise_if_any()
        return cls(email=email.strip().lower(), password=password)


# -----------------------------
# Listing
# -----------------------------

SORT_FIELDS = (
    "title", "description", "genre", "releaseYear", "rating", "posterUrl",
    "uploadedBy", "uploadedAt", "createdAt", "updatedAt",
)
SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class ListParams:
    page: int = 1
    limit: int = 10
    search: str | None = None
    sort_by: str = "uploadedAt"
    sort_order: str = "desc"
    owner_id: str | None = None

    @classmethod
    def from_args(cls, args: Mapping[str, str], default_limit: int, max_limit: int,
                  allow_search: bool = True, owner_id: str | None = None) -> "ListParams":
        errors = FieldErrors()
        page, limit = 1, default_limit
        try:
            page = max(int(args.get("page", 1)), 1)
        except (TypeError, ValueError):
            errors.add("page", "page must be an integer")
        try:
            limit = max(min(int(args.get("limit", default_limit)), max_limit), 1)
        except (TypeError, ValueError):
            errors.add("limit", "limit must be an integer")

        sort_by = args.get("sortBy") or "uploadedAt"
        if sort_by not in SORT_FIELDS:
            errors.add("sortBy", f"sortBy must be one of {list(SORT_FIELDS)}")
        sort_order = (args.get("sortOrder") or "desc").lower()
        if sort_order not in SORT_ORDERS:
            errors.add("sortOrder", "sortOrder must be 'asc' or 'desc'")

        errors.raise_if_any()
        search = (args.get("search") or "").strip() if allow_search else ""
        return cls(
            page=page,
            limit=limit,
            search=search or None,
            sort_by=sort_by,
            sort_order=sort_order,
            owner_id=owner_id,
        )

