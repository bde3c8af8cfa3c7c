import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    # naive UTC, SQLite does not keep tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


def isoformat(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat(timespec="milliseconds") + "Z"


class User(db.Model):  # account that owns movies
    __tablename__ = "users"
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    username = db.Column(db.String(30), nullable=False, unique=True)
    email = db.Column(db.String(254), nullable=False, unique=True)
    password_hash = db.Column(db.String(128), nullable=False)  # bcrypt, never serialized
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_public(self):
        return {"id": self.id, "username": self.username, "email": self.email}

    def __repr__(self):
        return f"<User {self.id} {self.username!r}>"


class Movie(db.Model):  # catalog entry
    __tablename__ = "movies"
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(1000), nullable=False)
    genre = db.Column(db.String(50))
    release_year = db.Column(db.Integer)
    rating = db.Column(db.Float, default=0.0, nullable=False)
    poster_url = db.Column(db.Text)
    uploaded_by = db.Column(db.String(32), db.ForeignKey("users.id"), nullable=False)
    uploaded_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = db.relationship("User", lazy="joined")  # username for display

    def __repr__(self):
        return f"<Movie {self.id} {self.title!r}>"


_movies = Movie.__table__
db.Index("ix_movies_title_description", _movies.c.title, _movies.c.description)
db.Index("ix_movies_uploaded_by", _movies.c.uploaded_by)
db.Index("ix_movies_uploaded_at", _movies.c.uploaded_at.desc())
