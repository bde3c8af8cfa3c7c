import logging

from sqlalchemy.exc import SQLAlchemyError

from models import db, Movie, User, utcnow
from .config import Settings
from .errors import ConflictError, ForbiddenError, NotFoundError, ServerError
from .schemas import MovieInput, MoviePatch

logger = logging.getLogger(__name__)


class MovieService:
    """
    Create/update/delete of movies, gated on ownership.

    Reads (get_one) are open to any authenticated user. Mutations only ever
    touch the fields carried by MovieInput/MoviePatch, so uploaded_by and
    uploaded_at are fixed once the row exists.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def get_one(self, movie_id: str) -> Movie:
        try:
            movie = db.session.get(Movie, movie_id)
        except SQLAlchemyError as e:
            logger.exception("Get movie error")
            raise ServerError("Server error while fetching movie") from e
        if movie is None:
            raise NotFoundError("Movie not found")
        return movie

    def create(self, user: User, movie_input: MovieInput) -> Movie:
        existing = Movie.query.filter_by(uploaded_by=user.id, title=movie_input.title).first()
        if existing:
            raise ConflictError("You have already added a movie with this title")

        movie = Movie(**movie_input.columns(), uploaded_by=user.id, uploaded_at=utcnow())
        db.session.add(movie)
        self._commit("creating")
        logger.info(f"Movie created: {movie.id} {movie.title!r} by {user.id}")
        return movie

    def update(self, user: User, movie_id: str, patch: MoviePatch) -> Movie:
        movie = self._owned(user, movie_id, "update")
        for column, value in patch.changes().items():
            setattr(movie, column, value)
        self._commit("updating")
        logger.info(f"Movie updated: {movie.id} fields={sorted(patch.changes())}")
        return movie

    def delete(self, user: User, movie_id: str) -> None:
        movie = self._owned(user, movie_id, "delete")
        db.session.delete(movie)
        self._commit("deleting")
        logger.info(f"Movie deleted: {movie_id} by {user.id}")

    def _owned(self, user: User, movie_id: str, action: str) -> Movie:
        movie = self.get_one(movie_id)
        if movie.uploaded_by != user.id:
            logger.warning(f"User {user.id} tried to {action} movie {movie_id} owned by {movie.uploaded_by}")
            raise ForbiddenError(f"Not authorized to {action} this movie")
        return movie

    def _commit(self, action: str):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception(f"Error while {action} movie")
            raise ServerError(f"Server error while {action} movie") from e
