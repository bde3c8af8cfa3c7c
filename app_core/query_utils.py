import logging
import math
import re
from dataclasses import dataclass
from typing import List

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from models import Movie
from .config import Settings
from .errors import ServerError
from .schemas import ListParams

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "title": Movie.title,
    "description": Movie.description,
    "genre": Movie.genre,
    "releaseYear": Movie.release_year,
    "rating": Movie.rating,
    "posterUrl": Movie.poster_url,
    "uploadedBy": Movie.uploaded_by,
    "uploadedAt": Movie.uploaded_at,
    "createdAt": Movie.created_at,
    "updatedAt": Movie.updated_at,
}

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def search_terms(search: str | None) -> List[str]:
    """Lower-cased word tokens, duplicates dropped, order kept."""
    seen = []
    for tok in _TOKEN_RE.findall((search or "").lower()):
        if tok not in seen:
            seen.append(tok)
    return seen


def _word_pattern(term: str) -> str:
    # whole word only; \W is understood by Python re (SQLite REGEXP) and POSIX engines
    return rf"(^|\W){re.escape(term)}(\W|$)"


def build_movie_query(params: ListParams):
    qry = Movie.query
    if params.owner_id:
        qry = qry.filter(Movie.uploaded_by == params.owner_id)

    terms = search_terms(params.search)
    if terms:
        # any term, as a whole word, in either field
        clauses = []
        for term in terms:
            pattern = _word_pattern(term)
            clauses.append(func.lower(Movie.title).regexp_match(pattern))
            clauses.append(func.lower(Movie.description).regexp_match(pattern))
        qry = qry.filter(or_(*clauses))

    # single key on purpose: ties fall back to the store's natural order
    column = SORT_COLUMNS[params.sort_by]
    qry = qry.order_by(column.desc() if params.sort_order == "desc" else column.asc())
    return qry


@dataclass(frozen=True)
class MoviePage:
    movies: list
    current_page: int
    total_pages: int
    total_movies: int


class MovieCatalog:
    """Paginated, searchable, sortable listing of movies."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def list(self, params: ListParams) -> MoviePage:
        qry = build_movie_query(params)
        try:
            total = qry.order_by(None).count()
            offset = (params.page - 1) * params.limit
            # past the end: nothing to fetch, and huge offsets overflow the driver
            items = [] if offset >= total else qry.offset(offset).limit(params.limit).all()
        except SQLAlchemyError as e:
            logger.exception("Get movies error")
            raise ServerError("Server error while fetching movies") from e

        return MoviePage(
            movies=items,
            current_page=params.page,
            total_pages=math.ceil(total / params.limit),
            total_movies=total,
        )
