from flask import Blueprint, request

from models import Movie, isoformat
from .config import get_services
from .errors import read_json
from .query_utils import MoviePage
from .schemas import ListParams, MovieInput, MoviePatch
from .session_utils import current_user, require_auth

api_bp = Blueprint("api", __name__, url_prefix="/api")  # blueprint for movie routes


def movie_to_dict(m: Movie, with_owner_email: bool = False):
    owner = {"_id": m.uploaded_by, "username": m.owner.username if m.owner else None}
    if with_owner_email and m.owner:
        owner["email"] = m.owner.email
    return {
        "_id": m.id,
        "title": m.title,
        "description": m.description,
        "genre": m.genre,
        "releaseYear": m.release_year,
        "rating": m.rating,
        "posterUrl": m.poster_url,
        "uploadedBy": owner,
        "uploadedAt": isoformat(m.uploaded_at),
        "createdAt": isoformat(m.created_at),
        "updatedAt": isoformat(m.updated_at),
    }


def page_to_dict(page: MoviePage):
    return {
        "movies": [movie_to_dict(m) for m in page.movies],
        "currentPage": page.current_page,
        "totalPages": page.total_pages,
        "totalMovies": page.total_movies,
    }


def _list_params(**kwargs) -> ListParams:
    settings = get_services().settings
    return ListParams.from_args(
        request.args,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
        **kwargs,
    )


@api_bp.get("/movies")
@require_auth
def list_movies():
    page = get_services().catalog.list(_list_params())
    return page_to_dict(page)


@api_bp.get("/movies/user/my-movies")
@require_auth
def list_my_movies():
    params = _list_params(allow_search=False, owner_id=current_user().id)
    return page_to_dict(get_services().catalog.list(params))


@api_bp.get("/movies/<movie_id>")
@require_auth
def get_movie(movie_id):
    m = get_services().movies.get_one(movie_id)
    return movie_to_dict(m, with_owner_email=True)


@api_bp.post("/movies")
@require_auth
def create_movie():
    movie_input = MovieInput.from_json(read_json())
    m = get_services().movies.create(current_user(), movie_input)
    return {"message": "Movie added successfully", "movie": movie_to_dict(m)}, 201


@api_bp.put("/movies/<movie_id>")
@api_bp.patch("/movies/<movie_id>")
@require_auth
def update_movie(movie_id):
    patch = MoviePatch.from_json(read_json())
    m = get_services().movies.update(current_user(), movie_id, patch)
    return {"message": "Movie updated successfully", "movie": movie_to_dict(m)}


@api_bp.delete("/movies/<movie_id>")
@require_auth
def delete_movie(movie_id):
    get_services().movies.delete(current_user(), movie_id)
    return {"message": "Movie deleted successfully"}
