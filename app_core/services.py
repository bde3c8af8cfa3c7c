from dataclasses import dataclass

from .auth_service import SessionIssuer
from .config import Settings
from .movie_service import MovieService
from .query_utils import MovieCatalog
from .session_utils import AccessGuard


@dataclass(frozen=True)
class Services:
    settings: Settings
    issuer: SessionIssuer
    guard: AccessGuard
    movies: MovieService
    catalog: MovieCatalog


def build_services(settings: Settings) -> Services:
    return Services(
        settings=settings,
        issuer=SessionIssuer(settings),
        guard=AccessGuard(settings),
        movies=MovieService(settings),
        catalog=MovieCatalog(settings),
    )
