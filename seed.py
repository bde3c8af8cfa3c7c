#just using this to load a demo account and sample movies into the db
import logging

from models import Movie, User
from app_core.config import EXTENSION_KEY
from app_core.schemas import MovieInput, Registration

logger = logging.getLogger(__name__)

DEMO_USER = {"username": "demo", "email": "demo@example.com", "password": "demo1234"}

DEMO_MOVIES = [
    {"title": "The Matrix", "description": "A hacker learns the truth about reality.",
     "genre": "Sci-Fi", "releaseYear": 1999, "rating": 9},
    {"title": "Inception", "description": "A thief steals secrets through shared dreams.",
     "genre": "Sci-Fi", "releaseYear": 2010, "rating": 8.5},
    {"title": "Dune: Part One", "description": "A noble family fights for a desert planet.",
     "genre": "Sci-Fi", "releaseYear": 2021},
]


def seed_demo(app) -> int:
    """Create the demo user (if missing) and any demo movies it does not own yet."""
    services = app.extensions[EXTENSION_KEY]
    with app.app_context():
        user = User.query.filter_by(email=DEMO_USER["email"]).first()
        if user is None:
            user = services.issuer.register(Registration.from_json(DEMO_USER)).user

        created = 0
        for row in DEMO_MOVIES:
            movie_input = MovieInput.from_json(row)
            if Movie.query.filter_by(uploaded_by=user.id, title=movie_input.title).first():
                continue
            services.movies.create(user, movie_input)
            created += 1

        logger.info(f"Seeded {created} movies, total {Movie.query.count()}")
        return created


if __name__ == "__main__":
    from app import create_app

    seed_demo(create_app())
