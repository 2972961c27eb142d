"""
Pytest configuration and fixtures for testing
"""

import json
import os
import tempfile

# Point the app at a throwaway SQLite file before anything builds the engine
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "movie_catalog_test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"

import pytest

import movie_catalog.app
from movie_catalog.app import app as flask_app
from movie_catalog.models import Base, Movie, Session, User, engine
from movie_catalog.movie_service import MovieService

INCEPTION = {
    "name": "Inception",
    "release_year": "2010",
    "language": "English",
    "genre": ["Sci-Fi", "Action"],
    "rating": "PG-13",
    "description": "A thief who steals corporate secrets through dream-sharing technology.",
    "cast": ["Leonardo DiCaprio"],
    "image_url": "https://example.com/images/inception.jpg",
    "watch_url": "https://example.com/watch/inception",
}

LEGACY_MOVIES = [
    {
        "Id": "1",
        "Name": "Stranger Things",
        "Release_Year": "2016",
        "Language": "English",
        "Genre": ["Drama", "Horror"],
        "Rating": "TV-14",
        "Description": "Kids in a small town uncover supernatural mysteries.",
        "Cast": ["Millie Bobby Brown", "Winona Ryder"],
        "Image_url": "https://example.com/images/stranger-things.jpg",
        "Watch_url": "https://example.com/watch/stranger-things",
    },
    {
        "id": "2",
        "name": "Dark",
        "release_year": "2017",
        "language": "German",
        "genre": ["Thriller"],
        "rating": "TV-MA",
        "description": "A missing child sets four families on a frantic hunt for answers.",
        "cast": ["Louis Hofmann"],
        "image_url": "https://example.com/images/dark.jpg",
        "watch_url": "https://example.com/watch/dark",
    },
]


def movie_payload(**overrides):
    """Inception payload with the given fields replaced"""
    data = dict(INCEPTION)
    data.update(overrides)
    return data


@pytest.fixture(scope="function")
def app(tmp_path):
    """Create application for testing"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        }
    )

    yield flask_app


@pytest.fixture(scope="function")
def db_session(app):
    """Create a fresh database for each test and route the app's sessions to it"""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    session = Session()

    original_get_db_session = movie_catalog.app.get_db_session
    movie_catalog.app.get_db_session = lambda: session

    yield session

    movie_catalog.app.get_db_session = original_get_db_session

    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def client(app, db_session):
    """Create test client - depends on db_session to ensure proper setup"""
    return app.test_client()


@pytest.fixture(scope="function")
def movie_service(db_session):
    return MovieService(db_session)


@pytest.fixture(scope="function")
def sample_movie(movie_service):
    """Inception, created through the service so it has genre/cast join rows"""
    return movie_service.add_movie(INCEPTION)


@pytest.fixture(scope="function")
def sample_movies(movie_service):
    """A handful of movies across years, languages and genres"""
    payloads = [
        movie_payload(),
        movie_payload(
            name="Tenet",
            release_year="2020",
            genre=["Action", "Thriller"],
            cast=["John David Washington", "Robert Pattinson"],
        ),
        movie_payload(
            name="Soul",
            release_year="2020",
            language="English",
            genre=["Family", "Comedy"],
            cast=["Jamie Foxx"],
            rating="PG",
            description="A musician who has lost his passion for music.",
        ),
        movie_payload(
            name="Amelie",
            release_year="2001",
            language="French",
            genre=["Romance", "Comedy"],
            cast=["Audrey Tautou"],
            rating="R",
            description="A shy waitress decides to change the lives of those around her.",
        ),
    ]
    return [movie_service.add_movie(payload) for payload in payloads]


@pytest.fixture(scope="function")
def legacy_movie(db_session):
    """A bulk-imported movie: JSON snapshot only, no join rows"""
    movie = Movie(
        name="Money Heist",
        release_year="2017",
        language="Spanish",
        rating="TV-MA",
        description="Eight thieves take hostages in the Royal Mint of Spain.",
        image_url="https://example.com/images/money-heist.jpg",
        watch_url="https://example.com/watch/money-heist",
        genre_json=json.dumps(["Crime", "Thriller"]),
        cast_json=json.dumps(["Ursula Corbero", "Alvaro Morte"]),
    )
    db_session.add(movie)
    db_session.commit()
    return movie


@pytest.fixture(scope="function")
def legacy_file(tmp_path):
    """Legacy seriesData.json with mixed-case keys"""
    path = tmp_path / "seriesData.json"
    path.write_text(json.dumps(LEGACY_MOVIES), encoding="utf-8")
    return path


# ============================================
# FIXTURES FOR AUTHENTICATION TESTING
# ============================================

ADMIN_EMAIL = "admin@movieapp.com"
ADMIN_PASSWORD = "admin123"


@pytest.fixture(scope="function")
def sample_user(db_session):
    """Create an active admin user"""
    user = User(email=ADMIN_EMAIL)
    user.set_password(ADMIN_PASSWORD)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def logged_in_admin(client, sample_user):
    """Mark the client session as logged in"""
    with client.session_transaction() as sess:
        sess["is_admin"] = True
        sess["admin_email"] = ADMIN_EMAIL
    return sample_user
