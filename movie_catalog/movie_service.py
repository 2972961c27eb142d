"""
Movie Service

CRUD orchestration for the catalog. Every write keeps the normalized genre/cast
join rows and the JSON snapshot on the movie row in agreement.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import selectinload

from movie_catalog.models import CastMember, Genre, Movie, MovieCast, MovieGenre, encode_names

logger = logging.getLogger(__name__)

YEAR_PATTERN = re.compile(r"^(19|20)\d{2}$")
UPLOAD_PREFIX = "/uploads/"

SCALAR_FIELDS = (
    "name",
    "release_year",
    "language",
    "rating",
    "description",
    "image_url",
    "watch_url",
)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class MovieValidationError(ValueError):
    """Raised when movie input is malformed. `errors` maps field -> message."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("Invalid movie data: " + ", ".join(sorted(errors)))
        self.errors = errors


class MovieNotFoundError(LookupError):
    pass


def normalize_names(values) -> List[str]:
    """
    Normalize free-text genre/cast input.

    Each entry is split on commas, the fragments are trimmed, empty fragments
    dropped, and the rest joined back with ", ". Entries that end up empty and
    repeated entries are dropped. A bare string counts as a one-item list.
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]

    normalized = []
    for value in values:
        if value is None:
            continue
        parts = [part.strip() for part in str(value).split(",")]
        joined = ", ".join(part for part in parts if part)
        if joined and joined not in normalized:
            normalized.append(joined)
    return normalized


def _is_well_formed_url(value: str, allow_upload_path: bool = False) -> bool:
    if allow_upload_path and value.startswith(UPLOAD_PREFIX):
        return True
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def validate_movie_data(data: Optional[dict]) -> dict:
    """Validate raw movie input and return the cleaned fields"""
    if not isinstance(data, dict):
        raise MovieValidationError({"body": "Movie data must be an object"})

    fields = {key: _text(data, key) for key in SCALAR_FIELDS}
    errors = {}

    if not fields["name"]:
        errors["name"] = "Name is required"
    elif len(fields["name"]) > 200:
        errors["name"] = "Name must be at most 200 characters"

    if not YEAR_PATTERN.match(fields["release_year"]):
        errors["release_year"] = "Release Year Must Be Valid"

    if not fields["language"]:
        errors["language"] = "Language is required"
    elif len(fields["language"]) > 50:
        errors["language"] = "Language must be at most 50 characters"

    if not fields["rating"]:
        errors["rating"] = "Rating is required"

    if not _is_well_formed_url(fields["image_url"], allow_upload_path=True):
        errors["image_url"] = "Image URL must be a valid URL"

    if not _is_well_formed_url(fields["watch_url"]):
        errors["watch_url"] = "Watch URL must be a valid URL"

    for key in ("genre", "cast"):
        if not isinstance(data.get(key), (type(None), str, list, tuple)):
            errors[key] = f"{key.capitalize()} must be a list of names"

    if errors:
        raise MovieValidationError(errors)

    fields["genre"] = normalize_names(data.get("genre"))
    fields["cast"] = normalize_names(data.get("cast"))
    return fields


class MovieService:
    """Movie CRUD against one database session"""

    def __init__(self, session):
        self.session = session

    # ==========================================
    # READS
    # ==========================================

    def list_movies(self) -> List[Movie]:
        # Denormalized view: no join-table traversal
        return self.session.query(Movie).order_by(Movie.id).all()

    def search_movies(self, term: Optional[str]) -> List[Movie]:
        term = (term or "").strip().lower()
        if not term:
            return self.list_movies()

        movies = (
            self.session.query(Movie)
            .options(selectinload(Movie.genre_links), selectinload(Movie.cast_links))
            .order_by(Movie.id)
            .all()
        )
        return [movie for movie in movies if self._matches(movie, term)]

    @staticmethod
    def _matches(movie: Movie, term: str) -> bool:
        scalars = (
            movie.name,
            movie.language,
            movie.release_year,
            movie.description,
            movie.rating,
        )
        if any(term in (value or "").lower() for value in scalars):
            return True
        return any(term in name.lower() for name in movie.genre + movie.cast)

    def get_movie(self, movie_id: int) -> Optional[Movie]:
        return (
            self.session.query(Movie)
            .options(selectinload(Movie.genre_links), selectinload(Movie.cast_links))
            .filter_by(id=movie_id)
            .first()
        )

    # ==========================================
    # WRITES
    # ==========================================

    def add_movie(self, data: dict) -> Movie:
        """
        Create a movie in two phases: the movie row with its JSON snapshot, then
        the genre/cast join rows.

        The phases commit separately. If linking fails the movie row is kept with
        its snapshot as the only genre/cast source, and the error is re-raised.
        """
        fields = validate_movie_data(data)

        movie = Movie(**{key: fields[key] for key in SCALAR_FIELDS})
        movie.genre_json = encode_names(fields["genre"])
        movie.cast_json = encode_names(fields["cast"])
        self.session.add(movie)
        self.session.commit()
        movie_id = movie.id

        try:
            self._link_relations(movie, fields["genre"], fields["cast"])
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Movie {movie_id} saved without genre/cast links: {e}", exc_info=True)
            raise

        logger.info(f"Added movie {movie_id}: {fields['name']} ({fields['release_year']})")
        return self.get_movie(movie_id)

    def update_movie(self, movie_id: int, data: dict) -> Movie:
        movie = self.get_movie(movie_id)
        if movie is None:
            raise MovieNotFoundError(f"Movie {movie_id} not found")

        fields = validate_movie_data(data)

        try:
            for key in SCALAR_FIELDS:
                setattr(movie, key, fields[key])
            movie.genre_json = encode_names(fields["genre"])
            movie.cast_json = encode_names(fields["cast"])

            # Full replace: drop every link, then rebuild from the new lists
            movie.genre_links.clear()
            movie.cast_links.clear()
            self.session.flush()

            self._link_relations(movie, fields["genre"], fields["cast"])
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Updated movie {movie_id}: {fields['name']}")
        return movie

    def delete_movie(self, movie_id: int) -> bool:
        """Delete a movie and its join rows. Returns False if there was nothing to delete."""
        movie = self.session.query(Movie).filter_by(id=movie_id).first()
        if movie is None:
            logger.debug(f"Delete skipped, movie {movie_id} does not exist")
            return False

        self.session.delete(movie)
        self.session.commit()
        logger.info(f"Deleted movie {movie_id}")
        return True

    # ==========================================
    # GENRE / CAST LINKS
    # ==========================================

    def _link_relations(self, movie: Movie, genres: Iterable[str], cast: Iterable[str]):
        seen_genres = set()
        for name in genres:
            genre = self.get_or_create_genre(name)
            if genre.id not in seen_genres:
                seen_genres.add(genre.id)
                movie.genre_links.append(MovieGenre(genre=genre))

        seen_cast = set()
        for name in cast:
            member = self.get_or_create_cast_member(name)
            if member.id not in seen_cast:
                seen_cast.add(member.id)
                movie.cast_links.append(MovieCast(cast_member=member))

        self.session.flush()

    def get_or_create_genre(self, name: str) -> Genre:
        return self._get_or_create(Genre, name.strip())

    def get_or_create_cast_member(self, name: str) -> CastMember:
        return self._get_or_create(CastMember, name.strip())

    def _get_or_create(self, model, name: str):
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)

        if insert is not None:
            statement = insert(model).values(name=name).on_conflict_do_nothing(
                index_elements=["name"]
            )
            self.session.execute(statement)
            return self.session.query(model).filter_by(name=name).one()

        # No upsert support: the unique index on name rejects a concurrent duplicate
        instance = self.session.query(model).filter_by(name=name).first()
        if instance is None:
            instance = model(name=name)
            self.session.add(instance)
            self.session.flush()
            logger.debug(f"Created {model.__name__}: {name}")
        return instance
