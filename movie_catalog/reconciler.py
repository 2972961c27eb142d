"""
Catalog reconciliation

Movies created through the API carry genre/cast join rows; movies bulk-imported
from the legacy file only carry the JSON snapshot. The startup pass here keeps
the snapshot in line with the join rows, and backfills snapshots that are
missing from the legacy file.
"""

import logging
from typing import Optional

from sqlalchemy.orm import selectinload

from config.config import Config
from movie_catalog.auth_service import AuthService
from movie_catalog.legacy_data import LegacyMovieSource
from movie_catalog.migrations import migrate_database
from movie_catalog.models import (
    EMPTY_SNAPSHOT,
    Movie,
    Session,
    decode_names,
    encode_names,
    engine,
)
from movie_catalog.movie_service import MovieService

logger = logging.getLogger(__name__)

DEFAULT_GENRES = [
    "Action",
    "Comedy",
    "Drama",
    "Thriller",
    "Horror",
    "Romance",
    "Crime",
    "Sci-Fi",
    "Sports",
    "Musical",
    "Family",
]


def _has_snapshot(value) -> bool:
    return bool(value) and value != EMPTY_SNAPSHOT


class CatalogReconciler:
    """Brings stored movies to a consistent genre/cast state"""

    def __init__(self, session, legacy_source: Optional[LegacyMovieSource] = None):
        self.session = session
        self.legacy_source = legacy_source
        self.stats = {
            "snapshots_refreshed": 0,
            "snapshots_backfilled": 0,
            "movies_seeded": 0,
            "skipped": 0,
        }

    def seed_defaults(self, admin_email: Optional[str] = None, admin_password: Optional[str] = None):
        """Ensure the stock genres exist, and the admin account when one is configured"""
        movie_service = MovieService(self.session)
        for name in DEFAULT_GENRES:
            movie_service.get_or_create_genre(name)
        self.session.commit()

        if admin_email and admin_password:
            if AuthService(self.session).create_user(admin_email, admin_password):
                logger.info(f"Created admin user {admin_email}")

    def reconcile_movies(self) -> int:
        """
        Run the reconciliation pass over every movie and return how many were written.

        Movies with join rows get their snapshot re-serialized from those rows when
        the set of names differs; order alone is left as stored. Movies with neither join rows nor a snapshot are matched by name
        (case-insensitive) against the legacy file; no match means no change.
        Running the pass again right away writes nothing.
        """
        movies = (
            self.session.query(Movie)
            .options(selectinload(Movie.genre_links), selectinload(Movie.cast_links))
            .order_by(Movie.id)
            .all()
        )

        written = 0
        try:
            for movie in movies:
                if self._reconcile_movie(movie):
                    written += 1
                    logger.debug(f"Updated JSON fields for: {movie.name}")

            if written:
                self.session.commit()
                logger.info(f"Populated JSON fields for {written} movies")
            else:
                logger.info("All movies already have JSON fields populated")
        except Exception as e:
            logger.error(f"Error reconciling movies: {e}", exc_info=True)
            self.session.rollback()
            raise

        return written

    def _reconcile_movie(self, movie: Movie) -> bool:
        updated = False

        if movie.genre_links:
            names = [link.genre.name for link in movie.genre_links]
            if set(decode_names(movie.genre_json)) != set(names):
                movie.genre_json = encode_names(names)
                updated = True

        if movie.cast_links:
            names = [link.cast_member.name for link in movie.cast_links]
            if set(decode_names(movie.cast_json)) != set(names):
                movie.cast_json = encode_names(names)
                updated = True

        if updated:
            self.stats["snapshots_refreshed"] += 1
            return True

        if movie.genre_links or movie.cast_links:
            return False
        if _has_snapshot(movie.genre_json) or _has_snapshot(movie.cast_json):
            return False

        record = self.legacy_source.find_by_name(movie.name) if self.legacy_source else None
        if record is None:
            self.stats["skipped"] += 1
            return False

        genre_json = encode_names(record["genre"])
        cast_json = encode_names(record["cast"])
        if genre_json == movie.genre_json and cast_json == movie.cast_json:
            return False

        movie.genre_json = genre_json
        movie.cast_json = cast_json
        self.stats["snapshots_backfilled"] += 1
        return True

    def seed_movies(self) -> int:
        """Import every legacy record as a snapshot-only movie, but only into an empty catalog"""
        if self.session.query(Movie).first() is not None:
            return 0
        if self.legacy_source is None:
            return 0

        records = self.legacy_source.records()
        if not records:
            logger.info("No movies found in legacy file")
            return 0

        logger.info(f"Found {len(records)} legacy movies. Importing...")
        seeded = 0
        for record in records:
            if not record["name"]:
                logger.warning(f"Skipping legacy record without a name (id={record['id']!r})")
                self.stats["skipped"] += 1
                continue

            movie = Movie(
                name=record["name"],
                release_year=record["release_year"],
                language=record["language"],
                rating=record["rating"],
                description=record["description"],
                image_url=record["image_url"],
                watch_url=record["watch_url"],
                genre_json=encode_names(record["genre"]),
                cast_json=encode_names(record["cast"]),
            )
            self.session.add(movie)
            seeded += 1
            logger.debug(f"Added movie: {record['name']}")

        try:
            self.session.commit()
        except Exception as e:
            logger.error(f"Error during legacy movie import: {e}", exc_info=True)
            self.session.rollback()
            raise

        self.stats["movies_seeded"] += seeded
        logger.info(f"Legacy movie import completed: {seeded} movies")
        return seeded


def initialize_catalog(legacy_path: Optional[str] = None) -> dict:
    """Upgrade the schema, seed defaults, reconcile, and seed legacy movies into an empty catalog"""
    migrate_database(engine)

    session = Session()
    reconciler = CatalogReconciler(
        session, LegacyMovieSource(legacy_path or Config.LEGACY_DATA_PATH)
    )
    try:
        reconciler.seed_defaults(Config.ADMIN_EMAIL, Config.ADMIN_PASSWORD)
        reconciler.reconcile_movies()
        reconciler.seed_movies()
        logger.info(f"Catalog ready: {reconciler.stats}")
        return reconciler.stats
    finally:
        session.close()
