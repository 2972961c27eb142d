"""
Tests for the in-place schema upgrade
"""
import pytest
from sqlalchemy import create_engine, inspect, text

from movie_catalog.migrations import migrate_database


@pytest.fixture
def old_engine(tmp_path):
    """A database from before the JSON snapshot columns existed"""
    engine = create_engine(f"sqlite:///{tmp_path / 'old.db'}")
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE movies ("
                "id INTEGER PRIMARY KEY, name VARCHAR(200) NOT NULL, "
                "release_year VARCHAR(4) NOT NULL, language VARCHAR(50) NOT NULL, "
                "rating VARCHAR(50) NOT NULL, description TEXT NOT NULL, "
                "image_url TEXT NOT NULL, watch_url TEXT NOT NULL, "
                "created_at DATETIME, updated_at DATETIME)"
            )
        )
        connection.execute(
            text(
                "INSERT INTO movies (name, release_year, language, rating, description, "
                "image_url, watch_url) VALUES ('Dark', '2017', 'German', 'TV-MA', '', "
                "'https://example.com/dark.jpg', 'https://example.com/watch/dark')"
            )
        )
    yield engine
    engine.dispose()


class TestMigrateDatabase:
    """Tests for migrate_database"""

    def test_adds_snapshot_columns(self, old_engine):
        changes = migrate_database(old_engine)

        assert "added column movies.genre_json" in changes
        assert "added column movies.cast_json" in changes
        columns = {column["name"] for column in inspect(old_engine).get_columns("movies")}
        assert {"genre_json", "cast_json"} <= columns

    def test_existing_rows_get_empty_snapshots(self, old_engine):
        migrate_database(old_engine)

        with old_engine.connect() as connection:
            row = connection.execute(text("SELECT genre_json, cast_json FROM movies")).one()
        assert tuple(row) == ("[]", "[]")

    def test_creates_missing_tables(self, old_engine):
        changes = migrate_database(old_engine)

        tables = set(inspect(old_engine).get_table_names())
        assert {"genres", "cast_members", "movie_genres", "movie_cast", "users"} <= tables
        assert "created table genres" in changes

    def test_second_run_changes_nothing(self, old_engine):
        migrate_database(old_engine)
        assert migrate_database(old_engine) == []

    def test_fresh_database(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
        try:
            changes = migrate_database(engine)
            assert "created table movies" in changes
            assert not any(change.startswith("added column") for change in changes)
        finally:
            engine.dispose()
