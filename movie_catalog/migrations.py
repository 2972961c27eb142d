"""
Schema upgrade

Brings a database created before the JSON snapshot columns existed up to the
current schema. Safe to run repeatedly.
"""

import logging
from typing import List

from sqlalchemy import inspect, text

from movie_catalog.models import Base

logger = logging.getLogger(__name__)

SNAPSHOT_COLUMNS = ("genre_json", "cast_json")


def migrate_database(engine) -> List[str]:
    """Apply missing schema changes and return a description of each one"""
    changes = []

    existing_tables = set(inspect(engine).get_table_names())
    missing_tables = [
        name for name in Base.metadata.tables if name not in existing_tables
    ]
    Base.metadata.create_all(engine)
    for name in missing_tables:
        changes.append(f"created table {name}")
        logger.info(f"Created table '{name}'")

    columns = {column["name"] for column in inspect(engine).get_columns("movies")}
    with engine.begin() as connection:
        for column in SNAPSHOT_COLUMNS:
            if column in columns:
                continue
            connection.execute(
                text(f"ALTER TABLE movies ADD COLUMN {column} TEXT NOT NULL DEFAULT '[]'")
            )
            changes.append(f"added column movies.{column}")
            logger.info(f"Added column '{column}' to 'movies'")

    if not changes:
        logger.info("Schema is up to date")
    return changes
