"""
Catalog Reconciliation Script

Brings the JSON genre/cast snapshots in line with the genre/cast tables,
backfills snapshots from the legacy movie file, and optionally seeds an empty
catalog from that file. The app runs the same pass at startup.

Usage:
    python scripts/reconcile_catalog.py [--legacy-file data/seriesData.json] [--seed]
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.config import Config, configure_logging
from movie_catalog.legacy_data import LegacyMovieSource
from movie_catalog.migrations import migrate_database
from movie_catalog.models import Session, engine
from movie_catalog.reconciler import CatalogReconciler

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the reconciliation script"""
    parser = argparse.ArgumentParser(description="Reconcile movie genre/cast data")
    parser.add_argument(
        "--legacy-file",
        default=Config.LEGACY_DATA_PATH,
        help=f"Legacy movie JSON file (default: {Config.LEGACY_DATA_PATH})",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Import legacy movies when the catalog is empty",
    )
    args = parser.parse_args()

    configure_logging("reconcile")
    migrate_database(engine)

    session = Session()
    reconciler = CatalogReconciler(session, LegacyMovieSource(args.legacy_file))

    try:
        reconciler.reconcile_movies()
        if args.seed:
            reconciler.seed_movies()

        logger.info("=" * 60)
        logger.info("RECONCILIATION STATISTICS:")
        logger.info(f"  Snapshots refreshed:  {reconciler.stats['snapshots_refreshed']}")
        logger.info(f"  Snapshots backfilled: {reconciler.stats['snapshots_backfilled']}")
        logger.info(f"  Movies seeded:        {reconciler.stats['movies_seeded']}")
        logger.info(f"  Skipped:              {reconciler.stats['skipped']}")
        logger.info("=" * 60)

    except KeyboardInterrupt:
        logger.info("Reconciliation interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error during reconciliation: {e}")
        sys.exit(1)
    finally:
        session.close()


if __name__ == "__main__":
    main()
