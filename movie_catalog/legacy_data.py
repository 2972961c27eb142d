import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

LEGACY_FIELDS = (
    "id",
    "name",
    "release_year",
    "language",
    "genre",
    "rating",
    "description",
    "cast",
    "image_url",
    "watch_url",
)


def _normalize_record(raw: dict) -> Dict:
    """Map a legacy record onto the known field names, ignoring key case"""
    by_lower = {str(key).lower(): value for key, value in raw.items()}
    record = {}
    for field in LEGACY_FIELDS:
        value = by_lower.get(field)
        if field in ("genre", "cast"):
            if isinstance(value, str):
                value = [value]
            record[field] = [str(item) for item in value or [] if item is not None]
        else:
            record[field] = "" if value is None else str(value)
    return record


class LegacyMovieSource:
    """Read-only view of the legacy bulk movie file (seriesData.json)"""

    def __init__(self, path):
        self.path = Path(path) if path else None
        self._records: Optional[List[Dict]] = None

    def records(self) -> List[Dict]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def find_by_name(self, name: str) -> Optional[Dict]:
        if not name:
            return None
        wanted = name.casefold()
        for record in self.records():
            if record["name"].casefold() == wanted:
                return record
        return None

    def _load(self) -> List[Dict]:
        if self.path is None or not self.path.is_file():
            logger.info(f"Legacy movie file not found: {self.path}")
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Could not read legacy movie file {self.path}: {e}")
            return []

        if not isinstance(data, list):
            logger.error(f"Legacy movie file {self.path} does not contain a list")
            return []

        records = [_normalize_record(item) for item in data if isinstance(item, dict)]
        logger.info(f"Loaded {len(records)} legacy movies from {self.path}")
        return records
