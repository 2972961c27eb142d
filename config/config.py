import logging
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application settings, read from the environment (.env supported)"""

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///movies.db")
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")

    # Sessions
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "LMDB.Session")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"
    PERMANENT_SESSION_LIFETIME = timedelta(days=2)

    # Uploads
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 10 * 1024 * 1024))

    # Legacy bulk data (seriesData.json)
    LEGACY_DATA_PATH = os.getenv("LEGACY_DATA_PATH", os.path.join("data", "seriesData.json"))

    # Optional admin account created at startup
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

    # Logging
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(log_name: str = "app"):
    """Log to logs/<log_name>.log and to the console"""
    os.makedirs(Config.LOG_DIR, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(os.path.join(Config.LOG_DIR, f"{log_name}.log")),
            logging.StreamHandler(),
        ],
    )
