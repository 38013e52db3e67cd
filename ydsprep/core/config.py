import os
import logging
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


class Settings:
    """Runtime settings read from the environment (and an optional .env file)."""

    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./ydsprep.db")
        self.catalog_path = os.getenv("CATALOG_PATH", str(DEFAULT_CATALOG_PATH))
        self.points_per_correct = int(os.getenv("POINTS_PER_CORRECT", "4"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.max_upload_bytes = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

        if self.points_per_correct <= 0:
            logger.warning(
                f"POINTS_PER_CORRECT={self.points_per_correct} is not positive, falling back to 4"
            )
            self.points_per_correct = 4


settings = Settings()
