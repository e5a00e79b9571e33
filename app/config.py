"""Application settings read from the environment."""

import logging
import os
from dotenv import load_dotenv

load_dotenv()

# ===== DATABASES =====
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./obras_config.db")
DATA_SOURCE_URL = os.getenv("DATA_SOURCE_URL", "sqlite:///./obras_data.db")

# ===== BI ENGINE =====
BI_ROW_LIMIT = int(os.getenv("BI_ROW_LIMIT", "50"))
BI_DEFAULT_DATE_START = os.getenv("BI_DEFAULT_DATE_START", "2019-01-01")
BI_DEFAULT_DATE_END = os.getenv("BI_DEFAULT_DATE_END", "2025-12-31")

# ===== LOGGING =====
APPLICATION_ID = os.getenv("APPLICATION_ID", "Unknown")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
