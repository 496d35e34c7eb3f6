import os
import logging


def read_page_size(raw: str) -> int:
    size = int(raw)
    if size <= 0:
        raise ValueError(f"LIBRARY_PAGE_SIZE must be greater than 0, got {raw!r}")
    return size


DATABASE_URL = os.getenv("LIBRARY_DB", "sqlite:///./library.db")
LOG_LEVEL = os.getenv("LIBRARY_LOG", "INFO")
DEFAULT_PAGE_SIZE = read_page_size(os.getenv("LIBRARY_PAGE_SIZE", "50"))

API_PREFIX = "/api/v1"


def configure_logging():
    logging.basicConfig(level=LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s - %(message)s")
