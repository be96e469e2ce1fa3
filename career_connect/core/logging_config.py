import logging

from career_connect.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Configure root logging from settings.log_level (no-op if handlers exist)."""
    level = get_settings().log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("career_connect").setLevel(level)
