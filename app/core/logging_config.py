import logging
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the API process and CLI scripts."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # Discovery/HTTP chatter from the Google client is noise at INFO
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
