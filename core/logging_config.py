import logging

from core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """Configure root logging once for the API process and Celery workers."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format=LOG_FORMAT,
    )
    # SQL echo is controlled by settings.SQLALCHEMY_ECHO, keep the pool quiet
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
