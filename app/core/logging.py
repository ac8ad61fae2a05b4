"""
Process-wide logging setup.

Logs go to stdout so gunicorn / Railway capture them alongside access logs.
Modules obtain their logger with `logging.getLogger(__name__)`.
"""
import logging

from app.core.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=_FORMAT,
    )
