import logging
import sys

from pythonjsonlogger import jsonlogger

from tender_system.core.config import Settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: Settings) -> None:
    """
    One JSON line per record on stdout, tagged with the service name and
    environment. Safe to call more than once (handlers are replaced).
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            _FORMAT,
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"service": settings.app_name, "env": settings.environment},
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in ("uvicorn.access", "uvicorn.error", "tender_system"):
        logging.getLogger(name).setLevel(level)

    # statement echo only when explicitly debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if level <= logging.DEBUG else logging.WARNING
    )
