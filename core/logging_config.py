# core/logging_config.py
import logging

from core.config import settings

LOGGER_NAME = "fieldops"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (" + settings.ENV + "): %(message)s"

# Third-party loggers that are chatty at INFO (every Supabase request, every job tick)
QUIET_LOGGERS = ("httpx", "hpack", "apscheduler.executors.default")


def setup_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    # Reload in dev would otherwise attach a second handler
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


logger = setup_logger()
