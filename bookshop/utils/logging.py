# bookshop/utils/logging.py
import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured

    if not _configured:
        logging.basicConfig(
            level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
            format=LOG_FORMAT,
        )
        _configured = True
    elif level:
        logging.getLogger().setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
