import logging
import os
from logging.handlers import RotatingFileHandler


def setup_logging(level: str | None = None, log_file: str | None = "scanner.log") -> None:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger = logging.getLogger()
    logger.setLevel(level)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.handlers.clear()
    logger.addHandler(console)
    if log_file:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=10_485_760, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
