import sys

from loguru import logger

from common.config import config


def configure_logging(level: str = config.log_level, fmt: str = config.log_format) -> None:
    """(Re)configure the single stderr sink used across the service."""
    logger.remove()
    logger.add(sys.stderr, format=fmt, level=level.upper(), colorize=True)


# Loguru config
configure_logging()


def get_logger(name: str | None = None):
    return logger.bind(name=name) if name else logger
