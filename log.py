import logging
from logging.handlers import RotatingFileHandler

import config

RESET = "\x1b[0m"
COLORS = {
    "DEBUG": "\x1b[36m",    # Cyan
    "INFO": "\x1b[32m",     # Green
    "WARNING": "\x1b[33m",  # Yellow
    "ERROR": "\x1b[31m",    # Red
    "CRITICAL": "\x1b[41m", # Red background
}

LOG_FORMAT = "[%(filename)s:%(funcName)s:%(lineno)d] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColorFormatter(logging.Formatter):
    def format(self, record):
        log_color = COLORS.get(record.levelname, RESET)
        message = super().format(record)
        return f"{log_color}{message}{RESET}"


def setup_logger(name: str = __name__, level=None):
    """
    Return a logger with a colored console handler and, when LOG_FILE is set,
    a rotating file handler. Handlers are attached only once per logger name.
    """
    if level is None:
        level = getattr(logging, config.LOG_LEVEL, logging.DEBUG)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Records stop here so the root logger does not print them twice
    logger.propagate = False

    if logger.hasHandlers():
        return logger

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(ColorFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(ch)

    if config.LOG_FILE:
        fh = RotatingFileHandler(
            config.LOG_FILE, maxBytes=config.LOG_FILE_MAX_BYTES, backupCount=1, encoding="utf-8"
        )
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(fh)

    return logger
