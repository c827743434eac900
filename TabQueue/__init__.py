from time import time
from datetime import datetime
import logging
from logging import (
    FileHandler,
    StreamHandler,
    Formatter,
    getLogger,
    DEBUG,
    INFO,
    WARNING,
)
import pytz

from .version import get_version
from .config import Config

START_TIME = time()

__title__ = "TabQueue"
__version__ = get_version()
__author__ = "TabQueue Developers"
__license__ = "MIT"
__copyright__ = "Copyright 2026, TabQueue Developers"

DEBUG_MODE = Config.DEBUG_MODE
LOCAL_TZ = pytz.timezone(Config.LOG_TIMEZONE)


class TZFormatter(Formatter):
    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, LOCAL_TZ)
        return dt.strftime(datefmt or "%Y-%m-%d %I:%M:%S %p")


LOG_FORMAT = (
    "[%(asctime)s] "
    "[%(levelname)s] "
    "[%(name)s] "
    "[%(filename)s:%(lineno)d] "
    "%(message)s"
)


def setup_logging():
    root = logging.getLogger()

    if root.handlers:
        return

    root.setLevel(DEBUG if DEBUG_MODE else INFO)

    formatter = TZFormatter(LOG_FORMAT)

    file_handler = FileHandler(Config.LOG_FILE, mode="w", encoding="utf-8")
    stream_handler = StreamHandler()

    file_handler.setFormatter(formatter)
    stream_handler.setFormatter(formatter)

    root.addHandler(file_handler)
    root.addHandler(stream_handler)

    noisy_loggers = {
        "asyncio": WARNING,
        "aiohttp": WARNING,
        "aiohttp.access": WARNING,
    }

    for name, level in noisy_loggers.items():
        getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = (
    "START_TIME",
    "__title__",
    "__version__",
    "__author__",
    "__license__",
    "setup_logging",
    "get_logger",
    "Config",
)
