"""
Logging Configuration
=====================
One call at startup wires the root logger:

    console  — level name coloured, rest of the line plain
    file     — <LOG_DIR>/qabot_YYYYMMDD.log, uncoloured

httpx logs every backend request at INFO and Pillow chatters about image
plugins at DEBUG; both are held at WARNING so analysis logs stay readable.
"""
import logging
import os
import sys
from datetime import datetime

from qabot.core.config import LOG_DIR, LOG_LEVEL

LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("httpx", "httpcore", "PIL")


class ColoredFormatter(logging.Formatter):
    """Colours the level name on console output."""

    reset = "\x1b[0m"
    LEVEL_COLOURS = {
        logging.DEBUG: "\x1b[2m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def __init__(self):
        super().__init__(LINE_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record):
        colour = self.LEVEL_COLOURS.get(record.levelno)
        if colour is None:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{colour}{original:<8}{self.reset}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def log_file_path(log_dir: str = LOG_DIR) -> str:
    return os.path.join(log_dir, f"qabot_{datetime.now().strftime('%Y%m%d')}.log")


def setup_logging(level=LOG_LEVEL, log_dir: str = LOG_DIR) -> logging.Logger:
    """Install console + daily file handlers on the root logger and return it."""
    root_logger = logging.getLogger()

    # Replace handlers so repeated startups (reload, tests) don't duplicate lines
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter())
    root_logger.addHandler(console_handler)

    os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(log_file_path(log_dir), encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LINE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info("Logging initialized (level=%s, file=%s)",
                     logging.getLevelName(root_logger.level), file_handler.baseFilename)
    return root_logger
