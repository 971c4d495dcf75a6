"""Logging setup for cryptfolio."""

import logging
import os
import sys
from typing import TextIO

# Below DEBUG; enables web3/urllib3 wire chatter
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

NOISY_LOGGERS = ("web3", "urllib3")

LEVEL_COLORS = {
    TRACE: "\033[90m",
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}


class ColoredFormatter(logging.Formatter):
    """Formatter that paints the level name when writing to a terminal."""

    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno)
        if not self.use_color or color is None:
            return super().format(record)
        # other handlers share the record, so color a copy
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
        return super().format(colored)


def _wants_color(stream: TextIO) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def resolve_level(log_level: str | None = None) -> int:
    """Map a level name (including TRACE) to its numeric value.

    Falls back to the LOG_LEVEL environment variable, then INFO.
    """
    name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def setup_logging(log_level: str | None = None) -> None:
    """Configure root logging for the CLI.

    Logs go to stderr so ``--json`` output on stdout stays machine
    readable. DEBUG keeps web3 and urllib3 at WARNING; TRACE lets them
    through.
    """
    level = resolve_level(log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            use_color=_wants_color(sys.stderr),
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    if level <= TRACE:
        noisy_level = TRACE
    elif level == logging.DEBUG:
        noisy_level = logging.WARNING
    else:
        return
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    """Module logger; call as ``get_logger(__name__)``."""
    return logging.getLogger(name)
