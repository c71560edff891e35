import logging
import sys

__all__ = ["ColorFormatter", "setup_logger"]

LOGGER_NAME = "staticserver"


class ColorFormatter(logging.Formatter):
    """Prefixes every record with a `[LEVEL@time]` tag, coloured by level."""

    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    RESET = "\033[0m"

    FORMAT = "%(levelcolor)s[%(levelname)s@%(asctime)s]%(reset)s %(threadName)s: %(message)s"

    LEVEL_COLORS = {
        logging.DEBUG: BLUE,
        logging.INFO: BLUE,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def __init__(self, use_color: bool = True) -> None:
        super().__init__(self.FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color:
            record.levelcolor = self.LEVEL_COLORS.get(record.levelno, "")
            record.reset = self.RESET
        else:
            record.levelcolor = ""
            record.reset = ""
        return super().format(record)


def setup_logger(debug: bool = False, stream=None) -> logging.Logger:
    """Attach a single coloured stream handler to the package logger."""
    stream = stream if stream is not None else sys.stderr
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_staticserver", False):
            logger.removeHandler(handler)

    ch = logging.StreamHandler(stream)
    ch.setLevel(level)
    isatty = getattr(stream, "isatty", None)
    ch.setFormatter(ColorFormatter(use_color=bool(isatty and isatty())))
    ch._staticserver = True
    logger.addHandler(ch)
    return logger
