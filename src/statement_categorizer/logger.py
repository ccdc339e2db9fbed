import logging
import logging.config
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "categorizer.log"

# Library loggers routed through our handlers instead of their own defaults.
LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.error": "INFO",
    "uvicorn.access": "INFO",
    "sqlalchemy.engine": "WARNING",
}


class ColourizedFormatter(logging.Formatter):
    """Colours the level name for terminal output."""

    RESET = "\x1b[0m"
    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[90m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLORS.get(record.levelno)
        if colour is None:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{colour}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The file handler formats the same record.
            record.levelname = levelname


def _handlers(log_dir: str | None) -> dict[str, dict]:
    handlers = {
        "console": {"class": "logging.StreamHandler", "stream": "ext://sys.stdout", "formatter": "colour"},
    }
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": os.path.join(log_dir, LOG_FILE_NAME),
            "formatter": "plain",
        }
    return handlers


def get_logging_config() -> dict:
    """dictConfig for the app and for uvicorn; ``LOG_LEVEL`` and ``LOG_DIR`` are read from the environment."""
    handlers = _handlers(os.getenv("LOG_DIR"))
    names = list(handlers)

    loggers = {"": {"handlers": names, "level": os.getenv("LOG_LEVEL", "INFO").upper()}}
    for name, level in LIBRARY_LEVELS.items():
        loggers[name] = {"handlers": names, "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colour": {"()": ColourizedFormatter, "format": LOG_FORMAT},
            "plain": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging() -> None:
    logging.config.dictConfig(get_logging_config())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
