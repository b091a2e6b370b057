from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os


debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
loglevel = logging.DEBUG if debug_mode else logging.INFO

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ANSI_RESET = "\033[0m"
_ANSI_COLORS = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
}

# level threshold -> prefix, checked from the top
_LEVEL_PREFIXES = ((logging.ERROR, "⛔ "), (logging.WARNING, "⚠️ "))

# request logs of the HTTP and upload stack, only shown in debug mode
_QUIET_LOGGERS = ("httpx", "httpcore", "multipart", "python_multipart")


class TimezoneFormatter(logging.Formatter):
    """Renders timestamps in the configured timezone and prefixes warnings and errors."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        created = datetime.fromtimestamp(record.created, self.tz)
        return created.strftime(datefmt) if datefmt else created.isoformat()

    def format(self, record) -> str:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # a third-party call with mismatching %-args
            return ""
        prefix = next((p for level, p in _LEVEL_PREFIXES if record.levelno >= level), "")
        record.msg = prefix + message
        record.args = ()
        return super().format(record)


class ConsoleFormatter(TimezoneFormatter):
    """Adds the ANSI color carried in record.color. The file handler stays plain."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _ANSI_COLORS.get(getattr(record, "color", None) or "")
        if not line or not ansi:
            return line
        return f"{ansi}{line}{_ANSI_RESET}"


class ColorLogger(logging.LoggerAdapter):
    """Logger accepting an optional color= keyword on every log call.

        logger.info("Index %s created", name, color="green")
    """

    def process(self, msg, kwargs):
        color = kwargs.pop("color", None)
        if color:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        return msg, kwargs


def setup_logging(name: str = "pdf_search") -> ColorLogger:
    log_dir = os.path.join(os.getenv("ROOT_DIR") or os.getcwd(), "logs")
    os.makedirs(log_dir, exist_ok=True)
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")

    def formatter(factory) -> dict:
        return {"()": factory, "format": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "file": formatter(TimezoneFormatter),
            "console": formatter(ConsoleFormatter),
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": loglevel,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "file",
                "level": loglevel,
                "filename": os.path.join(log_dir, "app.log"),
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": loglevel},
    })

    for quiet in _QUIET_LOGGERS:
        logging.getLogger(quiet).setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger(name), {})
