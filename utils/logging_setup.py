# utils/logging_setup.py
import logging
import logging.config
import os
from typing import Optional

CONSOLE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] [%(filename)s:%(lineno)d]: %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = "logs/bot.log") -> None:
    """
    Configure root logging for the bot process.
    Overridable through environment variables:
        - LOG_LEVEL: overall level (default INFO)
        - LOG_FILE: log file path ("", "none" or "false" disables the file handler)
        - LOG_BACKUP_COUNT: number of rotated files kept (default 14)
    """
    env_level = os.getenv("LOG_LEVEL", level).upper()
    env_log_file = os.getenv("LOG_FILE", log_file)
    backup_count = int(os.getenv("LOG_BACKUP_COUNT", "14"))
    disable_file = env_log_file is None or str(env_log_file).strip().lower() in {"", "none", "false"}

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "level": env_level,
        }
    }

    if not disable_file:
        log_dir = os.path.dirname(env_log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        handlers["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "formatter": "file",
            "filename": env_log_file,
            "when": "midnight",
            "backupCount": backup_count,
            "encoding": "utf-8",
            "level": env_level,
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers.keys()),
            "level": env_level,
        },
        # The gateway chatter is only useful when debugging the connection itself
        "loggers": {
            "discord.gateway": {"level": "WARNING"},
        },
    })


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
