"""
Logging setup. One console handler on the root logger; modules log through
``logging.getLogger(__name__)``.
"""

import logging
import logging.config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Chatty client libraries, kept at WARNING unless we run in DEBUG
NOISY_LOGGERS = ("elastic_transport", "elasticsearch", "httpx")


def configure_logging(level: str = "INFO") -> None:
    level = level.upper()
    debug_mode = level == "DEBUG"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": LOG_FORMAT,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "level": level,
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": level,
            },
        }
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug_mode else logging.WARNING)
