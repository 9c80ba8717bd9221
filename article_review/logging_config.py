import logging.config

from article_review.config import Settings


def configure_logging(settings: Settings, service: str) -> None:
    """
    Install console logging and, when ``LOG_FILE`` is set, a file handler
    that rolls over daily.  Our own loggers follow ``LOG_LEVEL``; SQLAlchemy
    and httpx stay at WARNING unless DEBUG is on.
    """
    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    }
    if settings.LOG_FILE:
        handlers["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "formatter": "default",
            "filename": settings.LOG_FILE,
            "when": "midnight",
            "backupCount": 14,
            "encoding": "utf-8",
        }

    noisy_level = "INFO" if settings.DEBUG else "WARNING"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": f"%(asctime)s %(levelname)-8s [{service}] %(name)s: %(message)s",
                },
            },
            "handlers": handlers,
            "root": {"level": "WARNING", "handlers": list(handlers)},
            "loggers": {
                "article_review": {"level": settings.LOG_LEVEL.upper()},
                "sqlalchemy.engine": {"level": noisy_level},
                "httpx": {"level": noisy_level},
            },
        }
    )
