"""
Logging Configuration
====================

Structured logging configuration with environment-specific settings.
Uses structlog over the standard library, with JSON output in production.

Handlers accept every level; the ``xcanvas`` logger level decides what is
emitted, so the engine's ``debugMode`` option can switch debug output on and
off at runtime with :func:`set_debug_mode`.
"""

import logging
import logging.config
import sys
from typing import Dict, Any, TYPE_CHECKING
import structlog
from structlog.types import Processor

from .settings import get_settings

if TYPE_CHECKING:
    from .settings import Settings

PACKAGE_LOGGER = "xcanvas"


def setup_logging() -> None:
    """Setup engine logging configuration."""
    settings = get_settings()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.environment == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        # no colour codes in captured test output
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.environment == "development"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(get_logging_config(settings))


def get_logging_config(settings: "Settings") -> Dict[str, Any]:
    """Get logging configuration dictionary."""
    handlers: Dict[str, Any] = {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "json" if settings.environment == "production" else "plain",
            "stream": sys.stderr,
        },
    }
    if settings.log_file is not None:
        handlers["log_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": str(settings.log_file),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(message)s",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            PACKAGE_LOGGER: {
                "level": "DEBUG" if settings.debug else settings.log_level,
                "handlers": list(handlers),
                "propagate": False,
            },
            # third-party loggers stay quiet unless something is wrong
            "PIL": {"level": "WARNING", "handlers": ["stderr"], "propagate": False},
            "aiohttp": {"level": "WARNING", "handlers": ["stderr"], "propagate": False},
        },
    }


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_debug_mode(enabled: bool) -> None:
    """Emit debug records when ``enabled``, else fall back to the configured level."""
    settings = get_settings()
    level = logging.DEBUG if enabled or settings.debug else settings.log_level
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def ensure_log_directories() -> None:
    """Ensure the log file directory exists."""
    settings = get_settings()
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)


# Initialize logging on import
ensure_log_directories()
setup_logging()
