"""Logger factory with lazy, settings-driven configuration.

Modules obtain loggers through ``get_logger(__name__)``; the first call
configures the root logger from ``LoggingSettings``.
"""

import logging
from threading import Lock
from typing import Optional, Union

from ..config.settings import get_settings
from .config import get_configured_logger, setup_logging_configuration

_logging_configured = False
_configuration_lock = Lock()


def get_logger(name: Optional[str] = None, **extra_context) -> Union[logging.Logger, logging.LoggerAdapter]:
    """Get a configured logger.

    Args:
        name: Logger name, typically ``__name__``. Defaults to the app logger.
        **extra_context: Context added to every record of the returned logger.

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Library element created", extra={"uid": uid, "org_id": 1})

        scoped = get_logger(__name__, component="search")
        scoped.debug("Search page built")
        ```
    """
    _ensure_logging_configured()

    base_logger = get_configured_logger(name or "library_elements")

    if extra_context:
        return logging.LoggerAdapter(base_logger, extra_context)
    return base_logger


def configure_logging() -> None:
    """Configure logging now instead of on the first ``get_logger`` call."""
    global _logging_configured

    with _configuration_lock:
        if _logging_configured:
            return
        setup_logging_configuration()
        _logging_configured = True

        settings = get_settings()
        logging.getLogger(__name__).info(
            f"Logging configured for {settings.ENVIRONMENT.value} environment",
            extra={
                "log_level": settings.LOG_LEVEL,
                "log_format": settings.LOG_FORMAT,
                "console_enabled": settings.LOG_CONSOLE_ENABLED,
                "file_enabled": settings.LOG_FILE_ENABLED,
            },
        )


def _ensure_logging_configured() -> None:
    if not _logging_configured:
        configure_logging()
