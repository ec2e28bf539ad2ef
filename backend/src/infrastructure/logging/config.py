"""Environment-aware logging setup.

Configuration by environment:
- Development / local: colored detailed console, DEBUG when verbose
- Staging: structured console, optional rotating file
- Production: JSON console, noisy third-party loggers quieted
"""

import contextvars
import logging
import uuid

from ..config.settings import EnvironmentOption, get_settings
from .handlers import create_console_handler, create_file_handler, create_null_handler

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id")


def setup_logging_configuration() -> None:
    """Configure the root logger from application settings.

    Called once, lazily, by the logger factory.
    """
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    if settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        handlers = _production_handlers(settings)
    elif settings.ENVIRONMENT == EnvironmentOption.STAGING:
        handlers = _staging_handlers(settings)
    else:
        handlers = _development_handlers(settings)

    # Logger filters skip records propagated from child loggers, handler filters do not.
    for handler in handlers:
        if settings.LOG_CORRELATION_ID:
            handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL_INT)

    if settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        _configure_noisy_loggers()


def _file_handler(settings) -> logging.Handler:
    return create_file_handler(
        filepath=settings.LOG_FILE_PATH,
        format_type="structured",
        level=logging.DEBUG,
        max_bytes=settings.LOG_FILE_MAX_SIZE,
        backup_count=settings.LOG_FILE_BACKUP_COUNT,
    )


def _development_handlers(settings) -> list[logging.Handler]:
    handlers = []
    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.DEBUG if settings.LOG_DEVELOPMENT_VERBOSE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="detailed", level=console_level, use_colors=True))
    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))
    return handlers


def _staging_handlers(settings) -> list[logging.Handler]:
    handlers = []
    if settings.LOG_CONSOLE_ENABLED:
        handlers.append(create_console_handler(format_type="structured", level=settings.LOG_LEVEL_INT, use_colors=False))
    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))
    return handlers


def _production_handlers(settings) -> list[logging.Handler]:
    handlers = []
    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.WARNING if settings.LOG_PRODUCTION_OPTIMIZE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="json", level=console_level, use_colors=False))
    return handlers


def _configure_noisy_loggers() -> None:
    noisy_loggers = {
        "asyncpg": logging.WARNING,
        "aiosqlite": logging.WARNING,
        "sqlalchemy.engine": logging.WARNING,
        "sqlalchemy.dialects": logging.WARNING,
        "sqlalchemy.pool": logging.WARNING,
    }

    for logger_name, level in noisy_loggers.items():
        logging.getLogger(logger_name).setLevel(level)


def configure_testing_logging() -> None:
    """Silence logging below ERROR, for test sessions."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(create_null_handler())
    root_logger.setLevel(logging.ERROR)

    for logger_name in ("sqlalchemy.engine", "asyncpg", "aiosqlite"):
        logging.getLogger(logger_name).setLevel(logging.ERROR)


def get_configured_logger(name: str) -> logging.Logger:
    """Return a named logger attached to the configured root."""
    return logging.getLogger(name)


class CorrelationIdFilter(logging.Filter):
    """Attach the current request's correlation id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        setattr(record, "correlation_id", get_correlation_id() or "no-correlation")
        return True


def set_correlation_id(correlation_id: str) -> contextvars.Token[str]:
    """Set the correlation id for the current context."""
    return correlation_id_var.set(correlation_id)


def reset_correlation_id(token: contextvars.Token[str]) -> None:
    correlation_id_var.reset(token)


def get_correlation_id() -> str | None:
    """Get the correlation id of the current context, if any."""
    try:
        return correlation_id_var.get()
    except LookupError:
        return None


def generate_correlation_id() -> str:
    return str(uuid.uuid4())
