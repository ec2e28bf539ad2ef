"""Centralized logging for the library elements service.

Usage:
    ```python
    from src.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Library element patched", extra={"uid": "abc", "version": 2})
    ```
"""

from .config import (
    configure_testing_logging,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
    setup_logging_configuration,
)
from .factory import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "configure_testing_logging",
    "generate_correlation_id",
    "get_logger",
    "reset_correlation_id",
    "set_correlation_id",
    "setup_logging_configuration",
]
