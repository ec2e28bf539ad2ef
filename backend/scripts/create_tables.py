"""Script to create the library element tables from SQLAlchemy models."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.infrastructure.config import get_settings  # noqa: E402
from src.infrastructure.database.session import create_tables  # noqa: E402
from src.infrastructure.logging import configure_logging, get_logger  # noqa: E402
from src.modules.folder import models as folder_models  # noqa: E402, F401
from src.modules.library_element import models as library_element_models  # noqa: E402, F401
from src.modules.user import models as user_models  # noqa: E402, F401

logger = get_logger(__name__)


async def main() -> None:
    """Create database tables."""
    configure_logging()
    backend = get_settings().DATABASE_BACKEND.value
    logger.info("Creating library element tables", extra={"backend": backend})

    try:
        await create_tables()
        logger.info("Library element tables created", extra={"backend": backend})
    except Exception:
        logger.exception("Error creating library element tables", extra={"backend": backend})
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
