from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, MappedAsDataclass, mapped_column


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


class TimestampMixin(MappedAsDataclass):
    """Mixin for adding created and updated timestamp columns.

    Both columns are filled on insert and excluded from dataclass
    initialization. Updates are expected to set ``updated`` explicitly,
    since versioned rows are rewritten with conditional UPDATE statements
    rather than through the unit of work.

    Attributes:
        created: Timestamp when the record was created.
        updated: Timestamp when the record was last updated.
    """

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default_factory=utc_now,
        nullable=False,
        init=False,
    )

    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default_factory=utc_now,
        nullable=False,
        init=False,
    )
