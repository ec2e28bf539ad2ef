"""SQLAlchemy models for library elements and their dashboard connections."""

from datetime import datetime
from enum import IntEnum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin, utc_now
from ...infrastructure.database.session import Base


class LibraryElementKind(IntEnum):
    PANEL = 1
    VARIABLE = 2


class ConnectionKind(IntEnum):
    DASHBOARD = 1


class LibraryElement(Base, TimestampMixin):
    """A reusable, versioned panel or variable definition.

    ``model`` holds the serialized JSON definition. ``name``, ``type`` and
    ``description`` are mirrored between the model and their own columns so
    they can be filtered and indexed; see ``sync_fields_with_model``.
    ``folder_id`` 0 places the element in the virtual General folder.
    """

    __tablename__ = "library_elements"
    __table_args__ = (
        UniqueConstraint("org_id", "uid", name="uq_library_elements_org_uid"),
        UniqueConstraint("org_id", "folder_id", "name", "kind", name="uq_library_elements_org_folder_name_kind"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    created_by: Mapped[int] = mapped_column(Integer)
    updated_by: Mapped[int] = mapped_column(Integer)
    org_id: Mapped[int] = mapped_column(Integer, index=True)
    folder_id: Mapped[int] = mapped_column(Integer, index=True)
    uid: Mapped[str] = mapped_column(String(40))
    name: Mapped[str] = mapped_column(String(150), index=True)
    kind: Mapped[int] = mapped_column(Integer, index=True)
    model: Mapped[str] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(40), default="", index=True)
    description: Mapped[str] = mapped_column(String(2048), default="")
    version: Mapped[int] = mapped_column(Integer, default=1)


class LibraryElementConnection(Base):
    """Reference from a dashboard (or another consumer kind) to a library element."""

    __tablename__ = "library_element_connections"
    __table_args__ = (
        UniqueConstraint("element_id", "kind", "connection_id", name="uq_library_element_connections"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    element_id: Mapped[int] = mapped_column(Integer, ForeignKey("library_elements.id"), index=True)
    kind: Mapped[int] = mapped_column(Integer)
    connection_id: Mapped[int] = mapped_column(Integer, index=True)
    created_by: Mapped[int] = mapped_column(Integer)
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default_factory=utc_now, nullable=False, init=False
    )
