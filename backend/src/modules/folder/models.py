"""SQLAlchemy models for folders and their access control lists."""

from enum import IntEnum
from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.session import Base

GENERAL_FOLDER_ID = 0
GENERAL_FOLDER_NAME = "General"


class FolderPermissionLevel(IntEnum):
    VIEW = 1
    EDIT = 2
    ADMIN = 4


class Folder(Base):
    """Dashboard folder that library elements can be placed in.

    The General folder is virtual: it has id 0 and no row in this table.
    """

    __tablename__ = "folders"
    __table_args__ = (UniqueConstraint("org_id", "uid", name="uq_folders_org_uid"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    org_id: Mapped[int] = mapped_column(Integer, index=True)
    uid: Mapped[str] = mapped_column(String(40))
    title: Mapped[str] = mapped_column(String(255))


class FolderPermission(Base):
    """Access control entry granting a user or a role a level on a folder.

    Exactly one of ``user_id`` and ``role`` is expected to be set. A folder
    without entries falls back to role defaults.
    """

    __tablename__ = "folder_permissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    org_id: Mapped[int] = mapped_column(Integer, index=True)
    folder_id: Mapped[int] = mapped_column(Integer, ForeignKey("folders.id", ondelete="CASCADE"), index=True)
    permission: Mapped[int] = mapped_column(Integer)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, default=None)
    role: Mapped[Optional[str]] = mapped_column(String(20), default=None)
