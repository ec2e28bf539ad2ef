"""SQLAlchemy models for user entities."""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.session import Base


class User(Base):
    """Directory entry used to display who created or updated an element.

    Authentication lives elsewhere; this table only resolves user ids to
    display fields on reads.
    """

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("org_id", "login", name="uq_users_org_login"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    org_id: Mapped[int] = mapped_column(Integer, index=True)
    login: Mapped[str] = mapped_column(String(190))
    email: Mapped[str] = mapped_column(String(190), default="")
    name: Mapped[str] = mapped_column(String(255), default="")
