"""Pydantic schemas shared by all modules."""

from enum import Enum

from pydantic import BaseModel, Field


class OrgRole(str, Enum):
    """Role of a user inside an organization."""

    VIEWER = "Viewer"
    EDITOR = "Editor"
    ADMIN = "Admin"


class SignedInUser(BaseModel):
    """The already-authenticated user acting on a request."""

    user_id: int = Field(description="User id")
    org_id: int = Field(description="Organization the request is scoped to")
    org_role: OrgRole = Field(default=OrgRole.VIEWER, description="Role within the organization")
    login: str = Field(default="", description="Login name, used for audit display")
    email: str = Field(default="", description="Email address, used for audit display")

    @property
    def is_org_admin(self) -> bool:
        return self.org_role == OrgRole.ADMIN

    def has_role(self, role: OrgRole) -> bool:
        """Tell whether the user holds ``role`` or a role above it."""
        ranking = {OrgRole.VIEWER: 1, OrgRole.EDITOR: 2, OrgRole.ADMIN: 3}
        return ranking[self.org_role] >= ranking[role]

