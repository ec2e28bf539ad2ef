"""FastAPI dependencies for use in API endpoints."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.database import async_session
from ...modules.common.schemas import OrgRole, SignedInUser
from ...modules.folder.permissions import AclFolderPermissionResolver, FolderPermissionResolver
from ...modules.library_element.services import LibraryElementService

DbSession = Annotated[AsyncSession, Depends(async_session)]


def get_signed_in_user(
    x_user_id: Annotated[int, Header(description="Id of the authenticated user")],
    x_org_id: Annotated[int, Header(description="Organization the request is scoped to")],
    x_org_role: Annotated[OrgRole, Header(description="Role of the user in the organization")] = OrgRole.VIEWER,
    x_user_login: Annotated[str, Header(description="Login of the user")] = "",
    x_user_email: Annotated[str, Header(description="Email of the user")] = "",
) -> SignedInUser:
    """Dependency for the user an upstream auth layer already resolved."""
    return SignedInUser(
        user_id=x_user_id,
        org_id=x_org_id,
        org_role=x_org_role,
        login=x_user_login,
        email=x_user_email,
    )


CurrentUser = Annotated[SignedInUser, Depends(get_signed_in_user)]


def get_folder_permission_resolver() -> FolderPermissionResolver:
    """Dependency for providing the folder access resolver."""
    return AclFolderPermissionResolver()


def get_library_element_service(
    resolver: Annotated[FolderPermissionResolver, Depends(get_folder_permission_resolver)],
) -> LibraryElementService:
    """Dependency for providing a LibraryElementService instance."""
    return LibraryElementService(resolver=resolver)
