"""Folder access resolution.

The library element store only needs two answers from folder access
control: whether a user may write in a folder, and a SQL predicate that
keeps the folders a user may view. ``FolderPermissionResolver`` is that
seam; ``AclFolderPermissionResolver`` answers it from ``folder_permissions``.
"""

from typing import Protocol

from sqlalchemy import ColumnElement, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.schemas import OrgRole, SignedInUser
from .models import Folder, FolderPermission, FolderPermissionLevel

ROLE_DEFAULT_PERMISSIONS = {
    OrgRole.VIEWER: FolderPermissionLevel.VIEW,
    OrgRole.EDITOR: FolderPermissionLevel.EDIT,
    OrgRole.ADMIN: FolderPermissionLevel.ADMIN,
}


class FolderPermissionResolver(Protocol):
    async def can_edit(self, db: AsyncSession, user: SignedInUser, folder_id: int) -> bool: ...

    def viewable_folder_filter(self, user: SignedInUser) -> ColumnElement[bool]: ...


class AclFolderPermissionResolver:
    """Resolve folder access from explicit ACL entries.

    An entry applies to a user when it names the user id or the user's org
    role. Folders without any entry grant the role default: Viewer may view,
    Editor may edit. Org admins may always edit.
    """

    def _applies_to(self, user: SignedInUser) -> ColumnElement[bool]:
        return or_(FolderPermission.user_id == user.user_id, FolderPermission.role == user.org_role.value)

    async def can_edit(self, db: AsyncSession, user: SignedInUser, folder_id: int) -> bool:
        if user.is_org_admin:
            return True

        stmt = select(FolderPermission).where(
            FolderPermission.org_id == user.org_id, FolderPermission.folder_id == folder_id
        )
        entries = (await db.execute(stmt)).scalars().all()
        if not entries:
            return ROLE_DEFAULT_PERMISSIONS[user.org_role] >= FolderPermissionLevel.EDIT

        granted = [
            entry.permission for entry in entries if entry.user_id == user.user_id or entry.role == user.org_role.value
        ]
        return max(granted, default=0) >= FolderPermissionLevel.EDIT

    def viewable_folder_filter(self, user: SignedInUser) -> ColumnElement[bool]:
        """Predicate over ``Folder.id`` for use in statements that select from ``folders``."""
        has_entries = exists().where(FolderPermission.folder_id == Folder.id)
        grants_view = exists().where(
            FolderPermission.folder_id == Folder.id,
            self._applies_to(user),
            FolderPermission.permission >= FolderPermissionLevel.VIEW,
        )
        if ROLE_DEFAULT_PERMISSIONS[user.org_role] >= FolderPermissionLevel.VIEW:
            return or_(~has_entries, grants_view)
        return grants_view
