"""Tests for ACL-backed folder access resolution."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.common.schemas import OrgRole, SignedInUser
from src.modules.folder.models import Folder, FolderPermission, FolderPermissionLevel
from src.modules.folder.permissions import AclFolderPermissionResolver


@pytest.fixture
def resolver():
    return AclFolderPermissionResolver()


async def viewable_folder_ids(db: AsyncSession, resolver: AclFolderPermissionResolver, user: SignedInUser):
    stmt = select(Folder.id).where(Folder.org_id == user.org_id, resolver.viewable_folder_filter(user))
    return set((await db.execute(stmt)).scalars().all())


@pytest.mark.asyncio
async def test_role_defaults_without_acl(
    resolver: AclFolderPermissionResolver,
    db_session: AsyncSession,
    editor: SignedInUser,
    viewer: SignedInUser,
    test_folder: dict,
):
    """Test folders without entries fall back to role defaults."""
    assert await resolver.can_edit(db_session, editor, test_folder["id"]) is True
    assert await resolver.can_edit(db_session, viewer, test_folder["id"]) is False

    assert test_folder["id"] in await viewable_folder_ids(db_session, resolver, viewer)


@pytest.mark.asyncio
async def test_acl_entries_replace_role_defaults(
    resolver: AclFolderPermissionResolver,
    db_session: AsyncSession,
    admin: SignedInUser,
    editor: SignedInUser,
    viewer: SignedInUser,
    test_folder: dict,
    read_only_folder: dict,
):
    """Test explicit entries decide access once a folder has any."""
    assert await resolver.can_edit(db_session, editor, read_only_folder["id"]) is False
    assert await resolver.can_edit(db_session, admin, read_only_folder["id"]) is True

    assert await viewable_folder_ids(db_session, resolver, editor) == {test_folder["id"], read_only_folder["id"]}
    assert await viewable_folder_ids(db_session, resolver, viewer) == {test_folder["id"]}


@pytest.mark.asyncio
async def test_user_entry_grants_edit(
    resolver: AclFolderPermissionResolver,
    db_session: AsyncSession,
    viewer: SignedInUser,
    read_only_folder: dict,
):
    """Test a user entry can lift a viewer to edit."""
    db_session.add(
        FolderPermission(
            org_id=1,
            folder_id=read_only_folder["id"],
            permission=FolderPermissionLevel.EDIT.value,
            user_id=viewer.user_id,
        )
    )
    await db_session.commit()

    assert await resolver.can_edit(db_session, viewer, read_only_folder["id"]) is True
    assert read_only_folder["id"] in await viewable_folder_ids(db_session, resolver, viewer)


@pytest.mark.asyncio
async def test_role_entry_matches_role_name(resolver: AclFolderPermissionResolver, db_session: AsyncSession):
    """Test role entries only apply to users holding that role."""
    folder = Folder(org_id=1, uid="ops", title="Ops")
    db_session.add(folder)
    await db_session.flush()
    db_session.add(
        FolderPermission(
            org_id=1, folder_id=folder.id, permission=FolderPermissionLevel.EDIT.value, role=OrgRole.VIEWER.value
        )
    )
    await db_session.commit()

    viewer = SignedInUser(user_id=100, org_id=1, org_role=OrgRole.VIEWER)
    editor = SignedInUser(user_id=101, org_id=1, org_role=OrgRole.EDITOR)

    assert await resolver.can_edit(db_session, viewer, folder.id) is True
    assert await resolver.can_edit(db_session, editor, folder.id) is False
