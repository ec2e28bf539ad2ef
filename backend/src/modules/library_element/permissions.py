"""Write access checks on the folders library elements live in."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.logging import get_logger
from ..common.exceptions import FolderAccessDeniedError, FolderNotFoundError
from ..common.schemas import OrgRole, SignedInUser
from ..folder.crud import folder_crud
from ..folder.models import GENERAL_FOLDER_ID
from ..folder.permissions import FolderPermissionResolver

logger = get_logger(__name__)


async def require_permissions_on_folder(
    db: AsyncSession,
    user: SignedInUser,
    folder_id: int,
    resolver: FolderPermissionResolver,
) -> None:
    """Ensure ``user`` may create or edit library elements in ``folder_id``.

    Editors and admins may write in the General folder; viewers may not.
    Any other folder must exist in the user's org and be editable according
    to ``resolver``.

    Raises:
        FolderAccessDeniedError: If the user may not write in the folder
        FolderNotFoundError: If the folder does not exist in the org
    """
    if folder_id == GENERAL_FOLDER_ID:
        if user.has_role(OrgRole.EDITOR):
            return
        logger.warning("General folder write denied", extra={"user_id": user.user_id, "org_id": user.org_id})
        raise FolderAccessDeniedError()

    if not await folder_crud.exists(db=db, id=folder_id, org_id=user.org_id):
        raise FolderNotFoundError()

    if not await resolver.can_edit(db, user, folder_id):
        logger.warning(
            "Folder write denied", extra={"user_id": user.user_id, "org_id": user.org_id, "folder_id": folder_id}
        )
        raise FolderAccessDeniedError()


async def handle_folder_patch(
    db: AsyncSession,
    user: SignedInUser,
    from_folder_id: int,
    to_folder_id: Optional[int],
    resolver: FolderPermissionResolver,
) -> int:
    """Resolve and authorize the destination folder of a patch.

    An unspecified destination keeps the element where it is. Moving to
    another folder requires write access on both folders.

    Returns:
        The folder id the element ends up in
    """
    if to_folder_id is None:
        to_folder_id = from_folder_id

    if to_folder_id != from_folder_id:
        await require_permissions_on_folder(db, user, to_folder_id, resolver)

    await require_permissions_on_folder(db, user, from_folder_id, resolver)

    return to_folder_id
