"""Statement assembly for permission-filtered library element reads.

An element either sits in the virtual General folder, which has no
``folders`` row, or in a real folder joined for its title and uid. Reads
select both shapes as separate branches sharing the same predicates and
merge them with UNION ALL; the branches are disjoint on ``folder_id``.
"""

from typing import List, Optional, Sequence

from sqlalchemy import ColumnElement, Select, String, Subquery, and_, func, literal, select, union_all
from sqlalchemy.orm import aliased

from ..common.exceptions import InvalidFolderFilterError
from ..common.schemas import SignedInUser
from ..folder.models import GENERAL_FOLDER_ID, GENERAL_FOLDER_NAME, Folder
from ..folder.permissions import FolderPermissionResolver
from ..user.models import User
from .models import ConnectionKind, LibraryElement, LibraryElementConnection, LibraryElementKind
from .schemas import SortDirection


def parse_folder_filter(raw: str) -> List[int]:
    """Parse a comma-separated list of folder ids.

    Raises:
        InvalidFolderFilterError: If any entry is not a non-negative integer
    """
    if not raw or not raw.strip():
        return []

    folder_ids = []
    for part in raw.split(","):
        try:
            folder_id = int(part.strip())
        except ValueError as e:
            raise InvalidFolderFilterError(f"invalid folder filter '{raw}': '{part}' is not a folder id") from e
        if folder_id < 0:
            raise InvalidFolderFilterError(f"invalid folder filter '{raw}': folder ids cannot be negative")
        folder_ids.append(folder_id)
    return folder_ids


def parse_type_filter(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()] if raw else []


class LibraryElementQueryBuilder:
    """Build read statements scoped to one user's org and folder visibility.

    Filters are accumulated once and applied identically to the General
    and folder branches. Org admins see every folder; everybody else only
    gets folders the resolver reports as viewable.

    Example:
        ```python
        builder = (
            LibraryElementQueryBuilder(user, resolver)
            .filter_by_kind(LibraryElementKind.PANEL)
            .filter_by_search_string("cpu")
        )
        rows = (await db.execute(builder.page_statement(SortDirection.ALPHA_ASC, 1, 100))).all()
        total = (await db.execute(builder.count_statement())).scalar_one()
        ```
    """

    def __init__(self, user: SignedInUser, resolver: FolderPermissionResolver):
        self.user = user
        self.resolver = resolver
        self._predicates: List[ColumnElement[bool]] = [LibraryElement.org_id == user.org_id]
        self._folder_ids: List[int] = []

    def filter_by_uid(self, uid: str) -> "LibraryElementQueryBuilder":
        self._predicates.append(LibraryElement.uid == uid)
        return self

    def filter_by_kind(self, kind: Optional[LibraryElementKind]) -> "LibraryElementQueryBuilder":
        if kind is not None:
            self._predicates.append(LibraryElement.kind == int(kind))
        return self

    def filter_by_search_string(self, search_string: str) -> "LibraryElementQueryBuilder":
        """Case-insensitive substring match on name or description."""
        search_string = search_string.strip()
        if search_string:
            self._predicates.append(
                LibraryElement.name.icontains(search_string, autoescape=True)
                | LibraryElement.description.icontains(search_string, autoescape=True)
            )
        return self

    def exclude_uids(self, uids: Sequence[str]) -> "LibraryElementQueryBuilder":
        uids = [uid for uid in uids if uid]
        if uids:
            self._predicates.append(LibraryElement.uid.not_in(uids))
        return self

    def filter_by_types(self, types: Sequence[str]) -> "LibraryElementQueryBuilder":
        if types:
            self._predicates.append(LibraryElement.type.in_(list(types)))
        return self

    def filter_by_folders(self, folder_ids: Sequence[int]) -> "LibraryElementQueryBuilder":
        """Restrict to the given folders; 0 selects the General folder."""
        self._folder_ids = list(folder_ids)
        return self

    @property
    def _includes_general_folder(self) -> bool:
        return not self._folder_ids or GENERAL_FOLDER_ID in self._folder_ids

    @property
    def _real_folder_ids(self) -> List[int]:
        return [folder_id for folder_id in self._folder_ids if folder_id != GENERAL_FOLDER_ID]

    def _base_select(self, folder_name: ColumnElement[str], folder_uid: ColumnElement[str]) -> Select:
        created_by_user = aliased(User)
        updated_by_user = aliased(User)
        connections = (
            select(func.count(LibraryElementConnection.id))
            .where(
                LibraryElementConnection.element_id == LibraryElement.id,
                LibraryElementConnection.kind == ConnectionKind.DASHBOARD.value,
            )
            .correlate(LibraryElement)
            .scalar_subquery()
        )
        return (
            select(
                LibraryElement.name,
                LibraryElement.id,
                LibraryElement.org_id,
                LibraryElement.folder_id,
                LibraryElement.uid,
                LibraryElement.kind,
                LibraryElement.type,
                LibraryElement.description,
                LibraryElement.model,
                LibraryElement.created,
                LibraryElement.created_by,
                LibraryElement.updated,
                LibraryElement.updated_by,
                LibraryElement.version,
                created_by_user.login.label("created_by_name"),
                created_by_user.email.label("created_by_email"),
                updated_by_user.login.label("updated_by_name"),
                updated_by_user.email.label("updated_by_email"),
                connections.label("connections"),
                folder_name.label("folder_name"),
                folder_uid.label("folder_uid"),
            )
            .select_from(LibraryElement)
            .outerjoin(created_by_user, LibraryElement.created_by == created_by_user.id)
            .outerjoin(updated_by_user, LibraryElement.updated_by == updated_by_user.id)
        )

    def general_folder_branch(self) -> Select:
        return self._base_select(literal(GENERAL_FOLDER_NAME, String), literal("", String)).where(
            LibraryElement.folder_id == GENERAL_FOLDER_ID, *self._predicates
        )

    def folder_branch(self) -> Select:
        stmt = (
            self._base_select(Folder.title, Folder.uid)
            .join(Folder, and_(LibraryElement.folder_id == Folder.id, Folder.org_id == LibraryElement.org_id))
            .where(LibraryElement.folder_id != GENERAL_FOLDER_ID, *self._predicates)
        )
        if self._real_folder_ids:
            stmt = stmt.where(LibraryElement.folder_id.in_(self._real_folder_ids))
        if not self.user.is_org_admin:
            stmt = stmt.where(self.resolver.viewable_folder_filter(self.user))
        return stmt

    def element_statement(self) -> Select:
        """Org-scoped read without folder metadata or view filtering, for write paths."""
        return self._base_select(literal("", String), literal("", String)).where(*self._predicates)

    def build(self) -> Subquery:
        """Merge the applicable branches into one selectable."""
        branches = []
        if self._includes_general_folder:
            branches.append(self.general_folder_branch())
        if not self._folder_ids or self._real_folder_ids:
            branches.append(self.folder_branch())

        if len(branches) == 1:
            return branches[0].subquery("library_elements_with_meta")
        return union_all(*branches).subquery("library_elements_with_meta")

    def rows_statement(self) -> Select:
        return select(self.build())

    def page_statement(self, sort_direction: SortDirection, page: int, per_page: int) -> Select:
        elements = self.build()
        name_order = elements.c.name.desc() if sort_direction == SortDirection.ALPHA_DESC else elements.c.name.asc()
        return (
            select(elements)
            .order_by(name_order, elements.c.id.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )

    def count_statement(self) -> Select:
        return select(func.count()).select_from(self.build())
