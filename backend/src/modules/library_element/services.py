"""Library element store: permission-scoped, optimistically concurrent CRUD and search."""

from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from fastcrud.paginated.response import paginated_response
from sqlalchemy import Row, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.config.settings import settings
from ...infrastructure.database.models import utc_now
from ...infrastructure.database.transaction import is_unique_constraint_violation, transactional
from ...infrastructure.logging import get_logger
from ..common.exceptions import (
    LibraryElementExistsError,
    LibraryElementHasConnectionsError,
    LibraryElementNotFoundError,
    StoreError,
    VersionMismatchError,
)
from ..common.schemas import SignedInUser
from ..common.utils.uid import UidGenerator, generate_short_uid
from ..folder.crud import folder_crud
from ..folder.models import GENERAL_FOLDER_ID, GENERAL_FOLDER_NAME
from ..folder.permissions import AclFolderPermissionResolver, FolderPermissionResolver
from .connections import has_connections
from .crud import library_element_crud
from .models import ConnectionKind, LibraryElement, LibraryElementConnection
from .permissions import handle_folder_patch, require_permissions_on_folder
from .queries import LibraryElementQueryBuilder, parse_folder_filter, parse_type_filter
from .schemas import (
    CreateLibraryElementCommand,
    LibraryElementConnectionDTO,
    LibraryElementDTO,
    LibraryElementDTOMeta,
    LibraryElementDTOMetaUser,
    PatchLibraryElementCommand,
    SearchLibraryElementsQuery,
)
from .sync import parse_model, serialize_model, sync_fields_with_model

logger = get_logger(__name__)


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Re-raise SQLAlchemy failures as domain errors.

    Unique constraint violations become ``LibraryElementExistsError``,
    everything else from the store becomes ``StoreError``.
    """
    try:
        yield
    except IntegrityError as e:
        if is_unique_constraint_violation(e):
            raise LibraryElementExistsError() from e
        raise StoreError(f"library element store integrity error: {e.orig}") from e
    except SQLAlchemyError as e:
        raise StoreError(f"library element store error: {e}") from e


def _single_row(rows: Sequence[Row[Any]]) -> Row[Any]:
    if not rows:
        raise LibraryElementNotFoundError()
    if len(rows) > 1:
        raise StoreError(f"found {len(rows)} elements, while expecting at most one")
    return rows[0]


class LibraryElementService:
    """Service for managing library elements.

    Library elements are panels and variables shared by many dashboards.
    Every operation is scoped to the acting user's org. Writes require edit
    access to the element's folder and run in one transaction; reads only
    return elements in the General folder or in folders the user may view.

    Concurrent edits are detected with the ``version`` column: a patch must
    name the version it read and is applied with a conditional UPDATE.

    Args:
        resolver: Folder access collaborator, ACL-backed by default
        uid_generator: Produces the external uid of new elements
    """

    def __init__(
        self,
        resolver: Optional[FolderPermissionResolver] = None,
        uid_generator: UidGenerator = generate_short_uid,
    ):
        self.resolver = resolver or AclFolderPermissionResolver()
        self.uid_generator = uid_generator

    async def create_element(
        self,
        command: CreateLibraryElementCommand,
        user: SignedInUser,
        db: AsyncSession,
    ) -> LibraryElementDTO:
        """Create a library element at version 1.

        Args:
            command: Folder, name, kind and model of the new element
            user: Acting user, recorded as creator and updater
            db: Database session

        Returns:
            The created element

        Raises:
            MalformedModelError: If the model is not a JSON object
            FolderAccessDeniedError: If the user may not write in the folder
            LibraryElementExistsError: If the uid or the name is already taken
        """
        element = LibraryElement(
            created_by=user.user_id,
            updated_by=user.user_id,
            org_id=user.org_id,
            folder_id=command.folder_id,
            uid=self.uid_generator(),
            name=command.name,
            kind=int(command.kind),
            model=serialize_model(command.model),
            version=1,
        )
        sync_fields_with_model(element)

        async with transactional(db):
            with translate_store_errors():
                await require_permissions_on_folder(db, user, command.folder_id, self.resolver)
                db.add(element)
                await db.flush()
                folder_name, folder_uid = await self._folder_display(db, user.org_id, element.folder_id)

        logger.info(
            "Library element created",
            extra={"uid": element.uid, "org_id": element.org_id, "folder_id": element.folder_id, "kind": element.kind},
        )

        author = self._meta_user(user)
        return self._element_to_dto(
            element,
            element_id=element.id,
            meta=LibraryElementDTOMeta(
                folder_name=folder_name,
                folder_uid=folder_uid,
                connections=0,
                created=element.created,
                updated=element.updated,
                created_by=author,
                updated_by=author,
            ),
        )

    async def get_element(
        self,
        uid: str,
        user: SignedInUser,
        db: AsyncSession,
    ) -> LibraryElementDTO:
        """Get a library element the user may view, with folder and usage metadata.

        Raises:
            LibraryElementNotFoundError: If no visible element has this uid in the org
        """
        builder = LibraryElementQueryBuilder(user, self.resolver).filter_by_uid(uid)
        with translate_store_errors():
            rows = (await db.execute(builder.rows_statement())).all()

        return self._row_to_dto(_single_row(rows))

    async def search_elements(
        self,
        query: SearchLibraryElementsQuery,
        user: SignedInUser,
        db: AsyncSession,
    ) -> dict[str, Any]:
        """Search the library elements the user may view.

        Args:
            query: Filters, sort direction and paging (1-indexed)
            user: Acting user
            db: Database session

        Returns:
            Paginated response with ``data`` holding LibraryElementDTO items

        Raises:
            InvalidFolderFilterError: If the folder filter cannot be parsed
        """
        page = query.page if query.page > 0 else 1
        per_page = query.per_page if query.per_page > 0 else settings.LIBRARY_ELEMENTS_DEFAULT_PER_PAGE
        per_page = min(per_page, settings.LIBRARY_ELEMENTS_MAX_PER_PAGE)

        builder = (
            LibraryElementQueryBuilder(user, self.resolver)
            .filter_by_kind(query.kind)
            .filter_by_search_string(query.search_string)
            .exclude_uids(query.exclude_uids)
            .filter_by_types(parse_type_filter(query.type_filter))
            .filter_by_folders(parse_folder_filter(query.folder_filter))
        )

        with translate_store_errors():
            rows = (await db.execute(builder.page_statement(query.sort_direction, page, per_page))).all()
            total_count = (await db.execute(builder.count_statement())).scalar_one()

        crud_data = {"data": [self._row_to_dto(row) for row in rows], "total_count": total_count}

        return paginated_response(crud_data, page, per_page)

    async def patch_element(
        self,
        command: PatchLibraryElementCommand,
        uid: str,
        user: SignedInUser,
        db: AsyncSession,
    ) -> LibraryElementDTO:
        """Apply a partial update and bump the version by one.

        Args:
            command: Expected version plus the fields to change
            uid: Element to patch
            user: Acting user, recorded as updater
            db: Database session

        Returns:
            The patched element

        Raises:
            LibraryElementNotFoundError: If the element does not exist or was deleted concurrently
            VersionMismatchError: If ``command.version`` is not the stored version
            FolderAccessDeniedError: If the user may not write in the current or destination folder
            LibraryElementExistsError: If the new name is taken in the destination folder
        """
        async with transactional(db):
            with translate_store_errors():
                current = await self._load_element(db, uid, user)
                if current.version != command.version:
                    logger.warning(
                        "Library element version mismatch",
                        extra={"uid": uid, "stored_version": current.version, "expected_version": command.version},
                    )
                    raise VersionMismatchError()

                element = LibraryElement(
                    created_by=current.created_by,
                    updated_by=user.user_id,
                    org_id=user.org_id,
                    folder_id=current.folder_id,
                    uid=uid,
                    name=command.name or current.name,
                    kind=current.kind,
                    model=serialize_model(command.model) if command.model is not None else current.model,
                    type=current.type,
                    description=current.description,
                    version=current.version + 1,
                )
                element.folder_id = await handle_folder_patch(
                    db, user, current.folder_id, command.folder_id, self.resolver
                )
                sync_fields_with_model(element)
                element.updated = utc_now()

                result = await db.execute(
                    update(LibraryElement)
                    .where(LibraryElement.id == current.id, LibraryElement.version == current.version)
                    .values(
                        folder_id=element.folder_id,
                        name=element.name,
                        model=element.model,
                        type=element.type,
                        description=element.description,
                        version=element.version,
                        updated=element.updated,
                        updated_by=element.updated_by,
                    )
                )
                if result.rowcount != 1:
                    if await library_element_crud.exists(db=db, id=current.id):
                        raise VersionMismatchError()
                    raise LibraryElementNotFoundError()

                folder_name, folder_uid = await self._folder_display(db, user.org_id, element.folder_id)

        logger.info(
            "Library element patched",
            extra={"uid": uid, "org_id": user.org_id, "folder_id": element.folder_id, "version": element.version},
        )

        return self._element_to_dto(
            element,
            element_id=current.id,
            meta=LibraryElementDTOMeta(
                folder_name=folder_name,
                folder_uid=folder_uid,
                connections=current.connections or 0,
                created=current.created,
                updated=element.updated,
                created_by=LibraryElementDTOMetaUser(
                    id=current.created_by,
                    name=current.created_by_name or "",
                    email=current.created_by_email or "",
                ),
                updated_by=self._meta_user(user),
            ),
        )

    async def delete_element(
        self,
        uid: str,
        user: SignedInUser,
        db: AsyncSession,
    ) -> None:
        """Delete a library element that no dashboard uses.

        Connections of kinds other than dashboards are removed together with
        the element.

        Raises:
            LibraryElementNotFoundError: If the element does not exist
            FolderAccessDeniedError: If the user may not write in its folder
            LibraryElementHasConnectionsError: If a dashboard still uses it
        """
        async with transactional(db):
            with translate_store_errors():
                current = await self._load_element(db, uid, user)
                await require_permissions_on_folder(db, user, current.folder_id, self.resolver)

                if await has_connections(db, current.id):
                    logger.warning("Library element still connected", extra={"uid": uid, "org_id": user.org_id})
                    raise LibraryElementHasConnectionsError()

                await db.execute(
                    delete(LibraryElementConnection).where(LibraryElementConnection.element_id == current.id)
                )
                result = await db.execute(delete(LibraryElement).where(LibraryElement.id == current.id))
                if result.rowcount != 1:
                    raise LibraryElementNotFoundError()

        logger.info("Library element deleted", extra={"uid": uid, "org_id": user.org_id})

    async def connect_element(
        self,
        uid: str,
        dashboard_id: int,
        user: SignedInUser,
        db: AsyncSession,
    ) -> LibraryElementConnectionDTO:
        """Record that a dashboard uses a library element.

        Connecting twice returns the existing connection.
        """
        async with transactional(db):
            element = await self.get_element(uid, user, db)
            with translate_store_errors():
                existing = await self._find_connection(db, element.id, dashboard_id)
                if existing is not None:
                    return LibraryElementConnectionDTO.model_validate(existing, from_attributes=True)

                connection = LibraryElementConnection(
                    element_id=element.id,
                    kind=ConnectionKind.DASHBOARD.value,
                    connection_id=dashboard_id,
                    created_by=user.user_id,
                )
                try:
                    async with db.begin_nested():
                        db.add(connection)
                except IntegrityError as e:
                    if not is_unique_constraint_violation(e):
                        raise
                    # A concurrent connect for the same dashboard committed first.
                    existing = await self._find_connection(db, element.id, dashboard_id)
                    if existing is None:
                        raise
                    return LibraryElementConnectionDTO.model_validate(existing, from_attributes=True)

        logger.info("Library element connected", extra={"uid": uid, "dashboard_id": dashboard_id})
        return LibraryElementConnectionDTO.model_validate(connection, from_attributes=True)

    async def disconnect_element(
        self,
        uid: str,
        dashboard_id: int,
        user: SignedInUser,
        db: AsyncSession,
    ) -> None:
        """Remove a dashboard's connection to a library element.

        Raises:
            LibraryElementNotFoundError: If the element or the connection does not exist
        """
        async with transactional(db):
            element = await self.get_element(uid, user, db)
            with translate_store_errors():
                result = await db.execute(
                    delete(LibraryElementConnection).where(
                        LibraryElementConnection.element_id == element.id,
                        LibraryElementConnection.kind == ConnectionKind.DASHBOARD.value,
                        LibraryElementConnection.connection_id == dashboard_id,
                    )
                )
                if result.rowcount == 0:
                    raise LibraryElementNotFoundError("library element connection could not be found")

        logger.info("Library element disconnected", extra={"uid": uid, "dashboard_id": dashboard_id})

    async def get_connections(
        self,
        uid: str,
        user: SignedInUser,
        db: AsyncSession,
    ) -> List[LibraryElementConnectionDTO]:
        """List the dashboards connected to a library element."""
        element = await self.get_element(uid, user, db)
        stmt = (
            select(LibraryElementConnection)
            .where(
                LibraryElementConnection.element_id == element.id,
                LibraryElementConnection.kind == ConnectionKind.DASHBOARD.value,
            )
            .order_by(LibraryElementConnection.id)
        )
        with translate_store_errors():
            connections = (await db.execute(stmt)).scalars().all()

        return [LibraryElementConnectionDTO.model_validate(c, from_attributes=True) for c in connections]

    async def _load_element(self, db: AsyncSession, uid: str, user: SignedInUser) -> Row[Any]:
        stmt = LibraryElementQueryBuilder(user, self.resolver).filter_by_uid(uid).element_statement()
        rows = (await db.execute(stmt)).all()
        return _single_row(rows)

    async def _find_connection(
        self, db: AsyncSession, element_id: int, dashboard_id: int
    ) -> Optional[LibraryElementConnection]:
        stmt = select(LibraryElementConnection).where(
            LibraryElementConnection.element_id == element_id,
            LibraryElementConnection.kind == ConnectionKind.DASHBOARD.value,
            LibraryElementConnection.connection_id == dashboard_id,
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    async def _folder_display(self, db: AsyncSession, org_id: int, folder_id: int) -> Tuple[str, str]:
        if folder_id == GENERAL_FOLDER_ID:
            return GENERAL_FOLDER_NAME, ""
        folder = await folder_crud.get(db=db, id=folder_id, org_id=org_id)
        if not folder:
            return "", ""
        return folder["title"], folder["uid"]

    @staticmethod
    def _meta_user(user: SignedInUser) -> LibraryElementDTOMetaUser:
        return LibraryElementDTOMetaUser(id=user.user_id, name=user.login, email=user.email)

    @staticmethod
    def _element_to_dto(element: LibraryElement, element_id: int, meta: LibraryElementDTOMeta) -> LibraryElementDTO:
        return LibraryElementDTO(
            id=element_id,
            org_id=element.org_id,
            folder_id=element.folder_id,
            uid=element.uid,
            name=element.name,
            kind=element.kind,
            type=element.type,
            description=element.description,
            model=parse_model(element.model),
            version=element.version,
            meta=meta,
        )

    @staticmethod
    def _row_to_dto(row: Row[Any]) -> LibraryElementDTO:
        return LibraryElementDTO(
            id=row.id,
            org_id=row.org_id,
            folder_id=row.folder_id,
            uid=row.uid,
            name=row.name,
            kind=row.kind,
            type=row.type,
            description=row.description,
            model=parse_model(row.model),
            version=row.version,
            meta=LibraryElementDTOMeta(
                folder_name=row.folder_name or "",
                folder_uid=row.folder_uid or "",
                connections=row.connections or 0,
                created=row.created,
                updated=row.updated,
                created_by=LibraryElementDTOMetaUser(
                    id=row.created_by, name=row.created_by_name or "", email=row.created_by_email or ""
                ),
                updated_by=LibraryElementDTOMetaUser(
                    id=row.updated_by, name=row.updated_by_name or "", email=row.updated_by_email or ""
                ),
            ),
        )
