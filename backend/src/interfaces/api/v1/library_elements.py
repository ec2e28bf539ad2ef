"""Library element API endpoints."""

from typing import Annotated, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ....infrastructure.config.settings import settings
from ....modules.common.utils.error_handler import handle_exception
from ....modules.library_element.models import LibraryElementKind
from ....modules.library_element.schemas import (
    CreateLibraryElementCommand,
    LibraryElementConnectionDTO,
    LibraryElementDTO,
    LibraryElementSearchResult,
    PatchLibraryElementCommand,
    SearchLibraryElementsQuery,
    SortDirection,
)
from ....modules.library_element.services import LibraryElementService
from ..dependencies import CurrentUser, DbSession, get_library_element_service

router = APIRouter(prefix="/library-elements", tags=["Library Elements"])

ElementService = Annotated[LibraryElementService, Depends(get_library_element_service)]


def _raise_http(error: Exception) -> NoReturn:
    http_exc = handle_exception(error)
    if http_exc:
        raise http_exc from error
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error") from error


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Library Element",
    description="""
    Creates a reusable panel or variable.

    - **folder_id**: Folder to store the element in, 0 for the General folder
    - **name**: Name, unique per folder and kind
    - **model**: The panel or variable JSON definition
    - **kind**: 1 for panels, 2 for variables

    The element's `type` and `description` are taken from the model.
    """,
    responses={
        201: {"description": "Library element created at version 1"},
        400: {"description": "Model is not a JSON object"},
        403: {"description": "No write access to the folder"},
        404: {"description": "Folder not found"},
        409: {"description": "An element with this name already exists in the folder"},
    },
)
async def create_library_element(
    command: CreateLibraryElementCommand,
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
) -> LibraryElementDTO:
    """Create a library element."""
    try:
        return await service.create_element(command, user, db)
    except Exception as e:
        _raise_http(e)


@router.get(
    "",
    summary="Search Library Elements",
    description="""
    Lists the library elements the user can view, sorted by name.

    - **search_string**: Case-insensitive match on name or description
    - **kind**: 1 for panels, 2 for variables
    - **type_filter**: Comma-separated panel or variable types
    - **exclude_uids**: Elements to leave out
    - **folder_filter**: Comma-separated folder ids, 0 for the General folder
    """,
    responses={
        200: {"description": "Page of library elements"},
        422: {"description": "Invalid folder filter"},
    },
)
async def search_library_elements(
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    per_page: Annotated[
        int, Query(ge=1, le=settings.LIBRARY_ELEMENTS_MAX_PER_PAGE, description="Items per page")
    ] = settings.LIBRARY_ELEMENTS_DEFAULT_PER_PAGE,
    search_string: str = "",
    sort_direction: SortDirection = SortDirection.ALPHA_ASC,
    kind: Optional[LibraryElementKind] = None,
    type_filter: str = "",
    exclude_uids: Annotated[Optional[List[str]], Query()] = None,
    folder_filter: str = "",
) -> LibraryElementSearchResult:
    """Search library elements with pagination."""
    query = SearchLibraryElementsQuery(
        page=page,
        per_page=per_page,
        search_string=search_string,
        sort_direction=sort_direction,
        kind=kind,
        type_filter=type_filter,
        exclude_uids=exclude_uids or [],
        folder_filter=folder_filter,
    )
    try:
        return await service.search_elements(query, user, db)
    except Exception as e:
        _raise_http(e)


@router.get(
    "/{uid}",
    summary="Get Library Element",
    responses={
        200: {"description": "Library element with folder and usage metadata"},
        404: {"description": "Library element not found or not visible"},
    },
)
async def get_library_element(
    uid: str,
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
) -> LibraryElementDTO:
    """Get a library element by uid."""
    try:
        return await service.get_element(uid, user, db)
    except Exception as e:
        _raise_http(e)


@router.patch(
    "/{uid}",
    summary="Patch Library Element",
    description="""
    Partially updates a library element.

    - **version**: The version last read; a stale version is rejected
    - **folder_id**: Move to another folder, omit to keep the current one
    - **name**: New name, empty to keep the current one
    - **model**: New model, omit to keep the current one

    Each successful patch increments the version by one.
    """,
    responses={
        200: {"description": "Library element patched"},
        403: {"description": "No write access to the source or destination folder"},
        404: {"description": "Library element not found"},
        409: {"description": "An element with this name already exists in the folder"},
        412: {"description": "The element was modified since it was read"},
    },
)
async def patch_library_element(
    uid: str,
    command: PatchLibraryElementCommand,
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
) -> LibraryElementDTO:
    """Patch a library element."""
    try:
        return await service.patch_element(command, uid, user, db)
    except Exception as e:
        _raise_http(e)


@router.delete(
    "/{uid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Library Element",
    description="""
    Deletes a library element. Elements still used by a dashboard cannot be
    deleted until every dashboard is disconnected.
    """,
    responses={
        204: {"description": "Library element deleted"},
        403: {"description": "No write access to the folder"},
        404: {"description": "Library element not found"},
        423: {"description": "Library element is still connected to dashboards"},
    },
)
async def delete_library_element(
    uid: str,
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
) -> Response:
    """Delete a library element."""
    try:
        await service.delete_element(uid, user, db)
    except Exception as e:
        _raise_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{uid}/connections",
    summary="List Library Element Connections",
    responses={
        200: {"description": "Dashboards using the element"},
        404: {"description": "Library element not found or not visible"},
    },
)
async def get_library_element_connections(
    uid: str,
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
) -> List[LibraryElementConnectionDTO]:
    """List the dashboards connected to a library element."""
    try:
        return await service.get_connections(uid, user, db)
    except Exception as e:
        _raise_http(e)


@router.post(
    "/{uid}/connections/{dashboard_id}",
    status_code=status.HTTP_201_CREATED,
    summary="Connect Library Element",
    responses={
        201: {"description": "Dashboard connected, or already connected"},
        404: {"description": "Library element not found or not visible"},
    },
)
async def connect_library_element(
    uid: str,
    dashboard_id: int,
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
) -> LibraryElementConnectionDTO:
    """Connect a dashboard to a library element."""
    try:
        return await service.connect_element(uid, dashboard_id, user, db)
    except Exception as e:
        _raise_http(e)


@router.delete(
    "/{uid}/connections/{dashboard_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Disconnect Library Element",
    responses={
        204: {"description": "Dashboard disconnected"},
        404: {"description": "Library element or connection not found"},
    },
)
async def disconnect_library_element(
    uid: str,
    dashboard_id: int,
    user: CurrentUser,
    service: ElementService,
    db: DbSession,
) -> Response:
    """Disconnect a dashboard from a library element."""
    try:
        await service.disconnect_element(uid, dashboard_id, user, db)
    except Exception as e:
        _raise_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
