"""Pydantic schemas for library element commands, queries and read projections."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from ...infrastructure.config.settings import settings
from ..folder.models import GENERAL_FOLDER_ID
from .models import ConnectionKind, LibraryElementKind

ElementModel = Union[Dict[str, Any], str]


class SortDirection(str, Enum):
    ALPHA_ASC = "alpha-asc"
    ALPHA_DESC = "alpha-desc"


class CreateLibraryElementCommand(BaseModel):
    """Command for creating a library element."""

    folder_id: int = Field(default=GENERAL_FOLDER_ID, ge=0, description="Destination folder, 0 for General")
    name: Annotated[str, Field(min_length=1, max_length=150, description="Element name")]
    model: ElementModel = Field(description="Panel or variable definition, as an object or a JSON string")
    kind: LibraryElementKind = Field(description="1 for panels, 2 for variables")


class PatchLibraryElementCommand(BaseModel):
    """Command for a partial update of a library element.

    ``version`` must equal the stored version. An empty ``name`` and an
    absent ``model`` keep the stored values; an absent ``folder_id`` keeps
    the element in its current folder.
    """

    version: int = Field(description="Version the caller last read")
    folder_id: Optional[int] = Field(default=None, ge=0, description="Destination folder, omitted to stay put")
    name: Annotated[str, Field(max_length=150, description="New name, empty to keep")] = ""
    model: Optional[ElementModel] = None


class SearchLibraryElementsQuery(BaseModel):
    """Filters and paging for a library element search."""

    page: int = 1
    per_page: int = settings.LIBRARY_ELEMENTS_DEFAULT_PER_PAGE
    search_string: str = ""
    sort_direction: SortDirection = SortDirection.ALPHA_ASC
    kind: Optional[LibraryElementKind] = None
    type_filter: str = Field(default="", description="Comma-separated element types")
    exclude_uids: List[str] = Field(default_factory=list)
    folder_filter: str = Field(default="", description="Comma-separated folder ids, 0 for General")


class LibraryElementDTOMetaUser(BaseModel):
    id: int
    name: str = ""
    email: str = ""


class LibraryElementDTOMeta(BaseModel):
    folder_name: str = ""
    folder_uid: str = ""
    connections: int = 0
    created: datetime
    updated: datetime
    created_by: LibraryElementDTOMetaUser
    updated_by: LibraryElementDTOMetaUser


class LibraryElementDTO(BaseModel):
    """Read projection of a library element with folder and usage metadata."""

    id: int
    org_id: int
    folder_id: int
    uid: str
    name: str
    kind: LibraryElementKind
    type: str
    description: str
    model: Dict[str, Any]
    version: int
    meta: LibraryElementDTOMeta


class LibraryElementSearchResult(BaseModel):
    """Schema for a paginated search response."""

    data: List[LibraryElementDTO]
    total_count: int
    has_more: bool
    page: int
    items_per_page: int


class LibraryElementConnectionDTO(BaseModel):
    id: int
    element_id: int
    kind: ConnectionKind
    connection_id: int
    created: datetime
    created_by: int
